"""Tests for table layout."""

from hongdown.serializer.context import Context
from hongdown.serializer.tables import (
    MIN_COLUMN_WIDTH,
    column_widths,
    delimiter_cell,
    find_unescaped_pipes,
    render_table,
)


class TestRenderTable:
    def test_minimum_width_and_alignment(self):
        assert render_table([["a", "b"], ["1", "2"]], ["", "center"]) == [
            "| a   | b   |",
            "| --- | :-: |",
            "| 1   | 2   |",
        ]

    def test_columns_widen_to_content(self):
        assert render_table([["Name", "Value"], ["width", "80"]], ["", "right"]) == [
            "| Name  | Value |",
            "| ----- | ----: |",
            "| width | 80    |",
        ]

    def test_pipe_escaped(self):
        assert render_table([["a|b"]], [""]) == ["| a\\|b |", "| ---- |"]

    def test_short_rows_padded(self):
        assert render_table([["a", "b"], ["1"]], ["", ""])[2] == "| 1   |     |"

    def test_wide_characters(self):
        assert render_table([["한국"], ["x"]], [""]) == [
            "| 한국 |",
            "| ---- |",
            "| x    |",
        ]

    def test_empty(self):
        assert render_table([], []) == []


class TestHelpers:
    def test_delimiter_cells(self):
        assert delimiter_cell("left", 5) == ":----"
        assert delimiter_cell("right", 5) == "----:"
        assert delimiter_cell("center", 5) == ":---:"
        assert delimiter_cell("", 3) == "---"

    def test_column_widths(self):
        assert column_widths([["a", "longer"]], 2) == [MIN_COLUMN_WIDTH, 6]


class TestUnescapedPipes:
    def test_pipe_in_code_span(self):
        assert find_unescaped_pipes('| `a` | `"x" | "y"` |') == [13]

    def test_escaped_pipe_in_code_span(self):
        assert find_unescaped_pipes("| `a\\|b` |") == []

    def test_plain_cells(self):
        assert find_unescaped_pipes("| a | b |") == []


class TestContext:
    def test_nested_narrows_width(self):
        child = Context(80).nested(4, item_width=4, indented=True)
        assert child.width == 76
        assert child.item_width == 4
        assert child.indented
        assert not child.top_level

    def test_nested_resets_item_and_lead(self):
        parent = Context(80, item_width=4, lead="[ ] ")
        child = parent.nested(2)
        assert child.item_width == 0
        assert child.lead == ""

    def test_width_never_below_one(self):
        assert Context(10).nested(100).width == 1
