"""End-to-end formatting of bullet, ordered and task lists."""

from __future__ import annotations


class TestBulletLists:
    def test_marker_normalized(self, fmt):
        assert fmt("* one\n* two\n") == " -  one\n -  two\n"

    def test_nested_indent(self, fmt):
        assert fmt("- a\n    - b\n") == " -  a\n     -  b\n"

    def test_loose_list_keeps_blank_lines(self, fmt):
        assert fmt("- a\n\n- b\n") == " -  a\n\n -  b\n"

    def test_adjacent_lists_alternate_marker(self, fmt):
        assert fmt("- a\n- b\n\n* c\n") == " -  a\n -  b\n\n *  c\n"

    def test_task_items(self, fmt):
        assert fmt("- [ ] todo\n- [x] done\n") == " -  [ ] todo\n -  [x] done\n"

    def test_custom_marker(self, fmt):
        assert fmt("- a\n", unordered_marker="*") == " *  a\n"

    def test_custom_spacing(self, fmt):
        result = fmt("* a\n", unordered_leading_spaces=0, unordered_trailing_spaces=1)
        assert result == "- a\n"

    def test_item_text_wraps_under_marker(self, fmt):
        assert fmt("- alpha beta gamma delta epsilon\n", line_width=20) == (
            " -  alpha beta gamma\n    delta epsilon\n"
        )

    def test_code_block_in_loose_item(self, fmt):
        text = "- item\n\n  ```\n  code\n  ```\n"
        assert fmt(text) == " -  item\n\n    ~~~~\n    code\n    ~~~~\n"

    def test_code_block_in_tight_item_loosens_list(self, fmt):
        once = fmt("- a\n  ```\n  x\n  ```\n- b\n")
        assert once == " -  a\n\n    ~~~~\n    x\n    ~~~~\n\n -  b\n"
        assert fmt(once) == once

    def test_quote_in_tight_item_loosens_list(self, fmt):
        once = fmt("- a\n  > q\n- b\n")
        assert once == " -  a\n\n    > q\n\n -  b\n"
        assert fmt(once) == once


class TestOrderedLists:
    def test_markers(self, fmt):
        assert fmt("1. one\n2. two\n") == "1.  one\n2.  two\n"

    def test_start_number_kept(self, fmt):
        assert fmt("3. c\n4. d\n") == "3.  c\n4.  d\n"

    def test_numbers_padded_at_start(self, fmt):
        text = "".join(f"{n}. item\n" for n in range(1, 11))
        lines = fmt(text).splitlines()
        assert lines[0] == " 1. item"
        assert lines[9] == "10. item"

    def test_numbers_padded_at_end(self, fmt):
        text = "".join(f"{n}. item\n" for n in range(1, 11))
        lines = fmt(text, ordered_pad="end").splitlines()
        assert lines[0] == "1.  item"
        assert lines[9] == "10. item"

    def test_nested_level_uses_even_marker(self, fmt):
        assert fmt("1. a\n   1. b\n") == "1.  a\n    1)  b\n"

    def test_renumbered_from_start(self, fmt):
        assert fmt("1. a\n1. b\n1. c\n") == "1.  a\n2.  b\n3.  c\n"

    def test_custom_markers(self, fmt):
        assert fmt("1. a\n", odd_level_marker=")") == "1)  a\n"
