"""Tests for utility functions.

Tests for: display_width, pad_to_width, SourceLines, extract_source.
"""

from hongdown.utils import display_width, pad_to_width
from hongdown.utils.source import SourceLines, extract_source

# =========================================================================
# display_width tests
# =========================================================================

class TestDisplayWidth:
    """Tests for display_width utility."""

    def test_ascii(self):
        assert display_width("abc") == 3

    def test_empty(self):
        assert display_width("") == 0

    def test_wide_characters(self):
        assert display_width("한국어") == 6
        assert display_width("日本") == 4

    def test_combining_mark(self):
        assert display_width("é") == 1


# =========================================================================
# pad_to_width tests
# =========================================================================

class TestPadToWidth:
    """Tests for pad_to_width utility."""

    def test_left(self):
        assert pad_to_width("ab", 5) == "ab   "

    def test_right(self):
        assert pad_to_width("ab", 5, "right") == "   ab"

    def test_center_extra_space_on_right(self):
        assert pad_to_width("ab", 5, "center") == " ab  "

    def test_never_truncates(self):
        assert pad_to_width("abcdef", 3) == "abcdef"

    def test_wide_text(self):
        assert pad_to_width("한", 4) == "한  "


# =========================================================================
# SourceLines tests
# =========================================================================

class TestSourceLines:
    """Tests for SourceLines and extract_source."""

    def test_lines(self):
        src = SourceLines("a\nb\n")
        assert len(src) == 2
        assert src.line(1) == "a"
        assert src.line(2) == "b"
        assert src.ends_with_newline is True

    def test_out_of_range_line(self):
        src = SourceLines("a\n")
        assert src.line(0) is None
        assert src.line(2) is None

    def test_no_trailing_newline(self):
        src = SourceLines("a\nb")
        assert len(src) == 2
        assert src.ends_with_newline is False

    def test_span(self):
        src = SourceLines("a\nb\nc\n")
        assert src.span(1, 2) == "a\nb"
        assert src.span(3, 3) == "c"

    def test_degenerate_span(self):
        src = SourceLines("a\nb\n")
        assert src.span(2, 1) is None
        assert src.span(1, 5) is None
        assert src.span(0, 1) is None

    def test_tail(self):
        src = SourceLines("a\nb\nc\n")
        assert src.tail(2) == "b\nc"

    def test_extract_source(self):
        assert extract_source(["x", "y"], 1, 1) == "x"
        assert extract_source([], 1, 1) is None
