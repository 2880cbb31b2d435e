"""Tests for directive comments and skip-mode transitions."""

import pytest

from hongdown.models import Directive, SkipMode
from hongdown.serializer.directives import (
    ParsedDirective,
    is_directive_comment,
    next_skip_mode,
    parse_directive,
)


class TestParseDirective:
    @pytest.mark.parametrize("html, directive", [
        ("<!-- hongdown-disable -->", Directive.DISABLE),
        ("<!--hongdown-enable-->", Directive.ENABLE),
        ("<!-- hongdown-disable-file -->\n", Directive.DISABLE_FILE),
        ("<!-- hongdown-disable-next-line -->", Directive.DISABLE_NEXT_LINE),
        ("<!-- hongdown-disable-next-section -->", Directive.DISABLE_NEXT_SECTION),
    ])
    def test_toggles(self, html, directive):
        parsed = parse_directive(html)
        assert parsed == ParsedDirective(directive)
        assert parsed.is_toggle

    def test_proper_nouns(self):
        parsed = parse_directive("<!-- hongdown-proper-nouns: Hongdown, Fedify -->")
        assert parsed is not None
        assert parsed.directive is Directive.PROPER_NOUNS
        assert parsed.words == ("Hongdown", "Fedify")
        assert not parsed.is_toggle

    def test_common_nouns_skip_empty_entries(self):
        parsed = parse_directive("<!-- hongdown-common-nouns: Python, , Go -->")
        assert parsed is not None
        assert parsed.words == ("Python", "Go")

    @pytest.mark.parametrize("html", [
        "<!-- just a comment -->",
        "<div>",
        "<!-- hongdown-disable --> trailing",
        "<!-- a --> <!-- hongdown-disable -->",
        "<!-- hongdown-disabled -->",
    ])
    def test_not_a_directive(self, html):
        assert parse_directive(html) is None
        assert not is_directive_comment(html)


class TestNextSkipMode:
    @pytest.mark.parametrize("directive, expected", [
        (Directive.DISABLE_NEXT_LINE, SkipMode.NEXT_BLOCK),
        (Directive.DISABLE_NEXT_SECTION, SkipMode.UNTIL_SECTION),
        (Directive.DISABLE, SkipMode.DISABLED),
        (Directive.DISABLE_FILE, SkipMode.DISABLED),
        (Directive.ENABLE, SkipMode.NONE),
    ])
    def test_from_none(self, directive, expected):
        assert next_skip_mode(SkipMode.NONE, directive) is expected

    def test_only_enable_leaves_disabled(self):
        assert next_skip_mode(SkipMode.DISABLED, Directive.DISABLE_NEXT_LINE) is SkipMode.DISABLED
        assert next_skip_mode(SkipMode.DISABLED, Directive.ENABLE) is SkipMode.NONE

    def test_enable_cancels_pending_skip(self):
        assert next_skip_mode(SkipMode.UNTIL_SECTION, Directive.ENABLE) is SkipMode.NONE

    def test_noun_directive_keeps_mode(self):
        assert next_skip_mode(SkipMode.NEXT_BLOCK, Directive.PROPER_NOUNS) is SkipMode.NEXT_BLOCK
