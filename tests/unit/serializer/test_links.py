"""End-to-end formatting of links, reference definitions and autolinks."""

from __future__ import annotations

import pytest


class TestInlineToReference:
    def test_external_link_becomes_shortcut(self, fmt):
        assert fmt("See [docs](https://example.com).\n") == (
            "See [docs].\n\n[docs]: https://example.com\n"
        )

    def test_title_moves_to_definition(self, fmt):
        assert fmt('[docs](https://example.com "Docs")\n') == (
            '[docs]\n\n[docs]: https://example.com "Docs"\n'
        )

    def test_definitions_flushed_per_section(self, fmt):
        text = (
            "Intro [a](https://a.example).\n\n"
            "## Next\n\n"
            "Body [b](https://b.example).\n"
        )
        assert fmt(text) == (
            "Intro [a].\n\n[a]: https://a.example\n\n\n"
            "Next\n----\n\n"
            "Body [b].\n\n[b]: https://b.example\n"
        )

    def test_conflicting_target_stays_inline(self, fmt):
        text = "[a](https://one.example) and [a](https://two.example)\n"
        assert fmt(text) == (
            "[a] and [a](https://two.example)\n\n[a]: https://one.example\n"
        )

    def test_collapsed_form_before_parenthesis(self, fmt):
        assert fmt("[a](https://a.example)(note)\n") == (
            "[a][](note)\n\n[a]: https://a.example\n"
        )

    def test_existing_matching_definition_reused(self, fmt):
        text = "[docs](https://example.com)\n\n[docs]: https://example.com\n"
        assert fmt(text) == "[docs]\n\n[docs]: https://example.com\n"

    def test_text_equal_to_url_becomes_autolink(self, fmt):
        assert fmt("[https://example.com](https://example.com)\n") == (
            "<https://example.com>\n"
        )

    def test_trailing_comment_after_definitions(self, fmt):
        text = "See [a](https://a.example).\n\n<!-- trailing -->\n"
        assert fmt(text) == (
            "See [a].\n\n[a]: https://a.example\n\n<!-- trailing -->\n"
        )


class TestPreserved:
    @pytest.mark.parametrize("text", [
        "[home](/index.html)\n",
        "[![x](a.png)](https://e.example)\n",
        "<https://x.example>\n",
        "[the docs][docs]\n\n[docs]: https://example.com/docs\n",
        "Text.\n\n[unused]: https://u.example\n",
        "[x][2] [y][1]\n\n[1]: https://one.example\n[2]: https://two.example\n",
        "![logo][img]\n\n[img]: https://example.com/logo.png\n",
    ])
    def test_unchanged(self, fmt, text):
        assert fmt(text) == text

    def test_inline_link_idempotent(self, fmt):
        once = fmt("Read [the guide](https://guide.example) first.\n")
        assert fmt(once) == once
