"""Formatting options and configuration-file loading for hongdown.

:class:`FormatOptions` is a plain dataclass that captures every style knob
the serializer understands.  Instances are validated eagerly in
``__post_init__`` so that an out-of-range value is rejected with a
:class:`~hongdown.errors.HongdownConfigError` before any document is
touched.

Options normally come from a ``.hongdown.toml`` file discovered by walking
up from the working directory:

.. code-block:: toml

    line_width = 80
    include = ["*.md", "docs/**/*.md"]

    [heading]
    sentence_case = true
    proper_nouns = ["Hongdown"]

    [code_block.formatters]
    python = ["ruff", "format", "-"]
    json = { command = ["jq", "."], timeout = 10 }

:class:`ProjectConfig` bundles the parsed options with the file-discovery
keys (``include``/``exclude``) that only the command-line front end uses.
"""

from __future__ import annotations

import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from hongdown.errors import HongdownConfigError

CONFIG_FILE_NAME = ".hongdown.toml"
"""Name of the configuration file searched for by :func:`discover_config`."""

DEFAULT_THEMATIC_BREAK = " ".join(["-"] * 37)
"""37 space-separated hyphens."""

DEFAULT_FORMATTER_TIMEOUT = 5.0

_THEMATIC_BREAK_RE = re.compile(r"^(?:([*\-_])\s*){3,}$")


# ---------------------------------------------------------------------------
# External formatter command
# ---------------------------------------------------------------------------

@dataclass
class FormatterCommand:
    """An external program that reformats code blocks of one language.

    Parameters
    ----------
    command:
        Program and arguments.  The code is written to its standard input
        and the formatted code is read from its standard output.
    timeout:
        Seconds to wait before the process is killed.
    """

    command: list[str]

    timeout: float = DEFAULT_FORMATTER_TIMEOUT

    def __post_init__(self) -> None:
        if not self.command or not self.command[0]:
            raise HongdownConfigError(
                "formatter command must not be empty",
                context={"field": "command", "value": self.command},
            )
        if self.timeout <= 0:
            raise HongdownConfigError(
                f"formatter timeout must be > 0, got {self.timeout}",
                context={"field": "timeout", "value": self.timeout},
            )


# ---------------------------------------------------------------------------
# Formatting options
# ---------------------------------------------------------------------------

@dataclass
class FormatOptions:
    """Complete set of style options for one formatting run.

    Every field has a default, so ``FormatOptions()`` formats in the house
    style.

    Parameters
    ----------
    line_width:
        Target maximum display width of wrapped prose lines.  At least 8.
    setext_h1, setext_h2:
        Render level 1 and 2 headings with ``===`` / ``---`` underlines
        instead of ``#`` prefixes.
    sentence_case:
        Normalize heading text to sentence case.
    proper_nouns:
        Extra proper nouns (single or multi-word) whose casing is kept by
        the sentence-case normalizer.  Checked before the built-in table.
    common_nouns:
        Words that must *not* be treated as proper nouns even if the
        built-in table lists them.
    unordered_marker:
        Bullet character: ``"-"``, ``"*"`` or ``"+"``.
    unordered_leading_spaces, unordered_trailing_spaces:
        Spaces before and after the bullet (0 to 3 each).
    unordered_indent_width:
        Indentation of nested unordered lists.
    odd_level_marker, even_level_marker:
        Ordered-list delimiter for odd and even nesting levels.
    ordered_pad:
        Where numbers are padded to a common width:

        * ``"start"`` -- right-align numbers (`` 9.`` / ``10.``).
        * ``"end"`` -- left-align numbers (``9. `` / ``10.``).
    ordered_indent_width:
        Indentation of nested ordered lists.
    fence_char:
        Code fence character, ``"~"`` or ``"`"``.
    min_fence_length:
        Minimum fence length (at least 3).  Longer fences are used when the
        code itself contains a run of the fence character.
    space_after_fence:
        Put a space between the fence and the language tag.
    default_language:
        Language tag used for fenced blocks without one.
    formatters:
        Mapping from language identifier to :class:`FormatterCommand`.
    thematic_break_style:
        Literal text of a thematic break.
    thematic_break_leading_spaces:
        Spaces before the thematic break (0 to 3).
    curly_double_quotes, curly_single_quotes:
        Convert straight quote pairs to curly quotes.
    curly_apostrophes:
        Convert straight apostrophes to U+2019.
    ellipsis:
        Convert ``...`` to U+2026.
    en_dash, em_dash:
        Literal pattern replaced by U+2013 / U+2014, or ``None`` to
        disable.  The two must differ.
    metrics:
        Optional :class:`~hongdown.observability.MetricsHook`.
    """

    # ── Layout ──────────────────────────────────────────────────────────
    line_width: int = 80

    # ── Headings ────────────────────────────────────────────────────────
    setext_h1: bool = True

    setext_h2: bool = True

    sentence_case: bool = False

    proper_nouns: list[str] = field(default_factory=list)

    common_nouns: list[str] = field(default_factory=list)

    # ── Unordered lists ─────────────────────────────────────────────────
    unordered_marker: Literal["-", "*", "+"] = "-"

    unordered_leading_spaces: int = 1

    unordered_trailing_spaces: int = 2

    unordered_indent_width: int = 4

    # ── Ordered lists ───────────────────────────────────────────────────
    odd_level_marker: Literal[".", ")"] = "."

    even_level_marker: Literal[".", ")"] = ")"

    ordered_pad: Literal["start", "end"] = "start"

    ordered_indent_width: int = 4

    # ── Code blocks ─────────────────────────────────────────────────────
    fence_char: Literal["~", "`"] = "~"

    min_fence_length: int = 4

    space_after_fence: bool = True

    default_language: str = ""

    formatters: dict[str, FormatterCommand] = field(default_factory=dict)

    # ── Thematic breaks ─────────────────────────────────────────────────
    thematic_break_style: str = DEFAULT_THEMATIC_BREAK

    thematic_break_leading_spaces: int = 3

    # ── Punctuation ─────────────────────────────────────────────────────
    curly_double_quotes: bool = True

    curly_single_quotes: bool = True

    curly_apostrophes: bool = False

    ellipsis: bool = True

    en_dash: str | None = None

    em_dash: str | None = "--"

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate options after initialization."""
        if self.line_width < 8:
            raise _invalid("line_width", self.line_width, ">= 8")
        if self.unordered_marker not in ("-", "*", "+"):
            raise _invalid("unordered_marker", self.unordered_marker, "one of '-', '*', '+'")
        for name in (
            "unordered_leading_spaces",
            "unordered_trailing_spaces",
            "thematic_break_leading_spaces",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 3:
                raise _invalid(name, value, "between 0 and 3")
        for name in ("unordered_indent_width", "ordered_indent_width"):
            value = getattr(self, name)
            if value < 1:
                raise _invalid(name, value, ">= 1")
        for name in ("odd_level_marker", "even_level_marker"):
            value = getattr(self, name)
            if value not in (".", ")"):
                raise _invalid(name, value, "one of '.', ')'")
        if self.ordered_pad not in ("start", "end"):
            raise _invalid("ordered_pad", self.ordered_pad, "one of 'start', 'end'")
        if self.fence_char not in ("~", "`"):
            raise _invalid("fence_char", self.fence_char, "one of '~', '`'")
        if self.min_fence_length < 3:
            raise _invalid("min_fence_length", self.min_fence_length, ">= 3")
        if not _THEMATIC_BREAK_RE.match(self.thematic_break_style.strip()) or len(
            set(self.thematic_break_style.replace(" ", ""))
        ) != 1:
            raise _invalid(
                "thematic_break_style",
                self.thematic_break_style,
                "at least three of exactly one of '*', '-', '_'",
            )
        if self.thematic_break_style != self.thematic_break_style.strip():
            raise _invalid(
                "thematic_break_style",
                self.thematic_break_style,
                "free of leading and trailing whitespace",
            )
        for name in ("en_dash", "em_dash"):
            value = getattr(self, name)
            if value is not None and (not value or value.isspace()):
                raise _invalid(name, value, "a non-blank pattern or None")
        if self.en_dash is not None and self.en_dash == self.em_dash:
            raise HongdownConfigError(
                f"en_dash and em_dash patterns must differ, both are {self.en_dash!r}",
                context={"field": "en_dash", "value": self.en_dash},
            )
        for language, formatter in self.formatters.items():
            if not isinstance(formatter, FormatterCommand):
                raise _invalid(f"formatters[{language!r}]", formatter, "a FormatterCommand")

    # ------------------------------------------------------------------
    # Construction from configuration data
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FormatOptions:
        """Build options from the nested layout of a ``.hongdown.toml`` file.

        Parameters
        ----------
        data:
            Parsed TOML document.  The file-discovery keys ``include``,
            ``exclude`` and ``no_inherit`` are accepted and ignored here.

        Raises
        ------
        HongdownConfigError
            On unknown sections or keys, wrong value types, or any value
            rejected by :meth:`__post_init__`.
        """
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in _DISCOVERY_KEYS:
                continue
            if key == "line_width":
                kwargs["line_width"] = _expect(key, value, int)
                continue
            section = _SECTIONS.get(key)
            if section is None:
                raise HongdownConfigError(
                    f"unknown configuration key {key!r}",
                    context={"field": key},
                )
            if not isinstance(value, Mapping):
                raise _invalid(key, value, "a table")
            for sub_key, sub_value in value.items():
                qualified = f"{key}.{sub_key}"
                if key == "code_block" and sub_key == "formatters":
                    kwargs["formatters"] = _parse_formatters(sub_value)
                    continue
                if key == "punctuation" and sub_key in ("en_dash", "em_dash"):
                    kwargs[sub_key] = _parse_dash(qualified, sub_key, sub_value)
                    continue
                target = section.get(sub_key)
                if target is None:
                    raise HongdownConfigError(
                        f"unknown configuration key {qualified!r}",
                        context={"field": qualified},
                    )
                attr, expected = target
                kwargs[attr] = _expect(qualified, sub_value, expected)
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Project configuration (options + file discovery)
# ---------------------------------------------------------------------------

@dataclass
class ProjectConfig:
    """A loaded ``.hongdown.toml`` file.

    Attributes
    ----------
    options:
        Formatting options from the file.
    include, exclude:
        Glob patterns, relative to :attr:`base_dir`, selecting the files
        the command-line front end formats when none are given.
    path:
        The file the configuration was read from, if any.
    """

    options: FormatOptions = field(default_factory=FormatOptions)

    include: list[str] = field(default_factory=list)

    exclude: list[str] = field(default_factory=list)

    path: Path | None = None

    @property
    def base_dir(self) -> Path:
        """Directory that glob patterns are resolved against."""
        return self.path.parent if self.path is not None else Path.cwd()

    def collect_files(self) -> list[Path]:
        """Expand :attr:`include` patterns and drop :attr:`exclude` matches.

        Returns a sorted, de-duplicated list of existing files.  An empty
        ``include`` list yields an empty result.
        """
        base = self.base_dir
        found: set[Path] = set()
        for pattern in self.include:
            for candidate in base.glob(pattern):
                if candidate.is_file():
                    found.add(candidate)
        excluded = {
            candidate for pattern in self.exclude for candidate in base.glob(pattern)
        }
        return sorted(found - excluded)


def load_config(path: str | Path) -> ProjectConfig:
    """Read and validate a configuration file.

    Raises
    ------
    HongdownConfigError
        If the file cannot be read, is not valid TOML, or holds invalid
        options.  The error context carries the ``path``.
    """
    path = Path(path)
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise HongdownConfigError(
            f"failed to read {path}: {exc}",
            context={"path": str(path)},
            cause=exc,
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise HongdownConfigError(
            f"failed to parse {path}: {exc}",
            context={"path": str(path)},
            cause=exc,
        ) from exc

    try:
        options = FormatOptions.from_mapping(data)
        include = _string_list("include", data.get("include", []))
        exclude = _string_list("exclude", data.get("exclude", []))
    except HongdownConfigError as exc:
        exc.context.setdefault("path", str(path))
        raise
    return ProjectConfig(options=options, include=include, exclude=exclude, path=path)


def discover_config(start_dir: str | Path) -> ProjectConfig | None:
    """Find the nearest ``.hongdown.toml`` in *start_dir* or its parents."""
    current = Path(start_dir).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return load_config(candidate)
    return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_DISCOVERY_KEYS = frozenset({"include", "exclude", "no_inherit"})

# section -> key -> (FormatOptions attribute, expected type)
_SECTIONS: dict[str, dict[str, tuple[str, type | tuple[type, ...]]]] = {
    "heading": {
        "setext_h1": ("setext_h1", bool),
        "setext_h2": ("setext_h2", bool),
        "sentence_case": ("sentence_case", bool),
        "proper_nouns": ("proper_nouns", list),
        "common_nouns": ("common_nouns", list),
    },
    "unordered_list": {
        "unordered_marker": ("unordered_marker", str),
        "leading_spaces": ("unordered_leading_spaces", int),
        "trailing_spaces": ("unordered_trailing_spaces", int),
        "indent_width": ("unordered_indent_width", int),
    },
    "ordered_list": {
        "odd_level_marker": ("odd_level_marker", str),
        "even_level_marker": ("even_level_marker", str),
        "pad": ("ordered_pad", str),
        "indent_width": ("ordered_indent_width", int),
    },
    "code_block": {
        "fence_char": ("fence_char", str),
        "min_fence_length": ("min_fence_length", int),
        "space_after_fence": ("space_after_fence", bool),
        "default_language": ("default_language", str),
    },
    "thematic_break": {
        "style": ("thematic_break_style", str),
        "leading_spaces": ("thematic_break_leading_spaces", int),
    },
    "punctuation": {
        "curly_double_quotes": ("curly_double_quotes", bool),
        "curly_single_quotes": ("curly_single_quotes", bool),
        "curly_apostrophes": ("curly_apostrophes", bool),
        "ellipsis": ("ellipsis", bool),
    },
}

_DEFAULT_EN_DASH = "-"
_DEFAULT_EM_DASH = "--"


def _invalid(name: str, value: Any, requirement: str) -> HongdownConfigError:
    return HongdownConfigError(
        f"{name} must be {requirement}, got {value!r}",
        context={"field": name, "value": value},
    )


def _expect(name: str, value: Any, expected: type | tuple[type, ...]) -> Any:
    # bool is a subclass of int; reject it where a number is expected.
    if expected is int and isinstance(value, bool):
        raise _invalid(name, value, "an integer")
    if not isinstance(value, expected):
        type_name = getattr(expected, "__name__", str(expected))
        raise _invalid(name, value, f"of type {type_name}")
    if expected is list:
        return _string_list(name, value)
    return value


def _string_list(name: str, value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise _invalid(name, value, "a list of strings")
    return list(value)


def _parse_dash(qualified: str, name: str, value: Any) -> str | None:
    if value is False:
        return None
    if value is True:
        return _DEFAULT_EN_DASH if name == "en_dash" else _DEFAULT_EM_DASH
    if isinstance(value, str):
        return value
    raise _invalid(qualified, value, "a string or boolean")


def _parse_formatters(value: Any) -> dict[str, FormatterCommand]:
    if not isinstance(value, Mapping):
        raise _invalid("code_block.formatters", value, "a table")
    formatters: dict[str, FormatterCommand] = {}
    for language, spec in value.items():
        name = f"code_block.formatters.{language}"
        if isinstance(spec, list):
            formatters[language] = FormatterCommand(command=_string_list(name, spec))
        elif isinstance(spec, Mapping):
            unknown = set(spec) - {"command", "timeout"}
            if unknown:
                raise HongdownConfigError(
                    f"unknown configuration key {name}.{sorted(unknown)[0]!r}",
                    context={"field": name},
                )
            timeout = spec.get("timeout", DEFAULT_FORMATTER_TIMEOUT)
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise _invalid(f"{name}.timeout", timeout, "a number")
            formatters[language] = FormatterCommand(
                command=_string_list(f"{name}.command", spec.get("command", [])),
                timeout=float(timeout),
            )
        else:
            raise _invalid(name, spec, "a command list or a table")
    return formatters
