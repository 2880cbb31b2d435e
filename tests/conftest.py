"""Shared test fixtures for the hongdown test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from hongdown.api import format_markdown, format_with_warnings
from hongdown.config import FormatOptions
from hongdown.models import FormatResult


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [call["name"] for call in self.increments + self.timings + self.gauges]


@pytest.fixture
def options() -> FormatOptions:
    """Default formatting options (the house style)."""
    return FormatOptions()


@pytest.fixture
def fmt() -> Callable[..., str]:
    """Format text; keyword arguments become :class:`FormatOptions` fields."""

    def run(text: str, **overrides: Any) -> str:
        return format_markdown(text, FormatOptions(**overrides))

    return run


@pytest.fixture
def fmt_result() -> Callable[..., FormatResult]:
    """Like :func:`fmt` but returns the full :class:`FormatResult`."""

    def run(text: str, **overrides: Any) -> FormatResult:
        return format_with_warnings(text, FormatOptions(**overrides))

    return run


@pytest.fixture
def recording_metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()
