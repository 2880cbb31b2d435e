"""Comprehensive tests for the MetricsHook protocol and integration.

Covers:
  - Protocol conformance (isinstance, structural subtyping)
  - NoopMetricsHook behaviour (all methods, all parameters)
  - resolve_metrics fallback for objects that are not hooks
  - Every documented metric name is emitted while formatting
"""
from __future__ import annotations

import sys

from hongdown.api import format_with_warnings
from hongdown.config import FormatOptions, FormatterCommand
from hongdown.observability.metrics import MetricsHook, NoopMetricsHook, resolve_metrics

UPPERCASE = "import sys; sys.stdout.write(sys.stdin.read().upper())"


# ---------------------------------------------------------------------------
# Protocol conformance
# ---------------------------------------------------------------------------


class TestMetricsHookProtocol:
    """Verify structural subtyping for MetricsHook protocol."""

    def test_noop_is_instance_of_protocol(self):
        """NoopMetricsHook satisfies the runtime-checkable MetricsHook protocol."""
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_recording_hook_is_instance_of_protocol(self, recording_metrics):
        """The recording hook used by these tests satisfies the protocol."""
        assert isinstance(recording_metrics, MetricsHook)

    def test_class_missing_increment_is_not_instance(self):
        """A class missing 'increment' does not satisfy the protocol."""

        class PartialHook:
            def timing(
                self, name: str, ms: float,
                tags: dict[str, str] | None = None,
            ) -> None:
                pass

            def gauge(
                self, name: str, value: float,
                tags: dict[str, str] | None = None,
            ) -> None:
                pass

        assert not isinstance(PartialHook(), MetricsHook)


class TestResolveMetrics:
    def test_none_gives_noop(self):
        assert isinstance(resolve_metrics(None), NoopMetricsHook)

    def test_non_hook_gives_noop(self):
        assert isinstance(resolve_metrics(object()), NoopMetricsHook)

    def test_hook_returned_as_is(self, recording_metrics):
        assert resolve_metrics(recording_metrics) is recording_metrics


# ---------------------------------------------------------------------------
# Emission while formatting
# ---------------------------------------------------------------------------


class TestFormattingMetrics:
    def test_document_counter_and_timing(self, recording_metrics):
        format_with_warnings("# Hi\n", FormatOptions(metrics=recording_metrics))
        assert recording_metrics.increments == [
            {"name": "hongdown.documents_formatted_total", "value": 1, "tags": None},
        ]
        (timing,) = recording_metrics.timings
        assert timing["name"] == "hongdown.format_duration_ms"
        assert timing["ms"] >= 0

    def test_warning_counter_tagged_with_code(self, recording_metrics):
        format_with_warnings(
            "See [nope] and [gone].\n", FormatOptions(metrics=recording_metrics)
        )
        warnings = [
            call for call in recording_metrics.increments
            if call["name"] == "hongdown.warnings_total"
        ]
        assert len(warnings) == 2
        assert all(call["tags"] == {"code": "UNDEFINED_REFERENCE"} for call in warnings)

    def test_formatter_runs(self, recording_metrics):
        opts = FormatOptions(
            metrics=recording_metrics,
            formatters={"python": FormatterCommand([sys.executable, "-c", UPPERCASE])},
        )
        format_with_warnings("```python\nx\n```\n", opts)
        assert {
            "name": "hongdown.formatter_runs_total",
            "value": 1,
            "tags": {"language": "python"},
        } in recording_metrics.increments
        assert "hongdown.formatter_failures_total" not in recording_metrics.names()

    def test_formatter_failures(self, recording_metrics):
        opts = FormatOptions(
            metrics=recording_metrics,
            formatters={"python": FormatterCommand(["hongdown-test-missing-tool"])},
        )
        format_with_warnings("```python\nx\n```\n", opts)
        assert {
            "name": "hongdown.formatter_failures_total",
            "value": 1,
            "tags": {"language": "python", "code": "FORMATTER_NOT_FOUND"},
        } in recording_metrics.increments
        assert "hongdown.warnings_total" in recording_metrics.names()

    def test_noop_default(self):
        result = format_with_warnings("# Hi\n")
        assert result.output == "Hi\n==\n"
