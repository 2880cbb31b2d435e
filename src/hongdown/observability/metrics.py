"""Metrics hook protocol and no-op default implementation.

hongdown emits a handful of counters and timings while formatting.  By
default a :class:`NoopMetricsHook` is used so there is zero overhead.  An
embedding application can pass any object satisfying :class:`MetricsHook`
through :attr:`hongdown.config.FormatOptions.metrics` to route the data to
StatsD, Prometheus or similar.

Emitted metric names:

* ``hongdown.documents_formatted_total``  -- counter
* ``hongdown.format_duration_ms``         -- timing
* ``hongdown.warnings_total``             -- counter (tag ``code``)
* ``hongdown.formatter_runs_total``       -- counter (tag ``language``)
* ``hongdown.formatter_failures_total``   -- counter (tags ``language``, ``code``)
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric.

        Parameters
        ----------
        name:
            Dot-delimited metric name, e.g.
            ``"hongdown.documents_formatted_total"``.
        value:
            Amount to increment by.  Defaults to ``1``.
        tags:
            Optional key-value tags for the data point.
        """
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(hook: Any | None) -> MetricsHook:
    """Return *hook* if it satisfies :class:`MetricsHook`, else a no-op."""
    if hook is not None and isinstance(hook, MetricsHook):
        return hook
    return NoopMetricsHook()
