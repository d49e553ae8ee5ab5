"""Pluggable metrics for diff and apply calls.

The engine reports one counter per call, a duration per successful call
and a failure counter keyed by :class:`~difficient.errors.ErrorCode`.
The sequence differ adds a gauge with the size of each LCS table it
builds and a counter for every table it refuses to build.  Nothing is
recorded unless a backend is passed as ``DiffConfig(metrics=...)``; the
default :class:`NoopMetricsHook` drops every data point.

Usage::

    from difficient import DeltaEngine, DiffConfig

    engine = DeltaEngine(DiffConfig(metrics=statsd_adapter))

Metric names:

* ``difficient.diff_total``               -- counter, tag ``shape``
* ``difficient.diff_duration_ms``         -- timing
* ``difficient.apply_total``              -- counter, tag ``status``
* ``difficient.apply_failures_total``     -- counter, tag ``code``
* ``difficient.apply_duration_ms``        -- timing
* ``difficient.sequence_guard_total``     -- counter
* ``difficient.sequence_table_cells``     -- gauge, cells in the last LCS table
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Structural type for a metrics backend.

    Tag keys and values are strings; ``tags`` is ``None`` when a data
    point carries none.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Add *value* to the counter *name*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record one call duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set *name* to *value*, e.g. the cell count of an LCS table."""
        ...


class NoopMetricsHook:
    """Backend used when no metrics hook is configured."""

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
