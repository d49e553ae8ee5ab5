"""Diff and patch entry points.

:class:`DeltaEngine` resolves the differ for a type through its
:class:`~difficient.derive.DifferRegistry`, runs it, and wraps every call
with metrics and structured logging.  The module-level :func:`diff`,
:func:`apply` and :func:`register` functions delegate to a shared default
engine.

Both operations are pure: nothing is cached between calls except derived
differs, and neither input is ever mutated.  An engine may be shared by
any number of threads.
"""

from __future__ import annotations

import json
import sys
import threading
import time
from typing import Any

from difficient.config import DiffConfig
from difficient.derive import DifferRegistry
from difficient.differs.base import Diffable
from difficient.errors import PatchError
from difficient.models import Delta
from difficient.observability import NoopMetricsHook, get_logger

log = get_logger("difficient.engine")


class DeltaEngine:
    """Compute and apply deltas.

    Parameters
    ----------
    config:
        Engine configuration.  Defaults to ``DiffConfig()``.

    Example::

        engine = DeltaEngine()
        delta = engine.diff(old, new)
        assert engine.apply(old, delta) == new
    """

    def __init__(self, config: DiffConfig | None = None) -> None:
        self._config = config if config is not None else DiffConfig()
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._registry = DifferRegistry(self._config, self._metrics)

    @property
    def config(self) -> DiffConfig:
        return self._config

    def register(self, tp: Any, differ: Diffable) -> None:
        """Use a hand-written *differ* for values of type *tp*."""
        self._registry.register(tp, differ)

    def differ_for(self, tp: Any) -> Diffable:
        """Return the differ this engine uses for annotation *tp*."""
        return self._registry.differ_for(tp)

    def diff(self, a: Any, b: Any, tp: Any = None) -> Delta:
        """Compute the delta that turns *a* into *b*.

        Parameters
        ----------
        a, b:
            Two values of the same type.
        tp:
            Their static type.  Defaults to ``type(a)``; pass it explicitly
            for unions, optionals and parametrised containers, whose
            runtime type does not carry the element or variant types.

        Returns
        -------
        Delta
            ``NoChange`` when the values are equal.  Never raises for
            values of the declared type.
        """
        differ = self.differ_for(type(a) if tp is None else tp)
        start = time.monotonic()
        delta = differ.diff(a, b)
        elapsed_ms = (time.monotonic() - start) * 1000

        self._metrics.increment("difficient.diff_total", tags={"shape": delta.shape})
        self._metrics.timing("difficient.diff_duration_ms", elapsed_ms)
        log.debug(
            "Delta computed",
            extra={
                "extra_fields": {
                    "op": "diff",
                    "shape": delta.shape,
                    "duration_ms": round(elapsed_ms, 3),
                }
            },
        )
        if self._config.debug_dump_delta:
            print(
                "[difficient] Delta:",
                json.dumps(delta.describe(), indent=2, ensure_ascii=False, default=repr),
                file=sys.stderr,
            )
        return delta

    def apply(self, source: Any, delta: Delta, tp: Any = None) -> Any:
        """Return a new value: *source* patched with *delta*.

        *source* is never mutated; on failure no partial value is produced.

        Parameters
        ----------
        source:
            The value *delta* was computed from, or a structurally equal one.
        delta:
            A delta computed by :meth:`diff` for the same type.
        tp:
            Static type of *source*.  Defaults to ``type(source)``.

        Raises
        ------
        ShapeMismatchError
            *delta* references a field, variant or key inconsistent with
            *source* (``MissingKeyError`` / ``UnexpectedKeyError`` for
            mappings).
        SequenceOutOfBoundsError
            An edit script does not fit the source sequence.
        """
        differ = self.differ_for(type(source) if tp is None else tp)
        start = time.monotonic()
        try:
            result = differ.apply(source, delta)
        except PatchError as exc:
            code = getattr(exc.code, "value", exc.code)
            self._metrics.increment("difficient.apply_total", tags={"status": "error"})
            self._metrics.increment("difficient.apply_failures_total", tags={"code": code})
            log.warning(
                "Delta rejected",
                extra={
                    "extra_fields": {
                        "op": "apply",
                        "code": code,
                        "path": exc.path,
                        "error": exc.message,
                    }
                },
            )
            raise
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.increment("difficient.apply_total", tags={"status": "ok"})
        self._metrics.timing("difficient.apply_duration_ms", elapsed_ms)
        return result


# ---------------------------------------------------------------------------
# Default engine
# ---------------------------------------------------------------------------

_default_engine: DeltaEngine | None = None
_default_lock = threading.Lock()


def default_engine() -> DeltaEngine:
    """Return the shared engine used by the module-level functions."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = DeltaEngine()
        return _default_engine


def diff(a: Any, b: Any, tp: Any = None) -> Delta:
    """Compute the delta that turns *a* into *b* with the default engine."""
    return default_engine().diff(a, b, tp)


def apply(source: Any, delta: Delta, tp: Any = None) -> Any:
    """Apply *delta* to *source* with the default engine."""
    return default_engine().apply(source, delta, tp)


def register(tp: Any, differ: Diffable) -> None:
    """Register a hand-written differ for *tp* on the default engine."""
    default_engine().register(tp, differ)
