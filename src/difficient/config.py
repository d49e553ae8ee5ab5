"""Engine configuration for difficient.

:class:`DiffConfig` is a plain dataclass that captures every tuneable knob
of the diff/patch engine.  Instances are passed to :class:`DeltaEngine`
and shared, read-only, by every differ it derives.

The module-level constant :data:`DEFAULT_MAX_SEQUENCE_CELLS` bounds the
size of the LCS table the sequence differ is allowed to build.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_MAX_SEQUENCE_CELLS: int = 4_000_000
"""Default upper bound on ``n * m`` for one LCS table (about a 2000 x 2000
alignment after common prefix and suffix are trimmed)."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class DiffConfig:
    """Complete configuration for a difficient engine.

    Every parameter has a default, so ``DiffConfig()`` is a valid
    configuration.

    Parameters
    ----------
    max_sequence_cells:
        Cost guard for the sequence differ.  When the LCS table for the
        non-trivial middle of two sequences would exceed this many cells,
        the differ stops searching for a minimal script and emits the
        middle as one ``Delete`` followed by one ``Insert``.  The result
        still patches correctly; it is merely not minimal.  ``None``
        disables the guard.
    collapse_full_replacements:
        When every field of a product value is replaced, emit a single
        ``Replace`` of the whole value instead of a ``FieldsChanged``
        listing every field.  Off by default so that product deltas are
        always field-level.
    metrics:
        Optional :class:`~difficient.observability.MetricsHook` backend.
        ``None`` selects the no-op hook.
    debug_dump_delta:
        Write each computed delta (as JSON) to *stderr*.
    """

    # ── Sequences ───────────────────────────────────────────────────────
    max_sequence_cells: int | None = DEFAULT_MAX_SEQUENCE_CELLS

    # ── Products ────────────────────────────────────────────────────────
    collapse_full_replacements: bool = False

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_delta: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_sequence_cells is not None and self.max_sequence_cells < 1:
            raise ValueError(
                f"max_sequence_cells must be >= 1 or None, got {self.max_sequence_cells}"
            )
