"""difficient: structural diff and patch for typed Python values.

Computes compact deltas between two values of the same type (dataclasses,
named tuples, tagged unions, lists, tuples and dicts, nested arbitrarily)
and reconstructs one value from the other plus that delta.

Public re-exports
-----------------

* **Entry points:** :func:`diff`, :func:`apply`, :func:`register`,
  :class:`DeltaEngine`
* **Configuration:** :class:`DiffConfig`
* **Delta model:** every delta shape and edit operation
* **Errors:** every :class:`DifficientError` subclass and :class:`ErrorCode`

Usage::

    from dataclasses import dataclass

    import difficient

    @dataclass
    class Point:
        x: int
        y: int

    delta = difficient.diff(Point(1, 2), Point(1, 3))
    # FieldsChanged({'y': Replace(value=3)})
    assert difficient.apply(Point(1, 2), delta) == Point(1, 3)
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from difficient.config import DEFAULT_MAX_SEQUENCE_CELLS, DiffConfig

# ── Derivation ──────────────────────────────────────────────────────────
from difficient.derive import DifferRegistry

# ── Differs ─────────────────────────────────────────────────────────────
from difficient.differs import (
    Diffable,
    MappingDiffer,
    OptionalDiffer,
    ProductDiffer,
    ScalarDiffer,
    SequenceDiffer,
    SumDiffer,
)

# ── Entry points ────────────────────────────────────────────────────────
from difficient.engine import DeltaEngine, apply, default_engine, diff, register

# ── Errors ──────────────────────────────────────────────────────────────
from difficient.errors import (
    DifficientError,
    ErrorCode,
    MissingKeyError,
    PatchError,
    SequenceOutOfBoundsError,
    ShapeMismatchError,
    UnexpectedKeyError,
)

# ── Models ──────────────────────────────────────────────────────────────
from difficient.models import (
    NO_CHANGE,
    Delete,
    Delta,
    EditOp,
    EntriesChanged,
    EntryEdit,
    EntryInserted,
    EntryPatched,
    EntryRemoved,
    FieldId,
    FieldsChanged,
    Insert,
    Keep,
    NoChange,
    Replace,
    SameVariant,
    SequenceEdits,
    VariantChanged,
)

__version__ = "0.1.0"

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Entry points
    "diff",
    "apply",
    "register",
    "default_engine",
    "DeltaEngine",
    # Configuration
    "DiffConfig",
    "DEFAULT_MAX_SEQUENCE_CELLS",
    # Differs
    "Diffable",
    "DifferRegistry",
    "ScalarDiffer",
    "ProductDiffer",
    "SumDiffer",
    "OptionalDiffer",
    "SequenceDiffer",
    "MappingDiffer",
    # Errors
    "DifficientError",
    "ErrorCode",
    "PatchError",
    "ShapeMismatchError",
    "SequenceOutOfBoundsError",
    "MissingKeyError",
    "UnexpectedKeyError",
    # Models: deltas
    "Delta",
    "NoChange",
    "NO_CHANGE",
    "Replace",
    "FieldsChanged",
    "FieldId",
    "VariantChanged",
    "SameVariant",
    "SequenceEdits",
    "EntriesChanged",
    # Models: edit operations
    "EditOp",
    "Keep",
    "Delete",
    "Insert",
    "EntryEdit",
    "EntryRemoved",
    "EntryInserted",
    "EntryPatched",
]
