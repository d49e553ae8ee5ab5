"""Per-shape differs.

Exports
-------
Diffable
    Protocol every per-type differ satisfies.
ScalarDiffer
    Equality-based diff for atomic values.
ProductDiffer
    Field-by-field diff for dataclasses, named tuples and tuples.
SumDiffer
    Variant-aware diff for unions of product classes.
OptionalDiffer
    Diff for ``Optional[T]``.
SequenceDiffer
    LCS edit scripts for lists and variadic tuples.
MappingDiffer
    Key-by-key diff for dicts.
"""

from .base import Diffable, Differ
from .mapping import MappingDiffer
from .product import ProductDiffer
from .scalar import ScalarDiffer
from .sequence import SequenceDiffer, replay
from .sum import OptionalDiffer, SumDiffer

__all__ = [
    "Diffable",
    "Differ",
    "MappingDiffer",
    "OptionalDiffer",
    "ProductDiffer",
    "ScalarDiffer",
    "SequenceDiffer",
    "SumDiffer",
    "replay",
]
