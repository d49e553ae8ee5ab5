"""Delta data model for difficient.

A delta describes the structural difference between two values of the
same type.  There is one frozen dataclass per delta shape:

* :class:`NoChange` -- the two values compared equal.
* :class:`Replace` -- the target value, carried wholesale.
* :class:`FieldsChanged` -- per-field deltas of a product value.
* :class:`VariantChanged` / :class:`SameVariant` -- sum values whose
  variant did / did not change.
* :class:`SequenceEdits` -- a Keep/Delete/Insert edit script.
* :class:`EntriesChanged` -- per-key edits of a mapping.

Deltas are immutable once built.  Embedded values (``Replace``,
``VariantChanged``, ``Insert`` and ``EntryInserted`` payloads) are deep
copies taken at construction time, so a delta never aliases either of the
values it was computed from and may outlive both.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Union

FieldId = Union[str, int]
"""Identifier of a product field: attribute name, or position for tuples."""


class Delta:
    """Common base of every delta shape."""

    __slots__ = ()

    shape: ClassVar[str] = ""

    @property
    def is_unchanged(self) -> bool:
        return False

    @property
    def is_replaced(self) -> bool:
        return False

    def describe(self) -> dict[str, Any]:
        """Return a JSON-friendly rendering of this delta."""
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Shapes shared by every type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NoChange(Delta):
    """The two values compared equal; applying it copies the source."""

    shape: ClassVar[str] = "unchanged"

    @property
    def is_unchanged(self) -> bool:
        return True

    def describe(self) -> dict[str, Any]:
        return {"kind": self.shape}


NO_CHANGE = NoChange()


@dataclass(frozen=True)
class Replace(Delta):
    """Replace the source wholesale with *value*."""

    shape: ClassVar[str] = "replace"

    value: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", copy.deepcopy(self.value))

    @property
    def is_replaced(self) -> bool:
        return True

    def describe(self) -> dict[str, Any]:
        return {"kind": self.shape, "value": self.value}


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

@dataclass(frozen=True, repr=False)
class FieldsChanged(Delta):
    """Deltas for the fields of a product value that changed.

    A field absent from :attr:`changes` is unchanged.  Entries are kept in
    the product's declared field order.
    """

    shape: ClassVar[str] = "fields"

    changes: Mapping[FieldId, Delta] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", MappingProxyType(dict(self.changes)))

    def __reduce__(self) -> tuple[Any, ...]:
        # mappingproxy does not pickle; rebuild from a plain dict.
        return (type(self), (dict(self.changes),))

    def __hash__(self) -> int:
        return hash(frozenset(self.changes.items()))

    def __repr__(self) -> str:
        return f"FieldsChanged({dict(self.changes)!r})"

    def describe(self) -> dict[str, Any]:
        return {
            "kind": self.shape,
            "changes": {str(k): d.describe() for k, d in self.changes.items()},
        }


# ---------------------------------------------------------------------------
# Sums
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VariantChanged(Delta):
    """The variant changed; *value* is the complete new variant value."""

    shape: ClassVar[str] = "variant_changed"

    tag: str
    value: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", copy.deepcopy(self.value))

    @property
    def is_replaced(self) -> bool:
        return True

    def describe(self) -> dict[str, Any]:
        return {"kind": self.shape, "tag": self.tag, "value": self.value}


@dataclass(frozen=True)
class SameVariant(Delta):
    """The variant *tag* is unchanged; *inner* patches its payload."""

    shape: ClassVar[str] = "same_variant"

    tag: str
    inner: FieldsChanged

    def describe(self) -> dict[str, Any]:
        return {"kind": self.shape, "tag": self.tag, "inner": self.inner.describe()}


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Keep:
    """Copy the next *count* source elements to the output."""

    count: int

    def describe(self) -> dict[str, Any]:
        return {"op": "keep", "count": self.count}


@dataclass(frozen=True)
class Delete:
    """Skip the next *count* source elements."""

    count: int

    def describe(self) -> dict[str, Any]:
        return {"op": "delete", "count": self.count}


@dataclass(frozen=True)
class Insert:
    """Emit *items* without consuming any source element."""

    items: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(copy.deepcopy(list(self.items))))

    def describe(self) -> dict[str, Any]:
        return {"op": "insert", "items": list(self.items)}


EditOp = Union[Keep, Delete, Insert]


@dataclass(frozen=True)
class SequenceEdits(Delta):
    """An edit script, replayed left to right against the source."""

    shape: ClassVar[str] = "sequence"

    ops: tuple[EditOp, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "ops", tuple(self.ops))

    @property
    def cost(self) -> int:
        """Number of deleted plus inserted elements."""
        total = 0
        for op in self.ops:
            if isinstance(op, Delete):
                total += op.count
            elif isinstance(op, Insert):
                total += len(op.items)
        return total

    def describe(self) -> dict[str, Any]:
        return {"kind": self.shape, "ops": [op.describe() for op in self.ops]}


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntryRemoved:
    """The key is present in the source and absent from the target."""

    def describe(self) -> dict[str, Any]:
        return {"op": "removed"}


@dataclass(frozen=True)
class EntryInserted:
    """The key is absent from the source; *value* is its target value."""

    value: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", copy.deepcopy(self.value))

    def describe(self) -> dict[str, Any]:
        return {"op": "inserted", "value": self.value}


@dataclass(frozen=True)
class EntryPatched:
    """The key is present on both sides; *delta* patches its value."""

    delta: Delta

    def describe(self) -> dict[str, Any]:
        return {"op": "patched", "delta": self.delta.describe()}


EntryEdit = Union[EntryRemoved, EntryInserted, EntryPatched]


@dataclass(frozen=True, repr=False)
class EntriesChanged(Delta):
    """Per-key edits of a mapping.  Unchanged keys are absent."""

    shape: ClassVar[str] = "entries"

    entries: Mapping[Any, EntryEdit] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (dict(self.entries),))

    def __hash__(self) -> int:
        return hash(frozenset(self.entries.items()))

    def __repr__(self) -> str:
        return f"EntriesChanged({dict(self.entries)!r})"

    def describe(self) -> dict[str, Any]:
        return {
            "kind": self.shape,
            "entries": {str(k): e.describe() for k, e in self.entries.items()},
        }

