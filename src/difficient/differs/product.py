"""Field-by-field differ for product types.

Dataclasses, ``typing.NamedTuple`` classes and fixed-arity tuples are
products: a value is the combination of its fields, and a delta lists
only the fields that changed.  Field ids are attribute names, except for
plain tuples where they are positions.
"""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Sequence
from typing import Any

from difficient.config import DiffConfig
from difficient.errors import PatchError, ShapeMismatchError
from difficient.models import NO_CHANGE, Delta, FieldId, FieldsChanged, Replace

from .base import Diffable, Differ, type_name


# ---------------------------------------------------------------------------
# Layouts: how fields are read from and assembled into each product kind
# ---------------------------------------------------------------------------

class _DataclassLayout:
    """Fields of a dataclass, addressed by attribute name."""

    def __init__(self, cls: type) -> None:
        self.cls = cls
        self.field_ids: list[FieldId] = [f.name for f in dataclasses.fields(cls)]
        self._init_ids = {f.name for f in dataclasses.fields(cls) if f.init}

    @property
    def name(self) -> str:
        return self.cls.__qualname__

    def is_instance(self, value: Any) -> bool:
        return type(value) is self.cls

    def get(self, value: Any, fid: FieldId) -> Any:
        return getattr(value, fid)  # type: ignore[arg-type]

    def build(self, values: dict[FieldId, Any]) -> Any:
        obj = self.cls(**{k: v for k, v in values.items() if k in self._init_ids})
        # init=False fields are set after construction; this also works for
        # frozen dataclasses.
        for fid, value in values.items():
            if fid not in self._init_ids:
                object.__setattr__(obj, fid, value)
        return obj


class _NamedTupleLayout:
    """Fields of a ``NamedTuple`` class, addressed by attribute name."""

    def __init__(self, cls: type) -> None:
        self.cls = cls
        self.field_ids: list[FieldId] = list(cls._fields)  # type: ignore[attr-defined]

    @property
    def name(self) -> str:
        return self.cls.__qualname__

    def is_instance(self, value: Any) -> bool:
        return type(value) is self.cls

    def get(self, value: Any, fid: FieldId) -> Any:
        return getattr(value, fid)  # type: ignore[arg-type]

    def build(self, values: dict[FieldId, Any]) -> Any:
        return self.cls(**values)


class _TupleLayout:
    """Positions of a fixed-arity tuple."""

    def __init__(self, arity: int) -> None:
        self.field_ids: list[FieldId] = list(range(arity))

    @property
    def name(self) -> str:
        return f"tuple[{len(self.field_ids)}]"

    def is_instance(self, value: Any) -> bool:
        return isinstance(value, tuple) and len(value) == len(self.field_ids)

    def get(self, value: Any, fid: FieldId) -> Any:
        return value[fid]

    def build(self, values: dict[FieldId, Any]) -> Any:
        return tuple(values[fid] for fid in self.field_ids)


# ---------------------------------------------------------------------------
# Differ
# ---------------------------------------------------------------------------

class ProductDiffer(Differ):
    """Diff product values field by field.

    Field differs are bound after construction (see :meth:`bind`) so that
    a self-referential type can be registered before its fields are
    resolved.

    Parameters
    ----------
    layout:
        How fields are read and assembled; built by :meth:`for_dataclass`,
        :meth:`for_namedtuple` or :meth:`for_tuple`.
    config:
        Engine configuration.
    """

    accepts = (FieldsChanged,)

    def __init__(self, layout: Any, config: DiffConfig | None = None) -> None:
        super().__init__(config)
        self._layout = layout
        self._fields: list[tuple[FieldId, Diffable]] = []

    @classmethod
    def for_dataclass(cls, tp: type, config: DiffConfig | None = None) -> ProductDiffer:
        return cls(_DataclassLayout(tp), config)

    @classmethod
    def for_namedtuple(cls, tp: type, config: DiffConfig | None = None) -> ProductDiffer:
        return cls(_NamedTupleLayout(tp), config)

    @classmethod
    def for_tuple(cls, arity: int, config: DiffConfig | None = None) -> ProductDiffer:
        return cls(_TupleLayout(arity), config)

    @property
    def field_ids(self) -> list[FieldId]:
        return list(self._layout.field_ids)

    def bind(self, differs: Sequence[Diffable]) -> None:
        """Attach one differ per field, in declared field order."""
        if len(differs) != len(self._layout.field_ids):
            raise ValueError(
                f"{self._layout.name} has {len(self._layout.field_ids)} fields, "
                f"got {len(differs)} differs"
            )
        self._fields = list(zip(self._layout.field_ids, differs))

    def diff(self, a: Any, b: Any) -> Delta:
        if not (self._layout.is_instance(a) and self._layout.is_instance(b)):
            # Not two values of this product; the best we can do is carry b.
            return NO_CHANGE if a == b else Replace(b)

        changes: dict[FieldId, Delta] = {}
        for fid, differ in self._fields:
            delta = differ.diff(self._layout.get(a, fid), self._layout.get(b, fid))
            if not delta.is_unchanged:
                changes[fid] = delta

        if not changes:
            return NO_CHANGE
        if (
            self._config.collapse_full_replacements
            and len(changes) == len(self._fields)
            and all(isinstance(d, Replace) for d in changes.values())
        ):
            return Replace(b)
        return FieldsChanged(changes)

    def _patch(self, source: Any, delta: FieldsChanged) -> Any:
        if not self._layout.is_instance(source):
            raise ShapeMismatchError(
                f"cannot patch a {type_name(source)} as {self._layout.name}",
                context={"expected": self._layout.name, "actual": type_name(source)},
            )
        known = set(self._layout.field_ids)
        unknown = [fid for fid in delta.changes if fid not in known]
        if unknown:
            raise ShapeMismatchError(
                f"{self._layout.name} has no field(s) {unknown!r}",
                context={"expected": self.field_ids, "actual": unknown},
            )

        values: dict[FieldId, Any] = {}
        for fid, differ in self._fields:
            current = self._layout.get(source, fid)
            field_delta = delta.changes.get(fid)
            if field_delta is None:
                values[fid] = copy.deepcopy(current)
                continue
            try:
                values[fid] = differ.apply(current, field_delta)
            except PatchError as exc:
                exc.at(fid)
                raise
        return self._layout.build(values)
