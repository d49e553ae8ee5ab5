"""Differs for sum types: tagged unions and optional values.

A sum type is a ``typing.Union`` whose members are all product classes
(dataclasses or named tuples).  Each member is a variant and its class
name is the variant tag.  When two values hold different variants a
field-level delta between their payloads would not be well typed, so the
new value is carried whole in a :class:`VariantChanged`.  When both hold
the same variant the payload is diffed as a product and wrapped in a
:class:`SameVariant` that remembers the tag it was computed against.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any

from difficient.config import DiffConfig
from difficient.errors import ShapeMismatchError
from difficient.models import (
    NO_CHANGE,
    Delta,
    FieldsChanged,
    NoChange,
    Replace,
    SameVariant,
    VariantChanged,
)

from .base import Diffable, Differ, type_name
from .product import ProductDiffer


class SumDiffer(Differ):
    """Diff values of a tagged union of product classes.

    Parameters
    ----------
    variants:
        The variant classes, in declaration order.
    config:
        Engine configuration.
    """

    accepts = (VariantChanged, SameVariant)

    def __init__(self, variants: Sequence[type], config: DiffConfig | None = None) -> None:
        super().__init__(config)
        self._classes: dict[str, type] = {cls.__name__: cls for cls in variants}
        if len(self._classes) != len(variants):
            raise ValueError(f"variant class names must be unique: {list(variants)!r}")
        self._payloads: dict[str, ProductDiffer] = {}

    @property
    def tags(self) -> list[str]:
        return list(self._classes)

    def bind(self, payloads: dict[str, ProductDiffer]) -> None:
        """Attach the payload differ of every variant, keyed by tag."""
        missing = set(self._classes) - set(payloads)
        if missing:
            raise ValueError(f"no payload differ for variant(s) {sorted(missing)!r}")
        self._payloads = dict(payloads)

    def tag_of(self, value: Any) -> str | None:
        """Return the variant tag of *value*, or ``None`` if it is not one."""
        tag = type(value).__name__
        if self._classes.get(tag) is type(value):
            return tag
        return None

    def diff(self, a: Any, b: Any) -> Delta:
        tag_a = self.tag_of(a)
        tag_b = self.tag_of(b)
        if tag_b is None:
            return NO_CHANGE if a == b else Replace(b)
        if tag_a != tag_b:
            return VariantChanged(tag_b, b)

        inner = self._payloads[tag_b].diff(a, b)
        if inner.is_unchanged:
            return NO_CHANGE
        if isinstance(inner, Replace):
            # collapse_full_replacements: every payload field was replaced.
            return inner
        return SameVariant(tag_b, inner)  # type: ignore[arg-type]

    def _patch(self, source: Any, delta: Delta) -> Any:
        if isinstance(delta, VariantChanged):
            if self._classes.get(delta.tag) is not type(delta.value):
                raise ShapeMismatchError(
                    f"variant {delta.tag!r} does not match its payload {type_name(delta.value)}",
                    context={"expected": self.tags, "actual": delta.tag},
                )
            return copy.deepcopy(delta.value)

        if delta.tag not in self._classes:
            raise ShapeMismatchError(
                f"unknown variant {delta.tag!r}",
                context={"expected": self.tags, "actual": delta.tag},
            )
        source_tag = self.tag_of(source)
        if source_tag != delta.tag:
            raise ShapeMismatchError(
                f"delta was computed for variant {delta.tag!r}, "
                f"source holds {source_tag or type_name(source)!r}",
                context={"expected": delta.tag, "actual": source_tag or type_name(source)},
            )
        if not isinstance(delta.inner, FieldsChanged):
            raise ShapeMismatchError(
                f"variant payload delta must be FieldsChanged, got {type(delta.inner).__name__}",
                context={"expected": "FieldsChanged", "actual": type(delta.inner).__name__},
            )
        return self._payloads[delta.tag].apply(source, delta.inner)


class OptionalDiffer(Differ):
    """Diff ``Optional[T]`` values.

    ``None`` against ``None`` is unchanged; ``None`` against a value (in
    either direction) is a :class:`Replace`; two values defer to the
    differ of ``T``.  A delta produced by ``T``'s differ cannot be applied
    to ``None``.
    """

    def __init__(self, inner: Diffable, config: DiffConfig | None = None) -> None:
        super().__init__(config)
        self._inner = inner

    def diff(self, a: Any, b: Any) -> Delta:
        if a is None and b is None:
            return NO_CHANGE
        if a is None or b is None:
            return Replace(b)
        return self._inner.diff(a, b)

    def apply(self, source: Any, delta: Delta) -> Any:
        if isinstance(delta, (NoChange, Replace)):
            return super().apply(source, delta)
        if source is None:
            raise ShapeMismatchError(
                f"cannot apply a {type(delta).__name__} delta to None",
                context={"expected": "value", "actual": None},
            )
        return self._inner.apply(source, delta)
