"""Tests for differ derivation from type annotations (difficient.derive)."""

from __future__ import annotations

import collections
import dataclasses
import typing
from collections.abc import Mapping, MutableSequence, Sequence
from typing import Annotated, Any, NamedTuple, Optional, Union

import pytest

from difficient.derive import DifferRegistry, is_product_class
from difficient.differs import (
    MappingDiffer,
    OptionalDiffer,
    ProductDiffer,
    ScalarDiffer,
    SequenceDiffer,
    SumDiffer,
)
from difficient.models import (
    NO_CHANGE,
    Delete,
    Delta,
    EntriesChanged,
    EntryPatched,
    FieldsChanged,
    Insert,
    Keep,
    Replace,
    SameVariant,
    SequenceEdits,
)


@dataclasses.dataclass
class Leaf:
    value: int


@dataclasses.dataclass
class Tree:
    label: str
    children: list[Tree] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class Node:
    value: int
    next: Optional[Node] = None


@dataclasses.dataclass
class Literal:
    value: int


@dataclasses.dataclass
class Add:
    left: Expr
    right: Expr


Expr = Union[Literal, Add]


class Row(NamedTuple):
    key: str
    cells: list[int]


@dataclasses.dataclass
class Document:
    title: str
    rows: list[Row]
    meta: dict[str, Leaf]
    pair: tuple[int, str]
    tags: tuple[str, ...]
    note: Optional[str] = None


@dataclasses.dataclass
class Polyline:
    points: Sequence[int]
    marks: MutableSequence[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class Scaled:
    value: int
    factor: dataclasses.InitVar[int]
    scaled: int = dataclasses.field(init=False)

    def __post_init__(self, factor: int) -> None:
        self.scaled = self.value * factor


class ConstantDiffer:
    """Hand-written differ that reports every change as a Replace."""

    def diff(self, a: Any, b: Any) -> Delta:
        return NO_CHANGE if a == b else Replace(b)

    def apply(self, source: Any, delta: Delta) -> Any:
        return delta.value if isinstance(delta, Replace) else source


@pytest.fixture
def registry() -> DifferRegistry:
    return DifferRegistry()


class TestShapeSelection:
    @pytest.mark.parametrize(
        "tp, expected",
        [
            (int, ScalarDiffer),
            (str, ScalarDiffer),
            (Any, ScalarDiffer),
            (type(None), ScalarDiffer),
            (set[int], ScalarDiffer),
            (Union[int, str], ScalarDiffer),
            (Leaf, ProductDiffer),
            (Row, ProductDiffer),
            (tuple[int, str], ProductDiffer),
            (tuple[()], ProductDiffer),
            (Expr, SumDiffer),
            (Optional[int], OptionalDiffer),
            (Optional[Leaf], OptionalDiffer),
            (int | None, OptionalDiffer),
            (list[int], SequenceDiffer),
            (list, SequenceDiffer),
            (Sequence[int], SequenceDiffer),
            (tuple[int, ...], SequenceDiffer),
            (tuple, SequenceDiffer),
            (typing.Tuple, SequenceDiffer),
            (dict[str, int], MappingDiffer),
            (dict, MappingDiffer),
            (Mapping[str, int], MappingDiffer),
            (collections.OrderedDict, MappingDiffer),
            (Annotated[list[int], "meta"], SequenceDiffer),
            (MutableSequence[int], SequenceDiffer),
            (Polyline, ProductDiffer),
            (Scaled, ScalarDiffer),
            (Union[Scaled, Leaf], ScalarDiffer),
        ],
    )
    def test_differ_for_shape(self, registry, tp, expected):
        assert isinstance(registry.differ_for(tp), expected)

    def test_differs_are_cached(self, registry):
        assert registry.differ_for(Leaf) is registry.differ_for(Leaf)

    def test_is_product_class(self):
        assert is_product_class(Leaf)
        assert is_product_class(Row)
        assert not is_product_class(tuple)
        assert not is_product_class(Leaf(1))
        assert not is_product_class(int)
        assert not is_product_class(Scaled)


class TestNestedTypes:
    def test_document_field_deltas(self, registry):
        differ = registry.differ_for(Document)
        a = Document("t", [Row("r1", [1, 2])], {"k": Leaf(1)}, (1, "a"), ("x",))
        b = Document("t", [Row("r1", [1, 2]), Row("r2", [])], {"k": Leaf(2)}, (1, "b"), ("x", "y"), "n")
        delta = differ.diff(a, b)
        assert delta == FieldsChanged({
            "rows": SequenceEdits((Keep(1), Insert((Row("r2", []),)))),
            "meta": EntriesChanged({"k": EntryPatched(FieldsChanged({"value": Replace(2)}))}),
            "pair": FieldsChanged({1: Replace("b")}),
            "tags": SequenceEdits((Keep(1), Insert(("y",)))),
            "note": Replace("n"),
        })
        result = differ.apply(a, delta)
        assert result == b
        assert isinstance(result.tags, tuple)

    def test_named_tuple_fields_resolved(self, registry):
        differ = registry.differ_for(Row)
        delta = differ.diff(Row("a", [1]), Row("a", [1, 2]))
        assert delta == FieldsChanged({"cells": SequenceEdits((Keep(1), Insert((2,))))})


class TestAbstractSequences:
    def test_tuple_in_sequence_field_stays_tuple(self, registry):
        differ = registry.differ_for(Polyline)
        a, b = Polyline((1, 2, 3)), Polyline((1, 3, 4))
        delta = differ.diff(a, b)
        assert delta == FieldsChanged({"points": SequenceEdits((Keep(1), Delete(1), Keep(1), Insert((4,))))})
        result = differ.apply(a, delta)
        assert result == b
        assert isinstance(result.points, tuple)

    def test_list_in_sequence_field_stays_list(self, registry):
        differ = registry.differ_for(Polyline)
        a, b = Polyline([1, 2], ["x"]), Polyline([2], ["x", "y"])
        result = differ.apply(a, differ.diff(a, b))
        assert result == b
        assert isinstance(result.points, list)
        assert isinstance(result.marks, list)

    def test_tuple_in_mutable_sequence_field_stays_tuple(self, registry):
        differ = registry.differ_for(Polyline)
        a, b = Polyline([], ("a", "b")), Polyline([], ("b",))
        result = differ.apply(a, differ.diff(a, b))
        assert result.marks == ("b",)


class TestInitOnlyFields:
    def test_required_init_var_round_trips(self, registry):
        differ = registry.differ_for(Scaled)
        a, b = Scaled(1, 2), Scaled(2, 2)
        delta = differ.diff(a, b)
        assert delta == Replace(b)
        result = differ.apply(a, delta)
        assert result == b
        assert result.scaled == 4

    def test_unchanged_value(self, registry):
        differ = registry.differ_for(Scaled)
        assert differ.diff(Scaled(1, 2), Scaled(1, 2)) == NO_CHANGE

    def test_inside_optional(self, registry):
        differ = registry.differ_for(Optional[Scaled])
        result = differ.apply(None, differ.diff(None, Scaled(3, 3)))
        assert result == Scaled(3, 3)


class TestRecursiveTypes:
    def test_self_referential_dataclass(self, registry):
        differ = registry.differ_for(Tree)
        a = Tree("root", [Tree("a"), Tree("b")])
        b = Tree("root", [Tree("a"), Tree("c"), Tree("b")])
        delta = differ.diff(a, b)
        assert delta == FieldsChanged({
            "children": SequenceEdits((Keep(1), Insert((Tree("c"),)), Keep(1))),
        })
        assert differ.apply(a, delta) == b

    def test_linked_list(self, registry):
        differ = registry.differ_for(Node)
        a = Node(1, Node(2, Node(3)))
        b = Node(1, Node(2, Node(4)))
        delta = differ.diff(a, b)
        assert delta == FieldsChanged({
            "next": FieldsChanged({"next": FieldsChanged({"value": Replace(4)})}),
        })
        assert differ.apply(a, delta) == b

    def test_recursive_sum(self, registry):
        differ = registry.differ_for(Expr)
        a = Add(Literal(1), Add(Literal(2), Literal(3)))
        b = Add(Literal(1), Add(Literal(2), Literal(4)))
        delta = differ.diff(a, b)
        inner = SameVariant("Literal", FieldsChanged({"value": Replace(4)}))
        assert delta == SameVariant(
            "Add",
            FieldsChanged({"right": SameVariant("Add", FieldsChanged({"right": inner}))}),
        )
        assert differ.apply(a, delta) == b


class TestRegister:
    def test_registered_differ_used(self, registry):
        custom = ConstantDiffer()
        registry.register(Leaf, custom)
        assert registry.differ_for(Leaf) is custom

    def test_registered_differ_used_for_fields(self, registry):
        registry.register(list[Row], ConstantDiffer())
        differ = registry.differ_for(Document)
        a = Document("t", [Row("r", [1])], {}, (1, "a"), ())
        b = Document("t", [Row("r", [2])], {}, (1, "a"), ())
        delta = differ.diff(a, b)
        assert delta == FieldsChanged({"rows": Replace([Row("r", [2])])})

    def test_non_differ_rejected(self, registry):
        with pytest.raises(TypeError):
            registry.register(Leaf, object())  # type: ignore[arg-type]

    def test_custom_variant_differ_rejected(self, registry):
        registry.register(Literal, ConstantDiffer())
        with pytest.raises(TypeError):
            registry.differ_for(Expr)


class TestUnresolvableAnnotations:
    def test_local_forward_reference_falls_back_to_scalar(self, registry):
        @dataclasses.dataclass
        class Local:
            items: list[LocalOnly]  # noqa: F821
            count: int

        differ = registry.differ_for(Local)
        delta = differ.diff(Local([1], 1), Local([1, 2], 1))
        assert delta == FieldsChanged({"items": Replace([1, 2])})
