"""Property-based tests for difficient using Hypothesis.

These tests verify the algebraic laws every differ must satisfy: identity,
round-trip, determinism and non-mutation, plus the minimality and canonical
form of sequence edit scripts.  They complement the example-based unit
tests by exercising the engine with a wide range of generated values.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional, Union

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from difficient.config import DiffConfig
from difficient.differs import replay
from difficient.engine import DeltaEngine
from difficient.models import Delete, Insert, Keep, SequenceEdits

# ---------------------------------------------------------------------------
# Types under test
# ---------------------------------------------------------------------------


@dataclass
class Leaf:
    value: int
    label: str


@dataclass
class Circle:
    radius: int


@dataclass
class Rect:
    width: int
    height: int


Shape = Union[Circle, Rect]


@dataclass
class Record:
    name: str
    scores: list[int]
    tags: dict[str, int]
    shape: Shape
    pair: tuple[int, str]
    parent: Optional[Leaf] = None
    history: list[Leaf] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Reusable strategies
# ---------------------------------------------------------------------------

# Small alphabets so that generated pairs share elements and keys.
_small_int_st = st.integers(min_value=0, max_value=5)
_short_text_st = st.text(alphabet="abc", max_size=3)

_int_list_st = st.lists(_small_int_st, max_size=30)

_leaf_st = st.builds(Leaf, value=_small_int_st, label=_short_text_st)

_shape_st = st.one_of(
    st.builds(Circle, radius=_small_int_st),
    st.builds(Rect, width=_small_int_st, height=_small_int_st),
)

_record_st = st.builds(
    Record,
    name=_short_text_st,
    scores=_int_list_st,
    tags=st.dictionaries(_short_text_st, _small_int_st, max_size=5),
    shape=_shape_st,
    pair=st.tuples(_small_int_st, _short_text_st),
    parent=st.none() | _leaf_st,
    history=st.lists(_leaf_st, max_size=6),
)

_engine = DeltaEngine()


def _lcs_length(a: list, b: list) -> int:
    """Reference LCS length, independent of the differ's implementation."""
    prev = [0] * (len(b) + 1)
    for x in a:
        cur = [0]
        for j, y in enumerate(b):
            cur.append(prev[j] + 1 if x == y else max(prev[j + 1], cur[j]))
        prev = cur
    return prev[-1]


# ---------------------------------------------------------------------------
# 1. TestRecordProperties
# ---------------------------------------------------------------------------


class TestRecordProperties:
    """Laws over a nested product with sum, sequence, mapping and optional fields."""

    @given(a=_record_st)
    def test_identity(self, a: Record) -> None:
        """A value diffed against itself is unchanged."""
        assert _engine.diff(a, a).is_unchanged
        assert _engine.diff(a, copy.deepcopy(a)).is_unchanged

    @given(a=_record_st, b=_record_st)
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_round_trip(self, a: Record, b: Record) -> None:
        """apply(a, diff(a, b)) reconstructs b."""
        assert _engine.apply(a, _engine.diff(a, b)) == b

    @given(a=_record_st, b=_record_st)
    def test_determinism(self, a: Record, b: Record) -> None:
        """Equal inputs give equal deltas."""
        assert _engine.diff(a, b) == _engine.diff(copy.deepcopy(a), copy.deepcopy(b))

    @given(a=_record_st, b=_record_st)
    def test_inputs_not_mutated(self, a: Record, b: Record) -> None:
        """Neither diff nor apply touches its arguments."""
        a_before, b_before = copy.deepcopy(a), copy.deepcopy(b)
        delta = _engine.diff(a, b)
        result = _engine.apply(a, delta)
        assert a == a_before
        assert b == b_before
        assert result is not a

    @given(a=_record_st, b=_record_st)
    def test_delta_outlives_target(self, a: Record, b: Record) -> None:
        """Mutating b after diffing does not change what the delta applies."""
        expected = copy.deepcopy(b)
        delta = _engine.diff(a, b)
        b.scores.append(99)
        b.tags["zzz"] = 1
        assert _engine.apply(a, delta) == expected

    @given(a=_record_st, b=_record_st)
    def test_unchanged_iff_equal(self, a: Record, b: Record) -> None:
        assert _engine.diff(a, b).is_unchanged == (a == b)


# ---------------------------------------------------------------------------
# 2. TestSequenceProperties
# ---------------------------------------------------------------------------


class TestSequenceProperties:
    """Properties of sequence edit scripts."""

    @given(a=_int_list_st, b=_int_list_st)
    @settings(max_examples=300)
    def test_cost_is_lcs_distance(self, a: list[int], b: list[int]) -> None:
        """The script deletes and inserts exactly the non-LCS elements."""
        delta = _engine.diff(a, b)
        expected = len(a) + len(b) - 2 * _lcs_length(a, b)
        cost = delta.cost if isinstance(delta, SequenceEdits) else 0
        assert cost == expected

    @given(a=_int_list_st, b=_int_list_st)
    def test_replay_reconstructs_target(self, a: list[int], b: list[int]) -> None:
        delta = _engine.diff(a, b)
        if isinstance(delta, SequenceEdits):
            assert replay(a, delta.ops) == b
        else:
            assert a == b

    @given(a=_int_list_st, b=_int_list_st)
    def test_canonical_form(self, a: list[int], b: list[int]) -> None:
        """Runs are merged and each gap is Delete then Insert."""
        delta = _engine.diff(a, b)
        if not isinstance(delta, SequenceEdits):
            return
        kinds = [type(op) for op in delta.ops]
        for left, right in zip(kinds, kinds[1:]):
            assert left is not right
            assert not (left is Insert and right is Delete)
        for op in delta.ops:
            if isinstance(op, (Keep, Delete)):
                assert op.count >= 1
            else:
                assert op.items

    @given(a=_int_list_st, b=_int_list_st)
    def test_kept_plus_deleted_covers_source(self, a: list[int], b: list[int]) -> None:
        delta = _engine.diff(a, b)
        if not isinstance(delta, SequenceEdits):
            return
        consumed = sum(op.count for op in delta.ops if isinstance(op, (Keep, Delete)))
        produced = sum(
            op.count if isinstance(op, Keep) else len(op.items)
            for op in delta.ops
            if isinstance(op, (Keep, Insert))
        )
        assert consumed == len(a)
        assert produced == len(b)

    @given(a=_int_list_st, b=_int_list_st, cells=st.integers(min_value=1, max_value=20))
    def test_guarded_scripts_still_round_trip(
        self, a: list[int], b: list[int], cells: int
    ) -> None:
        """The cost guard may lose minimality but never correctness."""
        engine = DeltaEngine(DiffConfig(max_sequence_cells=cells))
        assert engine.apply(a, engine.diff(a, b)) == b

    @given(a=st.lists(_short_text_st, max_size=10).map(tuple), b=st.lists(_short_text_st, max_size=10).map(tuple))
    def test_tuple_round_trip(self, a: tuple, b: tuple) -> None:
        result = _engine.apply(a, _engine.diff(a, b, tuple[str, ...]), tuple[str, ...])
        assert result == b
        assert isinstance(result, tuple)


# ---------------------------------------------------------------------------
# 3. TestMappingProperties
# ---------------------------------------------------------------------------


class TestMappingProperties:
    @given(
        a=st.dictionaries(_short_text_st, _int_list_st, max_size=6),
        b=st.dictionaries(_short_text_st, _int_list_st, max_size=6),
    )
    def test_round_trip(self, a: dict, b: dict) -> None:
        tp = dict[str, list[int]]
        assert _engine.apply(a, _engine.diff(a, b, tp), tp) == b

    @given(
        a=st.dictionaries(_short_text_st, _small_int_st, max_size=6),
        b=st.dictionaries(_short_text_st, _small_int_st, max_size=6),
    )
    def test_entries_only_for_changed_keys(self, a: dict, b: dict) -> None:
        delta = _engine.diff(a, b)
        changed = {k for k in a.keys() | b.keys() if a.get(k, object()) != b.get(k, object())}
        if delta.is_unchanged:
            assert not changed
        else:
            assert set(delta.entries) == changed
