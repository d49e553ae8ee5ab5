"""Sequence differ: minimal Keep/Delete/Insert edit scripts.

Elements are treated whole: an element is either kept verbatim or
deleted and re-inserted, never patched in place.  The script minimises
the number of deleted plus inserted elements, which is the LCS edit
distance, and is emitted in canonical form:

* within each gap between kept runs, the deletion precedes the insertion;
* adjacent operations of the same kind are merged, so a script never
  holds two consecutive ``Keep``, ``Delete`` or ``Insert`` operations.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any

from difficient.config import DiffConfig
from difficient.errors import SequenceOutOfBoundsError, ShapeMismatchError
from difficient.models import NO_CHANGE, Delete, Delta, EditOp, Insert, Keep, SequenceEdits
from difficient.observability import NoopMetricsHook, get_logger

from .base import Differ, type_name
from .lcs_matcher import intern_elements, lcs_match

log = get_logger("difficient.sequence")

# Raw op kinds used while building a script, before payloads are copied.
_KEEP = "keep"
_DELETE = "delete"
_INSERT = "insert"


class SequenceDiffer(Differ):
    """Diff ordered collections (``list[T]``, ``tuple[T, ...]``).

    Parameters
    ----------
    container:
        ``list`` or ``tuple``; patched values are rebuilt as this type.
        ``None`` rebuilds each value as the source's own kind, a tuple
        for a tuple source and a list otherwise.
    config:
        Engine configuration (``max_sequence_cells`` cost guard).
    metrics:
        Metrics backend; defaults to the config's hook or a no-op.
    """

    accepts = (SequenceEdits,)

    def __init__(
        self,
        container: type | None = list,
        config: DiffConfig | None = None,
        metrics: Any | None = None,
    ) -> None:
        super().__init__(config)
        self._container = container
        if metrics is None:
            metrics = self._config.metrics
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def diff(self, a: Sequence[Any], b: Sequence[Any]) -> Delta:
        ops = self.edit_ops(a, b)
        if all(kind == _KEEP for kind, _, _ in ops):
            return NO_CHANGE
        return SequenceEdits(tuple(_materialize(ops, b)))

    def edit_ops(
        self, a: Sequence[Any], b: Sequence[Any]
    ) -> list[tuple[str, int, int]]:
        """Compute the compacted raw script ``(kind, start, count)``.

        ``start`` indexes *a* for keep/delete and *b* for insert.
        """
        m, n = len(a), len(b)

        prefix = 0
        limit = min(m, n)
        while prefix < limit and _same(a[prefix], b[prefix]):
            prefix += 1

        suffix = 0
        limit -= prefix
        while suffix < limit and _same(a[m - 1 - suffix], b[n - 1 - suffix]):
            suffix += 1

        mid_a = a[prefix:m - suffix]
        mid_b = b[prefix:n - suffix]

        raw: list[tuple[str, int, int]] = []
        if prefix:
            raw.append((_KEEP, 0, prefix))

        if mid_a or mid_b:
            pairs = self._match_middle(mid_a, mid_b)
            raw.extend(_build_ops(len(mid_a), len(mid_b), pairs, prefix))

        if suffix:
            raw.append((_KEEP, m - suffix, suffix))

        return _compact(raw)

    def _match_middle(
        self, mid_a: Sequence[Any], mid_b: Sequence[Any]
    ) -> list[tuple[int, int]]:
        if not mid_a or not mid_b:
            return []
        cells = len(mid_a) * len(mid_b)
        limit = self._config.max_sequence_cells
        if limit is not None and cells > limit:
            self._metrics.increment("difficient.sequence_guard_total")
            log.warning(
                "Sequence too large for minimal diff, emitting full rewrite",
                extra={
                    "extra_fields": {
                        "op": "diff",
                        "source_len": len(mid_a),
                        "target_len": len(mid_b),
                        "cells": cells,
                        "max_sequence_cells": limit,
                    }
                },
            )
            return []
        self._metrics.gauge("difficient.sequence_table_cells", cells)
        source_keys, target_keys = intern_elements(mid_a, mid_b)
        return lcs_match(source_keys, target_keys)

    def _patch(self, source: Any, delta: SequenceEdits) -> Any:
        if not isinstance(source, (list, tuple)):
            raise ShapeMismatchError(
                f"cannot replay an edit script on a {type_name(source)}",
                context={"expected": self._expected_name(), "actual": type_name(source)},
            )
        container = self._container
        if container is None:
            container = tuple if isinstance(source, tuple) else list
        return container(replay(source, delta.ops))

    def _expected_name(self) -> str:
        if self._container is None:
            return "list or tuple"
        return self._container.__name__


def replay(source: Sequence[Any], ops: Sequence[EditOp]) -> list[Any]:
    """Replay *ops* against *source* and return the resulting elements.

    Keep and Delete consume elements from *source*; Insert splices in its
    payload.  The script must consume *source* exactly.

    Raises
    ------
    SequenceOutOfBoundsError
        A count is not a positive integer, an Insert is empty, the script
        consumes more elements than *source* holds, or it leaves elements
        unconsumed.
    ShapeMismatchError
        An operation is not a Keep, Delete or Insert.
    """
    size = len(source)
    out: list[Any] = []
    pos = 0
    for index, op in enumerate(ops):
        if isinstance(op, (Keep, Delete)):
            count = op.count
            if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                raise SequenceOutOfBoundsError(
                    f"invalid {type(op).__name__} count {count!r} at op {index}",
                    context={"source_length": size, "consumed": pos, "op_index": index},
                )
            if pos + count > size:
                raise SequenceOutOfBoundsError(
                    f"{type(op).__name__}({count}) at op {index} runs past the end "
                    f"of a {size}-element source",
                    context={
                        "source_length": size,
                        "consumed": pos + count,
                        "op_index": index,
                    },
                )
            if isinstance(op, Keep):
                out.extend(copy.deepcopy(list(source[pos:pos + count])))
            pos += count
        elif isinstance(op, Insert):
            if not op.items:
                raise SequenceOutOfBoundsError(
                    f"empty Insert at op {index}",
                    context={"source_length": size, "consumed": pos, "op_index": index},
                )
            out.extend(copy.deepcopy(list(op.items)))
        else:
            raise ShapeMismatchError(
                f"unknown edit operation {type(op).__name__} at op {index}",
                context={"expected": ["Keep", "Delete", "Insert"], "actual": type(op).__name__},
            )

    if pos != size:
        raise SequenceOutOfBoundsError(
            f"edit script consumed {pos} of {size} source elements",
            context={"source_length": size, "consumed": pos, "op_index": len(ops)},
        )
    return out


# ---------------------------------------------------------------------------
# Script construction
# ---------------------------------------------------------------------------

def _same(x: Any, y: Any) -> bool:
    return x is y or x == y


def _build_ops(
    m: int,
    n: int,
    pairs: list[tuple[int, int]],
    offset: int,
) -> list[tuple[str, int, int]]:
    """Turn matched pairs of the middle section into raw single-step ops.

    Walks source and target using the LCS anchors as synchronisation
    points: unmatched source elements before an anchor are deleted, then
    unmatched target elements before it are inserted, then the anchor is
    kept.  *offset* shifts middle-relative indices back to full indices.
    """
    raw: list[tuple[str, int, int]] = []
    src_ptr = 0
    tgt_ptr = 0
    for src_anchor, tgt_anchor in [*pairs, (m, n)]:
        if src_ptr < src_anchor:
            raw.append((_DELETE, offset + src_ptr, src_anchor - src_ptr))
        if tgt_ptr < tgt_anchor:
            raw.append((_INSERT, offset + tgt_ptr, tgt_anchor - tgt_ptr))
        if src_anchor < m:
            raw.append((_KEEP, offset + src_anchor, 1))
        src_ptr = src_anchor + 1
        tgt_ptr = tgt_anchor + 1
    return raw


def _compact(raw: list[tuple[str, int, int]]) -> list[tuple[str, int, int]]:
    """Merge adjacent ops of the same kind into one."""
    merged: list[tuple[str, int, int]] = []
    for kind, start, count in raw:
        if merged and merged[-1][0] == kind:
            prev_kind, prev_start, prev_count = merged[-1]
            merged[-1] = (prev_kind, prev_start, prev_count + count)
        else:
            merged.append((kind, start, count))
    return merged


def _materialize(
    raw: list[tuple[str, int, int]], target: Sequence[Any]
) -> list[EditOp]:
    ops: list[EditOp] = []
    for kind, start, count in raw:
        if kind == _KEEP:
            ops.append(Keep(count))
        elif kind == _DELETE:
            ops.append(Delete(count))
        else:
            ops.append(Insert(tuple(target[start:start + count])))
    return ops
