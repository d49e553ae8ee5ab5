"""Key-by-key differ for associative containers (``dict[K, V]``)."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from difficient.config import DiffConfig
from difficient.errors import MissingKeyError, PatchError, ShapeMismatchError, UnexpectedKeyError
from difficient.models import (
    NO_CHANGE,
    Delta,
    EntriesChanged,
    EntryEdit,
    EntryInserted,
    EntryPatched,
    EntryRemoved,
)

from .base import Diffable, Differ, type_name


class MappingDiffer(Differ):
    """Diff mappings key by key, recursing into the value differ.

    Keys present only in the source are removed, keys present only in the
    target are inserted with their full value, and keys present on both
    sides whose values differ are patched.  Unchanged keys are omitted.
    Entries are listed in source key order, followed by inserted keys in
    target order.

    Parameters
    ----------
    values:
        Differ for the mapping's value type.
    container:
        Type used to rebuild patched mappings.  Must accept an iterable of
        ``(key, value)`` pairs, as ``dict`` and ``OrderedDict`` do.
    config:
        Engine configuration.
    """

    accepts = (EntriesChanged,)

    def __init__(
        self,
        values: Diffable,
        container: type = dict,
        config: DiffConfig | None = None,
    ) -> None:
        super().__init__(config)
        self._values = values
        self._container = container

    def diff(self, a: Mapping[Any, Any], b: Mapping[Any, Any]) -> Delta:
        entries: dict[Any, EntryEdit] = {}
        for key, value in a.items():
            if key not in b:
                entries[key] = EntryRemoved()
                continue
            delta = self._values.diff(value, b[key])
            if not delta.is_unchanged:
                entries[key] = EntryPatched(delta)
        for key, value in b.items():
            if key not in a:
                entries[key] = EntryInserted(value)

        if not entries:
            return NO_CHANGE
        return EntriesChanged(entries)

    def _patch(self, source: Any, delta: EntriesChanged) -> Any:
        if not isinstance(source, Mapping):
            raise ShapeMismatchError(
                f"cannot patch a {type_name(source)} as a mapping",
                context={"expected": self._container.__name__, "actual": type_name(source)},
            )

        for key, edit in delta.entries.items():
            if isinstance(edit, (EntryRemoved, EntryPatched)) and key not in source:
                raise MissingKeyError(
                    f"key {key!r} is not present in the source",
                    context={"key": key},
                )
            if isinstance(edit, EntryInserted) and key in source:
                raise UnexpectedKeyError(
                    f"key {key!r} is already present in the source",
                    context={"key": key},
                )
            if not isinstance(edit, (EntryRemoved, EntryPatched, EntryInserted)):
                raise ShapeMismatchError(
                    f"unknown entry edit {type(edit).__name__} for key {key!r}",
                    context={
                        "expected": ["EntryRemoved", "EntryInserted", "EntryPatched"],
                        "actual": type(edit).__name__,
                        "path": [key],
                    },
                )

        items: list[tuple[Any, Any]] = []
        for key, value in source.items():
            edit = delta.entries.get(key)
            if edit is None:
                items.append((key, copy.deepcopy(value)))
            elif isinstance(edit, EntryPatched):
                try:
                    items.append((key, self._values.apply(value, edit.delta)))
                except PatchError as exc:
                    exc.at(key)
                    raise
        for key, edit in delta.entries.items():
            if isinstance(edit, EntryInserted):
                items.append((key, copy.deepcopy(edit.value)))
        return self._container(items)
