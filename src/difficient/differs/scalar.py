"""Equality-based differ for atomic values."""

from __future__ import annotations

from typing import Any

from difficient.models import NO_CHANGE, Delta, Replace

from .base import Differ


class ScalarDiffer(Differ):
    """Diff atomic values: numbers, strings, enum members, timestamps, ...

    Two values are unchanged when they are the same object or compare
    equal; anything else is a full :class:`Replace`.  The identity check
    keeps ``diff(x, x)`` unchanged for values that are not equal to
    themselves, such as ``float("nan")``.
    """

    def diff(self, a: Any, b: Any) -> Delta:
        if a is b or a == b:
            return NO_CHANGE
        return Replace(b)
