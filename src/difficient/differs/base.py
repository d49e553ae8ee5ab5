"""The diff/patch capability every diffable type provides.

:class:`Diffable` is the structural contract: anything with ``diff`` and
``apply`` methods of the right shape can be registered for a type, hand
written or derived.  :class:`Differ` is the shared base of the built-in
shape differs and implements the two delta shapes every type accepts,
``NoChange`` and ``Replace``.
"""

from __future__ import annotations

import copy
from typing import Any, ClassVar, Protocol, runtime_checkable

from difficient.config import DiffConfig
from difficient.errors import ShapeMismatchError
from difficient.models import Delta, NoChange, Replace


@runtime_checkable
class Diffable(Protocol):
    """Protocol that the differ of any type must satisfy.

    Implementations must honour three rules:

    * ``diff(a, a)`` returns a delta whose ``is_unchanged`` is true.
    * ``apply(a, diff(a, b)) == b``.
    * ``apply`` never mutates *source* and raises a
      :class:`~difficient.errors.PatchError` subclass when *delta* was not
      computed against a compatible value.
    """

    def diff(self, a: Any, b: Any) -> Delta:
        """Compute the delta that turns *a* into *b*."""
        ...

    def apply(self, source: Any, delta: Delta) -> Any:
        """Return a new value: *source* with *delta* applied."""
        ...


class Differ:
    """Base class for the built-in shape differs.

    Subclasses implement :meth:`diff` and :meth:`_patch`, and list the
    delta classes they know how to patch in :attr:`accepts`.

    Parameters
    ----------
    config:
        Engine configuration shared by every differ of an engine.
    """

    accepts: ClassVar[tuple[type[Delta], ...]] = ()

    def __init__(self, config: DiffConfig | None = None) -> None:
        self._config = config if config is not None else DiffConfig()

    def diff(self, a: Any, b: Any) -> Delta:
        raise NotImplementedError

    def apply(self, source: Any, delta: Delta) -> Any:
        if isinstance(delta, NoChange):
            return copy.deepcopy(source)
        if isinstance(delta, Replace):
            return copy.deepcopy(delta.value)
        if isinstance(delta, self.accepts):
            return self._patch(source, delta)
        raise ShapeMismatchError(
            f"{type(self).__name__} cannot apply a {type(delta).__name__} delta",
            context={
                "expected": [cls.__name__ for cls in (NoChange, Replace, *self.accepts)],
                "actual": type(delta).__name__,
            },
        )

    def _patch(self, source: Any, delta: Delta) -> Any:
        raise NotImplementedError


def type_name(value: Any) -> str:
    """Return a short display name for the type of *value*."""
    return type(value).__qualname__
