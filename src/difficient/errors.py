"""Error hierarchy for difficient.

Every public error class inherits from DifficientError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Only patch application can fail.  Computing a diff is a total function
and never raises any of these errors.

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the library can raise."""

    SHAPE_MISMATCH = "SHAPE_MISMATCH"
    SEQUENCE_OUT_OF_BOUNDS = "SEQUENCE_OUT_OF_BOUNDS"
    MISSING_KEY = "MISSING_KEY"
    UNEXPECTED_KEY = "UNEXPECTED_KEY"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class DifficientError(Exception):
    """Base exception for all difficient errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Patch errors
# ---------------------------------------------------------------------------

class PatchError(DifficientError):
    """Base class for failures while applying a delta to a source value.

    A delta applied to a value it was not computed against is rejected
    with one of the subclasses below.  Application is all-or-nothing:
    the source is never mutated and no partial result is returned.

    Every patch error carries a ``path`` context key: the list of field
    ids, sequence positions or mapping keys from the root value down to
    the node where the mismatch was detected.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        context = dict(context or {})
        context.setdefault("path", [])
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def path(self) -> list[Any]:
        """Location of the failing node, outermost first."""
        return self.context["path"]

    def at(self, step: Any) -> PatchError:
        """Prefix *step* to the error path and return ``self``.

        Called by enclosing differs as the error propagates outwards so
        the final path reads from the root down.
        """
        self.context["path"].insert(0, step)
        return self


class ShapeMismatchError(PatchError):
    """The delta references a field, variant tag, or structural shape that
    is absent from or inconsistent with the source value.

    Context keys: ``path``, ``expected``, ``actual``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.SHAPE_MISMATCH,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class SequenceOutOfBoundsError(PatchError):
    """An edit script consumes more elements than the source sequence
    holds, leaves source elements unconsumed, or carries an invalid
    operation count.

    Context keys: ``path``, ``source_length``, ``consumed``, ``op_index``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SEQUENCE_OUT_OF_BOUNDS,
            message=message,
            context=context,
            cause=cause,
        )


class MissingKeyError(ShapeMismatchError):
    """A mapping delta removes or patches a key the source does not hold.

    Context keys: ``path``, ``key``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.MISSING_KEY,
        )


class UnexpectedKeyError(ShapeMismatchError):
    """A mapping delta inserts a key the source already holds.

    Context keys: ``path``, ``key``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.UNEXPECTED_KEY,
        )
