"""Derive differs from type annotations.

:class:`DifferRegistry` inspects a type once (``dataclasses.fields``,
``typing.get_type_hints``, ``get_origin`` / ``get_args``), picks the
differ for its shape and caches it.  Every field of a product is resolved
the same way, so the resulting differ dispatches on static types only and
never inspects runtime values to decide which differ to use.

Shape selection:

=================================================  =====================
Annotation                                         Differ
=================================================  =====================
dataclass, ``NamedTuple`` class, ``tuple[A, B]``   :class:`ProductDiffer`
``Union`` of product classes                       :class:`SumDiffer`
``Optional[T]``                                    :class:`OptionalDiffer`
``list[T]``, ``Sequence[T]``, ``tuple[T, ...]``    :class:`SequenceDiffer`
``dict[K, V]``, ``Mapping[K, V]``                  :class:`MappingDiffer`
anything else                                      :class:`ScalarDiffer`
=================================================  =====================

A dataclass whose ``__init__`` requires arguments that are not fields
(a required ``InitVar``, for instance) cannot be rebuilt from a patched
field set and is diffed as a scalar.  ``Sequence[T]`` and
``MutableSequence[T]`` fields may hold lists or tuples; apply returns
the same kind as the source.

Self-referential types are supported: a product or sum differ is cached
before its fields are resolved, so a field that refers back to the type
receives the (not yet bound) differ.  Values must still be acyclic.
"""

from __future__ import annotations

import collections
import collections.abc
import dataclasses
import inspect
import threading
import types
import typing
from typing import Any, Union

from difficient.config import DiffConfig
from difficient.differs.base import Diffable
from difficient.differs.mapping import MappingDiffer
from difficient.differs.product import ProductDiffer
from difficient.differs.scalar import ScalarDiffer
from difficient.differs.sequence import SequenceDiffer
from difficient.differs.sum import OptionalDiffer, SumDiffer
from difficient.observability import get_logger

log = get_logger("difficient.derive")

_NONE_TYPE = type(None)

# Abstract origins hold lists or tuples; their differ rebuilds the source's kind.
_ABSTRACT_SEQUENCE_ORIGINS: frozenset[Any] = frozenset({
    collections.abc.Sequence,
    collections.abc.MutableSequence,
})

_MAPPING_ORIGINS: frozenset[Any] = frozenset({
    dict,
    collections.OrderedDict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
})

_UNION_ORIGINS: frozenset[Any] = frozenset({Union, types.UnionType})


def is_product_class(tp: Any) -> bool:
    """Return ``True`` for ``NamedTuple`` classes and rebuildable dataclasses."""
    if typing.get_origin(tp) is not None or not isinstance(tp, type):
        return False
    if dataclasses.is_dataclass(tp):
        return _rebuildable(tp)
    return _is_namedtuple(tp)


def _rebuildable(tp: type) -> bool:
    """Return ``True`` when *tp* can be constructed from its init fields alone.

    A required ``InitVar`` or a hand-written ``__init__`` with extra
    required parameters cannot be supplied from a patched field set.
    """
    fields = {f.name for f in dataclasses.fields(tp) if f.init}
    for param in inspect.signature(tp).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.name not in fields and param.default is param.empty:
            return False
    return True


def _is_namedtuple(tp: type) -> bool:
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


class DifferRegistry:
    """Build and cache one differ per type.

    Parameters
    ----------
    config:
        Configuration handed to every derived differ.
    metrics:
        Metrics backend handed to differs that emit metrics.
    """

    def __init__(self, config: DiffConfig | None = None, metrics: Any | None = None) -> None:
        self._config = config if config is not None else DiffConfig()
        self._metrics = metrics
        self._cache: dict[Any, Diffable] = {}
        self._lock = threading.RLock()
        self._scalar = ScalarDiffer(self._config)

    def register(self, tp: Any, differ: Diffable) -> None:
        """Use *differ* for *tp*, here and wherever *tp* appears as a field.

        Register hand-written differs before deriving types that contain
        *tp*; differs already derived keep the differ they resolved.
        """
        if not isinstance(differ, Diffable):
            raise TypeError(f"{differ!r} does not implement diff() and apply()")
        with self._lock:
            self._cache[tp] = differ

    def differ_for(self, tp: Any) -> Diffable:
        """Return the differ for annotation *tp*, deriving it if needed."""
        with self._lock:
            cached = self._cache.get(tp)
            if cached is not None:
                return cached
            return self._derive(tp)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def _derive(self, tp: Any) -> Diffable:
        if tp is Any or tp is None or tp is _NONE_TYPE:
            return self._scalar

        origin = typing.get_origin(tp)
        args = typing.get_args(tp)

        if origin is typing.Annotated:
            return self.differ_for(args[0])
        if origin in _UNION_ORIGINS:
            return self._derive_union(tp, args)
        if origin is tuple or tp is tuple or tp is typing.Tuple:
            return self._derive_tuple(tp, args)
        if origin is list or tp is list:
            return self._store(tp, SequenceDiffer(list, self._config, self._metrics))
        if origin in _ABSTRACT_SEQUENCE_ORIGINS:
            return self._store(tp, SequenceDiffer(None, self._config, self._metrics))
        if origin in _MAPPING_ORIGINS or tp in (dict, collections.OrderedDict):
            container = collections.OrderedDict if collections.OrderedDict in (origin, tp) else dict
            values = self.differ_for(args[1] if len(args) == 2 else Any)
            return self._store(tp, MappingDiffer(values, container, self._config))
        if origin is None and isinstance(tp, type) and dataclasses.is_dataclass(tp):
            if not _rebuildable(tp):
                log.debug(
                    "Dataclass needs init-only arguments, diffing it as a scalar",
                    extra={"extra_fields": {"type": tp.__qualname__}},
                )
                return self._store(tp, self._scalar)
            return self._derive_product(tp, ProductDiffer.for_dataclass(tp, self._config))
        if origin is None and isinstance(tp, type) and _is_namedtuple(tp):
            return self._derive_product(tp, ProductDiffer.for_namedtuple(tp, self._config))
        return self._store(tp, self._scalar)

    def _derive_union(self, tp: Any, args: tuple[Any, ...]) -> Diffable:
        members = [a for a in args if a is not _NONE_TYPE]
        if len(members) < len(args):
            inner_tp = members[0] if len(members) == 1 else Union[tuple(members)]
            differ: Diffable = OptionalDiffer(self.differ_for(inner_tp), self._config)
            return self._store(tp, differ)
        if not all(is_product_class(m) for m in members):
            return self._store(tp, self._scalar)

        sum_differ = SumDiffer(members, self._config)
        self._store(tp, sum_differ)
        payloads: dict[str, ProductDiffer] = {}
        for member in members:
            payload = self.differ_for(member)
            if not isinstance(payload, ProductDiffer):
                del self._cache[tp]
                raise TypeError(
                    f"variant {member.__qualname__} has a custom differ; "
                    "sum variants must use the derived product differ"
                )
            payloads[member.__name__] = payload
        sum_differ.bind(payloads)
        return sum_differ

    def _derive_tuple(self, tp: Any, args: tuple[Any, ...]) -> Diffable:
        if tp is tuple or tp is typing.Tuple or (len(args) == 2 and args[1] is Ellipsis):
            return self._store(tp, SequenceDiffer(tuple, self._config, self._metrics))
        # tuple[()] is the empty product.
        arity_args = [] if args == ((),) else list(args)
        product = ProductDiffer.for_tuple(len(arity_args), self._config)
        self._store(tp, product)
        product.bind([self.differ_for(a) for a in arity_args])
        return product

    def _derive_product(self, tp: type, product: ProductDiffer) -> Diffable:
        self._store(tp, product)
        hints = self._field_hints(tp)
        product.bind([self.differ_for(hints.get(fid, Any)) for fid in product.field_ids])
        return product

    def _field_hints(self, tp: type) -> dict[Any, Any]:
        try:
            return typing.get_type_hints(tp)
        except (NameError, TypeError) as exc:
            # Annotations that cannot be resolved (e.g. names local to a
            # function) fall back to equality-based diffing.
            log.debug(
                "Unresolvable annotations, falling back to scalar fields",
                extra={"extra_fields": {"type": tp.__qualname__, "error": str(exc)}},
            )
            if dataclasses.is_dataclass(tp):
                return {
                    f.name: f.type
                    for f in dataclasses.fields(tp)
                    if not isinstance(f.type, str)
                }
            return {}

    def _store(self, tp: Any, differ: Diffable) -> Diffable:
        self._cache[tp] = differ
        return differ
