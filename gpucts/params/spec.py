"""ParamSpec records and the restartable iterable they are produced from."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Iterator, Optional

PRIVATE_PREFIX = "_"

_PRIMITIVES = (int, float, str, type(None))


def values_identical(a: Any, b: Any) -> bool:
    """Shallow value equality used for every params comparison.

    Primitives (numbers, strings, booleans, None) compare by value, with
    booleans never equal to numbers. Anything else (lists, dicts, objects)
    compares by identity, so two distinct lists with the same contents are
    *not* identical.
    """
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, _PRIMITIVES) and isinstance(b, _PRIMITIVES):
        return type(a) is type(b) and a == b
    return False


class ParamSpec(Mapping):
    """Immutable mapping of parameter names to values for one case."""

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        merged = dict(data or {})
        merged.update(kwargs)
        for key in merged:
            if not isinstance(key, str):
                raise TypeError(f"param keys must be strings, got {key!r}")
        object.__setattr__(self, "_data", merged)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ParamSpec is immutable")

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return params_equals(self, other)

    def __hash__(self) -> int:
        # Equal specs always share a key set; values may be unhashable.
        return hash(frozenset(self._data))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._data.items())
        return f"ParamSpec({inner})"

    def merged(self, other: Mapping[str, Any]) -> "ParamSpec":
        """Return a new spec with ``other``'s keys added (later keys win)."""
        data = dict(self._data)
        data.update(other)
        return ParamSpec(data)


def params_equals(x: Optional[Mapping[str, Any]], y: Optional[Mapping[str, Any]]) -> bool:
    if x is y:
        return True
    if x is None or y is None:
        return False
    if len(x) != len(y):
        return False
    for key, value in x.items():
        if key not in y:
            return False
        if not values_identical(value, y[key]):
            return False
    return True


def params_supersets(sup: Optional[Mapping[str, Any]], sub: Optional[Mapping[str, Any]]) -> bool:
    """True if every key of ``sub`` is in ``sup`` with an identical value."""
    if sub is None:
        return True
    if sup is None:
        return False
    for key, value in sub.items():
        if key not in sup or not values_identical(sup[key], value):
            return False
    return True


def is_public_key(key: str) -> bool:
    return not key.startswith(PRIVATE_PREFIX)


def public_params(spec: Mapping[str, Any]) -> ParamSpec:
    """Strip private (``_``-prefixed) keys, which never appear in queries."""
    return ParamSpec({k: v for k, v in spec.items() if is_public_key(k)})


class ParamSpecIterable:
    """Base class for restartable, finite, lazy sequences of ParamSpec.

    Every call to ``iter()`` starts a fresh pass; subclasses implement
    ``__iter__`` and never cache the expanded sequence.
    """

    def __iter__(self) -> Iterator[ParamSpec]:
        raise NotImplementedError

    def __len__(self) -> int:
        return sum(1 for _ in self)


class PList(ParamSpecIterable):
    """A literal list of records."""

    def __init__(self, records: Iterable[Mapping[str, Any]]) -> None:
        self._records = tuple(
            r if isinstance(r, ParamSpec) else ParamSpec(r) for r in records
        )

    def __iter__(self) -> Iterator[ParamSpec]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


def plist(records: Iterable[Mapping[str, Any]]) -> ParamSpecIterable:
    return PList(records)


def as_param_iterable(params: Iterable[Mapping[str, Any]]) -> ParamSpecIterable:
    """Coerce combinator inputs to something restartable.

    ParamSpecIterables pass through; lists, tuples and one-shot iterators
    are snapshotted into a PList.
    """
    if isinstance(params, ParamSpecIterable):
        return params
    if isinstance(params, Mapping):
        raise TypeError("expected an iterable of param records, got a single mapping")
    return PList(params)
