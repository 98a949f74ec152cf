"""Removal of records matching a partial record or a predicate."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Mapping, Union

from gpucts.params.spec import ParamSpec, ParamSpecIterable, as_param_iterable, params_supersets

Excluded = Union[Iterable[Mapping[str, Any]], Callable[[ParamSpec], bool]]


class PExclude(ParamSpecIterable):
    """Drops every record that supersets one of the excluded entries."""

    def __init__(self, params: Iterable[Mapping[str, Any]], excluded: Excluded) -> None:
        self.params = as_param_iterable(params)
        if callable(excluded):
            self._is_excluded = excluded
        else:
            entries = tuple(as_param_iterable(excluded))
            self._is_excluded = lambda record: any(params_supersets(record, e) for e in entries)

    def __iter__(self) -> Iterator[ParamSpec]:
        for record in self.params:
            if not self._is_excluded(record):
                yield record


def pexclude(params: Iterable[Mapping[str, Any]], excluded: Excluded) -> ParamSpecIterable:
    return PExclude(params, excluded)
