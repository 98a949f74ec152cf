"""Predicate filtering."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Mapping

from gpucts.params.spec import ParamSpec, ParamSpecIterable, as_param_iterable


class PFilter(ParamSpecIterable):
    def __init__(self, params: Iterable[Mapping[str, Any]],
                 predicate: Callable[[ParamSpec], bool]) -> None:
        self.params = as_param_iterable(params)
        self.predicate = predicate

    def __iter__(self) -> Iterator[ParamSpec]:
        for record in self.params:
            if self.predicate(record):
                yield record


def pfilter(params: Iterable[Mapping[str, Any]],
            predicate: Callable[[ParamSpec], bool]) -> ParamSpecIterable:
    return PFilter(params, predicate)
