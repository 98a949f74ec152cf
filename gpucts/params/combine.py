"""Cartesian merge of several parametrizations."""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping

from gpucts.errors import ParamsSpecError
from gpucts.params.spec import ParamSpec, ParamSpecIterable, as_param_iterable


def _merge(a: Mapping[str, Any], b: Mapping[str, Any]) -> ParamSpec:
    data = dict(a)
    for key, value in b.items():
        if key in data:
            raise ParamsSpecError(
                f"pcombine: key {key!r} is produced by more than one input "
                f"({dict(a)!r} x {dict(b)!r})"
            )
        data[key] = value
    return ParamSpec(data)


class PCombine(ParamSpecIterable):
    """Cross product of the inputs; the first input varies slowest."""

    def __init__(self, *inputs: Iterable[Mapping[str, Any]]) -> None:
        self.inputs = tuple(as_param_iterable(i) for i in inputs)

    def __iter__(self) -> Iterator[ParamSpec]:
        return self._product(0, ParamSpec())

    def _product(self, index: int, prefix: ParamSpec) -> Iterator[ParamSpec]:
        if index == len(self.inputs):
            yield prefix
            return
        for record in self.inputs[index]:
            yield from self._product(index + 1, _merge(prefix, record))


def pcombine(*inputs: Iterable[Mapping[str, Any]]) -> ParamSpecIterable:
    return PCombine(*inputs)
