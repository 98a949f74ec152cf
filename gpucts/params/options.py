"""Option lists and boolean flags."""

from __future__ import annotations

from typing import Any, Iterator, Sequence

from gpucts.params.spec import ParamSpec, ParamSpecIterable


class POptions(ParamSpecIterable):
    """Yields ``{key: value}`` for each value, in declaration order."""

    def __init__(self, key: str, values: Sequence[Any]) -> None:
        self.key = key
        self.values = tuple(values)

    def __iter__(self) -> Iterator[ParamSpec]:
        for value in self.values:
            yield ParamSpec({self.key: value})

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"poptions({self.key!r}, {list(self.values)!r})"


def poptions(key: str, values: Sequence[Any]) -> ParamSpecIterable:
    return POptions(key, values)


def pbool(key: str) -> ParamSpecIterable:
    return POptions(key, [False, True])
