"""Tagged variants: a tag key whose value selects a sub-parametrization."""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping, Sequence, Tuple

from gpucts.errors import ParamsSpecError
from gpucts.params.spec import ParamSpec, ParamSpecIterable, as_param_iterable

Variant = Tuple[Any, Iterable[Mapping[str, Any]]]


class PVariant(ParamSpecIterable):
    """For each ``(tag, sub)`` pair, yields ``{key: tag, **r}`` for r in sub.

    Collisions between ``key`` and a key of some sub-record are checked
    when the variant is constructed, so a bad declaration fails before a
    single record is produced.
    """

    def __init__(self, key: str, variants: Sequence[Variant]) -> None:
        self.key = key
        self.variants = tuple((tag, as_param_iterable(sub)) for tag, sub in variants)
        for tag, sub in self.variants:
            for record in sub:
                if key in record:
                    raise ParamsSpecError(
                        f"pvariant entry {dict(record)!r} (tag {tag!r}) has a key "
                        f"that collides with the pvariant key {key!r}"
                    )

    def __iter__(self) -> Iterator[ParamSpec]:
        for tag, sub in self.variants:
            for record in sub:
                data = {self.key: tag}
                data.update(record)
                yield ParamSpec(data)


def pvariant(key: str, variants: Sequence[Variant]) -> ParamSpecIterable:
    return PVariant(key, variants)


def pvalid(*, valid: Iterable[Mapping[str, Any]],
           invalid: Iterable[Mapping[str, Any]]) -> ParamSpecIterable:
    """Tag records with a private ``_valid`` flag for validation tests."""
    return PVariant("_valid", [(True, valid), (False, invalid)])
