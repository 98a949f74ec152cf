"""Lazy parameter combinators.

Each combinator is a restartable iterable of :class:`ParamSpec`; composing
them never materializes the cross product::

    pcombine(poptions("x", [1, 2, 3]), pbool("y"))
"""

from gpucts.params.spec import (
    ParamSpec,
    ParamSpecIterable,
    as_param_iterable,
    is_public_key,
    params_equals,
    params_supersets,
    plist,
    public_params,
    values_identical,
)
from gpucts.params.options import poptions, pbool
from gpucts.params.variant import pvariant, pvalid
from gpucts.params.combine import pcombine
from gpucts.params.exclude import pexclude
from gpucts.params.filter import pfilter

__all__ = [
    "ParamSpec",
    "ParamSpecIterable",
    "as_param_iterable",
    "is_public_key",
    "params_equals",
    "params_supersets",
    "plist",
    "public_params",
    "values_identical",
    "poptions",
    "pbool",
    "pvariant",
    "pvalid",
    "pcombine",
    "pexclude",
    "pfilter",
]
