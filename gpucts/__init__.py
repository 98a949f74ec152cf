"""
gpucts: conformance test suite infrastructure.

Tests are addressed by hierarchical queries (``suite:file,path:test,path:k=v``),
parametrized with lazy combinators, and run on devices from a pool that
reuses healthy devices between cases.
"""

__version__ = "0.1.0"

from gpucts.errors import (
    CtsError,
    DeviceLostError,
    DevicePoolError,
    ParamsSpecError,
    QuerySyntaxError,
    SkipTestCase,
    TestFailure,
)
from gpucts.params import (
    ParamSpec,
    pbool,
    pcombine,
    pexclude,
    pfilter,
    plist,
    poptions,
    pvalid,
    pvariant,
)
from gpucts.query import Ordering, compare_queries, parse_query, query_covers
from gpucts.device_pool import DevicePool, DeviceProvider
from gpucts.framework import Fixture, GPUTest, TestFileLoader, TestGroup

__all__ = [
    "__version__",
    "CtsError",
    "DeviceLostError",
    "DevicePoolError",
    "ParamsSpecError",
    "QuerySyntaxError",
    "SkipTestCase",
    "TestFailure",
    "ParamSpec",
    "pbool",
    "pcombine",
    "pexclude",
    "pfilter",
    "plist",
    "poptions",
    "pvalid",
    "pvariant",
    "Ordering",
    "compare_queries",
    "parse_query",
    "query_covers",
    "DevicePool",
    "DeviceProvider",
    "Fixture",
    "GPUTest",
    "TestFileLoader",
    "TestGroup",
]
