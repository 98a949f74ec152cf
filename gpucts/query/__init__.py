"""Test queries: addressing, parsing and ordering."""

from gpucts.query.query import (
    QueryLevel,
    TestQuery,
    TestQueryMultiCase,
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQuerySingleCase,
)
from gpucts.query.parse import parse_params, parse_query
from gpucts.query.compare import (
    Ordering,
    compare_one_level,
    compare_params,
    compare_paths,
    compare_queries,
    query_covers,
)

__all__ = [
    "QueryLevel",
    "TestQuery",
    "TestQueryMultiCase",
    "TestQueryMultiFile",
    "TestQueryMultiTest",
    "TestQuerySingleCase",
    "parse_params",
    "parse_query",
    "Ordering",
    "compare_one_level",
    "compare_params",
    "compare_paths",
    "compare_queries",
    "query_covers",
]
