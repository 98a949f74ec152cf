"""Partial order between queries.

``compare_queries(a, b)`` relates the sets of cases two queries denote
without enumerating them. It works level by level (files, tests, params);
at each level a query is *open* when its path is a prefix that also
matches deeper paths.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Sequence

from gpucts.params.spec import values_identical
from gpucts.query.query import (
    TestQuery,
    TestQueryMultiCase,
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQuerySingleCase,
)


class Ordering(Enum):
    """Relation of query A's case set to query B's."""
    EQUAL = "equal"
    STRICT_SUBSET = "strict_subset"
    STRICT_SUPERSET = "strict_superset"
    UNORDERED = "unordered"

    def reverse(self) -> "Ordering":
        if self is Ordering.STRICT_SUBSET:
            return Ordering.STRICT_SUPERSET
        if self is Ordering.STRICT_SUPERSET:
            return Ordering.STRICT_SUBSET
        return self


def compare_paths(a: Sequence[str], b: Sequence[str]) -> Ordering:
    """Compare two paths where a shorter prefix denotes a superset."""
    for x, y in zip(a, b):
        if x != y:
            return Ordering.UNORDERED
    if len(a) == len(b):
        return Ordering.EQUAL
    if len(a) < len(b):
        return Ordering.STRICT_SUPERSET
    return Ordering.STRICT_SUBSET


def compare_params(a: Mapping[str, Any], b: Mapping[str, Any]) -> Ordering:
    """Compare params with superset semantics: unspecified keys match anything."""
    common = [k for k in a if k in b]
    for key in common:
        if not values_identical(a[key], b[key]):
            return Ordering.UNORDERED
    a_extra = len(a) - len(common)
    b_extra = len(b) - len(common)
    if a_extra == 0 and b_extra == 0:
        return Ordering.EQUAL
    if a_extra == 0:
        return Ordering.STRICT_SUPERSET
    if b_extra == 0:
        return Ordering.STRICT_SUBSET
    return Ordering.UNORDERED


def compare_one_level(ordering: Ordering, a_open: bool, b_open: bool) -> Ordering:
    """Combine a path ordering with whether each side is open at this level."""
    if ordering is Ordering.UNORDERED:
        return Ordering.UNORDERED
    if a_open and b_open:
        return ordering
    if not a_open and not b_open:
        # Closed paths only match themselves; equal paths never get here.
        return Ordering.UNORDERED
    if a_open and ordering is not Ordering.STRICT_SUBSET:
        return Ordering.STRICT_SUPERSET
    if b_open and ordering is not Ordering.STRICT_SUPERSET:
        return Ordering.STRICT_SUBSET
    return Ordering.UNORDERED


def _open_at_file_level(q: TestQuery) -> bool:
    return isinstance(q, (TestQueryMultiFile, TestQueryMultiTest))


def _open_at_test_level(q: TestQuery) -> bool:
    return isinstance(q, TestQueryMultiCase)


def compare_queries(a: TestQuery, b: TestQuery) -> Ordering:
    if a.suite != b.suite:
        return Ordering.UNORDERED

    a_open, b_open = _open_at_file_level(a), _open_at_file_level(b)
    ordering = compare_paths(a.file_path, b.file_path)
    if ordering is not Ordering.EQUAL or a_open or b_open:
        return compare_one_level(ordering, a_open, b_open)

    a_open, b_open = _open_at_test_level(a), _open_at_test_level(b)
    ordering = compare_paths(a.test_path, b.test_path)
    if ordering is not Ordering.EQUAL or a_open or b_open:
        return compare_one_level(ordering, a_open, b_open)

    assert isinstance(a, TestQuerySingleCase) and isinstance(b, TestQuerySingleCase)
    return compare_params(a.params, b.params)


def query_covers(query: TestQuery, case: TestQuery) -> bool:
    """True if every case denoted by ``case`` is also denoted by ``query``."""
    return compare_queries(query, case) in (Ordering.EQUAL, Ordering.STRICT_SUPERSET)
