"""Validate a list of queries against the cases a suite actually has.

A checklist is a text file with one query per line. It is valid when no two
queries overlap and every case of every listed suite is covered by some
query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import combinations
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Tuple, Union

from gpucts.errors import LoaderError, QuerySyntaxError
from gpucts.framework.loader import TestFileLoader
from gpucts.query.compare import Ordering, compare_queries, query_covers
from gpucts.query.parse import parse_query
from gpucts.query.query import TestQuery

logger = logging.getLogger(__name__)


@dataclass
class ChecklistReport:
    """Everything wrong with a query list."""
    suites: list[str] = field(default_factory=list)
    case_count: int = 0
    overlaps: list[Tuple[str, str, str]] = field(default_factory=list)  # (a, b, ordering)
    gaps: list[str] = field(default_factory=list)       # cases no query covers
    unmatched: list[str] = field(default_factory=list)  # queries that cover no case

    @property
    def ok(self) -> bool:
        return not self.overlaps and not self.gaps


def read_query_list(path: Union[str, Path]) -> List[TestQuery]:
    """Parse one query per non-empty line; lines starting with ``#`` are comments."""
    queries: List[TestQuery] = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            try:
                queries.append(parse_query(text))
            except QuerySyntaxError as e:
                raise QuerySyntaxError(f"{path}:{lineno}: {e}") from e
    return queries


def check_queries(queries: Sequence[TestQuery],
                  loaders: Mapping[str, TestFileLoader]) -> ChecklistReport:
    """Compare ``queries`` with each other and with the suites' cases."""
    by_suite: Dict[str, List[TestQuery]] = {}
    for query in queries:
        by_suite.setdefault(query.suite, []).append(query)

    report = ChecklistReport(suites=sorted(by_suite))

    for suite, suite_queries in sorted(by_suite.items()):
        for a, b in combinations(suite_queries, 2):
            ordering = compare_queries(a, b)
            if ordering is not Ordering.UNORDERED:
                report.overlaps.append((str(a), str(b), ordering.value))

        loader = loaders.get(suite)
        if loader is None:
            raise LoaderError(f"no suite directory for suite {suite!r}")
        matched = [False] * len(suite_queries)
        for file_query in loader.list_files():
            for case in loader.load_cases(file_query):
                report.case_count += 1
                covered = False
                for i, query in enumerate(suite_queries):
                    if query_covers(query, case.query):
                        matched[i] = True
                        covered = True
                if not covered:
                    report.gaps.append(str(case.query))

        for query, hit in zip(suite_queries, matched):
            if not hit:
                logger.warning("Query %s matches no case", query)
                report.unmatched.append(str(query))

    return report
