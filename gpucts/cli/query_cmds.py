"""Query commands: parse, compare, list."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from gpucts.cli.helpers import _build_loaders, _error, _print
from gpucts.errors import CtsError, QuerySyntaxError
from gpucts.query import compare_queries, parse_query
from gpucts.runner import expand_queries


def cmd_parse(queries: Sequence[str], *, json_mode: bool) -> int:
    """Print the level and canonical form of each query."""
    out = []
    for text in queries:
        try:
            q = parse_query(text)
        except QuerySyntaxError as e:
            return _error(str(e), json_mode=json_mode, code=2)
        out.append({"query": text, "level": q.level.name.lower(), "canonical": str(q)})

    if json_mode:
        _print(out, json_mode=True)
    else:
        for entry in out:
            _print(f"{entry['canonical']}  ({entry['level']})", json_mode=False)
    return 0


def cmd_compare(a: str, b: str, *, json_mode: bool) -> int:
    """Print how A's cases relate to B's: equal, strict_subset, strict_superset or unordered."""
    try:
        qa, qb = parse_query(a), parse_query(b)
    except QuerySyntaxError as e:
        return _error(str(e), json_mode=json_mode, code=2)
    ordering = compare_queries(qa, qb)
    if json_mode:
        _print({"a": str(qa), "b": str(qb), "ordering": ordering.value}, json_mode=True)
    else:
        _print(ordering.value, json_mode=False)
    return 0


def cmd_list(queries: Sequence[str], *, suite_dirs: Optional[Sequence[str]],
             config_dirs: Mapping[str, str], json_mode: bool) -> int:
    """List every case the queries cover."""
    try:
        parsed = [parse_query(q) for q in queries]
    except QuerySyntaxError as e:
        return _error(str(e), json_mode=json_mode, code=2)

    try:
        loaders = _build_loaders(config_dirs, suite_dirs)
        cases = [str(case.query) for case in expand_queries(parsed, loaders)]
    except CtsError as e:
        return _error(str(e), json_mode=json_mode)

    if json_mode:
        _print({"count": len(cases), "cases": cases}, json_mode=True)
    else:
        for case in cases:
            _print(case, json_mode=False)
    return 0
