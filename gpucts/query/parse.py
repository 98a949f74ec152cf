"""Parsing query strings into :mod:`gpucts.query.query` objects."""

from __future__ import annotations

from typing import Any

from gpucts.errors import QuerySyntaxError
from gpucts.params.spec import ParamSpec
from gpucts.query.encoding import parse_param_value, split_top_level
from gpucts.query.query import (
    TestQuery,
    TestQueryMultiCase,
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQuerySingleCase,
    validate_param_key,
    validate_segment,
)
from gpucts.query.separators import (
    LEVEL_SEPARATOR,
    PARAM_KV_SEPARATOR,
    PARAM_SEPARATOR,
    PATH_SEPARATOR,
)


def _parse_path(text: str, what: str, query: str) -> tuple[str, ...]:
    segments = tuple(text.split(PATH_SEPARATOR))
    for segment in segments:
        if not segment:
            raise QuerySyntaxError(f"empty {what} segment", query=query, segment=text)
        try:
            validate_segment(segment, what=f"{what} segment")
        except QuerySyntaxError as e:
            raise QuerySyntaxError(f"invalid {what} segment", query=query, segment=segment) from e
    return segments


def parse_params(text: str, *, query: str = "") -> ParamSpec:
    """Parse ``k=v,k=v`` into a ParamSpec."""
    params: dict[str, Any] = {}
    if not text:
        return ParamSpec()
    for item in split_top_level(text, PARAM_SEPARATOR, query=query):
        key, sep, raw = item.partition(PARAM_KV_SEPARATOR)
        if not sep:
            raise QuerySyntaxError("param must be key=value", query=query, segment=item)
        try:
            validate_param_key(key)
        except QuerySyntaxError as e:
            raise QuerySyntaxError("invalid param key", query=query, segment=item) from e
        if key in params:
            raise QuerySyntaxError("duplicate param key", query=query, segment=item)
        if not raw:
            raise QuerySyntaxError("missing param value", query=query, segment=item)
        params[key] = parse_param_value(raw, query=query)
    return ParamSpec(params)


def parse_query(s: str, *, single_case: bool = False) -> TestQuery:
    """Parse a query string, returning the most specific variant it names.

    ``suite``, ``suite:`` → MultiFile; ``suite:files[:]`` → MultiTest;
    ``suite:files:tests[:]`` → MultiCase; ``suite:files:tests:params`` →
    SingleCase. With ``single_case=True`` a query ending in ``tests:`` is
    read as the SingleCase with no public params (the form case providers
    print for unparametrized tests).

    Raises:
        QuerySyntaxError: naming the offending segment.
    """
    if not isinstance(s, str):
        raise TypeError(f"query must be a string, got {type(s).__name__}")
    sections = split_top_level(s, LEVEL_SEPARATOR, query=s)
    if len(sections) > 4:
        raise QuerySyntaxError("too many ':'-separated sections", query=s,
                               segment=LEVEL_SEPARATOR.join(sections[4:]))

    suite = sections[0]
    if not suite:
        raise QuerySyntaxError("empty suite name", query=s, segment=suite)
    try:
        validate_segment(suite, what="suite name")
    except QuerySyntaxError as e:
        raise QuerySyntaxError("invalid suite name", query=s, segment=suite) from e

    rest = sections[1:]
    # A trailing empty section is the "everything under this prefix" marker.
    trailing_open = bool(rest) and rest[-1] == ""
    if trailing_open:
        rest = rest[:-1]
    for i, section in enumerate(rest):
        if not section:
            raise QuerySyntaxError("empty section before ':'", query=s,
                                   segment=LEVEL_SEPARATOR.join(sections[: i + 2]))

    if not rest:
        return TestQueryMultiFile(suite)
    file_path = _parse_path(rest[0], "file path", s)
    if len(rest) == 1:
        return TestQueryMultiTest(suite, file_path)
    test_path = _parse_path(rest[1], "test path", s)
    if len(rest) == 2:
        if single_case and trailing_open:
            return TestQuerySingleCase(suite, file_path, test_path, ParamSpec())
        return TestQueryMultiCase(suite, file_path, test_path)
    params = parse_params(rest[2], query=s)
    return TestQuerySingleCase(suite, file_path, test_path, params)
