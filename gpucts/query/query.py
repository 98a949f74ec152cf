"""The four query granularities.

A query denotes a set of concrete cases (suite, file, test, params). The
variants form a closed family, from widest to narrowest:

- :class:`TestQueryMultiFile`: every case in a suite.
- :class:`TestQueryMultiTest`: every case in the files under a file path.
- :class:`TestQueryMultiCase`: every case of the tests under a test path.
- :class:`TestQuerySingleCase`: the cases whose params include ``params``
  (one exact case when every public param is given).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

from gpucts.errors import QuerySyntaxError
from gpucts.params.spec import ParamSpec
from gpucts.query.encoding import stringify_param_value
from gpucts.query.separators import (
    LEVEL_SEPARATOR,
    PARAM_KV_SEPARATOR,
    PARAM_SEPARATOR,
    PATH_SEPARATOR,
)

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.\-]+(?: [A-Za-z0-9_.\-]+)*$")
_PARAM_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class QueryLevel(Enum):
    """Granularity of a query, from widest to narrowest."""
    MULTI_FILE = 1
    MULTI_TEST = 2
    MULTI_CASE = 3
    SINGLE_CASE = 4


def validate_segment(segment: str, *, what: str = "path segment") -> None:
    if not _SEGMENT_RE.match(segment):
        raise QuerySyntaxError(f"invalid {what}", segment=segment)


def validate_param_key(key: str) -> None:
    if not _PARAM_KEY_RE.match(key):
        raise QuerySyntaxError("invalid param key", segment=key)


def _validate_suite(suite: str) -> None:
    if not suite:
        raise QuerySyntaxError("suite name must not be empty")
    validate_segment(suite, what="suite name")


def _validate_path(path: Tuple[str, ...], what: str) -> None:
    if not path:
        raise QuerySyntaxError(f"{what} must not be empty")
    for segment in path:
        validate_segment(segment, what=f"{what} segment")


@dataclass(frozen=True)
class TestQueryMultiFile:
    __test__ = False

    suite: str

    level = QueryLevel.MULTI_FILE

    def __post_init__(self) -> None:
        _validate_suite(self.suite)

    @property
    def file_path(self) -> Tuple[str, ...]:
        return ()

    @property
    def test_path(self) -> Tuple[str, ...]:
        return ()

    @property
    def params(self) -> ParamSpec:
        return ParamSpec()

    def __str__(self) -> str:
        return self.suite + LEVEL_SEPARATOR


@dataclass(frozen=True)
class TestQueryMultiTest:
    __test__ = False

    suite: str
    file_path: Tuple[str, ...]

    level = QueryLevel.MULTI_TEST

    def __post_init__(self) -> None:
        object.__setattr__(self, "file_path", tuple(self.file_path))
        _validate_suite(self.suite)
        _validate_path(self.file_path, "file path")

    @property
    def test_path(self) -> Tuple[str, ...]:
        return ()

    @property
    def params(self) -> ParamSpec:
        return ParamSpec()

    def __str__(self) -> str:
        return (self.suite + LEVEL_SEPARATOR
                + PATH_SEPARATOR.join(self.file_path) + LEVEL_SEPARATOR)


@dataclass(frozen=True)
class TestQueryMultiCase:
    __test__ = False

    suite: str
    file_path: Tuple[str, ...]
    test_path: Tuple[str, ...]

    level = QueryLevel.MULTI_CASE

    def __post_init__(self) -> None:
        _validate_suite(self.suite)
        object.__setattr__(self, "file_path", tuple(self.file_path))
        _validate_path(self.file_path, "file path")
        object.__setattr__(self, "test_path", tuple(self.test_path))
        _validate_path(self.test_path, "test path")

    @property
    def params(self) -> ParamSpec:
        return ParamSpec()

    def __str__(self) -> str:
        return (self.suite + LEVEL_SEPARATOR
                + PATH_SEPARATOR.join(self.file_path) + LEVEL_SEPARATOR
                + PATH_SEPARATOR.join(self.test_path) + LEVEL_SEPARATOR)


@dataclass(frozen=True)
class TestQuerySingleCase:
    __test__ = False

    suite: str
    file_path: Tuple[str, ...]
    test_path: Tuple[str, ...]
    params: ParamSpec = field(default_factory=ParamSpec)

    level = QueryLevel.SINGLE_CASE

    def __post_init__(self) -> None:
        _validate_suite(self.suite)
        object.__setattr__(self, "file_path", tuple(self.file_path))
        _validate_path(self.file_path, "file path")
        object.__setattr__(self, "test_path", tuple(self.test_path))
        _validate_path(self.test_path, "test path")
        if not isinstance(self.params, ParamSpec):
            object.__setattr__(self, "params", ParamSpec(self.params))
        for key in self.params:
            validate_param_key(key)

    def __str__(self) -> str:
        params = PARAM_SEPARATOR.join(
            k + PARAM_KV_SEPARATOR + stringify_param_value(v) for k, v in self.params.items()
        )
        return (self.suite + LEVEL_SEPARATOR
                + PATH_SEPARATOR.join(self.file_path) + LEVEL_SEPARATOR
                + PATH_SEPARATOR.join(self.test_path) + LEVEL_SEPARATOR
                + params)


TestQuery = Union[TestQueryMultiFile, TestQueryMultiTest, TestQueryMultiCase, TestQuerySingleCase]
