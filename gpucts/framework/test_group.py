"""Registration of tests within one spec file.

A spec file builds a module-level ``g = TestGroup(...)`` and registers its
tests on it::

    g = TestGroup(GPUTest)

    @g.test("buffer,map").params(poptions("size", [4, 16]))
    async def fn(t):
        ...

``TestGroup.iterate()`` expands every test's params into the individual
cases the runner executes.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import (
    Any, Awaitable, Callable, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Sequence, Set,
    Tuple, Union,
)

from gpucts.errors import ParamsSpecError, TestRegistrationError
from gpucts.interfaces import DeviceDescriptor
from gpucts.params.spec import (
    ParamSpec,
    ParamSpecIterable,
    as_param_iterable,
    plist,
    public_params,
)
from gpucts.query.encoding import stringify_param_value
from gpucts.query.query import TestQuerySingleCase, validate_segment
from gpucts.query.separators import PATH_SEPARATOR
from gpucts.framework.fixture import Fixture

TestFn = Callable[[Any], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class CaseRecord:
    """One concrete case: its query, its full params, and the test it runs."""
    __test__ = False

    query: TestQuerySingleCase
    params: ParamSpec
    test: "TestBuilder"

    @property
    def fixture(self) -> type:
        return self.test.group.fixture


class TestBuilder:
    """A registered test; configuration methods return ``self`` for chaining.

    Also usable as a decorator: ``@g.test("name").params(...)`` registers the
    decorated function as the body and returns it unchanged.
    """

    __test__ = False

    def __init__(self, group: "TestGroup", test_path: Sequence[str], fn: Optional[TestFn] = None):
        self.group = group
        self.test_path = tuple(test_path)
        self.fn = fn
        self.description = ""
        self.descriptor: Optional[DeviceDescriptor] = None
        self.keys: Optional[frozenset[str]] = None
        self._params: ParamSpecIterable = plist([{}])

    @property
    def name(self) -> str:
        return PATH_SEPARATOR.join(self.test_path)

    def __call__(self, fn: TestFn) -> TestFn:
        if self.fn is not None:
            raise TestRegistrationError(f"test {self.name!r} already has a body")
        self.fn = fn
        if not self.description and fn.__doc__:
            self.description = inspect.cleandoc(fn.__doc__)
        return fn

    def desc(self, text: str) -> "TestBuilder":
        self.description = text
        return self

    def params(self, params: Iterable[Mapping[str, Any]],
               keys: Optional[Iterable[str]] = None) -> "TestBuilder":
        """Set the cases of this test.

        ``keys``, if given, is the exact key set every record must have.
        """
        self._params = as_param_iterable(params)
        self.keys = frozenset(keys) if keys is not None else None
        return self

    def device(self, descriptor: Union[DeviceDescriptor, Mapping[str, Any], None]) -> "TestBuilder":
        """Request a device with these capabilities for every case."""
        if isinstance(descriptor, Mapping):
            descriptor = DeviceDescriptor(
                required_features=tuple(descriptor.get("required_features", ())),
                required_limits=dict(descriptor.get("required_limits", {})),
            )
        self.descriptor = descriptor
        return self

    def validate(self) -> None:
        """Expand the params once and check the declarations.

        Raises:
            TestRegistrationError: the test has no body.
            ParamsSpecError: a record's keys differ from the declared keys,
                or two records have the same public params.
        """
        if self.fn is None:
            raise TestRegistrationError(f"test {self.name!r} has no body")
        seen: Set[FrozenSet[Tuple[str, str]]] = set()
        for record in self._params:
            if self.keys is not None and frozenset(record) != self.keys:
                raise ParamsSpecError(
                    f"test {self.name!r}: params {dict(record)!r} do not match "
                    f"declared keys {sorted(self.keys)}"
                )
            public = public_params(record)
            try:
                printed = frozenset((k, stringify_param_value(v)) for k, v in public.items())
            except TypeError as e:
                raise ParamsSpecError(f"test {self.name!r}: {e}") from e
            # Records that print the same cannot be told apart by a query.
            if printed in seen:
                raise ParamsSpecError(
                    f"test {self.name!r}: duplicate public params {dict(public)!r}"
                )
            seen.add(printed)

    def iterate(self, suite: str, file_path: Sequence[str]) -> Iterator[CaseRecord]:
        for record in self._params:
            query = TestQuerySingleCase(suite, file_path, self.test_path, public_params(record))
            yield CaseRecord(query=query, params=record, test=self)


class TestGroup:
    """All tests of one spec file, in declaration order."""

    __test__ = False

    def __init__(self, fixture: type = Fixture):
        if not (isinstance(fixture, type) and issubclass(fixture, Fixture)):
            raise TestRegistrationError(f"fixture must be a Fixture subclass, got {fixture!r}")
        self.fixture = fixture
        self._tests: List[TestBuilder] = []
        self._names: set[tuple[str, ...]] = set()

    def __len__(self) -> int:
        return len(self._tests)

    def __iter__(self) -> Iterator[TestBuilder]:
        return iter(self._tests)

    def test(self, name: str, fn: Optional[TestFn] = None) -> TestBuilder:
        """Register a test named ``name`` (``,``-separated test path)."""
        test_path = tuple(name.split(PATH_SEPARATOR))
        for segment in test_path:
            try:
                validate_segment(segment, what="test path segment")
            except ValueError as e:
                raise TestRegistrationError(f"invalid test name {name!r}: {e}") from e
        if test_path in self._names:
            raise TestRegistrationError(f"duplicate test name {name!r}")
        # A test path may not also be the prefix of another test.
        for other in self._names:
            shorter, longer = sorted((other, test_path), key=len)
            if longer[:len(shorter)] == shorter:
                raise TestRegistrationError(
                    f"test name {name!r} collides with {PATH_SEPARATOR.join(other)!r}"
                )
        self._names.add(test_path)
        builder = TestBuilder(self, test_path, fn)
        self._tests.append(builder)
        return builder

    def validate(self) -> None:
        for test in self._tests:
            test.validate()

    def iterate(self, suite: str, file_path: Sequence[str]) -> Iterator[CaseRecord]:
        """Yield every case of every test, in declaration order."""
        for test in self._tests:
            yield from test.iterate(suite, file_path)
