"""Per-case fixtures and the recorder that collects a case's outcome."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union

from gpucts.errors import SkipTestCase, TestFailure
from gpucts.interfaces import DeviceInterface, DeviceLostReason, ErrorFilter
from gpucts.params.spec import ParamSpec

PASS = "pass"
WARN = "warn"
FAIL = "fail"
SKIP = "skip"

_SEVERITY = {PASS: 0, SKIP: 1, WARN: 2, FAIL: 3}


@dataclass
class LogMessage:
    level: str
    message: str

    def __str__(self) -> str:
        return f"{self.level.upper()}: {self.message}"


class TestCaseRecorder:
    """Collects notes for one case; the worst note decides the status."""

    __test__ = False

    def __init__(self) -> None:
        self.status = PASS
        self.logs: List[LogMessage] = []

    def _log(self, level: str, message: str) -> None:
        self.logs.append(LogMessage(level, message))

    def _raise_status(self, status: str) -> None:
        if _SEVERITY[status] > _SEVERITY[self.status]:
            self.status = status

    def debug(self, message: str) -> None:
        self._log("debug", message)

    def info(self, message: str) -> None:
        self._log("info", message)

    def warn(self, message: str) -> None:
        self._log("warn", message)
        self._raise_status(WARN)

    def fail(self, message: str) -> None:
        self._log("fail", message)
        self._raise_status(FAIL)

    def skipped(self, message: str) -> None:
        self._log("skip", message)
        self._raise_status(SKIP)

    def threw(self, exc: BaseException) -> None:
        """Record an exception that escaped the case."""
        if isinstance(exc, SkipTestCase):
            self.skipped(str(exc))
        else:
            self.fail(f"{type(exc).__name__}: {exc}")


class Fixture:
    """Base fixture: params, recorder and expectation helpers.

    A fresh instance is created for every case.
    """

    #: Whether the runner must reserve a device for this fixture.
    needs_device = False

    def __init__(self, params: ParamSpec, rec: TestCaseRecorder):
        self.params = params
        self.rec = rec
        self._eventual: List[Awaitable[Any]] = []

    async def init(self) -> None:
        pass

    async def finalize(self) -> None:
        """Wait for eventual expectations registered during the case."""
        pending, self._eventual = self._eventual, []
        for awaitable in pending:
            await awaitable

    def debug(self, message: str) -> None:
        self.rec.debug(message)

    def warn(self, message: str) -> None:
        self.rec.warn(message)

    def skip(self, message: str) -> None:
        raise SkipTestCase(message)

    def fail(self, message: str = "") -> None:
        """Record a failure without stopping the case."""
        self.rec.fail(message or "failed")

    def expect(self, cond: bool, message: str = "") -> bool:
        if not cond:
            self.fail(message or "expectation failed")
        return cond

    def assert_(self, cond: bool, message: str = "") -> None:
        """Like expect(), but stops the case."""
        if not cond:
            raise TestFailure(message or "assertion failed")

    def eventually(self, awaitable: Awaitable[Any]) -> None:
        """Register an expectation that is awaited before the case ends."""
        self._eventual.append(awaitable)


class GPUTest(Fixture):
    """Fixture that runs each case on a pooled device.

    ``provider`` is what DevicePool.reserve() returned; init() acquires the
    device from it, which opens the whole-case error scopes.
    """

    needs_device = True

    def __init__(self, params: ParamSpec, rec: TestCaseRecorder, provider: Any):
        super().__init__(params, rec)
        self.provider = provider
        self._device: Optional[DeviceInterface] = None

    @property
    def device(self) -> DeviceInterface:
        if self._device is None:
            raise RuntimeError("device used before GPUTest.init()")
        return self._device

    async def init(self) -> None:
        await super().init()
        self._device = self.provider.acquire()

    def expect_device_lost(self, reason: DeviceLostReason) -> None:
        """Announce that this case will lose its device on purpose."""
        self.provider.expect_device_lost(reason)

    async def expect_gpu_error(self, error_filter: ErrorFilter,
                               fn: Callable[[], Union[None, Awaitable[None]]],
                               should_error: bool = True) -> None:
        self.device.push_error_scope(error_filter)
        result = fn()
        if result is not None:
            await result
        error = await self.device.pop_error_scope()
        if should_error and error is None:
            self.fail(f"expected {error_filter.value} error, got none")
        elif not should_error and error is not None:
            self.fail(f"unexpected {error_filter.value} error: {error.message}")
        elif error is not None:
            self.debug(f"got expected {error_filter.value} error: {error.message}")

    async def expect_validation_error(self, fn: Callable[[], Union[None, Awaitable[None]]],
                                      should_error: bool = True) -> None:
        await self.expect_gpu_error(ErrorFilter.VALIDATION, fn, should_error)
