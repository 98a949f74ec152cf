"""
Mock implementations for testing.

These classes implement the device interfaces with in-memory behavior
suitable for unit testing without a GPU. Test code drives failures through
the helper methods (inject_error, lose, set_hang_pops, ...).
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, List, Mapping, Optional

from .capability_info import KNOWN_FEATURES, default_limits
from .interfaces import (
    AdapterInterface, DeviceDescriptor, DeviceInterface, DeviceLostInfo,
    DeviceLostReason, ErrorFilter, GPUError, GPUInterface, OperationError,
    QueueInterface,
)


class MockQueue(QueueInterface):
    """Records submissions; work is always done immediately."""

    def __init__(self):
        self.submissions: List[list] = []

    def submit(self, command_buffers: Iterable[Any]) -> None:
        self.submissions.append(list(command_buffers))

    async def on_submitted_work_done(self) -> None:
        await asyncio.sleep(0)


class MockDevice(DeviceInterface):
    """
    Mock logical device.

    Keeps a real error scope stack: errors injected with inject_error() are
    captured by the innermost scope with a matching filter, and uncaptured
    ones are kept in ``uncaptured``.
    """

    def __init__(self, descriptor: Optional[DeviceDescriptor] = None, label: str = ""):
        self.descriptor = descriptor
        self.label = label
        self._queue = MockQueue()
        self._lost: asyncio.Future = asyncio.get_running_loop().create_future()
        self._scopes: List[list] = []
        self._hang_pops = False
        self.uncaptured: List[GPUError] = []
        self.destroyed = False

    @property
    def queue(self) -> MockQueue:
        return self._queue

    @property
    def lost(self) -> "asyncio.Future[DeviceLostInfo]":
        return self._lost

    @property
    def scope_depth(self) -> int:
        return len(self._scopes)

    def push_error_scope(self, error_filter: ErrorFilter) -> None:
        self._scopes.append([error_filter, None])

    async def pop_error_scope(self) -> Optional[GPUError]:
        if self._hang_pops:
            await asyncio.get_running_loop().create_future()
        if self._lost.done():
            raise OperationError("device is lost")
        if not self._scopes:
            raise OperationError("no error scope to pop")
        _, error = self._scopes.pop()
        return error

    def destroy(self) -> None:
        self.destroyed = True
        self._resolve_lost(DeviceLostReason.DESTROYED, "device destroyed")

    # Test helper methods

    def inject_error(self, error: GPUError) -> None:
        """Report an error as if an API call had generated it."""
        for scope in reversed(self._scopes):
            if scope[0] is error.filter:
                if scope[1] is None:
                    scope[1] = error
                return
        self.uncaptured.append(error)

    def lose(self, reason: DeviceLostReason = DeviceLostReason.UNKNOWN,
             message: str = "device lost") -> None:
        """Simulate losing the device."""
        self._resolve_lost(reason, message)

    def set_hang_pops(self, hang: bool) -> None:
        """Make pop_error_scope() never complete (simulates a hung driver)."""
        self._hang_pops = hang

    def _resolve_lost(self, reason: DeviceLostReason, message: str) -> None:
        if not self._lost.done():
            self._lost.set_result(DeviceLostInfo(reason=reason, message=message))


class MockAdapter(AdapterInterface):
    """Mock adapter with configurable features and limits."""

    def __init__(self, gpu: "MockGPU"):
        self._gpu = gpu

    @property
    def features(self) -> frozenset[str]:
        return self._gpu.features

    @property
    def limits(self) -> Mapping[str, int]:
        return self._gpu.limits

    async def request_device(self, descriptor: Optional[DeviceDescriptor]) -> MockDevice:
        await asyncio.sleep(0)
        if self._gpu.fail_on_request is not None:
            raise self._gpu.fail_on_request
        device = MockDevice(descriptor, label=f"mock-device-{len(self._gpu.devices)}")
        self._gpu.devices.append(device)
        return device


class MockGPU(GPUInterface):
    """
    Mock device implementation.

    By default supports every known feature at default limits. Every device
    it creates is kept in ``devices`` so tests can count creations and
    reach into a pooled device.
    """

    def __init__(self, features: Optional[Iterable[str]] = None,
                 limits: Optional[Mapping[str, int]] = None):
        self.features = frozenset(KNOWN_FEATURES if features is None else features)
        self.limits = default_limits()
        self.limits.update(limits or {})
        self.devices: List[MockDevice] = []
        self.fail_on_request: Optional[BaseException] = None
        self.no_adapter = False
        self.adapter_requests = 0

    async def request_adapter(self) -> Optional[MockAdapter]:
        self.adapter_requests += 1
        await asyncio.sleep(0)
        if self.no_adapter:
            return None
        return MockAdapter(self)

    # Test helper methods

    def set_fail_on_request(self, error: Optional[BaseException]) -> None:
        """Make request_device() raise ``error`` (None to stop failing)."""
        self.fail_on_request = error

    @property
    def last_device(self) -> MockDevice:
        return self.devices[-1]
