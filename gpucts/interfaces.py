"""
Interfaces for the device layer gpucts drives.

Abstract base classes that define what the device pool needs from a
graphics/compute implementation. A host provides a concrete GPUInterface;
mocks.MockGPU implements these in memory for tests.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence


class ErrorFilter(Enum):
    """Kinds of errors an error scope captures."""
    VALIDATION = "validation"
    OUT_OF_MEMORY = "out-of-memory"
    INTERNAL = "internal"


class DeviceLostReason(Enum):
    UNKNOWN = "unknown"
    DESTROYED = "destroyed"


@dataclass(frozen=True)
class DeviceLostInfo:
    """Resolved value of ``DeviceInterface.lost``."""
    reason: DeviceLostReason
    message: str = ""


class GPUError:
    """An error captured by an error scope (returned, not raised)."""

    filter = ErrorFilter.INTERNAL

    def __init__(self, message: str) -> None:
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class GPUValidationError(GPUError):
    filter = ErrorFilter.VALIDATION


class GPUOutOfMemoryError(GPUError):
    filter = ErrorFilter.OUT_OF_MEMORY


class GPUInternalError(GPUError):
    filter = ErrorFilter.INTERNAL


class OperationError(Exception):
    """Raised by ``pop_error_scope`` when the scope stack is empty or the device is lost."""


@dataclass(frozen=True)
class DeviceDescriptor:
    """Capabilities a test asks of its device."""
    required_features: Sequence[str] = ()
    required_limits: Mapping[str, int] = field(default_factory=dict)


class QueueInterface(ABC):

    @abstractmethod
    def submit(self, command_buffers: Iterable[Any]) -> None:
        """Submit command buffers for execution."""
        pass

    @abstractmethod
    async def on_submitted_work_done(self) -> None:
        """Resolve once all submitted work has completed."""
        pass


class DeviceInterface(ABC):
    """
    Abstract interface for a logical device.

    Implementations:
    - Host-provided wrappers around a real graphics API
    - MockDevice: For unit testing without a GPU
    """

    @property
    @abstractmethod
    def queue(self) -> QueueInterface:
        pass

    @property
    @abstractmethod
    def lost(self) -> "asyncio.Future[DeviceLostInfo]":
        """Future resolved with DeviceLostInfo when the device is lost."""
        pass

    @abstractmethod
    def push_error_scope(self, error_filter: ErrorFilter) -> None:
        pass

    @abstractmethod
    async def pop_error_scope(self) -> Optional[GPUError]:
        """Pop the innermost scope; None if it captured nothing.

        Raises OperationError if there is no scope to pop or the device
        has been lost.
        """
        pass

    @abstractmethod
    def destroy(self) -> None:
        """Destroy the device; resolves ``lost`` with reason DESTROYED."""
        pass


class AdapterInterface(ABC):

    @property
    @abstractmethod
    def features(self) -> frozenset[str]:
        pass

    @property
    @abstractmethod
    def limits(self) -> Mapping[str, int]:
        pass

    @abstractmethod
    async def request_device(self, descriptor: Optional[DeviceDescriptor]) -> DeviceInterface:
        pass


class GPUInterface(ABC):
    """Entry point of a device implementation."""

    @abstractmethod
    async def request_adapter(self) -> Optional[AdapterInterface]:
        """Return an adapter, or None if none is available."""
        pass
