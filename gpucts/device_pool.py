"""Pool of reusable devices keyed by canonical descriptor.

Creating a device is expensive, and most cases ask for the same
capabilities, so devices are kept between cases. A pooled device moves
through ``free -> reserved -> acquired -> free``:

- ``reserve()`` hands out a free device whose canonical descriptor matches
  (or creates one) and marks it reserved.
- ``DeviceProvider.acquire()`` opens the whole-case error scopes.
- ``release()`` drains those scopes, decides whether the device is still
  healthy, and always leaves the holder free.

A device that failed in a way that may have corrupted it (loss, out of
memory, unbalanced error scopes, a hung drain) is removed from the pool and
destroyed so no later case runs on it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple, Union

from .capability_info import LIMIT_INFO, limit_satisfied
from .errors import (
    DeviceLostError,
    DevicePoolError,
    ErrorScopeError,
    FeaturesNotSupported,
    SkipTestCase,
    TestFailedButDeviceReusable,
    TestOOMedShouldAttemptGC,
)
from .interfaces import (
    AdapterInterface,
    DeviceDescriptor,
    DeviceInterface,
    DeviceLostInfo,
    DeviceLostReason,
    ErrorFilter,
    GPUInterface,
    OperationError,
)

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 20
DEFAULT_RELEASE_TIMEOUT = 5.0

DescriptorLike = Union[DeviceDescriptor, Mapping[str, Any]]


class HolderState(Enum):
    """Lifecycle of a pooled device.

    FREE: may be handed to a new case.
    RESERVED: handed to a case that has not opened error scopes yet.
    ACQUIRED: in use by a case, with whole-case error scopes open.
    """
    FREE = "free"
    RESERVED = "reserved"
    ACQUIRED = "acquired"


class DeviceProvider(ABC):
    """What a running case sees of its pooled device."""

    @abstractmethod
    def acquire(self) -> DeviceInterface:
        pass

    @abstractmethod
    def expect_device_lost(self, reason: DeviceLostReason) -> None:
        pass


def canonicalize_descriptor(
    desc: Optional[DescriptorLike],
) -> Tuple[Optional[DeviceDescriptor], str]:
    """Return the canonical descriptor and the string key it is pooled under.

    Features are deduplicated and sorted; limits keep only known limits
    whose requested value differs from the default, in LIMIT_INFO order.
    ``None`` stays ``None`` (key ``""``) rather than being expanded to an
    all-defaults descriptor, so the default device has its own key.
    """
    if desc is None:
        return None, ""
    if isinstance(desc, Mapping):
        desc = DeviceDescriptor(
            required_features=tuple(desc.get("required_features", ())),
            required_limits=dict(desc.get("required_limits", {})),
        )

    unknown = [name for name in desc.required_limits if name not in LIMIT_INFO]
    if unknown:
        raise DevicePoolError(f"unknown device limit(s) requested: {', '.join(sorted(unknown))}")

    features = tuple(sorted(set(desc.required_features)))
    limits = {}
    for name, info in LIMIT_INFO.items():
        requested = desc.required_limits.get(name)
        if requested is not None and requested != info.default:
            limits[name] = requested

    canonical = DeviceDescriptor(required_features=features, required_limits=limits)
    key = json.dumps(
        {"required_features": list(features), "required_limits": limits},
        separators=(",", ":"),
    )
    return canonical, key


def _unsupported_reason(adapter: AdapterInterface,
                        descriptor: Optional[DeviceDescriptor]) -> Optional[str]:
    if descriptor is None:
        return None
    missing = [f for f in descriptor.required_features if f not in adapter.features]
    if missing:
        return f"features not supported: {', '.join(missing)}"
    for name, requested in descriptor.required_limits.items():
        supported = adapter.limits.get(name, LIMIT_INFO[name].default)
        if not limit_satisfied(name, requested, supported):
            return f"limit {name}={requested} not supported (adapter: {supported})"
    return None


class DeviceHolder(DeviceProvider):
    """Holds one device, its lifecycle state, and its loss status.

    Only the pool changes ``state``.
    """

    def __init__(self, device: DeviceInterface):
        self.device = device
        self.state = HolderState.FREE
        self.expected_lost_reason: Optional[DeviceLostReason] = None
        self.evicted = False
        self.destroyed = False
        self._lost_info: Optional[DeviceLostInfo] = None
        device.lost.add_done_callback(self._on_lost)

    @classmethod
    async def create(cls, gpu: GPUInterface,
                     descriptor: Optional[DeviceDescriptor]) -> "DeviceHolder":
        adapter = await gpu.request_adapter()
        if adapter is None:
            raise DevicePoolError("request_adapter returned None")
        reason = _unsupported_reason(adapter, descriptor)
        if reason is not None:
            raise FeaturesNotSupported(reason)
        device = await adapter.request_device(descriptor)
        if device is None:
            raise DevicePoolError("request_device returned None")
        return cls(device)

    def _on_lost(self, future: "asyncio.Future[DeviceLostInfo]") -> None:
        if self._lost_info is None and not future.cancelled() and future.exception() is None:
            self._lost_info = future.result()

    @property
    def lost_info(self) -> Optional[DeviceLostInfo]:
        # The done-callback may not have run yet if nothing has yielded since the loss.
        if self._lost_info is None and self.device.lost.done():
            self._on_lost(self.device.lost)
        return self._lost_info

    def acquire(self) -> DeviceInterface:
        if self.state is not HolderState.RESERVED:
            raise DevicePoolError(f"acquire() on a device that is {self.state.value}, not reserved")
        self.state = HolderState.ACQUIRED
        self.device.push_error_scope(ErrorFilter.OUT_OF_MEMORY)
        self.device.push_error_scope(ErrorFilter.VALIDATION)
        return self.device

    def expect_device_lost(self, reason: DeviceLostReason) -> None:
        self.expected_lost_reason = reason

    def loss_was_expected(self) -> bool:
        lost = self.lost_info
        return (self.expected_lost_reason is not None and lost is not None
                and lost.reason is self.expected_lost_reason)

    def destroy(self) -> None:
        if not self.destroyed:
            self.destroyed = True
            self.device.destroy()

    async def ensure_release(self, timeout: float = DEFAULT_RELEASE_TIMEOUT) -> None:
        if self.state is HolderState.FREE:
            raise DevicePoolError("ensure_release() on a device that is already free")
        try:
            if self.state is HolderState.ACQUIRED:
                # A driver crash can leave pop_error_scope pending forever.
                try:
                    await asyncio.wait_for(self._release(), timeout)
                except asyncio.TimeoutError as e:
                    raise ErrorScopeError("finalization pop_error_scope timed out") from e
        finally:
            self.state = HolderState.FREE

    async def _release(self) -> None:
        """Close the whole-case error scopes and classify what they caught."""
        # Submit to the queue to attempt to force a flush.
        self.device.queue.submit([])

        try:
            validation_error = await self.device.pop_error_scope()
            oom_error = await self.device.pop_error_scope()
        except OperationError as e:
            lost = self.lost_info
            if lost is None:
                raise ErrorScopeError(
                    "pop_error_scope failed; should only happen if the device has been lost"
                ) from e
            raise DeviceLostError(
                f"Device was lost. Reason: {lost.reason.value}, Message: {lost.message}"
            ) from e

        await self.device.queue.on_submitted_work_done()

        try:
            await self.device.pop_error_scope()
        except OperationError:
            pass
        else:
            raise ErrorScopeError("There was an extra error scope on the stack after a test")

        if validation_error is not None:
            raise TestFailedButDeviceReusable(
                f"Unexpected validation error occurred: {validation_error.message}"
            )
        if oom_error is not None:
            # Don't allow the device to be reused; unexpected OOM could break the device.
            raise TestOOMedShouldAttemptGC("Unexpected out-of-memory error occurred")


class DeviceHolderPool:
    """Holders keyed by canonical descriptor, least recently used first.

    Several holders may share a key when cases with the same descriptor run
    concurrently.
    """

    def __init__(self, gpu: GPUInterface, pool_size: int = DEFAULT_POOL_SIZE):
        if pool_size < 1:
            raise DevicePoolError(f"pool size must be at least 1, got {pool_size}")
        self._gpu = gpu
        self.pool_size = pool_size
        # Keys that are known to be unsupported and can be rejected quickly.
        self.unsupported: set[str] = set()
        self._holders: List[Tuple[str, DeviceHolder]] = []

    def __len__(self) -> int:
        return len(self._holders)

    def keys(self) -> List[str]:
        return [key for key, _ in self._holders]

    def holders(self) -> List[DeviceHolder]:
        return [holder for _, holder in self._holders]

    def delete_by_device(self, device: DeviceInterface) -> bool:
        for i, (_, holder) in enumerate(self._holders):
            if holder.device is device:
                del self._holders[i]
                return True
        return False

    async def get_or_create(self, descriptor: Optional[DescriptorLike]) -> DeviceHolder:
        """Return a free holder for ``descriptor``, creating one if needed.

        Raises:
            SkipTestCase: devices with this descriptor are unsupported.
        """
        canonical, key = canonicalize_descriptor(descriptor)
        if key in self.unsupported:
            raise SkipTestCase(f"device descriptor previously failed: {key}")

        for i, (held_key, holder) in enumerate(self._holders):
            if held_key == key and holder.state is HolderState.FREE:
                # Move it to the end (most recently used).
                del self._holders[i]
                self._holders.append((held_key, holder))
                logger.debug("Reusing pooled device for %r", key)
                return holder

        try:
            holder = await DeviceHolder.create(self._gpu, canonical)
        except FeaturesNotSupported as e:
            self.unsupported.add(key)
            logger.info("Device descriptor not supported, skipping: %s (%s)", key, e)
            raise SkipTestCase(f"device descriptor not supported: {key}\n{e}") from e
        logger.debug("Created device for %r", key)
        self._insert_and_clean_up(key, holder)
        return holder

    def _insert_and_clean_up(self, key: str, holder: DeviceHolder) -> None:
        self._holders.append((key, holder))
        if len(self._holders) > self.pool_size:
            # Evict the least recently used entry, even if it is in use.
            evicted_key, evicted = self._holders.pop(0)
            logger.debug("Evicting pooled device for %r (%s)", evicted_key, evicted.state.value)
            evicted.evicted = True
            if evicted.state is HolderState.FREE:
                evicted.destroy()

    def destroy_all(self) -> None:
        for _, holder in self._holders:
            holder.destroy()
        self._holders.clear()


class DevicePool:
    """Hands out pooled devices to running cases.

    The first ``reserve()`` creates the default device as a check that the
    device layer works at all. If that fails, the pool is marked failed and
    every later ``reserve()`` raises without retrying.

    Usage:
        async with DevicePool(gpu) as pool:
            provider = await pool.reserve(descriptor)
            device = provider.acquire()
            ...
            await pool.release(provider)
    """

    def __init__(self, gpu: GPUInterface, pool_size: int = DEFAULT_POOL_SIZE,
                 release_timeout: float = DEFAULT_RELEASE_TIMEOUT):
        self._gpu = gpu
        self.pool_size = pool_size
        self.release_timeout = release_timeout
        self._holders: Optional[DeviceHolderPool] = None
        self._init_error: Optional[str] = None
        self._init_task: Optional[asyncio.Future] = None
        self._closed = False

    @property
    def holders(self) -> Optional[DeviceHolderPool]:
        return self._holders

    @property
    def failed(self) -> bool:
        return self._init_error is not None

    async def _initialize(self) -> None:
        holders = DeviceHolderPool(self._gpu, self.pool_size)
        try:
            await holders.get_or_create(None)
        except Exception as e:
            self._init_error = f' with {type(e).__name__} "{e}"'
            logger.error("Device failed to initialize%s; not retrying", self._init_error)
            return
        if self._closed:
            holders.destroy_all()
            return
        self._holders = holders

    async def reserve(self, descriptor: Optional[DescriptorLike] = None) -> DeviceProvider:
        """Request a device from the pool.

        Raises:
            SkipTestCase: the descriptor is not supported.
            DevicePoolError: the pool is closed or the device layer failed to initialize.
        """
        if self._closed:
            raise DevicePoolError("DevicePool is closed")
        # Concurrent first reserves all wait on the same initialization.
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        await self._init_task

        if self._closed:
            raise DevicePoolError("DevicePool is closed")
        if self._holders is None:
            raise DevicePoolError(f"Device failed to initialize{self._init_error}; not retrying")

        holder = await self._holders.get_or_create(descriptor)
        if holder.state is not HolderState.FREE:
            raise DevicePoolError("Device was in use on DevicePool.reserve")
        holder.state = HolderState.RESERVED
        holder.expected_lost_reason = None
        return holder

    async def release(self, provider: DeviceProvider) -> None:
        """Return a device to the pool after a case.

        Checks the whole-case error scopes and the device's loss status.
        A validation error fails the case but keeps the device; any other
        problem also removes and destroys the device. Errors propagate
        unless the device loss was announced with expect_device_lost().
        The holder is free afterwards no matter what happened.
        """
        if self._holders is None:
            raise DevicePoolError("DevicePool got into a bad state")
        if not isinstance(provider, DeviceHolder):
            raise DevicePoolError("DeviceProvider should always be a DeviceHolder")
        holder = provider
        if holder.state is HolderState.FREE:
            raise DevicePoolError("trying to release a device while already released")

        try:
            await holder.ensure_release(self.release_timeout)
            lost = holder.lost_info
            if lost is not None:
                raise DeviceLostError(
                    f"Device was unexpectedly lost. Reason: {lost.reason.value}, "
                    f"Message: {lost.message}"
                )
        except Exception as e:
            # Decide before destroying, which itself resolves the lost future.
            expected_loss = holder.loss_was_expected()
            if isinstance(e, TestFailedButDeviceReusable):
                logger.debug("Case failed but device is reusable: %s", e)
            else:
                logger.warning("Discarding pooled device after %s: %s", type(e).__name__, e)
                self._holders.delete_by_device(holder.device)
                holder.destroy()
            if not expected_loss:
                raise
            logger.debug("Suppressing expected device loss: %s", e)
        finally:
            # Only affects future reuse if the pool still has the holder.
            holder.state = HolderState.FREE
            if holder.evicted:
                holder.destroy()

    def close(self) -> None:
        """Destroy every pooled device; the pool cannot be used afterwards."""
        self._closed = True
        if self._holders is not None:
            self._holders.destroy_all()

    async def __aenter__(self) -> "DevicePool":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
