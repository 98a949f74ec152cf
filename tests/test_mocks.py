"""Tests for gpucts/mocks.py: the in-memory device layer used by the pool tests."""

from __future__ import annotations

import pytest

from gpucts.interfaces import (
    DeviceLostReason,
    ErrorFilter,
    GPUInternalError,
    GPUValidationError,
    OperationError,
)
from gpucts.mocks import MockGPU


class TestMockDevice:
    @pytest.mark.asyncio
    async def test_error_captured_by_innermost_matching_scope(self, gpu):
        adapter = await gpu.request_adapter()
        device = await adapter.request_device(None)
        device.push_error_scope(ErrorFilter.VALIDATION)
        device.push_error_scope(ErrorFilter.OUT_OF_MEMORY)
        device.inject_error(GPUValidationError("first"))
        device.inject_error(GPUValidationError("second"))
        assert await device.pop_error_scope() is None
        error = await device.pop_error_scope()
        assert error.message == "first"

    @pytest.mark.asyncio
    async def test_uncaptured_errors_kept(self, gpu):
        device = await (await gpu.request_adapter()).request_device(None)
        device.inject_error(GPUInternalError("x"))
        assert [e.message for e in device.uncaptured] == ["x"]

    @pytest.mark.asyncio
    async def test_pop_empty_stack_rejected(self, gpu):
        device = await (await gpu.request_adapter()).request_device(None)
        with pytest.raises(OperationError):
            await device.pop_error_scope()

    @pytest.mark.asyncio
    async def test_destroy_resolves_lost(self, gpu):
        device = await (await gpu.request_adapter()).request_device(None)
        device.destroy()
        info = await device.lost
        assert info.reason is DeviceLostReason.DESTROYED
        assert device.destroyed

    @pytest.mark.asyncio
    async def test_first_loss_wins(self, gpu):
        device = await (await gpu.request_adapter()).request_device(None)
        device.lose(DeviceLostReason.UNKNOWN, "reset")
        device.destroy()
        info = await device.lost
        assert (info.reason, info.message) == (DeviceLostReason.UNKNOWN, "reset")


class TestMockGPU:
    @pytest.mark.asyncio
    async def test_tracks_devices(self, gpu):
        adapter = await gpu.request_adapter()
        await adapter.request_device(None)
        await adapter.request_device(None)
        assert len(gpu.devices) == 2
        assert gpu.last_device is gpu.devices[1]

    @pytest.mark.asyncio
    async def test_limit_overrides(self):
        gpu = MockGPU(features=["shader-f16"], limits={"max_bind_groups": 8})
        adapter = await gpu.request_adapter()
        assert adapter.features == frozenset({"shader-f16"})
        assert adapter.limits["max_bind_groups"] == 8
        assert adapter.limits["max_texture_dimension_2d"] == 8192
