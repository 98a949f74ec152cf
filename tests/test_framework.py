"""Tests for gpucts/framework: test groups, builders, fixtures and the recorder."""

from __future__ import annotations

import pytest

from gpucts.errors import ParamsSpecError, SkipTestCase, TestFailure, TestRegistrationError
from gpucts.framework import (
    FAIL,
    PASS,
    WARN,
    Fixture,
    GPUTest,
    TestCaseRecorder,
    TestGroup,
)
from gpucts.interfaces import DeviceDescriptor, GPUValidationError
from gpucts.device_pool import DevicePool
from gpucts.params import ParamSpec, pbool, pcombine, poptions, pvalid
from gpucts.query import TestQuerySingleCase


def _noop(t):
    pass


# ---------------------------------------------------------------------------
# TestGroup / TestBuilder
# ---------------------------------------------------------------------------


class TestRegistration:
    def test_name_split_into_test_path(self):
        g = TestGroup()
        builder = g.test("buffer,map,read", _noop)
        assert builder.test_path == ("buffer", "map", "read")
        assert builder.name == "buffer,map,read"

    def test_duplicate_name_rejected(self):
        g = TestGroup()
        g.test("a,b", _noop)
        with pytest.raises(TestRegistrationError, match="duplicate"):
            g.test("a,b", _noop)

    def test_prefix_name_rejected(self):
        g = TestGroup()
        g.test("a,b", _noop)
        with pytest.raises(TestRegistrationError, match="collides"):
            g.test("a", _noop)

    def test_invalid_name_rejected(self):
        g = TestGroup()
        with pytest.raises(TestRegistrationError):
            g.test("a:b", _noop)

    def test_fixture_must_subclass_fixture(self):
        with pytest.raises(TestRegistrationError):
            TestGroup(object)  # type: ignore[arg-type]

    def test_decorator_form(self):
        g = TestGroup()

        @g.test("t").params(poptions("x", [1, 2]))
        def body(t):
            """Checks x."""

        builder = next(iter(g))
        assert builder.fn is body
        assert builder.description == "Checks x."
        g.validate()

    def test_body_required(self):
        g = TestGroup()
        g.test("t")
        with pytest.raises(TestRegistrationError, match="no body"):
            g.validate()

    def test_device_accepts_mapping(self):
        g = TestGroup(GPUTest)
        builder = g.test("t", _noop).device({"required_features": ["shader-f16"]})
        assert builder.descriptor == DeviceDescriptor(required_features=("shader-f16",))


class TestParamsValidation:
    def test_declared_keys_enforced(self):
        g = TestGroup()
        g.test("t", _noop).params([{"x": 1}, {"x": 2, "y": 3}], keys=["x"])
        with pytest.raises(ParamsSpecError, match="declared keys"):
            g.validate()

    def test_declared_keys_match(self):
        g = TestGroup()
        g.test("t", _noop).params(pcombine(poptions("x", [1]), pbool("y")), keys=["x", "y"])
        g.validate()

    def test_duplicate_public_params_rejected(self):
        g = TestGroup()
        g.test("t", _noop).params([{"x": 1, "_a": 1}, {"x": 1, "_a": 2}])
        with pytest.raises(ParamsSpecError, match="duplicate public params"):
            g.validate()

    def test_params_printing_the_same_rejected(self):
        # Distinct lists are unequal params but address the same case.
        g = TestGroup()
        g.test("t", _noop).params(poptions("x", [[1], [1]]))
        with pytest.raises(ParamsSpecError, match="duplicate public params"):
            g.validate()

    def test_key_order_does_not_make_params_distinct(self):
        g = TestGroup()
        g.test("t", _noop).params([{"x": 1, "y": 2}, {"y": 2, "x": 1}])
        with pytest.raises(ParamsSpecError, match="duplicate public params"):
            g.validate()

    def test_unprintable_public_param_rejected(self):
        g = TestGroup()
        g.test("t", _noop).params([{"x": object()}])
        with pytest.raises(ParamsSpecError, match="cannot be written"):
            g.validate()

    def test_unprintable_private_param_allowed(self):
        g = TestGroup()
        g.test("t", _noop).params([{"x": 1, "_obj": object()}])
        g.validate()


class TestIterate:
    def test_cases_in_declaration_order(self):
        g = TestGroup()
        g.test("a", _noop).params(poptions("x", [1, 2]))
        g.test("b", _noop)
        cases = list(g.iterate("s", ("f",)))
        assert [str(c.query) for c in cases] == ["s:f:a:x=1", "s:f:a:x=2", "s:f:b:"]

    def test_private_params_kept_out_of_query(self):
        g = TestGroup()
        g.test("t", _noop).params(pvalid(valid=[{"n": 1}], invalid=[{"n": -1}]))
        cases = list(g.iterate("s", ("f",)))
        assert cases[0].query == TestQuerySingleCase("s", ("f",), ("t",), ParamSpec(n=1))
        assert cases[0].params["_valid"] is True
        assert cases[1].params["_valid"] is False

    def test_case_knows_fixture(self):
        g = TestGroup(GPUTest)
        g.test("t", _noop)
        (case,) = list(g.iterate("s", ("f",)))
        assert case.fixture is GPUTest


# ---------------------------------------------------------------------------
# Recorder and fixtures
# ---------------------------------------------------------------------------


class TestRecorder:
    def test_starts_passing(self):
        assert TestCaseRecorder().status == PASS

    def test_worst_status_wins(self):
        rec = TestCaseRecorder()
        rec.warn("w")
        assert rec.status == WARN
        rec.fail("f")
        rec.warn("w2")
        assert rec.status == FAIL
        assert [str(m) for m in rec.logs] == ["WARN: w", "FAIL: f", "WARN: w2"]

    def test_skip_does_not_hide_failure(self):
        rec = TestCaseRecorder()
        rec.fail("f")
        rec.threw(SkipTestCase("late"))
        assert rec.status == FAIL

    def test_threw_records_exception(self):
        rec = TestCaseRecorder()
        rec.threw(ValueError("bad"))
        assert rec.status == FAIL
        assert rec.logs[-1].message == "ValueError: bad"

    def test_debug_does_not_change_status(self):
        rec = TestCaseRecorder()
        rec.debug("d")
        rec.info("i")
        assert rec.status == PASS


class TestFixture:
    def test_expect(self):
        t = Fixture(ParamSpec(), TestCaseRecorder())
        assert t.expect(True)
        assert not t.expect(False, "nope")
        assert t.rec.status == FAIL

    def test_skip_raises(self):
        t = Fixture(ParamSpec(), TestCaseRecorder())
        with pytest.raises(SkipTestCase):
            t.skip("why")

    def test_assert_raises(self):
        t = Fixture(ParamSpec(), TestCaseRecorder())
        with pytest.raises(TestFailure):
            t.assert_(False, "stop")

    @pytest.mark.asyncio
    async def test_eventual_expectations_awaited_on_finalize(self):
        t = Fixture(ParamSpec(), TestCaseRecorder())
        seen = []

        async def later():
            seen.append(True)

        t.eventually(later())
        assert not seen
        await t.finalize()
        assert seen == [True]


class TestGPUTest:
    @pytest.mark.asyncio
    async def test_init_acquires_device(self, gpu):
        pool = DevicePool(gpu)
        provider = await pool.reserve()
        t = GPUTest(ParamSpec(), TestCaseRecorder(), provider)
        await t.init()
        assert t.device is provider.device
        assert t.device.scope_depth == 2
        await pool.release(provider)

    def test_device_before_init(self):
        t = GPUTest(ParamSpec(), TestCaseRecorder(), provider=None)
        with pytest.raises(RuntimeError):
            _ = t.device

    @pytest.mark.asyncio
    async def test_expect_validation_error(self, gpu):
        pool = DevicePool(gpu)
        provider = await pool.reserve()
        t = GPUTest(ParamSpec(), TestCaseRecorder(), provider)
        await t.init()

        await t.expect_validation_error(lambda: t.device.inject_error(GPUValidationError("x")))
        assert t.rec.status == PASS
        await t.expect_validation_error(lambda: None)
        assert t.rec.status == FAIL
        # Errors inside the expectation scope never reach the whole-case scope.
        await pool.release(provider)

    @pytest.mark.asyncio
    async def test_unexpected_validation_error_fails(self, gpu):
        pool = DevicePool(gpu)
        provider = await pool.reserve()
        t = GPUTest(ParamSpec(), TestCaseRecorder(), provider)
        await t.init()
        await t.expect_validation_error(
            lambda: t.device.inject_error(GPUValidationError("x")), should_error=False)
        assert t.rec.status == FAIL
        await pool.release(provider)
