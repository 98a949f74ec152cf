"""Case orchestration: expand queries, run cases on pooled devices, collect results."""

from __future__ import annotations

import importlib
import inspect
import logging
import time
from typing import Iterable, List, Mapping, Optional, Sequence

from gpucts.device_pool import DevicePool, DeviceProvider
from gpucts.errors import CtsError, DevicePoolError, LoaderError, SkipTestCase
from gpucts.framework.fixture import FAIL, PASS, SKIP, WARN, TestCaseRecorder
from gpucts.framework.loader import TestFileLoader
from gpucts.framework.test_group import CaseRecord
from gpucts.interfaces import GPUInterface
from gpucts.models import CaseResult, SuiteResult
from gpucts.query.compare import Ordering, compare_queries
from gpucts.query.query import TestQuery

logger = logging.getLogger(__name__)


def load_backend(target: str) -> GPUInterface:
    """Build the device layer named by ``module:attr``.

    ``attr`` may be a GPUInterface instance or a callable returning one.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise CtsError(f"backend must be MODULE:ATTR, got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise CtsError(f"cannot import backend module {module_name!r}: {e}") from e
    try:
        obj = getattr(module, attr)
    except AttributeError as e:
        raise CtsError(f"backend module {module_name!r} has no attribute {attr!r}") from e
    gpu = obj if isinstance(obj, GPUInterface) else obj()
    if not isinstance(gpu, GPUInterface):
        raise CtsError(f"backend {target!r} did not produce a GPUInterface (got {type(gpu).__name__})")
    return gpu


def dedupe_queries(queries: Sequence[TestQuery]) -> List[TestQuery]:
    """Drop queries whose cases are already covered by another query.

    The first of two equal queries is kept.
    """
    kept: List[TestQuery] = []
    for query in queries:
        covered_by = next(
            (k for k in kept if compare_queries(k, query) in (Ordering.EQUAL, Ordering.STRICT_SUPERSET)),
            None,
        )
        if covered_by is not None:
            logger.warning("Query %s is covered by %s; dropping it", query, covered_by)
            continue
        for k in [k for k in kept if compare_queries(query, k) is Ordering.STRICT_SUPERSET]:
            logger.warning("Query %s is covered by %s; dropping it", k, query)
            kept.remove(k)
        kept.append(query)
    return kept


async def run_case(case: CaseRecord, pool: Optional[DevicePool] = None) -> CaseResult:
    """Run one case: reserve, init, body, finalize, release.

    Raises:
        DevicePoolError: the device layer is unusable; the run should stop.
    """
    rec = TestCaseRecorder()
    error: Optional[str] = None
    provider: Optional[DeviceProvider] = None
    fixture_class = case.fixture
    t0 = time.monotonic()

    try:
        if fixture_class.needs_device:
            if pool is None:
                raise DevicePoolError(f"{case.query} needs a device but no device pool is available")
            provider = await pool.reserve(case.test.descriptor)
            fixture = fixture_class(case.params, rec, provider)
        else:
            fixture = fixture_class(case.params, rec)
        await fixture.init()
        result = case.test.fn(fixture)
        if inspect.isawaitable(result):
            await result
        await fixture.finalize()
    except SkipTestCase as e:
        rec.skipped(str(e))
    except DevicePoolError:
        raise
    except Exception as e:
        logger.debug("Case %s raised", case.query, exc_info=True)
        rec.threw(e)
        error = f"{type(e).__name__}: {e}"
    finally:
        if provider is not None:
            try:
                await pool.release(provider)
            except Exception as e:
                logger.warning("Releasing device after %s failed: %s", case.query, e)
                rec.threw(e)
                error = error or f"{type(e).__name__}: {e}"

    ms = int((time.monotonic() - t0) * 1000)
    return CaseResult(
        query=str(case.query),
        status=rec.status,
        duration_ms=ms,
        logs=[str(m) for m in rec.logs],
        error=error if rec.status == FAIL else None,
    )


async def run_cases(cases: Iterable[CaseRecord], pool: Optional[DevicePool] = None) -> SuiteResult:
    """Run cases one after another and aggregate their results."""
    t0 = time.monotonic()
    results: List[CaseResult] = []
    for case in cases:
        result = await run_case(case, pool)
        logger.info("%s %s (%d ms)", result.status.upper(), result.query, result.duration_ms)
        results.append(result)

    ms = int((time.monotonic() - t0) * 1000)
    return SuiteResult(
        passed=sum(1 for r in results if r.status == PASS),
        failed=sum(1 for r in results if r.status == FAIL),
        skipped=sum(1 for r in results if r.status == SKIP),
        warned=sum(1 for r in results if r.status == WARN),
        duration_ms=ms,
        results=results,
    )


def expand_queries(queries: Sequence[TestQuery],
                   loaders: Mapping[str, TestFileLoader]) -> Iterable[CaseRecord]:
    """Every case covered by ``queries``, each case once."""
    seen: set[str] = set()
    for query in dedupe_queries(queries):
        loader = loaders.get(query.suite)
        if loader is None:
            raise LoaderError(f"no suite directory for suite {query.suite!r}")
        for case in loader.load_cases(query):
            key = str(case.query)
            if key in seen:
                continue
            seen.add(key)
            yield case


async def run_queries(queries: Sequence[TestQuery], loaders: Mapping[str, TestFileLoader],
                      pool: Optional[DevicePool] = None) -> SuiteResult:
    return await run_cases(expand_queries(queries, loaders), pool)
