"""``ctsctl run``: execute cases on a device backend."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Mapping, Optional, Sequence

from gpucts.cli.helpers import _build_loaders, _error, _print
from gpucts.device_pool import DevicePool
from gpucts.errors import CtsError, QuerySyntaxError
from gpucts.framework.loader import TestFileLoader
from gpucts.models import SuiteResult
from gpucts.query import parse_query
from gpucts.query.query import TestQuery
from gpucts.runner import load_backend, run_queries


async def _run(queries: Sequence[TestQuery], loaders: Mapping[str, TestFileLoader],
               backend: str, pool_size: int, release_timeout: float) -> SuiteResult:
    # The backend is built inside the loop; devices create futures on it.
    gpu = load_backend(backend)
    async with DevicePool(gpu, pool_size=pool_size, release_timeout=release_timeout) as pool:
        return await run_queries(queries, loaders, pool)


def cmd_run(queries: Sequence[str], *, suite_dirs: Optional[Sequence[str]],
            config_dirs: Mapping[str, str], backend: Optional[str],
            pool_size: int, release_timeout: float, json_mode: bool) -> int:
    """Entry point for ``ctsctl run``."""
    if not backend:
        return _error("Specify --backend MODULE:ATTR (or set backend in the config)",
                      json_mode=json_mode, code=2)
    try:
        parsed = [parse_query(q) for q in queries]
    except QuerySyntaxError as e:
        return _error(str(e), json_mode=json_mode, code=2)

    try:
        loaders = _build_loaders(config_dirs, suite_dirs)
        result = asyncio.run(_run(parsed, loaders, backend, pool_size, release_timeout))
    except CtsError as e:
        return _error(str(e), json_mode=json_mode)

    if json_mode:
        _print(asdict(result), json_mode=True)
    else:
        for r in result.results:
            _print(f"{r.status.upper():5} {r.query} ({r.duration_ms} ms)", json_mode=False)
            if r.error:
                _print(f"      {r.error}", json_mode=False)
        _print(
            f"{result.passed} passed, {result.failed} failed, {result.skipped} skipped, "
            f"{result.warned} warned in {result.duration_ms} ms",
            json_mode=False,
        )
    return 0 if result.ok else 1
