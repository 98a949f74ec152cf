"""Shared utilities for ctsctl CLI commands."""

from __future__ import annotations

import json
import os
from typing import Any, Mapping, Optional, Sequence

from gpucts.framework.loader import TestFileLoader


def _print(obj: Any, *, json_mode: bool) -> None:
    if json_mode:
        print(json.dumps(obj, indent=2, sort_keys=True))
    else:
        if isinstance(obj, str):
            print(obj)
        else:
            print(json.dumps(obj, indent=2, sort_keys=True))


def _error(message: str, *, json_mode: bool, code: int = 1) -> int:
    _print({"error": message} if json_mode else f"error: {message}", json_mode=json_mode)
    return code


def _parse_suite_dir(value: str) -> tuple[Optional[str], str]:
    """``NAME=DIR`` names the suite explicitly; a bare ``DIR`` uses its basename."""
    name, sep, path = value.partition("=")
    if sep and name and os.sep not in name:
        return name, path
    return None, value


def _build_loaders(config_dirs: Mapping[str, str],
                   suite_dirs: Optional[Sequence[str]]) -> dict[str, TestFileLoader]:
    """Loaders for the configured suites plus any given with --suite-dir."""
    loaders = {name: TestFileLoader(path, suite=name) for name, path in config_dirs.items()}
    for value in suite_dirs or []:
        name, path = _parse_suite_dir(value)
        loader = TestFileLoader(path, suite=name)
        loaders[loader.suite] = loader
    return loaders
