"""Shared pytest configuration for gpucts tests."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from gpucts.mocks import MockGPU


@pytest.fixture
def gpu():
    return MockGPU()


@pytest.fixture
def write_suite(tmp_path):
    """Write spec files into a suite directory and return its path.

    Usage: ``write_suite("s", {"a/b": "<module source>"})`` creates
    ``<tmp>/s/a/b_spec.py``.
    """
    def _write(name: str, files: dict[str, str]) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, source in files.items():
            path = root / (rel + "_spec.py")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source))
        return root

    return _write
