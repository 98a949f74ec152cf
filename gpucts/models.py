"""Data models for case and suite results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CaseResult:
    """Result of running a single case."""
    query: str                     # canonical SingleCase query
    status: str                    # "pass", "warn", "fail" or "skip"
    duration_ms: int
    logs: list[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class SuiteResult:
    """Aggregate result of all cases in a run."""
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    warned: int = 0
    duration_ms: int = 0
    results: list[CaseResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0
