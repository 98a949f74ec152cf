"""Exception types shared across gpucts.

Authoring errors (bad parameter declarations, malformed queries, bad test
registrations) are raised where they are detected and never retried.
Device pool errors are classified by the pool before it decides whether a
device may be reused.
"""

from __future__ import annotations

from typing import Optional


class CtsError(Exception):
    """Base class for all gpucts errors."""


# ---------------------------------------------------------------------------
# Authoring errors
# ---------------------------------------------------------------------------

class ParamsSpecError(CtsError, ValueError):
    """Raised when a parameter declaration is inconsistent (e.g. key collision)."""


class QuerySyntaxError(CtsError, ValueError):
    """Raised when a query string cannot be parsed.

    Attributes:
        query: The full query string that failed to parse.
        segment: The offending part of it.
    """

    def __init__(self, message: str, *, query: str = "", segment: Optional[str] = None) -> None:
        detail = message
        if segment is not None:
            detail += f" (at {segment!r})"
        if query:
            detail += f" in query {query!r}"
        super().__init__(detail)
        self.query = query
        self.segment = segment


class TestRegistrationError(CtsError, ValueError):
    """Raised when a test group is declared incorrectly."""

    __test__ = False


class LoaderError(CtsError):
    """Raised when a suite directory or spec file cannot be loaded."""


class ConfigError(CtsError, ValueError):
    """Raised when a config file or override has an invalid value."""


# ---------------------------------------------------------------------------
# Test outcomes
# ---------------------------------------------------------------------------

class SkipTestCase(CtsError):
    """Raised to skip the current case (not a failure)."""

    __test__ = False


class TestFailure(CtsError, AssertionError):
    """Raised by a test body (via ``Fixture.fail``) to fail the current case."""

    __test__ = False


# ---------------------------------------------------------------------------
# Device pool
# ---------------------------------------------------------------------------

class DevicePoolError(CtsError, RuntimeError):
    """Raised when the device pool is misused or the device layer is unusable."""


class FeaturesNotSupported(CtsError):
    """Raised by device creation when the adapter lacks a requested feature."""


class TestFailedButDeviceReusable(CtsError):
    """The case failed, but the device it ran on is still healthy."""

    __test__ = False


class TestOOMedShouldAttemptGC(CtsError):
    """The case hit an unexpected out-of-memory error; the device is discarded."""

    __test__ = False


class DeviceLostError(CtsError):
    """The device was lost while a case was using it."""


class ErrorScopeError(CtsError):
    """Error scopes were unbalanced or could not be drained after a case."""


__all__ = [
    "CtsError",
    "ParamsSpecError",
    "QuerySyntaxError",
    "TestRegistrationError",
    "LoaderError",
    "ConfigError",
    "SkipTestCase",
    "TestFailure",
    "DevicePoolError",
    "FeaturesNotSupported",
    "TestFailedButDeviceReusable",
    "TestOOMedShouldAttemptGC",
    "DeviceLostError",
    "ErrorScopeError",
]
