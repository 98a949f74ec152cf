"""Writing and loading test files."""

from gpucts.framework.fixture import (
    FAIL,
    PASS,
    SKIP,
    WARN,
    Fixture,
    GPUTest,
    LogMessage,
    TestCaseRecorder,
)
from gpucts.framework.test_group import CaseRecord, TestBuilder, TestGroup
from gpucts.framework.loader import SPEC_SUFFIX, SpecFile, TestFileLoader

__all__ = [
    "FAIL",
    "PASS",
    "SKIP",
    "WARN",
    "Fixture",
    "GPUTest",
    "LogMessage",
    "TestCaseRecorder",
    "CaseRecord",
    "TestBuilder",
    "TestGroup",
    "SPEC_SUFFIX",
    "SpecFile",
    "TestFileLoader",
]
