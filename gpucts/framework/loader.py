"""Discovery and import of ``*_spec.py`` files under a suite directory."""

from __future__ import annotations

import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Dict, Iterator, List, Optional, Tuple, Union

from gpucts.errors import LoaderError
from gpucts.framework.test_group import CaseRecord, TestGroup
from gpucts.query.compare import Ordering, compare_queries, query_covers
from gpucts.query.query import TestQuery, TestQueryMultiTest, validate_segment

logger = logging.getLogger(__name__)

SPEC_SUFFIX = "_spec.py"


@dataclass
class SpecFile:
    """A spec file that has been imported."""
    file_path: Tuple[str, ...]
    path: Path
    description: str
    group: TestGroup


class TestFileLoader:
    """Case provider for one suite directory.

    A file ``<suite_dir>/a/b_spec.py`` has file path ``("a", "b")``. The
    suite name defaults to the directory name.
    """

    __test__ = False

    def __init__(self, suite_dir: Union[str, Path], suite: Optional[str] = None):
        self.suite_dir = Path(suite_dir)
        self.suite = suite or self.suite_dir.name
        try:
            validate_segment(self.suite, what="suite name")
        except ValueError as e:
            raise LoaderError(f"invalid suite name for {self.suite_dir}: {e}") from e
        self._imported: Dict[Tuple[str, ...], SpecFile] = {}

    def _file_path(self, path: Path) -> Tuple[str, ...]:
        rel = path.relative_to(self.suite_dir)
        parts = list(rel.parts)
        parts[-1] = parts[-1][: -len(SPEC_SUFFIX)]
        for part in parts:
            try:
                validate_segment(part, what="file path segment")
            except ValueError as e:
                raise LoaderError(f"cannot address spec file {path}: {e}") from e
        return tuple(parts)

    def list_files(self) -> List[TestQueryMultiTest]:
        """Every spec file of the suite, as a file query, in path order."""
        if not self.suite_dir.is_dir():
            raise LoaderError(f"suite directory not found: {self.suite_dir}")
        files = sorted(self._file_path(p) for p in self.suite_dir.rglob("*" + SPEC_SUFFIX)
                       if p.is_file())
        return [TestQueryMultiTest(self.suite, file_path) for file_path in files]

    def import_file(self, file_path: Tuple[str, ...]) -> SpecFile:
        """Import a spec file once and return its test group."""
        file_path = tuple(file_path)
        cached = self._imported.get(file_path)
        if cached is not None:
            return cached

        path = self.suite_dir.joinpath(*file_path[:-1], file_path[-1] + SPEC_SUFFIX)
        if not path.is_file():
            raise LoaderError(f"spec file not found: {path}")
        module_name = "_gpucts_suite__" + "__".join((self.suite,) + file_path).replace(" ", "_")
        module = self._exec_module(module_name, path)

        group = getattr(module, "g", None)
        if not isinstance(group, TestGroup):
            raise LoaderError(f"{path} does not define a TestGroup named 'g'")
        group.validate()
        spec_file = SpecFile(
            file_path=file_path,
            path=path,
            description=getattr(module, "description", "") or "",
            group=group,
        )
        self._imported[file_path] = spec_file
        logger.debug("Loaded %s (%d tests)", path, len(group))
        return spec_file

    @staticmethod
    def _exec_module(module_name: str, path: Path) -> ModuleType:
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise LoaderError(f"cannot import {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[module_name]
            raise
        return module

    def load_cases(self, query: TestQuery) -> Iterator[CaseRecord]:
        """Every case ``query`` covers, in file then declaration order."""
        if query.suite != self.suite:
            raise LoaderError(f"query {query} is not in suite {self.suite!r}")
        for file_query in self.list_files():
            if compare_queries(query, file_query) is Ordering.UNORDERED:
                continue
            spec_file = self.import_file(file_query.file_path)
            for case in spec_file.group.iterate(self.suite, file_query.file_path):
                if query_covers(query, case.query):
                    yield case
