"""``ctsctl checklist``: validate a query list file."""

from __future__ import annotations

from dataclasses import asdict
from typing import Mapping, Optional, Sequence

from gpucts.checklist import check_queries, read_query_list
from gpucts.cli.helpers import _build_loaders, _error, _print
from gpucts.errors import CtsError, QuerySyntaxError


def cmd_checklist(file: str, *, suite_dirs: Optional[Sequence[str]],
                  config_dirs: Mapping[str, str], json_mode: bool) -> int:
    """Report overlapping queries, uncovered cases and queries matching nothing.

    Returns 0 when there are no overlaps and no gaps, 1 otherwise.
    """
    try:
        queries = read_query_list(file)
    except QuerySyntaxError as e:
        return _error(str(e), json_mode=json_mode, code=2)
    except OSError as e:
        return _error(f"cannot read {file}: {e}", json_mode=json_mode, code=2)

    try:
        report = check_queries(queries, _build_loaders(config_dirs, suite_dirs))
    except CtsError as e:
        return _error(str(e), json_mode=json_mode)

    if json_mode:
        data = asdict(report)
        data["ok"] = report.ok
        _print(data, json_mode=True)
    else:
        for a, b, ordering in report.overlaps:
            _print(f"OVERLAP    {a} is {ordering} of {b}", json_mode=False)
        for case in report.gaps:
            _print(f"GAP        {case}", json_mode=False)
        for query in report.unmatched:
            _print(f"UNMATCHED  {query}", json_mode=False)
        status = "OK" if report.ok else "FAILED"
        _print(
            f"{status}: {len(queries)} queries, {report.case_count} cases, "
            f"{len(report.overlaps)} overlaps, {len(report.gaps)} gaps, "
            f"{len(report.unmatched)} unmatched",
            json_mode=False,
        )
    return 0 if report.ok else 1
