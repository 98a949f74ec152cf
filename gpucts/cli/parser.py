"""Argument parser for ctsctl CLI."""

from __future__ import annotations

import argparse

from gpucts import __version__

_GLOBAL_FLAGS = ("--json", "-v", "--verbose")
_GLOBAL_OPTIONS = ("--config",)


def _preprocess_argv(argv: list[str]) -> list[str]:
    """Reorder global flags (--json, -v, --config) before the subcommand.

    argparse only accepts top-level flags before the subcommand, but the
    flags are easier to use if they are allowed anywhere, so we reorder.

    Args:
        argv: Raw argument list (without ``sys.argv[0]``).

    Returns:
        Reordered argument list with global flags moved to the front.
    """
    global_args: list[str] = []
    rest: list[str] = []
    i = 0
    while i < len(argv):
        token = argv[i]
        if token == "--":
            rest.extend(argv[i:])
            break
        if token in _GLOBAL_FLAGS:
            global_args.append(token)
            i += 1
            continue
        if any(token.startswith(opt + "=") for opt in _GLOBAL_OPTIONS):
            global_args.append(token)
            i += 1
            continue
        if token in _GLOBAL_OPTIONS:
            # Needs a value.
            if i + 1 >= len(argv):
                rest.append(token)
                i += 1
                continue
            global_args.extend([token, argv[i + 1]])
            i += 2
            continue
        rest.append(token)
        i += 1

    return global_args + rest


def _add_suite_dir(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--suite-dir",
        action="append",
        default=None,
        metavar="[NAME=]DIR",
        help="Suite directory containing *_spec.py files (repeatable; NAME defaults to the directory name)",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the full argparse parser with all subcommands."""
    parser = argparse.ArgumentParser(prog="ctsctl", description="Conformance test suite query and run tool")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__} (gpucts)",
    )
    parser.add_argument("--json", action="store_true", help="Output machine-parseable JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", default=None, help="YAML config file (default: $GPUCTS_CONFIG)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_parse = sub.add_parser("parse", help="Parse queries and print their canonical form")
    p_parse.add_argument("queries", nargs="+", metavar="QUERY")

    p_compare = sub.add_parser("compare", help="Print how query A's cases relate to query B's")
    p_compare.add_argument("a", metavar="A")
    p_compare.add_argument("b", metavar="B")

    p_list = sub.add_parser("list", help="List the cases a query covers")
    p_list.add_argument("queries", nargs="+", metavar="QUERY")
    _add_suite_dir(p_list)

    p_checklist = sub.add_parser("checklist", help="Check a query list for overlaps and gaps")
    p_checklist.add_argument("file", help="Text file with one query per line")
    _add_suite_dir(p_checklist)

    p_run = sub.add_parser("run", help="Run the cases queries cover")
    p_run.add_argument("queries", nargs="+", metavar="QUERY")
    _add_suite_dir(p_run)
    p_run.add_argument("--backend", default=None, metavar="MODULE:ATTR",
                       help="Callable returning the GPU implementation (default: config backend)")
    p_run.add_argument("--pool-size", type=int, default=None, help="Maximum pooled devices")
    p_run.add_argument("--release-timeout", type=float, default=None,
                       help="Seconds to wait for a device to drain after each case")

    return parser
