"""Command dispatch for ctsctl CLI."""

from __future__ import annotations

import dataclasses
import logging
import sys
from typing import Optional

from gpucts.cli.parser import _build_parser, _preprocess_argv
from gpucts.cli.helpers import _error


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the ``ctsctl`` CLI.

    Parses arguments, loads the configuration, and dispatches to the
    appropriate command handler.

    Args:
        argv: Argument list to parse.  Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: 0 on success, 1 on failure, 2 on usage error.
    """
    if argv is None:
        argv = sys.argv[1:]

    argv = _preprocess_argv(argv)

    # Late import to allow tests to monkeypatch gpucts.cli.cmd_xxx
    import gpucts.cli as cli

    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.cmd == "parse":
        return cli.cmd_parse(args.queries, json_mode=args.json)
    if args.cmd == "compare":
        return cli.cmd_compare(args.a, args.b, json_mode=args.json)

    try:
        config = cli.load_config(args.config)
    except cli.ConfigError as e:
        return _error(str(e), json_mode=args.json, code=2)

    if args.cmd == "list":
        return cli.cmd_list(
            args.queries,
            suite_dirs=args.suite_dir,
            config_dirs=config.suite_dirs,
            json_mode=args.json,
        )
    if args.cmd == "checklist":
        return cli.cmd_checklist(
            args.file,
            suite_dirs=args.suite_dir,
            config_dirs=config.suite_dirs,
            json_mode=args.json,
        )
    if args.cmd == "run":
        overrides = {}
        if args.backend is not None:
            overrides["backend"] = args.backend
        if args.pool_size is not None:
            overrides["pool_size"] = args.pool_size
        if args.release_timeout is not None:
            overrides["release_timeout"] = args.release_timeout
        # replace() re-runs CtsConfig validation on the flag values.
        try:
            config = dataclasses.replace(config, **overrides)
        except cli.ConfigError as e:
            return _error(str(e), json_mode=args.json, code=2)
        return cli.cmd_run(
            args.queries,
            suite_dirs=args.suite_dir,
            config_dirs=config.suite_dirs,
            backend=config.backend,
            pool_size=config.pool_size,
            release_timeout=config.release_timeout,
            json_mode=args.json,
        )

    parser.error(f"Unknown command: {args.cmd}")
    return 2
