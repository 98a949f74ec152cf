"""
ctsctl: command-line front end for gpucts.

Main commands:
- parse: print a query's level and canonical form
- compare: print how two queries' case sets relate
- list: list the cases queries cover in a suite directory
- checklist: check a query list file for overlaps and gaps
- run: run cases on a device backend (``--backend MODULE:ATTR``)

Every command accepts ``--json`` anywhere on the command line.

Entry points:
- ctsctl: Main CLI entry point (installed via pip)
- Can also be imported and called programmatically via main(argv)
"""

from __future__ import annotations

from gpucts.config import load_config
from gpucts.errors import ConfigError

from gpucts.cli.query_cmds import cmd_compare, cmd_list, cmd_parse
from gpucts.cli.checklist_cmd import cmd_checklist
from gpucts.cli.run_cmd import cmd_run
from gpucts.cli.dispatch import main

__all__ = [
    "ConfigError",
    "load_config",
    "cmd_checklist",
    "cmd_compare",
    "cmd_list",
    "cmd_parse",
    "cmd_run",
    "main",
]
