"""
Command-line interface for memmon.

Runs a Python script in the current interpreter under a MemMonitor, the way
`python -m cProfile script.py` runs a script under the profiler. The script
can mark phases with `memmon.declare_event("name")`.
"""

import argparse
import logging
import runpy
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..config.validators import validate_monitor_config
from ..models.config import LOG_LEVELS, STAT_SOURCE_KINDS, MonitorConfig
from ..monitoring import MemMonitor
from ..validation import (
    MemoryStatError,
    ValidationError,
    handle_cli_error,
    validate_positive_float,
)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
DEFAULT_CONFIG_FILE = Path("memmon.toml")

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memmon",
        description="Run a Python script and record its memory usage over time.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help=f"TOML configuration file. Defaults to ./{DEFAULT_CONFIG_FILE} if it exists.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="File to write samples to (overrides monitor.output_path).",
    )
    parser.add_argument(
        "-g",
        "--granularity-ms",
        type=float,
        help="Sampling interval in milliseconds (overrides monitor.granularity_ms).",
    )
    parser.add_argument(
        "-b",
        "--memory-budget-mb",
        type=float,
        help="Flush buffered samples above this many MiB (overrides monitor.memory_budget_mb).",
    )
    parser.add_argument(
        "--stat-source",
        choices=STAT_SOURCE_KINDS,
        help="Memory stat source (overrides monitor.stat_source).",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (overrides monitor.log_level).",
    )
    parser.add_argument("script", type=Path, help="Python script to run.")
    parser.add_argument(
        "script_args", nargs=argparse.REMAINDER, help="Arguments passed to the script."
    )
    return parser


def resolve_config(args: argparse.Namespace) -> MonitorConfig:
    """
    Build the effective configuration: config file values, then flag overrides.

    Raises:
        FileNotFoundError: If an explicitly given config file is missing
        ValidationError: If a value is invalid
    """
    if args.config is not None:
        set_config_path(args.config)
        config = get_config()
    elif DEFAULT_CONFIG_FILE.is_file():
        set_config_path(DEFAULT_CONFIG_FILE)
        config = get_config()
    else:
        config = validate_monitor_config({})

    overrides = {}
    if args.output is not None:
        overrides["output_path"] = args.output
    if args.granularity_ms is not None:
        overrides["granularity_ms"] = validate_positive_float(
            args.granularity_ms, min_value=0.0, exclusive_min=True, field_name="--granularity-ms"
        )
    if args.memory_budget_mb is not None:
        overrides["memory_budget_mb"] = validate_positive_float(
            args.memory_budget_mb, min_value=0.0, exclusive_min=True, field_name="--memory-budget-mb"
        )
    if args.stat_source is not None:
        overrides["stat_source"] = args.stat_source
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return replace(config, **overrides)


def run_script(script: Path, script_args: List[str], monitor: MemMonitor) -> int:
    """
    Run a script under a running monitor and return its exit code.

    The monitor is closed, with its final flush, whether the script returns,
    calls sys.exit() or raises. Exceptions other than SystemExit propagate.
    """
    saved_argv = sys.argv[:]
    script_dir = str(script.resolve().parent)
    sys.argv = [str(script), *script_args]
    sys.path.insert(0, script_dir)

    exit_code = 0
    try:
        with monitor:
            logger.info(f"Running {script} under {monitor!r}")
            try:
                runpy.run_path(str(script), run_name="__main__")
            except SystemExit as e:
                exit_code = _exit_code(e.code)
    finally:
        sys.argv = saved_argv
        if script_dir in sys.path:
            sys.path.remove(script_dir)
    return exit_code


def _exit_code(code) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    print(code, file=sys.stderr)
    return 1


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the `memmon` command.

    Returns:
        The script's exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
    except (FileNotFoundError, KeyError, ValueError, ValidationError) as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=2,
            logger=logger,
        )

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    if not args.script.is_file():
        handle_cli_error(
            error=FileNotFoundError(f"Script not found: {args.script}"),
            context="script lookup",
            exit_code=2,
            logger=logger,
        )

    try:
        monitor = MemMonitor.from_config(config)
    except (OSError, MemoryStatError, ValidationError) as e:
        handle_cli_error(
            error=e,
            context="opening monitor output",
            exit_code=1,
            logger=logger,
        )

    return run_script(args.script, args.script_args, monitor)


def main() -> None:
    sys.exit(main_cli())
