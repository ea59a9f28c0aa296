from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Sequence

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AppConfig, load_config
from .logging_utils import configure_logging, render_fields_block
from .destination_builder import DestinationError
from .metadata_reader import MetadataUnavailable
from .processor import Processor
from .undo import latest_undo_log, replay_undo_log
from .utils import load_yaml_file
from .validation import print_validation_report, validate_config_data
from .version import __version__

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG = "telesort.yaml"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_FILE_ERRORS = 2


def _default_config_path() -> Path:
    return Path(os.environ.get("TELESORT_CONFIG") or DEFAULT_CONFIG)


def _parse_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise argparse.ArgumentTypeError(f"unknown log level: {value}")
    return level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="telesort",
        allow_abbrev=False,
        description="Identify recorded TV episodes from broadcaster metadata and file them into a library.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (default: $TELESORT_CONFIG or {DEFAULT_CONFIG})",
    )
    parser.add_argument("--dry-run", action="store_true", help="Log what would happen without touching files")
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; report ambiguous recordings instead",
    )
    parser.add_argument("--verbose", action="store_true", help="Shortcut for --log-level DEBUG")
    parser.add_argument("--log-level", type=_parse_level, default=None, help="Log level (default: INFO)")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Process every recording in source_dir")

    identify = subparsers.add_parser("identify", help="Identify one recording without moving it")
    identify.add_argument("file", type=Path, help="Recording to identify")

    subparsers.add_parser("validate-config", help="Check the configuration file and report problems")

    undo = subparsers.add_parser("undo", help="Revert the file operations of a previous run")
    undo.add_argument("--log", type=Path, default=None, help="Undo log to replay (default: most recent)")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    if args.command is None:
        args.command = "run"
    if args.config is None:
        args.config = _default_config_path()
    return args


def _setup_logging(args: argparse.Namespace) -> None:
    level = args.log_level if args.log_level is not None else logging.INFO
    if args.verbose:
        level = logging.DEBUG
    configure_logging(level, log_file=args.log_file)


def _load_app_config(args: argparse.Namespace) -> AppConfig | None:
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        LOGGER.error(render_fields_block("Configuration Missing", {"Path": args.config}))
        return None
    except (ValueError, yaml.YAMLError) as exc:
        LOGGER.error(render_fields_block("Invalid Configuration", {"Path": args.config, "Error": exc}))
        return None

    overrides: dict[str, Any] = {}
    if args.dry_run:
        overrides["dry_run"] = True
    if args.non_interactive:
        overrides["interactive"] = False
    return config.with_overrides(**overrides) if overrides else config


def run_processor(args: argparse.Namespace) -> int:
    _setup_logging(args)
    config = _load_app_config(args)
    if config is None:
        return EXIT_CONFIG_ERROR

    with Processor(config) as processor:
        stats = processor.process_all()
    return EXIT_FILE_ERRORS if stats.failed or stats.errors else EXIT_OK


def _decision_table(identification) -> Table:
    decision = identification.decision
    table = Table(title=escape(identification.source.name), show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    rows = [
        ("Title", identification.metadata.title),
        ("Subtitle", identification.metadata.subtitle),
        ("Series", identification.resolution.series.name if identification.resolution.series else ""),
        ("State", decision.state.value),
        ("Episode", decision.episode_code),
        ("Name", " & ".join(decision.episode_names)),
        ("Method", decision.method or ""),
        ("Reason", decision.reason),
        ("Destination", str(identification.destination or "")),
    ]
    for label, value in rows:
        table.add_row(label, escape(value or ""))
    for index, candidate in enumerate(decision.candidates, start=1):
        table.add_row(f"Candidate {index}", escape(candidate.describe()))
    return table


def run_identify(args: argparse.Namespace, console: Console | None = None) -> int:
    _setup_logging(args)
    config = _load_app_config(args)
    if config is None:
        return EXIT_CONFIG_ERROR

    console = console or Console()
    trace: dict[str, Any] = {}
    with Processor(config) as processor:
        try:
            identification = processor.identify_file(args.file, trace=trace)
        except (MetadataUnavailable, DestinationError, OSError) as exc:
            LOGGER.error(render_fields_block("Identification Failed", {"Source": args.file, "Error": exc}))
            return EXIT_FILE_ERRORS

    console.print(_decision_table(identification))
    for attempt in trace.get("attempts", []):
        LOGGER.debug("attempt: %s", attempt)
    return EXIT_OK if identification.decision.is_resolved else EXIT_FILE_ERRORS


def run_validate_config(args: argparse.Namespace, console: Console | None = None) -> int:
    _setup_logging(args)
    console = console or Console()
    try:
        data = load_yaml_file(args.config)
    except FileNotFoundError:
        LOGGER.error(render_fields_block("Configuration Missing", {"Path": args.config}))
        return EXIT_CONFIG_ERROR
    except yaml.YAMLError as exc:
        LOGGER.error(render_fields_block("Invalid Configuration", {"Path": args.config, "Error": exc}))
        return EXIT_CONFIG_ERROR

    report = validate_config_data(data)
    print_validation_report(report, console)
    if not report.is_valid:
        return EXIT_CONFIG_ERROR

    try:
        load_config(args.config)
    except ValueError as exc:
        LOGGER.error(render_fields_block("Invalid Configuration", {"Path": args.config, "Error": exc}))
        return EXIT_CONFIG_ERROR
    return EXIT_OK


def run_undo(args: argparse.Namespace) -> int:
    _setup_logging(args)
    log_path = args.log
    if log_path is None:
        config = _load_app_config(args)
        if config is None:
            return EXIT_CONFIG_ERROR
        log_path = latest_undo_log(config.settings.cache_dir)
        if log_path is None:
            LOGGER.error(
                render_fields_block("No Undo Log Found", {"Directory": config.settings.cache_dir / "undo"})
            )
            return EXIT_CONFIG_ERROR
    elif not log_path.exists():
        LOGGER.error(render_fields_block("No Undo Log Found", {"Path": log_path}))
        return EXIT_CONFIG_ERROR

    summary = replay_undo_log(log_path, dry_run=args.dry_run)
    LOGGER.info(
        render_fields_block(
            "Undo Complete",
            {
                "Log": log_path,
                "Reverted": summary.reverted,
                "Skipped": summary.skipped,
                "Errors": len(summary.errors),
            },
        )
    )
    return EXIT_FILE_ERRORS if summary.errors else EXIT_OK


COMMANDS = {
    "run": run_processor,
    "identify": run_identify,
    "validate-config": run_validate_config,
    "undo": run_undo,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted")
        return 130


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
