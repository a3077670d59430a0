"""Composition root for the doublecheck linter.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Argument parsing and configuration loading
- Adapter instantiation
- Core service initialization
- Entry point selection (check, interactive CLI, watch)
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from doublecheck.adapters.cli.commands import run_command
from doublecheck.adapters.report.json_file import JSONFileReporter
from doublecheck.adapters.report.markdown import MarkdownReporter
from doublecheck.adapters.report.stdout import StdoutReporter
from doublecheck.adapters.scheduler.watch import WatchScheduler
from doublecheck.adapters.source.filesystem import FilesystemSourceAdapter
from doublecheck.adapters.store.sqlite import SQLiteBaselineStore
from doublecheck.config import Settings, load_settings
from doublecheck.core.baseline_service import BaselineService
from doublecheck.core.check_service import CheckService
from doublecheck.core.gate import GateEngine
from doublecheck.core.models import Severity
from doublecheck.core.naming import CONVENTIONS, NamingPolicy
from doublecheck.core.ports import ReporterPort

EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doublecheck",
        description="Lint test names and test doubles against their conventions.",
    )
    parser.add_argument("paths", nargs="*", help="Files or directories to check")
    parser.add_argument("--mode", choices=["check", "cli", "watch"], help="Run mode")
    parser.add_argument(
        "--format", dest="report_format", choices=["stdout", "markdown", "json"],
        help="Report format",
    )
    parser.add_argument(
        "--convention", dest="naming_conventions", action="append",
        choices=sorted(CONVENTIONS), help="Accepted naming convention (repeatable)",
    )
    parser.add_argument(
        "--fail-on", choices=["error", "warning", "info", "never"],
        help="Lowest severity that fails the run",
    )
    parser.add_argument("--report-dir", help="Directory for markdown/JSON reports")
    parser.add_argument("--baseline", dest="baseline_path", help="Baseline database path")
    parser.add_argument(
        "--no-baseline", action="store_true", help="Do not read or write a baseline",
    )
    parser.add_argument("--env-file", help="Path to a .env file")
    parser.add_argument("--debug", action="store_true", default=None, help="Verbose output")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Load settings, letting command-line flags override the environment.

    Raises:
        ValidationError: If the resulting settings are invalid.
    """
    return load_settings(
        args.env_file,
        paths=args.paths or None,
        run_mode=args.mode,
        report_format=args.report_format,
        naming_conventions=args.naming_conventions,
        fail_on=args.fail_on,
        report_dir=args.report_dir,
        baseline_path=args.baseline_path,
        baseline_backend="none" if args.no_baseline else None,
        debug=args.debug,
    )


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Logs go to stderr so that stdout carries only the report.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.WARNING)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def build_reporter(settings: Settings) -> ReporterPort:
    """Select the reporter adapter from configuration."""
    if settings.report_format == "markdown":
        return MarkdownReporter(report_dir=settings.report_dir)
    if settings.report_format == "json":
        return JSONFileReporter(report_dir=settings.report_dir)
    return StdoutReporter(verbose=settings.debug)


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  list
    List baselined findings, optionally filtered by status and rule.
    Status options: new, accepted, fixed

    Example: list {"status": "new", "rule_id": "NAM001", "format": "text"}

  details
    Show a finding and the other findings recorded for its file.
    Required: finding_id

    Example: details {"finding_id": "uuid-here", "format": "text"}

  accept
    Accept a finding so later checks suppress it.
    Required: finding_id
    Optional: reason

    Example: accept {"finding_id": "uuid-here", "reason": "legacy suite"}

  reopen
    Report an accepted or fixed finding again.
    Required: finding_id

    Example: reopen {"finding_id": "uuid-here"}

  stats
    Show baseline statistics.

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
    """
    print(help_text)


async def _run_cli_interactive(baseline: BaselineService) -> None:
    """Run interactive baseline management loop."""
    logger = logging.getLogger(__name__)
    print("doublecheck baseline shell. Type 'help' for commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read command from stdin in a thread to avoid blocking
            command_line = (await loop.run_in_executor(None, input, "doublecheck> ")).strip()

            if not command_line:
                continue
            if command_line.lower() == "exit":
                break
            if command_line.lower() == "help":
                _print_cli_help()
                continue

            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            try:
                args: Any = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue
            if not isinstance(args, dict):
                logger.error("Arguments must be a JSON object. Use 'help' for command syntax.")
                continue

            try:
                result = await run_command(baseline, command, args)
            except ValueError as e:
                result = {"status": "error", "message": str(e)}
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                result = {"status": "error", "message": str(e)}
            print(json.dumps(result, indent=2, default=str))

        except EOFError:
            break
        except KeyboardInterrupt:
            continue


async def bootstrap(settings: Settings) -> int:
    """Wire adapters and core services, then run the selected mode.

    This is the composition root: the single place where all components
    are instantiated and wired together.

    Returns:
        Process exit code.
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Starting doublecheck in {settings.run_mode} mode")

    # Never check our own reports or baseline
    source = FilesystemSourceAdapter(
        include_globs=settings.include_globs,
        exclude_dirs=settings.exclude_dirs,
        exclude_paths=[settings.report_dir, str(Path(settings.baseline_path).parent)],
    )

    store: SQLiteBaselineStore | None = None
    if settings.baseline_backend == "sqlite":
        store = SQLiteBaselineStore(db_path=settings.baseline_path)
        logger.info(f"Baseline store initialized: {settings.baseline_path}")

    reporter = build_reporter(settings)
    gate = GateEngine(
        fail_on=settings.fail_on,
        min_severity=Severity(settings.min_severity),
    )
    check_service = CheckService(
        source=source,
        reporter=reporter,
        naming=NamingPolicy(
            conventions=settings.naming_conventions,
            custom_pattern=settings.custom_pattern or None,
            min_words=settings.min_words,
        ),
        gate=gate,
        store=store,
        prune_fixed=settings.prune_fixed,
    )

    try:
        if settings.run_mode == "check":
            result = await check_service.run_check(settings.paths)
            return gate.exit_code(result)

        if settings.run_mode == "cli":
            if store is None:
                logger.error("CLI mode manages the baseline and needs baseline_backend=sqlite")
                return EXIT_CONFIG_ERROR
            await _run_cli_interactive(BaselineService(store))
            return 0

        scheduler = WatchScheduler(
            check_port=check_service,
            source=source,
            paths=settings.paths,
            interval_seconds=settings.watch_interval_seconds,
        )
        await scheduler.start()
        return 0

    finally:
        if store is not None:
            await store.close_pool()


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Exit codes:
        0: No findings at or above the fail_on severity
        1: Findings at or above fail_on, or a fatal runtime error
        2: Invalid configuration
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    args = build_parser().parse_args(argv)
    logger = logging.getLogger(__name__)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        configure_logging("ERROR", "text")
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)

    try:
        return asyncio.run(bootstrap(settings))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (SIGINT)")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
