from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

import structlog

from launchr.domain.ports.frontend import ResultRow
from launchr.infrastructure.config import load_config
from launchr.infrastructure.logging.setup import configure_logging, shutdown_logging
from launchr.interfaces.composition import Launcher, build_launcher
from launchr.interfaces.frontends.stdio import format_row

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="launchr",
        description="Extensible application launcher.",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--plugin-dir",
        action="append",
        default=None,
        help="Plugin directory (repeatable; replaces configured dirs).",
    )
    parser.add_argument(
        "--builtin",
        action="append",
        default=None,
        help="Built-in plugin to enable (repeatable; replaces configured built-ins).",
    )
    parser.add_argument(
        "--no-builtins",
        action="store_true",
        help="Disable all built-in plugins.",
    )
    parser.add_argument(
        "--frontend",
        default=None,
        help="Frontend backend name.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    # One-shot mode
    parser.add_argument(
        "--query",
        default=None,
        metavar="TEXT",
        help="Print ranked results for TEXT and exit.",
    )

    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    cli_overrides: dict[str, Any] = {}
    if args.plugin_dir:
        cli_overrides["plugin_dirs"] = args.plugin_dir
    if args.no_builtins:
        cli_overrides["builtins"] = []
    elif args.builtin is not None:
        cli_overrides["builtins"] = args.builtin
    if args.frontend:
        cli_overrides["frontend_backend"] = args.frontend
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    return cli_overrides


def print_query(launcher: Launcher, text: str, out: TextIO) -> None:
    corpus = launcher.registry.corpus
    for match in launcher.matcher.query(corpus, text, limit=launcher.config.max_results):
        record = corpus[match.entry_id]
        row = ResultRow(
            entry_id=match.entry_id,
            name=record.entry.name,
            plugin=record.plugin,
            score=match.score,
            is_group=record.entry.is_group,
        )
        out.write(f"{format_row(row)}  [{match.score}]\n")
    for diag in corpus.diagnostics:
        out.write(f"! {diag.plugin} {diag.kind}: {diag.message}\n")
    out.flush()


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, builds the launcher, runs plugins once,
    then either answers ``--query`` or hands control to the frontend.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    try:
        config = load_config(
            config_path=config_path,
            dotenv_path=dotenv_path,
            cli_overrides=_cli_overrides(args),
        )
    except (OSError, ValueError) as e:
        sys.stderr.write(f"launchr: invalid configuration: {e}\n")
        return 2

    configure_logging(config)
    try:
        try:
            launcher = build_launcher(config)
        except ValueError as e:
            sys.stderr.write(f"launchr: {e}\n")
            return 2

        launcher.registry.refresh()

        if args.query is not None:
            print_query(launcher, args.query, sys.stdout)
            return 0
        return launcher.run()
    finally:
        shutdown_logging()


if __name__ == "__main__":
    raise SystemExit(start())
