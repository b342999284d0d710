"""Command-line interface for sshrun."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Optional

from .config import AppConfig, load_config
from .service import Service
from .ssh.errors import BadExitStatusError, ConfigError, SSHError
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class CLIContext:
    """Context captured from CLI arguments."""

    config: AppConfig
    service: Service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sshrun",
        description="Run commands on SSH remotes declared in a JSON config file.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file (default: ./sshrun.json).",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("remotes", help="List configured remotes")

    run_parser = subparsers.add_parser(
        "run", help="Execute commands on a remote, one session for all of them"
    )
    run_parser.add_argument("remote", help="Name of the remote")
    run_parser.add_argument("commands", nargs="+", help="Commands to execute in order")
    run_parser.add_argument(
        "--ignore-error", action="store_true",
        help="Keep going when a command exits non-zero",
    )

    return parser


def _build_context(args: argparse.Namespace) -> CLIContext:
    config = load_config(args.config)
    logger.debug("Loaded %d remote(s) from configuration", len(config.remotes))
    if getattr(args, "ignore_error", False):
        config.settings.ignore_error = True
    return CLIContext(config=config, service=Service.from_config(config))


def handle_remotes_command(context: CLIContext) -> int:
    if not context.service.remotes:
        print("No remotes configured.")
        return 0
    for name, remote in sorted(context.service.remotes.items()):
        print(f"{name:<20} {remote.user}@{remote.host}:{remote.port}")
    return 0


def handle_run_command(args: argparse.Namespace, context: CLIContext) -> int:
    exit_code = 0
    with context.service.session(args.remote) as session:
        for command in args.commands:
            result = session.execute(command)
            if result.stdout:
                print(result.stdout)
            if result.stderr:
                print(result.stderr, file=sys.stderr)
            if not result.ok:
                exit_code = result.exit_status
    return exit_code


def dispatch_command(args: argparse.Namespace) -> int:
    try:
        context = _build_context(args)
        if args.command == "remotes":
            return handle_remotes_command(context)
        if args.command == "run":
            return handle_run_command(args, context)
    except BadExitStatusError as exc:
        result = exc.result
        if result.stdout:
            print(result.stdout)
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_status
    except (ConfigError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except SSHError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 1


def run_cli(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)
    return dispatch_command(args)
