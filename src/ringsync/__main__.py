"""CLI entry point for ringsync."""

import argparse
from pathlib import Path

from . import __version__
from .config import Settings
from .logging import setup_logging
from .models import SyncDirection


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ringsync",
        description="Sync a task backlog with GitHub Issues",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Sync tasks with GitHub Issues")
    sync_parser.add_argument("--repo", required=True, help="Repository as OWNER/NAME")
    sync_parser.add_argument(
        "--tasks", type=Path, required=True, help="YAML or JSON file with the tasks"
    )
    sync_parser.add_argument(
        "--direction",
        choices=[d.value for d in SyncDirection],
        default=SyncDirection.PUSH.value,
        help="Which phases to run (default: push)",
    )
    sync_parser.add_argument(
        "--output", type=Path, default=None, help="Write the JSON result to this file"
    )

    health_parser = subparsers.add_parser("health", help="Check a repository for sync problems")
    health_parser.add_argument("--repo", required=True, help="Repository as OWNER/NAME")
    health_parser.add_argument(
        "--tasks", type=Path, default=None, help="Tasks file, enables the orphan check"
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    settings_kwargs: dict = {}
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)
    setup_logging(settings.verbose, settings.log_file)

    if args.command == "sync":
        from .cli.sync import run_sync

        exit_code = run_sync(settings, args.repo, args.tasks, args.direction, args.output)
    else:
        from .cli.health import run_health

        exit_code = run_health(settings, args.repo, args.tasks)

    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
