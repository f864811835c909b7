"""CLI entry point for jira-gitbot."""

import argparse
from pathlib import Path

from . import __version__
from .config import Settings
from .logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="jira-gitbot",
        description="Sync a GitHub pull request with its linked Jira issue",
    )
    parser.add_argument(
        "--event",
        required=True,
        help="GitHub event name (e.g. pull_request, issues)",
    )
    parser.add_argument(
        "--payload",
        type=Path,
        required=True,
        help="Path to the JSON event payload",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Local jira.yml to use instead of the repository's .github/jira.yml",
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

    from .cli.handle import run_handle

    exit_code = run_handle(settings, args.event, args.payload, args.config)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
