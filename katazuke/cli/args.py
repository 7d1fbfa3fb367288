"""Command-line argument parsing for katazuke."""

import argparse
from typing import List, Optional

from katazuke.__version__ import version_string


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def _global_options(suppress: bool) -> argparse.ArgumentParser:
    """Flags accepted both before and after the subcommand.

    The subcommand copies use SUPPRESS defaults so they don't overwrite
    values given before the subcommand name.
    """
    parser = argparse.ArgumentParser(add_help=False)
    default_flag = argparse.SUPPRESS if suppress else False
    default_path = argparse.SUPPRESS if suppress else None
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        default=default_flag,
        help="Preview mode - show what would change without changing anything",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=default_flag, help="Show debug output"
    )
    parser.add_argument(
        "-p",
        "--projects-dir",
        metavar="PATH",
        default=default_path,
        help="Directory containing your checkouts (default: $KATAZUKE_PROJECTS_DIR or config)",
    )
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="katazuke",
        description="Keep a directory full of git checkouts tidy: merged and stale branches, "
        "archived repositories, stray directories and out-of-date checkouts.",
        parents=[_global_options(suppress=False)],
    )
    parser.add_argument("--version", action="version", version=version_string())

    common = _global_options(suppress=True)
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    branches = subparsers.add_parser(
        "branches", parents=[common], help="Find and delete merged or stale branches"
    )
    branches.add_argument("--merged", action="store_true", help="Only merged branches")
    branches.add_argument("--stale", action="store_true", help="Only stale branches")
    branches.add_argument(
        "--stale-days",
        type=_positive_int,
        metavar="N",
        help="Days without commits before a branch is stale (default: from config, 30)",
    )

    repos = subparsers.add_parser(
        "repos", parents=[common], help="Summarize repositories, find archived or merged checkouts"
    )
    repos.add_argument("--archived", action="store_true", help="Only repositories archived on GitHub")
    repos.add_argument("--merged", action="store_true", help="Only checkouts sitting on merged branches")

    audit = subparsers.add_parser("audit", parents=[common], help="Audit the projects directory")
    audit.add_argument("--non-git", action="store_true", help="Find directories that are not git repositories")

    sync = subparsers.add_parser("sync", parents=[common], help="Fetch and pull every repository")
    sync.add_argument("--pattern", metavar="GLOB", help="Only sync repositories whose name matches GLOB")

    subparsers.add_parser("version", parents=[common], help="Show version information")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
