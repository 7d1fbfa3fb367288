"""Command-line entry point for katazuke"""

import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from katazuke.__version__ import version_string
from katazuke.cli.args import build_parser
from katazuke.config import expand_home, load_config
from katazuke.core import AuditCommand, BranchesCommand, CommandContext, ReposCommand, run_sync
from katazuke.exceptions import DeletionError, KatazukeError
from katazuke.logging_config import get_logger, setup_logging
from katazuke.services.metrics_service import create_metrics_logger
from katazuke.ui.console import ConsoleUI
from katazuke.utils import get_threading_info

console = Console()
logger = get_logger(__name__)

# Conventional exit status for SIGINT
EXIT_INTERRUPTED = 130


def run_command(args, ctx: CommandContext) -> None:
    """Dispatch to the selected subcommand.

    Raises:
        DeletionError: If any destructive action in the batch failed
    """
    if args.command == "branches":
        failed = BranchesCommand(ctx).run(merged=args.merged, stale=args.stale, stale_days=args.stale_days)
    elif args.command == "repos":
        failed = ReposCommand(ctx).run(archived=args.archived, merged=args.merged)
    elif args.command == "audit":
        failed = AuditCommand(ctx).run(non_git=args.non_git)
    elif args.command == "sync":
        run_sync(ctx, pattern=args.pattern)
        failed = []
    else:
        raise KatazukeError(f"unknown command: {args.command}")

    if failed:
        raise DeletionError(failed)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)
    verbose = args.verbose

    if args.command is None:
        parser.print_help()
        return 2

    if args.command == "version":
        console.print(version_string(), markup=False, highlight=False)
        return 0

    # --verbose means debug output
    setup_logging(debug=verbose)

    ctx = None
    try:
        config = load_config()
        projects_dir = expand_home(args.projects_dir) if args.projects_dir else config.projects_dir

        if verbose:
            threading_info = get_threading_info(config.workers)
            logger.debug(
                f"Python {threading_info['python_version']} ({threading_info['mode']}), "
                f"{threading_info['cpu_count']} CPUs, {threading_info['workers']} workers"
            )
            logger.debug(f"Configuration: {config.to_dict()}")

        ctx = CommandContext(
            config=config,
            ui=ConsoleUI(console),
            projects_dir=projects_dir,
            dry_run=args.dry_run,
            verbose=verbose,
            metrics=create_metrics_logger(),
        )
        run_command(args, ctx)
        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled[/yellow]")
        return EXIT_INTERRUPTED
    except KatazukeError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        return 1
    finally:
        if ctx is not None:
            ctx.close()


if __name__ == "__main__":
    sys.exit(main())
