"""The ``audit`` command: find directories in the projects root that are not repositories."""

from typing import List, Optional

from rich.markup import escape

from katazuke.core.context import CommandContext, Timer
from katazuke.formatters import age_days, format_age, format_date, format_size
from katazuke.logging_config import get_logger
from katazuke.models.repo import NonRepoDir
from katazuke.services.audit_service import AuditService, default_quarantine_path
from katazuke.services.metrics_service import REMOVE_NON_GIT_DIR

logger = get_logger(__name__)

KEEP = "keep"
REMOVE = "remove"
MOVE = "move"
ACTIONS = (KEEP, REMOVE, MOVE)


class AuditCommand:
    def __init__(self, ctx: CommandContext, service: Optional[AuditService] = None):
        self.ctx = ctx
        self.service = service or AuditService(is_repo=ctx.git.is_repo)

    def run(self, non_git: bool = False) -> List[str]:
        ctx = self.ctx
        if not non_git:
            ctx.ui.print("Nothing to audit. Use [bold]katazuke audit --non-git[/bold] to find non-git directories.")
            return []

        ctx.metrics.log_command("audit", ctx.global_flags() + ["--non-git"])
        ctx.ui.print(f"Scanning {escape(ctx.projects_dir)} for non-git directories...")
        timer = Timer()
        found = self.service.find_non_repo_dirs(ctx.projects_dir, ctx.config.exclude_patterns, ctx.workers)
        ctx.metrics.log_perf(len(found), timer.elapsed_ms)

        if not found:
            ctx.ui.print("[green]No non-git directories found.[/green]")
            return []

        ctx.ui.print(f"\n[bold]Found {len(found)} non-git director(ies):[/bold]")
        for directory in found:
            self.print_dir(directory)

        if ctx.dry_run:
            ctx.ui.print("[yellow]Dry run: nothing removed or moved.[/yellow]")
            return []

        failed: List[str] = []
        for directory in found:
            action = ctx.ui.choose(f"{escape(directory.name)}: keep, remove or move to quarantine?", ACTIONS, KEEP)
            ctx.metrics.log_suggestion(
                REMOVE_NON_GIT_DIR,
                ctx.repo_fingerprint(directory.path),
                action != KEEP,
                age_days(directory.last_modified),
            )
            if action != KEEP and not self.apply(directory, action):
                failed.append(directory.name)
        return failed

    def print_dir(self, directory: NonRepoDir) -> None:
        line = f"  [cyan]{escape(directory.name)}[/cyan]  {format_size(directory.size)}, {directory.file_count} file(s)"
        if directory.last_modified is not None:
            line += (
                f", modified {format_date(directory.last_modified)} ({format_age(directory.last_modified)})"
            )
        self.ctx.ui.print(line)
        self.ctx.ui.print(f"    [dim]{escape(directory.summary)}[/dim]")

    def apply(self, directory: NonRepoDir, action: str) -> bool:
        """Remove or quarantine one directory; False when it failed."""
        ui = self.ctx.ui
        try:
            if action == REMOVE:
                self.service.remove(directory)
                ui.print(f"  [green]removed {escape(directory.path)}[/green]")
            else:
                dest = self.service.quarantine(directory, default_quarantine_path())
                ui.print(f"  [green]moved {escape(directory.name)} to {escape(str(dest))}[/green]")
        except OSError as e:
            logger.debug(f"{action} {directory.path} failed: {e}")
            ui.print(f"  [red]failed to {action} {escape(directory.path)}: {escape(str(e))}[/red]")
            return False
        return True
