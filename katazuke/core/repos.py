"""The ``repos`` command: repository health, merged checkouts and archived upstreams."""

from typing import List

from rich.markup import escape

from katazuke.core.branches import print_report
from katazuke.core.context import CommandContext, Timer
from katazuke.exceptions import GitOperationError
from katazuke.formatters import age_days
from katazuke.logging_config import get_logger
from katazuke.models.repo import ArchivedRepo, MergedBranchRepo
from katazuke.services.deletion_service import DeletionService
from katazuke.services.metrics_service import DELETE_ARCHIVED_REPO, SWITCH_MERGED_BRANCH_REPO
from katazuke.services.repo_service import RepoService
from katazuke.ui.selection import Option

logger = get_logger(__name__)


class ReposCommand:
    """Reports repository-level problems and offers fixes for clean checkouts."""

    def __init__(self, ctx: CommandContext):
        self.ctx = ctx
        self.service = RepoService(ctx.git)
        self.deleter = DeletionService(ctx.git)

    def run(self, archived: bool = False, merged: bool = False) -> List[str]:
        """Without flags, print the summary and run both checks.

        Returns:
            Labels of repositories whose cleanup failed
        """
        show_summary = not archived and not merged
        if show_summary:
            archived = merged = True

        flags = self.ctx.global_flags()
        if archived:
            flags.append("--archived")
        if merged:
            flags.append("--merged")
        self.ctx.metrics.log_command("repos", flags)

        timer = Timer()
        repos = self.ctx.scan_repos()
        self.ctx.metrics.log_perf(len(repos), timer.elapsed_ms)
        if not repos:
            self.ctx.ui.print("No repositories found.")
            return []

        if show_summary:
            self.print_summary(repos)

        failed: List[str] = []
        if merged:
            failed.extend(self.switch_merged(repos))
        if archived:
            failed.extend(self.remove_archived(repos))
        return failed

    def print_summary(self, repos: List[str]) -> None:
        ctx = self.ctx
        with ctx.ui.progress("Checking working trees") as update:
            summary = self.service.summarize(repos, ctx.workers, update)
        ctx.ui.print(
            f"\n[bold]{summary.total} repositories[/bold]: "
            f"[green]{summary.clean} clean[/green], [yellow]{summary.dirty} with local changes[/yellow]"
        )

    def switch_merged(self, repos: List[str]) -> List[str]:
        ctx = self.ctx
        with ctx.ui.progress("Checking current branches") as update:
            found = self.service.find_on_merged_branch(repos, ctx.merge_detector(), ctx.workers, update)

        if not found:
            ctx.ui.print("[green]No repositories are on merged branches.[/green]")
            return []

        ctx.ui.print(f"\n[bold]Found {len(found)} repository(ies) on merged branches:[/bold]")
        for repo in found:
            line = (
                f"  {escape(repo.name)}: on [cyan]{escape(repo.current_branch)}[/cyan], "
                f"merged into {escape(repo.default_branch)}"
            )
            if not repo.is_clean:
                line += "  [yellow]dirty, skipped[/yellow]"
            ctx.ui.print(line)

        if ctx.dry_run:
            ctx.ui.print("[yellow]Dry run: no repositories switched.[/yellow]")
            return []

        offered = [r for r in found if r.is_clean]
        if not offered:
            return []

        options = [
            Option(f"{r.name}: {r.current_branch} -> {r.default_branch}", r) for r in offered
        ]
        selected: List[MergedBranchRepo] = ctx.ui.select("Select repositories to switch to their default branch", options)
        for repo in offered:
            ctx.metrics.log_suggestion(
                SWITCH_MERGED_BRANCH_REPO,
                ctx.branch_fingerprint(repo.path, repo.current_branch),
                repo in selected,
                self._age(repo.path, repo.current_branch),
            )

        if not selected:
            ctx.ui.print("No repositories selected.")
            return []

        delete_branch = ctx.ui.confirm("Also delete the merged branches?")
        report = self.deleter.switch_merged_repos(selected, delete_branch)
        print_report(ctx, report)
        ctx.ui.print(f"Switched {len(report.switched)} repository(ies)")
        return report.failed

    def _age(self, repo_path: str, ref: str) -> int:
        """Days since the last commit on ref, 0 when unreadable."""
        try:
            return age_days(self.ctx.git.commit_date(repo_path, ref))
        except GitOperationError as e:
            logger.debug(f"Could not read commit date of {ref} in {repo_path}: {e}")
            return 0

    def remove_archived(self, repos: List[str]) -> List[str]:
        ctx = self.ctx
        with ctx.ui.progress("Checking GitHub for archived repositories") as update:
            found = self.service.find_archived(repos, ctx.github_client(), ctx.workers, update)

        if not found:
            ctx.ui.print("[green]No archived repositories found.[/green]")
            return []

        ctx.ui.print(f"\n[bold]Found {len(found)} archived repository(ies):[/bold]")
        for repo in found:
            line = f"  {escape(repo.name)} ({escape(repo.owner)}/{escape(repo.repo)})"
            if not repo.is_clean:
                line += "  [yellow]dirty, skipped[/yellow]"
            ctx.ui.print(line)

        if ctx.dry_run:
            ctx.ui.print("[yellow]Dry run: no repositories removed.[/yellow]")
            return []

        offered = [r for r in found if r.is_clean]
        if not offered:
            return []

        options = [Option(f"{r.name} ({r.owner}/{r.repo})", r) for r in offered]
        selected: List[ArchivedRepo] = ctx.ui.select("Select archived repositories to delete locally", options)
        for repo in offered:
            ctx.metrics.log_suggestion(
                DELETE_ARCHIVED_REPO,
                ctx.repo_fingerprint(repo.path),
                repo in selected,
                self._age(repo.path, "HEAD"),
            )

        if not selected:
            ctx.ui.print("No repositories selected.")
            return []

        report = self.deleter.remove_archived(selected)
        print_report(ctx, report)
        ctx.ui.print(f"Removed {len(report.removed)} repository(ies)")
        return report.failed
