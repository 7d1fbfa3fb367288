"""The ``branches`` command: clean up merged and stale branches."""

from datetime import timedelta
from itertools import groupby
from typing import List, Optional

from rich.markup import escape

from katazuke.core.context import CommandContext, Timer
from katazuke.formatters import (
    MAX_SUBJECT_SUMMARY_LEN,
    TIER_TITLES,
    format_age,
    format_merged_option,
    format_stale_notes,
    format_stale_option,
    truncate,
)
from katazuke.formatters.date import age_days
from katazuke.logging_config import get_logger
from katazuke.models.branch import MergedBranch, StaleBranch, StaleTier
from katazuke.services.deletion_service import DeletionReport, DeletionService
from katazuke.services.merged_branches import MergedBranchFinder
from katazuke.services.metrics_service import DELETE_MERGED_BRANCH, DELETE_STALE_BRANCH
from katazuke.services.stale_branches import StaleBranchFinder, categorize
from katazuke.ui.selection import Option

logger = get_logger(__name__)

DEFAULT_SELECTED_TIERS = (StaleTier.SAFE, StaleTier.AUTOMATION)


def print_report(ctx: CommandContext, report: DeletionReport) -> None:
    for message in report.messages:
        style = "red" if message.startswith("failed") else "green"
        ctx.ui.print(f"  [{style}]{escape(message)}[/{style}]")


class BranchesCommand:
    """Finds merged and stale branches and deletes the ones the user picks."""

    def __init__(self, ctx: CommandContext):
        self.ctx = ctx
        self.deleter = DeletionService(ctx.git)

    def run(self, merged: bool = False, stale: bool = False, stale_days: Optional[int] = None) -> List[str]:
        """Run the requested checks; both when neither flag is given.

        Returns:
            Labels of branches whose deletion failed
        """
        if not merged and not stale:
            merged = stale = True

        flags = self.ctx.global_flags()
        if merged:
            flags.append("--merged")
        if stale:
            flags.append("--stale")
        if stale_days is not None:
            flags.append(f"--stale-days={stale_days}")
        self.ctx.metrics.log_command("branches", flags)

        timer = Timer()
        repos = self.ctx.scan_repos()
        self.ctx.metrics.log_perf(len(repos), timer.elapsed_ms)
        if not repos:
            self.ctx.ui.print("No repositories found.")
            return []

        failed: List[str] = []
        if merged:
            failed.extend(self.clean_merged(repos))
        if stale:
            days = stale_days if stale_days is not None else self.ctx.config.stale_threshold_days
            failed.extend(self.clean_stale(repos, days))
        return failed

    def clean_merged(self, repos: List[str]) -> List[str]:
        ctx = self.ctx
        finder = MergedBranchFinder(ctx.git, ctx.merge_detector())
        with ctx.ui.progress("Checking for merged branches") as update:
            found = finder.find(repos, ctx.workers, update)

        if not found:
            ctx.ui.print("[green]No merged branches found.[/green]")
            return []

        ctx.ui.print(f"\n[bold]Found {len(found)} merged branch(es):[/bold]")
        for repo_name, branches in groupby(found, key=lambda b: b.repo_name):
            ctx.ui.print(f"  [cyan]{escape(repo_name)}[/cyan]")
            for branch in branches:
                line = f"    {escape(branch.name)}  [dim]{format_age(branch.last_commit)}[/dim]"
                if branch.has_remote:
                    line += "  [green]backed up remotely[/green]"
                if branch.force_delete:
                    line += "  [yellow]squash-merged[/yellow]"
                ctx.ui.print(line)

        if ctx.dry_run:
            ctx.ui.print("[yellow]Dry run: no branches deleted.[/yellow]")
            return []

        options = [Option(format_merged_option(b), b) for b in found]
        selected: List[MergedBranch] = ctx.ui.select("Select merged branches to delete", options)
        for branch in found:
            ctx.metrics.log_suggestion(
                DELETE_MERGED_BRANCH,
                ctx.branch_fingerprint(branch.repo_path, branch.name),
                branch in selected,
                age_days(branch.last_commit),
            )

        if not selected:
            ctx.ui.print("No branches selected.")
            return []

        delete_remote = any(b.has_remote for b in selected) and ctx.ui.confirm(
            "Also delete remote branches on origin?"
        )
        report = self.deleter.delete_merged(selected, delete_remote)
        print_report(ctx, report)
        ctx.ui.print(f"Deleted {len(report.deleted_local)} merged branch(es)")
        return report.failed

    def clean_stale(self, repos: List[str], days: int) -> List[str]:
        ctx = self.ctx
        finder = StaleBranchFinder(ctx.git, ctx.github_client())
        with ctx.ui.progress(f"Checking for branches older than {days} days") as update:
            found = finder.find(repos, timedelta(days=days), ctx.workers, update)
        found = finder.filter_by_pull_requests(found, ctx.workers)

        if not found:
            ctx.ui.print(f"[green]No stale branches found (threshold: {days} days).[/green]")
            return []

        tiers = categorize(found)
        ctx.ui.print(f"\n[bold]Found {len(found)} stale branch(es) (no commits in {days} days):[/bold]")
        for tier, branches in tiers.items():
            if not branches:
                continue
            ctx.ui.print(f"\n  [bold]{TIER_TITLES[tier]}[/bold] ({len(branches)})")
            for branch in branches:
                subject = truncate(branch.last_commit_message, MAX_SUBJECT_SUMMARY_LEN)
                line = (
                    f"    {escape(branch.label)}  {escape(subject)}"
                    f"  [dim]{format_age(branch.last_commit)}, "
                    f"+{branch.commits_ahead}/-{branch.commits_behind}[/dim]"
                )
                notes = format_stale_notes(branch)
                if notes:
                    line += f"  [yellow]{notes}[/yellow]"
                ctx.ui.print(line)

        if ctx.dry_run:
            ctx.ui.print("[yellow]Dry run: no branches deleted.[/yellow]")
            return []

        ordered = [b for tier in tiers for b in tiers[tier]]
        options = [
            Option(format_stale_option(b), b, selected=b.tier in DEFAULT_SELECTED_TIERS) for b in ordered
        ]
        selected: List[StaleBranch] = ctx.ui.select("Select stale branches to delete", options)
        for branch in ordered:
            ctx.metrics.log_suggestion(
                DELETE_STALE_BRANCH,
                ctx.branch_fingerprint(branch.repo_path, branch.name),
                branch in selected,
                age_days(branch.last_commit),
            )

        if not selected:
            ctx.ui.print("No branches selected.")
            return []

        archive = ctx.ui.confirm("Keep an archive/<branch> tag for each deleted branch?")
        delete_remote = any(b.can_delete_remote for b in selected) and ctx.ui.confirm(
            "Also delete remote branches on origin? (your own non-automation branches only)"
        )
        report = self.deleter.delete_stale(selected, delete_remote, archive=archive)
        print_report(ctx, report)
        ctx.ui.print(f"Deleted {len(report.deleted_local)} stale branch(es)")
        return report.failed
