"""The ``sync`` command: bring every checkout up to date with origin."""

import fnmatch
import os
from typing import List, Optional

from rich.markup import escape

from katazuke.core.context import CommandContext, Timer
from katazuke.formatters import format_sync_result, format_sync_summary
from katazuke.models.sync import SyncOptions, SyncResult, SyncStatus
from katazuke.services.sync_service import SyncService
from katazuke.utils.parallel import clamp_workers


def filter_by_pattern(repos: List[str], pattern: str) -> List[str]:
    """Keep repositories whose directory name matches the glob."""
    return [r for r in repos if fnmatch.fnmatchcase(os.path.basename(r), pattern)]


def sync_options(ctx: CommandContext) -> SyncOptions:
    sync = ctx.config.sync
    return SyncOptions(
        strategy=sync.strategy,
        skip_dirty=sync.skip_dirty,
        auto_stash=sync.auto_stash,
        switch_merged_branch=sync.switch_merged_branch,
        dry_run=ctx.dry_run,
    )


def run_sync(ctx: CommandContext, pattern: Optional[str] = None) -> List[SyncResult]:
    """Sync all discovered repositories, printing one line per repo as it finishes.

    Failed repositories do not change the exit status; they are reported
    in the summary line.
    """
    flags = ctx.global_flags()
    if pattern:
        flags.append(f"--pattern={pattern}")
    ctx.metrics.log_command("sync", flags)

    timer = Timer()
    repos = ctx.scan_repos()
    ctx.metrics.log_perf(len(repos), timer.elapsed_ms)
    if not repos:
        ctx.ui.print("No repositories found.")
        return []

    if pattern:
        repos = filter_by_pattern(repos, pattern)
        if not repos:
            ctx.ui.print(f"No repositories matching {escape(repr(pattern))} found.")
            return []

    workers = clamp_workers(ctx.workers, len(repos))
    ctx.ui.print(f"Syncing {len(repos)} repositories ({workers} workers)...")

    service = SyncService(ctx.git, sync_options(ctx), is_merged=ctx.merge_detector().is_merged)

    def on_result(_completed: int, _total: int, result: SyncResult) -> None:
        if result.status is SyncStatus.UP_TO_DATE and not ctx.verbose:
            return
        ctx.ui.print(format_sync_result(result))

    results = service.sync_all(repos, workers, on_result)
    ctx.ui.print(f"\n{format_sync_summary(results, ctx.dry_run)}")
    return results
