"""Sync status formatting utilities."""

from typing import List

from rich.markup import escape

from katazuke.constants import SYNC_STATUS_TAGS
from katazuke.models.sync import SyncResult, SyncStatus


def format_sync_result(result: SyncResult) -> str:
    """One line per repository, e.g. "[synced] api: 3 commits"."""
    line = f"{SYNC_STATUS_TAGS[result.status.value]} {escape(result.repo_name)}"
    if result.message:
        line += f": {escape(result.message)}"
    return line


def format_sync_summary(results: List[SyncResult], dry_run: bool) -> str:
    """
    Summarize sync results.

    Up-to-date repositories count as synced.

    Returns:
        "Synced X, switched Y, skipped Z, failed W", with " (dry run)" appended in dry-run mode
    """
    counts = {status: 0 for status in SyncStatus}
    for result in results:
        counts[result.status] += 1

    synced = counts[SyncStatus.SYNCED] + counts[SyncStatus.UP_TO_DATE]
    summary = (
        f"Synced {synced}, switched {counts[SyncStatus.SWITCHED]}, "
        f"skipped {counts[SyncStatus.SKIPPED]}, failed {counts[SyncStatus.FAILED]}"
    )
    if dry_run:
        summary += " (dry run)"
    return summary
