"""Sync models"""
from enum import Enum
from dataclasses import dataclass


class SyncStatus(Enum):
    """Outcome of syncing a single repository."""
    SYNCED = "synced"
    SWITCHED = "switched"
    UP_TO_DATE = "up_to_date"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncOptions:
    strategy: str = "rebase"
    skip_dirty: bool = False
    auto_stash: bool = True
    switch_merged_branch: bool = True
    dry_run: bool = False


@dataclass
class SyncResult:
    """Result of syncing one repository."""
    repo_path: str
    repo_name: str
    status: SyncStatus
    message: str = ""
    commits_pulled: int = 0
