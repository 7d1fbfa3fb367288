"""Data models for katazuke."""

from .branch import DetectedBranch, DetectionMethod, MergedBranch, PRInfo, PRState, StaleBranch, StaleTier
from .repo import ArchivedRepo, MergedBranchRepo, NonRepoDir, RepoSummary
from .sync import SyncOptions, SyncResult, SyncStatus

__all__ = [
    "DetectedBranch",
    "DetectionMethod",
    "MergedBranch",
    "PRInfo",
    "PRState",
    "StaleBranch",
    "StaleTier",
    "ArchivedRepo",
    "MergedBranchRepo",
    "NonRepoDir",
    "RepoSummary",
    "SyncOptions",
    "SyncResult",
    "SyncStatus",
]
