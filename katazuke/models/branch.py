"""Branch model and related enums"""
from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


class DetectionMethod(Enum):
    """How a branch was determined to be merged."""
    GIT = "git"
    GITHUB = "github"


class StaleTier(Enum):
    """Review tier for a stale branch."""
    SAFE = "safe"
    AUTOMATION = "automation"
    REVIEW = "review"


class PRState(Enum):
    """State of the most recent pull request for a branch."""
    NONE = "none"
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


@dataclass(frozen=True)
class DetectedBranch:
    """A branch reported as merged by the merge detector."""
    name: str
    method: DetectionMethod


@dataclass(frozen=True)
class PRInfo:
    """Summary of the most recent pull request for a branch head."""
    state: PRState
    number: int = 0
    head_sha: str = ""
    merged_at: Optional[datetime] = None


@dataclass
class MergedBranch:
    """A local branch whose work has landed on the default branch."""
    repo_path: str
    repo_name: str
    name: str
    last_commit: Optional[datetime]
    has_remote: bool
    detection_method: DetectionMethod = DetectionMethod.GIT

    @property
    def force_delete(self) -> bool:
        """Squash and rebase merges leave no ancestry, so git refuses ``-d``."""
        return self.detection_method is DetectionMethod.GITHUB

    @property
    def label(self) -> str:
        label = f"{self.repo_name}: {self.name}"
        if self.has_remote:
            label += " (backed up remotely)"
        return label


@dataclass
class StaleBranch:
    """A local branch with no recent commits."""
    repo_path: str
    repo_name: str
    name: str
    last_commit: Optional[datetime]
    last_commit_message: str = ""
    commits_ahead: int = 0
    commits_behind: int = 0
    has_remote: bool = False
    is_local_only: bool = False
    is_automation: bool = False
    is_own_branch: bool = True
    pr_number: int = 0
    pr_merged_at: Optional[datetime] = None

    @property
    def tier(self) -> StaleTier:
        if self.is_automation:
            return StaleTier.AUTOMATION
        if self.has_remote and self.is_own_branch:
            return StaleTier.SAFE
        return StaleTier.REVIEW

    @property
    def can_delete_remote(self) -> bool:
        """Remote deletion is only offered for our own, non-bot branches."""
        return self.has_remote and not self.is_automation and self.is_own_branch

    @property
    def label(self) -> str:
        return f"{self.repo_name}: {self.name}"
