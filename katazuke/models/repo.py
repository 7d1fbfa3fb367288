"""Repository-level models"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class ArchivedRepo:
    """A local checkout whose upstream GitHub repository is archived."""
    path: str
    name: str
    owner: str
    repo: str
    is_clean: bool


@dataclass
class MergedBranchRepo:
    """A checkout sitting on a feature branch that is already merged."""
    path: str
    name: str
    current_branch: str
    default_branch: str
    is_clean: bool
    force_delete: bool = False


@dataclass
class RepoSummary:
    total: int = 0
    clean: int = 0
    dirty: int = 0


@dataclass
class NonRepoDir:
    """A top-level directory in the projects tree that is not a git checkout."""
    path: str
    name: str
    size: int = 0
    file_count: int = 0
    last_modified: Optional[datetime] = None
    summary: str = "empty"
