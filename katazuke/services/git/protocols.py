"""Capability interfaces consumed by the decision services.

Production code passes ``GitOperations`` and ``GitHubClient``; tests pass
in-memory doubles with the same methods.
"""

from typing import List, Protocol

from katazuke.models.branch import PRInfo


class GitChecker(Protocol):
    """Git reads needed for merge detection."""

    def is_merged(self, repo_path: str, branch: str, base: str) -> bool: ...

    def merged_branches(self, repo_path: str, base: str) -> List[str]: ...

    def remote_url(self, repo_path: str, remote: str = "origin") -> str: ...


class PRChecker(Protocol):
    """Pull request lookups needed for merge detection."""

    def branch_pr(self, owner: str, repo: str, branch: str) -> PRInfo: ...


class ArchiveChecker(Protocol):
    def is_archived(self, owner: str, repo: str) -> bool: ...


class SyncGitOps(Protocol):
    """Git operations driven by the sync state machine."""

    def has_remote(self, repo_path: str, remote: str = "origin") -> bool: ...

    def fetch(self, repo_path: str, remote: str = "origin") -> None: ...

    def default_branch(self, repo_path: str) -> str: ...

    def current_branch(self, repo_path: str) -> str: ...

    def is_clean(self, repo_path: str) -> bool: ...

    def is_merged(self, repo_path: str, branch: str, base: str) -> bool: ...

    def checkout(self, repo_path: str, branch: str) -> None: ...

    def commit_count(self, repo_path: str, revision_range: str) -> int: ...

    def pull(self, repo_path: str, strategy: str) -> None: ...

    def merge_base(self, repo_path: str, ref1: str, ref2: str) -> str: ...

    def merge_tree_has_conflicts(self, repo_path: str, base: str, local: str, remote: str) -> bool: ...

    def stash_push(self, repo_path: str, message: str) -> bool: ...

    def stash_create(self, repo_path: str) -> str: ...

    def stash_pop(self, repo_path: str) -> None: ...

    def rebase_abort(self, repo_path: str) -> None: ...

    def merge_abort(self, repo_path: str) -> None: ...
