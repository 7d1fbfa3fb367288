"""Merge detection service for katazuke."""

from typing import List, Optional, Tuple

from katazuke.exceptions import GitOperationError
from katazuke.logging_config import get_logger
from katazuke.models.branch import DetectedBranch, DetectionMethod, PRState
from katazuke.services.git.github import parse_github_remote
from katazuke.services.git.protocols import GitChecker, PRChecker

logger = get_logger(__name__)


class MergeDetector:
    """Combines local git merge checks with GitHub PR state.

    Git only recognises fast-forward and merge-commit integrations. Squash
    and rebase merges leave the branch looking unmerged locally, so when a
    PR checker is configured the remaining branches are looked up on GitHub.
    Without a PR checker the detector runs in git-only mode.
    """

    def __init__(self, git_checker: GitChecker, pr_checker: Optional[PRChecker] = None):
        self.git = git_checker
        self.pr = pr_checker

    def is_merged(self, repo_path: str, branch: str, base: str) -> bool:
        """Local check first, GitHub fallback only when git says no."""
        if self.git.is_merged(repo_path, branch, base):
            return True
        if self.pr is None:
            return False

        github_repo = self._resolve_github_repo(repo_path)
        if github_repo is None:
            return False
        return self._is_pr_merged(*github_repo, branch)

    def detect(self, repo_path: str, branch: str, base: str) -> Optional[DetectionMethod]:
        """Like is_merged, but report which check matched."""
        if self.git.is_merged(repo_path, branch, base):
            return DetectionMethod.GIT
        if self.pr is None:
            return None

        github_repo = self._resolve_github_repo(repo_path)
        if github_repo is not None and self._is_pr_merged(*github_repo, branch):
            return DetectionMethod.GITHUB
        return None

    def merged_branches(self, repo_path: str, base: str, candidates: List[str]) -> List[DetectedBranch]:
        """Branches merged into base, each tagged with the detection method.

        Raises:
            GitOperationError: If the local merged list cannot be read
        """
        git_merged = self.git.merged_branches(repo_path, base)
        result = [DetectedBranch(name, DetectionMethod.GIT) for name in git_merged]

        if self.pr is None:
            return result

        github_repo = self._resolve_github_repo(repo_path)
        if github_repo is None:
            return result

        merged_set = set(git_merged)
        for branch in candidates:
            if branch in merged_set:
                continue
            if self._is_pr_merged(*github_repo, branch):
                result.append(DetectedBranch(branch, DetectionMethod.GITHUB))
        return result

    def _resolve_github_repo(self, repo_path: str) -> Optional[Tuple[str, str]]:
        try:
            remote_url = self.git.remote_url(repo_path, "origin")
        except GitOperationError as e:
            logger.debug(f"Could not get remote URL for {repo_path}, skipping PR check: {e}")
            return None

        github_repo = parse_github_remote(remote_url)
        if github_repo is None:
            logger.debug(f"Non-GitHub remote for {repo_path} ({remote_url}), skipping PR check")
        return github_repo

    def _is_pr_merged(self, owner: str, repo: str, branch: str) -> bool:
        try:
            info = self.pr.branch_pr(owner, repo, branch)
        except Exception as e:
            logger.debug(f"[GitHub] PR lookup failed for {owner}/{repo} {branch}: {e}")
            return False
        return info.state is PRState.MERGED
