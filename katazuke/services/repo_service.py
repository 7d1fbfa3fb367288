"""Repository-level checks: working tree summary, archived upstreams, merged checkouts."""

import os
from typing import Callable, List, Optional

from katazuke.exceptions import GitHubAPIError, GitOperationError
from katazuke.logging_config import get_logger
from katazuke.models.branch import DetectionMethod
from katazuke.models.repo import ArchivedRepo, MergedBranchRepo, RepoSummary
from katazuke.services.git.github import parse_github_remote
from katazuke.services.git.merge_detector import MergeDetector
from katazuke.services.git.operations import GitOperations
from katazuke.services.git.protocols import ArchiveChecker
from katazuke.utils import parallel

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


def _progress(on_progress: Optional[ProgressCallback]):
    def report(completed: int, total: int, _result) -> None:
        if on_progress is not None:
            on_progress(completed, total)
    return report


class RepoService:
    """Checks run once per repository rather than once per branch."""

    def __init__(self, git_ops: GitOperations):
        self.git = git_ops

    def _is_clean(self, repo_path: str) -> bool:
        """Working tree status; unreadable counts as dirty."""
        try:
            return self.git.is_clean(repo_path)
        except GitOperationError as e:
            logger.debug(f"Could not check working tree of {repo_path}: {e}")
            return False

    def summarize(
        self, repos: List[str], workers: int, on_progress: Optional[ProgressCallback] = None
    ) -> RepoSummary:
        states = parallel.run(repos, workers, self._is_clean, _progress(on_progress))
        clean = sum(1 for state in states if state)
        return RepoSummary(total=len(states), clean=clean, dirty=len(states) - clean)

    def find_archived(
        self,
        repos: List[str],
        checker: ArchiveChecker,
        workers: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[ArchivedRepo]:
        """Repositories whose GitHub upstream is archived."""
        results = parallel.run(
            repos, workers, lambda repo: self._check_archived(repo, checker), _progress(on_progress)
        )
        return [r for r in results if r is not None]

    def _check_archived(self, repo_path: str, checker: ArchiveChecker) -> Optional[ArchivedRepo]:
        name = os.path.basename(repo_path)

        try:
            remote_url = self.git.remote_url(repo_path, "origin")
        except GitOperationError:
            logger.debug(f"Skipping {name}: no origin remote")
            return None

        github_repo = parse_github_remote(remote_url)
        if github_repo is None:
            logger.debug(f"Skipping {name}: not a GitHub remote ({remote_url})")
            return None
        owner, repo = github_repo

        try:
            archived = checker.is_archived(owner, repo)
        except GitHubAPIError as e:
            logger.warning(f"Could not check archive status of {name}: {e}")
            return None

        if not archived:
            return None

        return ArchivedRepo(path=repo_path, name=name, owner=owner, repo=repo, is_clean=self._is_clean(repo_path))

    def find_on_merged_branch(
        self,
        repos: List[str],
        detector: MergeDetector,
        workers: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[MergedBranchRepo]:
        """Checkouts whose current feature branch has been merged."""
        results = parallel.run(
            repos, workers, lambda repo: self._check_merged_branch(repo, detector), _progress(on_progress)
        )
        return [r for r in results if r is not None]

    def _check_merged_branch(self, repo_path: str, detector: MergeDetector) -> Optional[MergedBranchRepo]:
        name = os.path.basename(repo_path)

        try:
            current_branch = self.git.current_branch(repo_path)
            if not current_branch:
                return None
            default_branch = self.git.default_branch(repo_path)
        except GitOperationError as e:
            logger.debug(f"Skipping {name}: {e}")
            return None

        if current_branch == default_branch:
            return None

        base = default_branch
        if self.git.has_remote(repo_path, "origin"):
            base = f"origin/{default_branch}"

        try:
            method = detector.detect(repo_path, current_branch, base)
        except GitOperationError as e:
            logger.debug(f"Could not check merge status of {name}/{current_branch}: {e}")
            return None

        if method is None:
            return None

        return MergedBranchRepo(
            path=repo_path,
            name=name,
            current_branch=current_branch,
            default_branch=default_branch,
            is_clean=self._is_clean(repo_path),
            force_delete=method is DetectionMethod.GITHUB,
        )
