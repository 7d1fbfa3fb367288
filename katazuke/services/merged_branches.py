"""Find branches that have been merged into each repository's default branch."""

import os
from typing import Callable, List, Optional

from katazuke.exceptions import GitOperationError
from katazuke.logging_config import get_logger
from katazuke.models.branch import MergedBranch
from katazuke.services.git.merge_detector import MergeDetector
from katazuke.services.git.operations import GitOperations
from katazuke.utils import parallel

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class MergedBranchFinder:
    """Collects merged branches across repositories."""

    def __init__(self, git_ops: GitOperations, detector: MergeDetector):
        self.git = git_ops
        self.detector = detector

    def find(
        self, repos: List[str], workers: int, on_progress: Optional[ProgressCallback] = None
    ) -> List[MergedBranch]:
        """Return merged branches for all repos.

        The default branch and the checked-out branch are never reported.
        A repository whose default or current branch cannot be read is
        skipped with a warning.
        """
        def report(completed: int, total: int, _result) -> None:
            if on_progress is not None:
                on_progress(completed, total)

        per_repo = parallel.run(repos, workers, self.find_in_repo, report)
        return [branch for branches in per_repo for branch in branches]

    def find_in_repo(self, repo_path: str) -> List[MergedBranch]:
        repo_name = os.path.basename(repo_path)

        try:
            default_branch = self.git.default_branch(repo_path)
            current_branch = self.git.current_branch(repo_path)
            all_branches = self.git.list_branches(repo_path)
        except GitOperationError as e:
            logger.warning(f"Skipping {repo_name}: {e}")
            return []

        if not current_branch:
            logger.debug(f"{repo_name} has detached HEAD, no branch to exclude")

        protected = {default_branch, current_branch}
        candidates = [b for b in all_branches if b not in protected]

        try:
            detected = self.detector.merged_branches(repo_path, default_branch, candidates)
        except GitOperationError as e:
            logger.warning(f"Skipping {repo_name}: could not list merged branches: {e}")
            return []

        results = []
        for found in detected:
            # git branch --merged also lists the base and current branch
            if found.name in protected:
                continue

            try:
                last_commit = self.git.commit_date(repo_path, found.name)
            except GitOperationError as e:
                logger.warning(f"Could not get commit date for {repo_name}/{found.name}: {e}")
                last_commit = None

            try:
                has_remote = self.git.has_remote_branch(repo_path, found.name)
            except GitOperationError as e:
                logger.debug(f"Could not check remote branch {repo_name}/{found.name}: {e}")
                has_remote = False

            results.append(
                MergedBranch(
                    repo_path=repo_path,
                    repo_name=repo_name,
                    name=found.name,
                    last_commit=last_commit,
                    has_remote=has_remote,
                    detection_method=found.method,
                )
            )
        return results
