"""Stale branch classification.

A branch is stale when its last commit is strictly older than the
threshold and git does not consider it merged into the default branch.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from katazuke.constants import AUTOMATION_PREFIXES
from katazuke.exceptions import GitOperationError
from katazuke.logging_config import get_logger
from katazuke.models.branch import PRState, StaleBranch, StaleTier
from katazuke.services.git.github import parse_github_remote
from katazuke.services.git.operations import GitOperations
from katazuke.services.git.protocols import PRChecker
from katazuke.utils import parallel

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


def is_automation_branch(branch: str) -> bool:
    """True for branches created by dependency bots and release tooling."""
    return branch.startswith(AUTOMATION_PREFIXES)


def categorize(stale: List[StaleBranch]) -> Dict[StaleTier, List[StaleBranch]]:
    """Partition stale branches by tier, preserving order within each tier."""
    tiers: Dict[StaleTier, List[StaleBranch]] = {tier: [] for tier in StaleTier}
    for branch in stale:
        tiers[branch.tier].append(branch)
    return tiers


class StaleBranchFinder:
    """Finds and annotates stale branches across repositories."""

    def __init__(self, git_ops: GitOperations, pr_checker: Optional[PRChecker] = None):
        self.git = git_ops
        self.pr = pr_checker

    def find(
        self,
        repos: List[str],
        threshold: timedelta,
        workers: int,
        on_progress: Optional[ProgressCallback] = None,
        now: Optional[datetime] = None,
    ) -> List[StaleBranch]:
        cutoff = (now or datetime.now(timezone.utc)) - threshold

        def report(completed: int, total: int, _result) -> None:
            if on_progress is not None:
                on_progress(completed, total)

        per_repo = parallel.run(repos, workers, lambda repo: self.find_in_repo(repo, cutoff), report)
        return [branch for branches in per_repo for branch in branches]

    def find_in_repo(self, repo_path: str, cutoff: datetime) -> List[StaleBranch]:
        repo_name = os.path.basename(repo_path)

        try:
            default_branch = self.git.default_branch(repo_path)
            current_branch = self.git.current_branch(repo_path)
            all_branches = self.git.list_branches(repo_path)
            merged = set(self.git.merged_branches(repo_path, default_branch))
        except GitOperationError as e:
            logger.warning(f"Skipping {repo_name}: {e}")
            return []

        user_email = self.git.config_value(repo_path, "user.email")
        has_origin = self.git.has_remote(repo_path, "origin")

        results = []
        for branch in all_branches:
            if branch in (default_branch, current_branch) or branch in merged:
                continue

            try:
                last_commit = self.git.commit_date(repo_path, branch)
            except GitOperationError as e:
                logger.warning(f"Could not get commit date for {repo_name}/{branch}, skipping: {e}")
                continue

            if last_commit >= cutoff:
                continue

            try:
                ahead, behind = self.git.commits_ahead_behind(repo_path, branch, default_branch)
            except GitOperationError as e:
                logger.warning(f"Could not get ahead/behind counts for {repo_name}/{branch}: {e}")
                ahead, behind = 0, 0

            has_remote = False
            if has_origin:
                try:
                    has_remote = self.git.has_remote_branch(repo_path, branch)
                except GitOperationError as e:
                    logger.debug(f"Could not check remote branch {repo_name}/{branch}: {e}")

            try:
                subject = self.git.commit_subject(repo_path, branch)
            except GitOperationError as e:
                logger.warning(f"Could not get commit subject for {repo_name}/{branch}: {e}")
                subject = ""

            results.append(
                StaleBranch(
                    repo_path=repo_path,
                    repo_name=repo_name,
                    name=branch,
                    last_commit=last_commit,
                    last_commit_message=subject,
                    commits_ahead=ahead,
                    commits_behind=behind,
                    has_remote=has_remote,
                    is_local_only=not has_remote and not self.git.has_upstream(repo_path, branch),
                    is_automation=is_automation_branch(branch),
                    is_own_branch=self._is_own_branch(repo_path, branch, default_branch, user_email),
                )
            )
        return results

    def _is_own_branch(self, repo_path: str, branch: str, base: str, user_email: str) -> bool:
        """Every commit unique to branch was authored by user_email.

        Unknown identity, unreadable history and branches with no unique
        commits all count as our own.
        """
        if not user_email:
            return True
        try:
            authors = self.git.commit_authors(repo_path, branch, base)
        except GitOperationError as e:
            logger.debug(f"Could not check commit authors for {branch}: {e}")
            return True
        return all(author.casefold() == user_email.casefold() for author in authors)

    def filter_by_pull_requests(self, stale: List[StaleBranch], workers: int) -> List[StaleBranch]:
        """Drop branches with an open PR and annotate ones whose PR was merged.

        A merged PR only annotates the branch when the local tip is the PR's
        head commit. Lookup failures keep the branch unannotated.
        """
        if self.pr is None or not stale:
            return stale

        by_repo: Dict[str, List[StaleBranch]] = {}
        for branch in stale:
            by_repo.setdefault(branch.repo_path, []).append(branch)

        kept_per_repo = parallel.run(
            list(by_repo.items()), workers, lambda item: self._filter_repo(*item)
        )
        kept = {id(branch) for branches in kept_per_repo for branch in branches}
        return [branch for branch in stale if id(branch) in kept]

    def _filter_repo(self, repo_path: str, branches: List[StaleBranch]) -> List[StaleBranch]:
        try:
            github_repo = parse_github_remote(self.git.remote_url(repo_path))
        except GitOperationError as e:
            logger.debug(f"No origin for {repo_path}, skipping PR lookups: {e}")
            return branches
        if github_repo is None:
            return branches

        owner, repo = github_repo
        kept = []
        for branch in branches:
            if not branch.has_remote:
                kept.append(branch)
                continue

            try:
                info = self.pr.branch_pr(owner, repo, branch.name)
            except Exception as e:
                logger.debug(f"[GitHub] PR lookup failed for {branch.label}: {e}")
                kept.append(branch)
                continue

            if info.state is PRState.OPEN:
                logger.debug(f"{branch.label} has open PR #{info.number}, excluding")
                continue

            if info.state is PRState.MERGED:
                try:
                    tip = self.git.rev_parse(repo_path, branch.name)
                except GitOperationError as e:
                    logger.debug(f"Could not resolve tip of {branch.label}: {e}")
                    tip = ""
                if tip and tip == info.head_sha:
                    branch.pr_number = info.number
                    branch.pr_merged_at = info.merged_at
            kept.append(branch)
        return kept
