"""Repository synchronization.

Each repository is fetched and then, depending on its state, pulled,
switched back to the default branch, stash-pulled, or skipped. Every repo
yields exactly one SyncResult.
"""

import os
from typing import Callable, List, Optional

from katazuke.constants import AUTO_STASH_MESSAGE
from katazuke.exceptions import GitOperationError
from katazuke.logging_config import get_logger
from katazuke.models.sync import SyncOptions, SyncResult, SyncStatus
from katazuke.services.git.protocols import SyncGitOps
from katazuke.utils import parallel

logger = get_logger(__name__)

ResultCallback = Callable[[int, int, SyncResult], None]
MergeCheck = Callable[[str, str, str], bool]


def plural_commit(count: int) -> str:
    return "commit" if count == 1 else "commits"


class SyncService:
    """Brings local checkouts up to date with origin."""

    def __init__(self, git_ops: SyncGitOps, options: SyncOptions, is_merged: Optional[MergeCheck] = None):
        """
        Args:
            git_ops: Git operations used for every step
            options: Strategy and dirty-tree policy
            is_merged: Merge check for feature branches (defaults to git's
                local check; pass ``MergeDetector.is_merged`` to include PRs)
        """
        self.git = git_ops
        self.options = options
        self.is_merged = is_merged or git_ops.is_merged

    def sync_all(
        self, repos: List[str], workers: int, on_result: Optional[ResultCallback] = None
    ) -> List[SyncResult]:
        """Sync every repository; results come back in completion order."""
        return parallel.run(repos, workers, self.sync_one, on_result)

    def sync_one(self, repo_path: str) -> SyncResult:
        repo_name = os.path.basename(repo_path)

        if not self.git.has_remote(repo_path, "origin"):
            return self._result(repo_path, SyncStatus.SKIPPED, "no origin remote")

        logger.debug(f"Fetching {repo_name}")
        try:
            self.git.fetch(repo_path, "origin")
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"fetch failed: {e}")

        try:
            default_branch = self.git.default_branch(repo_path)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"could not determine default branch: {e}")

        try:
            current_branch = self.git.current_branch(repo_path)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"could not determine current branch: {e}")

        if not current_branch:
            return self._sync_detached_head(repo_path, default_branch)
        if current_branch != default_branch:
            return self._sync_feature_branch(repo_path, current_branch, default_branch)

        try:
            clean = self.git.is_clean(repo_path)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"could not check working tree: {e}")

        if clean:
            return self._sync_clean(repo_path, default_branch)
        return self._sync_dirty(repo_path, default_branch)

    def _result(self, repo_path: str, status: SyncStatus, message: str = "", commits: int = 0) -> SyncResult:
        return SyncResult(
            repo_path=repo_path,
            repo_name=os.path.basename(repo_path),
            status=status,
            message=message,
            commits_pulled=commits,
        )

    def _switch_and_sync(self, repo_path: str, default_branch: str, origin: str) -> SyncResult:
        """Check out the default branch, pull it, and report the switch."""
        try:
            self.git.checkout(repo_path, default_branch)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"could not switch to {default_branch}: {e}")

        pulled = self._sync_clean(repo_path, default_branch)
        if pulled.status is SyncStatus.FAILED:
            return pulled

        if pulled.status is SyncStatus.UP_TO_DATE:
            message = f"switched from {origin} to {default_branch} (up-to-date)"
        else:
            message = f"switched from {origin} to {default_branch} and synced"
            if pulled.commits_pulled > 0:
                message += f" ({pulled.commits_pulled} {plural_commit(pulled.commits_pulled)})"
        return self._result(repo_path, SyncStatus.SWITCHED, message, pulled.commits_pulled)

    def _sync_detached_head(self, repo_path: str, default_branch: str) -> SyncResult:
        try:
            clean = self.git.is_clean(repo_path)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"could not check working tree: {e}")

        if not clean:
            return self._result(repo_path, SyncStatus.SKIPPED, "detached HEAD with dirty working tree")

        if self.options.dry_run:
            return self._result(
                repo_path,
                SyncStatus.SKIPPED,
                f"would switch from detached HEAD to {default_branch} and sync (dry run)",
            )

        logger.debug(f"Switching {repo_path} from detached HEAD to {default_branch}")
        return self._switch_and_sync(repo_path, default_branch, "detached HEAD")

    def _sync_feature_branch(self, repo_path: str, current_branch: str, default_branch: str) -> SyncResult:
        not_default = f'on branch "{current_branch}", not default branch "{default_branch}"'

        try:
            merged = self.is_merged(repo_path, current_branch, f"origin/{default_branch}")
        except GitOperationError as e:
            logger.debug(f"Could not check merge status of {current_branch} in {repo_path}: {e}")
            return self._result(repo_path, SyncStatus.SKIPPED, not_default)

        if not merged:
            return self._result(repo_path, SyncStatus.SKIPPED, not_default)

        if not self.options.switch_merged_branch:
            return self._result(
                repo_path,
                SyncStatus.SKIPPED,
                f'on branch "{current_branch}" (merged into {default_branch}, safe to switch)',
            )

        try:
            clean = self.git.is_clean(repo_path)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"could not check working tree: {e}")

        if not clean:
            return self._result(
                repo_path, SyncStatus.SKIPPED, f'on branch "{current_branch}" (merged, but working tree is dirty)'
            )

        if self.options.dry_run:
            return self._result(
                repo_path,
                SyncStatus.SKIPPED,
                f'would switch from merged branch "{current_branch}" to {default_branch} (dry run)',
            )

        logger.debug(f"Switching {repo_path} from merged branch {current_branch} to {default_branch}")
        return self._switch_and_sync(repo_path, default_branch, f'merged branch "{current_branch}"')

    def _behind_count(self, repo_path: str, default_branch: str) -> Optional[int]:
        """Commits on origin/<default> not in HEAD, or None if it cannot be counted."""
        try:
            return self.git.commit_count(repo_path, f"HEAD..origin/{default_branch}")
        except GitOperationError as e:
            logger.debug(f"Could not count commits behind in {repo_path}: {e}")
            return None

    def _sync_clean(self, repo_path: str, default_branch: str) -> SyncResult:
        behind = self._behind_count(repo_path, default_branch)
        if behind == 0:
            return self._result(repo_path, SyncStatus.UP_TO_DATE)

        if self.options.dry_run:
            if behind is None:
                return self._result(repo_path, SyncStatus.SKIPPED, "would pull (dry run)")
            return self._result(
                repo_path, SyncStatus.SKIPPED, f"would pull, {behind} {plural_commit(behind)} behind (dry run)"
            )

        logger.debug(f"Pulling {repo_path} with strategy {self.options.strategy}")
        try:
            self.git.pull(repo_path, self.options.strategy)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"pull failed: {e}")

        if behind is None:
            return self._result(repo_path, SyncStatus.SYNCED, "pulled successfully")
        return self._result(repo_path, SyncStatus.SYNCED, f"{behind} {plural_commit(behind)}", behind)

    def _sync_dirty(self, repo_path: str, default_branch: str) -> SyncResult:
        if self.options.skip_dirty:
            return self._result(repo_path, SyncStatus.SKIPPED, "dirty working tree (skip_dirty enabled)")

        if not self.options.auto_stash:
            return self._result(repo_path, SyncStatus.SKIPPED, "dirty working tree (auto_stash disabled)")

        remote_ref = f"origin/{default_branch}"
        try:
            base = self.git.merge_base(repo_path, "HEAD", remote_ref)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"merge-base failed: {e}")

        # Uncommitted changes only count in the simulation as a stash commit
        try:
            local = self.git.stash_create(repo_path) or "HEAD"
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"stash create failed: {e}")

        try:
            conflicts = self.git.merge_tree_has_conflicts(repo_path, base, local, remote_ref)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"merge-tree simulation failed: {e}")

        if conflicts:
            return self._result(repo_path, SyncStatus.SKIPPED, "dirty working tree with potential merge conflicts")

        behind = self._behind_count(repo_path, default_branch)
        if behind == 0:
            return self._result(repo_path, SyncStatus.UP_TO_DATE)

        if self.options.dry_run:
            if behind is None:
                return self._result(repo_path, SyncStatus.SKIPPED, "would stash, pull, and pop (dry run)")
            return self._result(
                repo_path,
                SyncStatus.SKIPPED,
                f"would stash, pull, and pop, {behind} {plural_commit(behind)} behind (dry run)",
            )

        try:
            stashed = self.git.stash_push(repo_path, AUTO_STASH_MESSAGE)
        except GitOperationError as e:
            return self._result(repo_path, SyncStatus.FAILED, f"stash push failed: {e}")
        logger.debug(f"Stash push in {repo_path} completed (created={stashed})")

        try:
            self.git.pull(repo_path, self.options.strategy)
        except GitOperationError as e:
            self._abort_pull(repo_path)
            return self._result(
                repo_path, SyncStatus.FAILED, f"pull failed after stash (aborted, stash preserved): {e}"
            )

        if stashed:
            try:
                self.git.stash_pop(repo_path)
            except GitOperationError as e:
                return self._result(repo_path, SyncStatus.FAILED, f"stash pop failed (stash preserved): {e}")

        if behind is None:
            return self._result(repo_path, SyncStatus.SYNCED, "pulled with auto-stash")
        return self._result(repo_path, SyncStatus.SYNCED, f"{behind} {plural_commit(behind)}, auto-stash", behind)

    def _abort_pull(self, repo_path: str) -> None:
        """Undo a partial pull; the stash entry is left alone."""
        try:
            if self.options.strategy == "rebase":
                self.git.rebase_abort(repo_path)
            else:
                self.git.merge_abort(repo_path)
        except GitOperationError as e:
            logger.debug(f"Abort after failed pull in {repo_path} failed (may not be in progress): {e}")
