"""Executes the destructive actions the user selected."""

import shutil
from dataclasses import dataclass, field
from typing import List

from katazuke.constants import ARCHIVE_TAG_PREFIX
from katazuke.exceptions import GitOperationError
from katazuke.logging_config import get_logger
from katazuke.models.branch import MergedBranch, StaleBranch
from katazuke.models.repo import ArchivedRepo, MergedBranchRepo
from katazuke.services.git.operations import GitOperations

logger = get_logger(__name__)

REMOTE_REF_MISSING = "remote ref does not exist"


@dataclass
class DeletionReport:
    """Outcome of a batch of deletions."""
    deleted_local: List[str] = field(default_factory=list)
    deleted_remote: List[str] = field(default_factory=list)
    archived: List[str] = field(default_factory=list)
    switched: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class DeletionService:
    """Deletes branches and switches checkouts, continuing past per-item failures."""

    def __init__(self, git_ops: GitOperations):
        self.git = git_ops

    def _delete_remote(self, repo_path: str, repo_name: str, branch: str, report: DeletionReport) -> bool:
        """Delete origin/<branch>. A ref that is already gone counts as deleted."""
        try:
            self.git.delete_remote_branch(repo_path, branch)
        except GitOperationError as e:
            if REMOTE_REF_MISSING in str(e):
                logger.warning(f"Remote branch {branch} in {repo_name} was already deleted")
                report.messages.append(f"remote {branch} in {repo_name} already deleted")
                return True
            report.messages.append(f"failed to delete remote {branch} in {repo_name}: {e}")
            return False
        report.messages.append(f"deleted remote {branch} in {repo_name}")
        return True

    def delete_merged(self, selected: List[MergedBranch], delete_remote: bool) -> DeletionReport:
        """Delete merged branches locally, and on origin when requested.

        GitHub-detected merges need ``branch -D`` since git still sees them as unmerged.
        """
        report = DeletionReport()
        for branch in selected:
            logger.debug(f"Deleting {branch.name} in {branch.repo_name} (force={branch.force_delete})")
            try:
                self.git.delete_local_branch(branch.repo_path, branch.name, force=branch.force_delete)
            except GitOperationError as e:
                report.messages.append(f"failed to delete {branch.name} in {branch.repo_name}: {e}")
                report.failed.append(branch.label)
                continue
            report.deleted_local.append(branch.label)
            report.messages.append(f"deleted {branch.name} in {branch.repo_name}")

            if delete_remote and branch.has_remote:
                if self._delete_remote(branch.repo_path, branch.repo_name, branch.name, report):
                    report.deleted_remote.append(branch.label)
                else:
                    report.failed.append(branch.label)
        return report

    def delete_stale(self, selected: List[StaleBranch], delete_remote: bool, archive: bool = False) -> DeletionReport:
        """Force-delete stale branches, optionally tagging them as archive/<branch> first.

        Remote deletion only applies to branches that pass ``can_delete_remote``;
        bot branches and branches with other authors keep their remote.
        """
        report = DeletionReport()
        for branch in selected:
            if archive:
                tag = f"{ARCHIVE_TAG_PREFIX}{branch.name}"
                try:
                    self.git.create_tag(branch.repo_path, tag, branch.name)
                except GitOperationError as e:
                    report.messages.append(f"failed to create tag {tag} in {branch.repo_name}: {e}")
                    report.failed.append(branch.label)
                    continue
                report.archived.append(branch.label)
                report.messages.append(f"created tag {tag} in {branch.repo_name}")

            try:
                self.git.delete_local_branch(branch.repo_path, branch.name, force=True)
            except GitOperationError as e:
                report.messages.append(f"failed to delete {branch.name} in {branch.repo_name}: {e}")
                report.failed.append(branch.label)
                continue
            report.deleted_local.append(branch.label)
            report.messages.append(f"deleted {branch.name} in {branch.repo_name}")

            if delete_remote and branch.can_delete_remote:
                if self._delete_remote(branch.repo_path, branch.repo_name, branch.name, report):
                    report.deleted_remote.append(branch.label)
                else:
                    report.failed.append(branch.label)
        return report

    def switch_merged_repos(self, selected: List[MergedBranchRepo], delete_branch: bool) -> DeletionReport:
        """Check out the default branch, optionally deleting the merged one."""
        report = DeletionReport()
        for repo in selected:
            label = f"{repo.name}: {repo.current_branch}"
            try:
                self.git.checkout(repo.path, repo.default_branch)
            except GitOperationError as e:
                report.messages.append(f"failed to switch {repo.name} to {repo.default_branch}: {e}")
                report.failed.append(label)
                continue
            report.switched.append(label)
            report.messages.append(f"switched {repo.name} from {repo.current_branch} to {repo.default_branch}")

            if not delete_branch:
                continue
            try:
                self.git.delete_local_branch(repo.path, repo.current_branch, force=repo.force_delete)
            except GitOperationError as e:
                report.messages.append(f"failed to delete {repo.current_branch} in {repo.name}: {e}")
                report.failed.append(label)
                continue
            report.deleted_local.append(label)
            report.messages.append(f"deleted {repo.current_branch} in {repo.name}")
        return report

    def remove_archived(self, selected: List[ArchivedRepo]) -> DeletionReport:
        """Delete local checkouts of archived repositories."""
        report = DeletionReport()
        for repo in selected:
            label = f"{repo.owner}/{repo.repo}"
            logger.debug(f"Removing {repo.path}")
            try:
                shutil.rmtree(repo.path)
            except OSError as e:
                report.messages.append(f"failed to remove {repo.path}: {e}")
                report.failed.append(label)
                continue
            report.removed.append(label)
            report.messages.append(f"removed {repo.path}")
        return report
