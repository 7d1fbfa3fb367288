"""Git operations service"""

from datetime import datetime
from typing import List, Optional, Tuple

import git

from katazuke.constants import GIT_TIMEOUT
from katazuke.exceptions import GitOperationError
from katazuke.logging_config import get_logger

logger = get_logger(__name__)

PULL_FLAGS = {
    "rebase": ("--rebase",),
    "ff-only": ("--ff-only",),
    "merge": (),
}


def _split_lines(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def _filter_branches(branches: List[str]) -> List[str]:
    """Drop pseudo entries like "(HEAD detached at abc123)"."""
    return [b for b in branches if not b.startswith("(")]


class GitOperations:
    """Stateless adapter over the git CLI.

    Every method takes the repository path, so one instance can be shared
    by all worker threads. Each call opens a fresh ``git.Repo``.
    """

    def __init__(self, timeout: Optional[float] = GIT_TIMEOUT):
        self.timeout = timeout

    def _get_repo(self, repo_path: str) -> git.Repo:
        """Get a thread-safe git.Repo instance.

        GitPython repos are lightweight - they don't clone, just open the existing repo.
        """
        return git.Repo(repo_path)

    def _run(self, repo_path: str, command: str, *args: str, branch: Optional[str] = None) -> str:
        """Run ``git <command> <args>`` in the repository and return trimmed stdout."""
        try:
            with self._get_repo(repo_path) as repo:
                output = getattr(repo.git, command)(*args, kill_after_timeout=self.timeout)
        except git.exc.GitCommandError as e:
            stderr = (e.stderr or "").strip()
            raise GitOperationError(
                " ".join([command.replace("_", "-"), *args]), branch, stderr or str(e)
            ) from e
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitOperationError(command.replace("_", "-"), branch, f"not a git repository: {e}") from e
        return output.strip()

    def is_repo(self, path: str) -> bool:
        """Check whether path is the top of a git checkout."""
        try:
            with self._get_repo(path):
                return True
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return False
        except Exception as e:
            logger.debug(f"Error checking if {path} is a repository: {e}")
            return False

    def current_branch(self, repo_path: str) -> str:
        """Return the checked-out branch, or "" when HEAD is detached."""
        return self._run(repo_path, "branch", "--show-current")

    def default_branch(self, repo_path: str) -> str:
        """Resolve the default branch from origin/HEAD, falling back to main or master."""
        try:
            out = self._run(repo_path, "symbolic_ref", "refs/remotes/origin/HEAD", "--short")
            if out:
                return out.split("/", 1)[-1]
        except GitOperationError as e:
            logger.debug(f"origin/HEAD not set in {repo_path}: {e}")

        branches = self.list_branches(repo_path)
        for candidate in ("main", "master"):
            if candidate in branches:
                return candidate
        raise GitOperationError("default-branch", message=f"could not determine default branch for {repo_path}")

    def list_branches(self, repo_path: str) -> List[str]:
        out = self._run(repo_path, "branch", "--format=%(refname:short)")
        return _filter_branches(_split_lines(out))

    def merged_branches(self, repo_path: str, base: str) -> List[str]:
        """Local branches whose tips are reachable from base."""
        out = self._run(repo_path, "branch", "--merged", base, "--format=%(refname:short)")
        return _filter_branches(_split_lines(out))

    def is_merged(self, repo_path: str, branch: str, base: str) -> bool:
        return branch in self.merged_branches(repo_path, base)

    def remote_url(self, repo_path: str, remote: str = "origin") -> str:
        return self._run(repo_path, "remote", "get-url", remote)

    def has_remote(self, repo_path: str, remote: str = "origin") -> bool:
        try:
            self.remote_url(repo_path, remote)
            return True
        except GitOperationError:
            return False

    def fetch(self, repo_path: str, remote: str = "origin") -> None:
        self._run(repo_path, "fetch", remote)

    def delete_local_branch(self, repo_path: str, branch: str, force: bool = False) -> None:
        self._run(repo_path, "branch", "-D" if force else "-d", branch, branch=branch)

    def delete_remote_branch(self, repo_path: str, branch: str, remote: str = "origin") -> None:
        self._run(repo_path, "push", remote, "--delete", branch, branch=branch)

    def commit_date(self, repo_path: str, ref: str) -> datetime:
        """Author date of the tip of ref."""
        out = self._run(repo_path, "log", "-1", "--format=%aI", ref, branch=ref)
        try:
            return datetime.fromisoformat(out)
        except ValueError as e:
            raise GitOperationError("log", ref, f"parsing commit date {out!r}: {e}") from e

    def commit_subject(self, repo_path: str, ref: str) -> str:
        return self._run(repo_path, "log", "-1", "--format=%s", ref, branch=ref)

    def commit_authors(self, repo_path: str, branch: str, base: str) -> List[str]:
        """Unique author emails of commits on branch that are not on base, newest first."""
        out = self._run(repo_path, "log", "--format=%ae", f"{base}..{branch}", branch=branch)
        authors: List[str] = []
        for email in _split_lines(out):
            if email not in authors:
                authors.append(email)
        return authors

    def commits_ahead_behind(self, repo_path: str, branch: str, base: str) -> Tuple[int, int]:
        """Return (ahead, behind) of branch relative to base."""
        out = self._run(repo_path, "rev_list", "--left-right", "--count", f"{base}...{branch}", branch=branch)
        try:
            behind, ahead = (int(part) for part in out.split())
        except ValueError as e:
            raise GitOperationError("rev-list", branch, f"parsing rev-list output {out!r}") from e
        return ahead, behind

    def commit_count(self, repo_path: str, revision_range: str) -> int:
        out = self._run(repo_path, "rev_list", "--count", revision_range)
        try:
            return int(out)
        except ValueError as e:
            raise GitOperationError("rev-list", message=f"parsing rev-list output {out!r}") from e

    def has_remote_branch(self, repo_path: str, branch: str, remote: str = "origin") -> bool:
        out = self._run(repo_path, "branch", "-r", "--list", f"{remote}/{branch}", branch=branch)
        return bool(out.strip())

    def has_upstream(self, repo_path: str, branch: str) -> bool:
        try:
            self._run(repo_path, "rev_parse", "--abbrev-ref", f"{branch}@{{upstream}}", branch=branch)
            return True
        except GitOperationError:
            return False

    def config_value(self, repo_path: str, key: str) -> str:
        """Return a git config value, or "" when it is not set."""
        try:
            return self._run(repo_path, "config", key)
        except GitOperationError:
            return ""

    def is_clean(self, repo_path: str) -> bool:
        return self._run(repo_path, "status", "--porcelain") == ""

    def pull(self, repo_path: str, strategy: str) -> None:
        if strategy not in PULL_FLAGS:
            raise GitOperationError("pull", message=f"unknown pull strategy: {strategy!r}")
        self._run(repo_path, "pull", *PULL_FLAGS[strategy])

    def _stash_ref(self, repo_path: str) -> str:
        try:
            return self._run(repo_path, "rev_parse", "--quiet", "--verify", "refs/stash")
        except GitOperationError:
            return ""

    def stash_push(self, repo_path: str, message: str) -> bool:
        """Stash local changes. Returns whether a stash entry was created."""
        before = self._stash_ref(repo_path)
        self._run(repo_path, "stash", "push", "-m", message)
        after = self._stash_ref(repo_path)
        return after != "" and after != before

    def stash_create(self, repo_path: str) -> str:
        """Commit holding the uncommitted tracked changes, or "" when there are none.

        Neither the working tree nor the stash list is modified.
        """
        return self._run(repo_path, "stash", "create")

    def stash_pop(self, repo_path: str) -> None:
        self._run(repo_path, "stash", "pop")

    def rebase_abort(self, repo_path: str) -> None:
        self._run(repo_path, "rebase", "--abort")

    def merge_abort(self, repo_path: str) -> None:
        self._run(repo_path, "merge", "--abort")

    def merge_base(self, repo_path: str, ref1: str, ref2: str) -> str:
        return self._run(repo_path, "merge_base", ref1, ref2)

    def merge_tree_has_conflicts(self, repo_path: str, base: str, local: str, remote: str) -> bool:
        """Simulate a three-way merge without touching the working tree.

        A non-zero exit or conflict markers in the output both count as conflicts.
        """
        try:
            with self._get_repo(repo_path) as repo:
                status, stdout, _ = repo.git.merge_tree(
                    base,
                    local,
                    remote,
                    with_extended_output=True,
                    with_exceptions=False,
                    kill_after_timeout=self.timeout,
                )
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitOperationError("merge-tree", message=str(e)) from e
        return status != 0 or "<<<<<<" in stdout

    def checkout(self, repo_path: str, branch: str) -> None:
        self._run(repo_path, "checkout", branch, branch=branch)

    def create_tag(self, repo_path: str, tag_name: str, ref: str) -> None:
        self._run(repo_path, "tag", tag_name, ref, branch=ref)

    def rev_parse(self, repo_path: str, ref: str) -> str:
        """Full SHA of ref."""
        return self._run(repo_path, "rev_parse", "--verify", ref, branch=ref)
