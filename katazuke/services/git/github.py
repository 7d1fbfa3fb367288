"""GitHub API integration service"""

import re
import subprocess
from threading import Lock
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from github import Auth, Github

from katazuke.constants import GITHUB_TIMEOUT
from katazuke.exceptions import GitHubAPIError
from katazuke.logging_config import get_logger
from katazuke.models.branch import PRInfo, PRState

if TYPE_CHECKING:
    from github.Repository import Repository

logger = get_logger(__name__)

_SSH_REMOTE_RE = re.compile(r"^git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$")
_HTTPS_PREFIXES = ("https://github.com/", "http://github.com/")


def parse_github_remote(url: str) -> Optional[Tuple[str, str]]:
    """Extract (owner, repo) from a GitHub remote URL.

    Supports SSH (git@github.com:owner/repo.git) and HTTPS
    (https://github.com/owner/repo.git) forms. Returns None for anything else.
    """
    match = _SSH_REMOTE_RE.match(url)
    if match:
        return match.group(1), match.group(2)

    if url.endswith(".git"):
        url = url[:-4]
    for prefix in _HTTPS_PREFIXES:
        if url.startswith(prefix):
            parts = url[len(prefix):].split("/", 2)
            if len(parts) >= 2 and parts[0] and parts[1]:
                return parts[0], parts[1]
    return None


def gh_cli_token() -> Optional[str]:
    """Token from the gh CLI login, if gh is installed and authenticated."""
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=GITHUB_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"[GitHub] gh CLI auth not available: {e}")
        return None

    token = result.stdout.strip()
    if result.returncode != 0 or not token:
        logger.debug("[GitHub] gh CLI auth not available")
        return None
    return token


class GitHubClient:
    """Read-only access to repository and pull request metadata."""

    def __init__(self, github: Github):
        self.github = github
        self._repos: Dict[str, "Repository"] = {}
        self._repos_lock = Lock()

    @classmethod
    def create(cls, token: Optional[str] = None, timeout: int = GITHUB_TIMEOUT) -> "GitHubClient":
        """Build a client using gh CLI auth, then the given token, then anonymous access."""
        cli_token = gh_cli_token()
        if cli_token:
            logger.debug("[GitHub] Using gh CLI authentication")
            auth = Auth.Token(cli_token)
        elif token:
            logger.debug("[GitHub] Using explicit token authentication")
            auth = Auth.Token(token)
        else:
            logger.debug("[GitHub] Using unauthenticated access (rate limits apply)")
            auth = None
        return cls(Github(auth=auth, per_page=1, timeout=timeout))

    def _get_repo(self, owner: str, repo: str) -> "Repository":
        full_name = f"{owner}/{repo}"
        with self._repos_lock:
            gh_repo = self._repos.get(full_name)
            if gh_repo is None:
                gh_repo = self.github.get_repo(full_name, lazy=True)
                self._repos[full_name] = gh_repo
        return gh_repo

    def is_archived(self, owner: str, repo: str) -> bool:
        """Check if a repository is archived on GitHub."""
        try:
            gh_repo = self.github.get_repo(f"{owner}/{repo}")
            return bool(gh_repo.archived)
        except Exception as e:
            raise GitHubAPIError("is_archived", f"querying {owner}/{repo}: {e}") from e

    def branch_pr(self, owner: str, repo: str, branch: str) -> PRInfo:
        """Return the most recently updated PR whose head is owner:branch."""
        try:
            pulls = self._get_repo(owner, repo).get_pulls(
                state="all",
                head=f"{owner}:{branch}",
                sort="updated",
                direction="desc",
            )
            page = pulls.get_page(0)
        except Exception as e:
            raise GitHubAPIError(
                "branch_pr", f"querying PRs for {owner}/{repo} branch {branch}: {e}"
            ) from e

        if not page:
            return PRInfo(PRState.NONE)

        pr = page[0]
        if pr.state == "open":
            state = PRState.OPEN
        elif pr.merged_at is not None:
            state = PRState.MERGED
        else:
            state = PRState.CLOSED

        logger.debug(f"[GitHub] {owner}/{repo} branch {branch}: PR #{pr.number} {state.value}")
        return PRInfo(state=state, number=pr.number, head_sha=pr.head.sha, merged_at=pr.merged_at)

    def close(self) -> None:
        """Close the GitHub API connection to clean up resources."""
        try:
            self.github.close()
            logger.debug("[GitHub] Closed GitHub API connection")
        except Exception as e:
            logger.debug(f"[GitHub] Error closing GitHub API connection: {e}")
