"""Pytest fixtures for katazuke tests"""
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import git
import pytest

from katazuke.exceptions import GitHubAPIError, GitOperationError
from katazuke.models.branch import PRInfo, PRState

OLD_DATE = "2020-01-01T12:00:00+00:00"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_home(temp_dir, monkeypatch):
    """Keep config, metrics and quarantine out of the real home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    for name in (
        "KATAZUKE_PROJECTS_DIR",
        "KATAZUKE_STALE_THRESHOLD_DAYS",
        "KATAZUKE_GITHUB_TOKEN",
        "GITHUB_TOKEN",
        "GH_TOKEN",
        "KATAZUKE_SYNC_STRATEGY",
        "KATAZUKE_WORKERS",
        "KATAZUKE_SYNC_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def projects_dir(temp_dir):
    path = temp_dir / "projects"
    path.mkdir()
    return path


def configure_user(repo: git.Repo, email: str = "test@example.com") -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", email)


def commit_file(
    repo: git.Repo,
    name: str,
    content: Optional[str] = None,
    message: Optional[str] = None,
    date: Optional[str] = None,
    author: Optional[str] = None,
) -> str:
    """Write a file, commit it and return the new HEAD sha."""
    path = Path(repo.working_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content if content is not None else f"{name}\n")
    repo.git.add(name)

    args = ["-m", message or f"Add {name}"]
    if author:
        args.append(f"--author={author}")
    env = {"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date} if date else None
    repo.git.commit(*args, env=env)
    return repo.head.commit.hexsha


@pytest.fixture
def make_repo():
    """Factory for real repositories with an initial commit on main."""
    repos: List[git.Repo] = []

    def factory(path: Path, remote_url: Optional[str] = None) -> git.Repo:
        path.mkdir(parents=True, exist_ok=True)
        repo = git.Repo.init(path)
        repos.append(repo)
        configure_user(repo)
        commit_file(repo, "README.md", "# Test Repository\n", "Initial commit")
        repo.git.branch("-M", "main")
        if remote_url:
            repo.create_remote("origin", remote_url)
        return repo

    yield factory

    for repo in repos:
        repo.close()


@pytest.fixture
def git_repo(make_repo, projects_dir):
    """A repository with a fake GitHub remote and no reachable origin."""
    return make_repo(projects_dir / "test_repo", "git@github.com:test/test-repo.git")


@pytest.fixture
def make_clone(make_repo, temp_dir):
    """Factory for (clone, upstream) pairs sharing a bare origin.

    ``upstream`` is a second working copy used to push new commits to origin.
    """
    repos: List[git.Repo] = []

    def factory(clone_path: Path) -> Tuple[git.Repo, git.Repo]:
        name = clone_path.name
        bare_path = temp_dir / "remotes" / f"{name}.git"
        bare = git.Repo.init(bare_path, bare=True)
        repos.append(bare)

        upstream = make_repo(temp_dir / "upstream" / name, str(bare_path))
        upstream.git.push("-u", "origin", "main")
        bare.git.symbolic_ref("HEAD", "refs/heads/main")

        clone = git.Repo.clone_from(str(bare_path), str(clone_path))
        repos.append(clone)
        configure_user(clone)
        return clone, upstream

    yield factory

    for repo in repos:
        repo.close()


class FakeGitChecker:
    """In-memory GitChecker: merged lists per repo and remote URLs."""

    def __init__(self, merged: Optional[Dict[str, List[str]]] = None, remotes: Optional[Dict[str, str]] = None):
        self.merged = merged or {}
        self.remotes = remotes or {}

    def merged_branches(self, repo_path: str, base: str) -> List[str]:
        return list(self.merged.get(repo_path, []))

    def is_merged(self, repo_path: str, branch: str, base: str) -> bool:
        return branch in self.merged_branches(repo_path, base)

    def remote_url(self, repo_path: str, remote: str = "origin") -> str:
        if repo_path not in self.remotes:
            raise GitOperationError("remote get-url origin", message="error: No such remote 'origin'")
        return self.remotes[repo_path]


class FakePRChecker:
    """In-memory PRChecker keyed by branch name; unknown branches have no PR."""

    def __init__(self, prs: Optional[Dict[str, PRInfo]] = None, fail: bool = False):
        self.prs = prs or {}
        self.fail = fail
        self.calls: List[Tuple[str, str, str]] = []

    def branch_pr(self, owner: str, repo: str, branch: str) -> PRInfo:
        self.calls.append((owner, repo, branch))
        if self.fail:
            raise GitHubAPIError("branch_pr", "rate limit exceeded")
        return self.prs.get(branch, PRInfo(PRState.NONE))


class FakeArchiveChecker:
    def __init__(self, archived: Optional[Dict[str, bool]] = None, fail: bool = False):
        self.archived = archived or {}
        self.fail = fail

    def is_archived(self, owner: str, repo: str) -> bool:
        if self.fail:
            raise GitHubAPIError("is_archived", "Not Found")
        return self.archived.get(f"{owner}/{repo}", False)


class FakeUI:
    """Records output and answers prompts from canned responses."""

    def __init__(self, select=None, confirm: bool = False, choose: Optional[List[str]] = None):
        self.lines: List[str] = []
        self.select_calls = []
        self._select = select
        self._confirm = confirm
        self._choose = list(choose or [])
        self.questions: List[str] = []

    @property
    def output(self) -> str:
        return "\n".join(self.lines)

    def print(self, *args, **kwargs) -> None:
        self.lines.append(" ".join(str(a) for a in args))

    def progress(self, description: str):
        return _NoProgress()

    def select(self, title, options):
        self.select_calls.append((title, list(options)))
        if self._select is None:
            return [o.value for o in options if o.selected]
        return self._select(options)

    def confirm(self, question: str, default: bool = False) -> bool:
        self.questions.append(question)
        return self._confirm

    def choose(self, title, choices, default):
        self.questions.append(title)
        return self._choose.pop(0) if self._choose else default


class _NoProgress:
    def __enter__(self):
        return lambda completed, total: None

    def __exit__(self, exc_type, exc, tb):
        return None


@pytest.fixture
def fake_ui():
    return FakeUI()
