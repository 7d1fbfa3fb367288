"""Shared state for a single katazuke invocation."""

import time
from dataclasses import dataclass, field
from typing import List, Optional, Union

from rich.markup import escape

from katazuke.config import Config
from katazuke.exceptions import GitOperationError
from katazuke.logging_config import get_logger
from katazuke.services.git.github import GitHubClient
from katazuke.services.git.merge_detector import MergeDetector
from katazuke.services.git.operations import GitOperations
from katazuke.services.metrics_service import MetricsLogger, NullMetricsLogger, fingerprint
from katazuke.services.scanner import Scanner
from katazuke.ui.console import ConsoleUI

logger = get_logger(__name__)


@dataclass
class CommandContext:
    """Configuration, collaborators and global flags for one command."""

    config: Config
    ui: ConsoleUI
    projects_dir: str
    dry_run: bool = False
    verbose: bool = False
    git: GitOperations = field(default_factory=GitOperations)
    metrics: Union[MetricsLogger, NullMetricsLogger] = field(default_factory=NullMetricsLogger)
    github: Optional[GitHubClient] = None

    @property
    def workers(self) -> int:
        return self.config.workers

    def global_flags(self) -> List[str]:
        flags = []
        if self.dry_run:
            flags.append("--dry-run")
        if self.verbose:
            flags.append("--verbose")
        return flags

    def github_client(self) -> GitHubClient:
        """GitHub client, created on first use."""
        if self.github is None:
            self.github = GitHubClient.create(self.config.github_token)
        return self.github

    def merge_detector(self) -> MergeDetector:
        return MergeDetector(self.git, self.github_client())

    def scan_repos(self) -> List[str]:
        """Discover repositories under the projects directory.

        Raises:
            DiscoveryError: If the projects directory cannot be read
            ConfigError: If an index file is invalid
        """
        self.ui.print(f"Scanning {escape(self.projects_dir)} for repositories...")
        scanner = Scanner(self.config.exclude_patterns, is_repo=self.git.is_repo)
        repos = scanner.scan(self.projects_dir)
        logger.debug(f"Found {len(repos)} repositories")
        return repos

    def remote_or_path(self, repo_path: str) -> str:
        try:
            return self.git.remote_url(repo_path) or repo_path
        except GitOperationError:
            return repo_path

    def branch_fingerprint(self, repo_path: str, branch: str) -> str:
        return fingerprint(self.remote_or_path(repo_path), branch)

    def repo_fingerprint(self, repo_path: str) -> str:
        return fingerprint(self.remote_or_path(repo_path))

    def close(self) -> None:
        self.metrics.close()
        if self.github is not None:
            self.github.close()


class Timer:
    """Milliseconds elapsed since construction."""

    def __init__(self):
        self._start = time.monotonic()

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)
