"""Audit of top-level directories that are not git checkouts."""

import os
import shutil
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from katazuke.constants import QUARANTINE_DIR_NAME
from katazuke.logging_config import get_logger
from katazuke.models.repo import NonRepoDir
from katazuke.services.git.operations import GitOperations
from katazuke.services.scanner import is_excluded, list_child_dirs, load_index
from katazuke.utils import parallel

logger = get_logger(__name__)

NO_EXTENSION = "(no ext)"
SUMMARY_TOP_N = 3


def default_quarantine_path() -> Path:
    return Path.home() / QUARANTINE_DIR_NAME


def build_summary(ext_counts: Counter) -> str:
    """Top extensions by count, ties broken by name, remainder as "N others"."""
    if not ext_counts:
        return "empty"

    ranked = sorted(ext_counts.items(), key=lambda item: (-item[1], item[0]))
    parts = [f"{count} {ext}" for ext, count in ranked[:SUMMARY_TOP_N]]
    others = sum(count for _, count in ranked[SUMMARY_TOP_N:])
    if others:
        parts.append(f"{others} others")
    return ", ".join(parts)


def inspect_dir(path: str) -> NonRepoDir:
    """Walk path collecting size, file count, newest mtime and extension mix.

    Unreadable entries are skipped.
    """
    total_size = 0
    file_count = 0
    last_modified: Optional[float] = None
    ext_counts: Counter = Counter()

    for dirpath, _dirnames, filenames in os.walk(path, onerror=lambda e: logger.debug(f"Skipping: {e}")):
        for filename in filenames:
            file_count += 1
            try:
                stat = os.lstat(os.path.join(dirpath, filename))
            except OSError as e:
                logger.debug(f"Could not stat {filename}: {e}")
                continue
            total_size += stat.st_size
            if last_modified is None or stat.st_mtime > last_modified:
                last_modified = stat.st_mtime

            ext = os.path.splitext(filename)[1].lower()
            ext_counts[ext or NO_EXTENSION] += 1

    return NonRepoDir(
        path=path,
        name=os.path.basename(path),
        size=total_size,
        file_count=file_count,
        last_modified=(
            datetime.fromtimestamp(last_modified, tz=timezone.utc) if last_modified is not None else None
        ),
        summary=build_summary(ext_counts),
    )


class AuditService:
    """Finds and disposes of non-repository directories in the projects root."""

    def __init__(self, is_repo: Optional[Callable[[str], bool]] = None):
        self.is_repo = is_repo or GitOperations().is_repo

    def list_candidates(self, root: str, exclude_patterns: Iterable[str]) -> List[str]:
        """Top-level child directories, honouring the root index and excludes.

        Raises:
            ConfigError: If the root index file is invalid
            DiscoveryError: If root cannot be read
        """
        index, has_index = load_index(root)
        skip = set(index.groups) | set(index.ignores) if has_index else set()
        patterns = list(exclude_patterns)
        return [
            entry.path
            for entry in list_child_dirs(root)
            if entry.name not in skip and not is_excluded(entry.name, patterns)
        ]

    def find_non_repo_dirs(self, root: str, exclude_patterns: Iterable[str], workers: int) -> List[NonRepoDir]:
        non_repos = [path for path in self.list_candidates(root, exclude_patterns) if not self.is_repo(path)]
        found = parallel.run(non_repos, workers, inspect_dir)
        return sorted(found, key=lambda d: d.name)

    def remove(self, directory: NonRepoDir) -> None:
        logger.debug(f"Removing {directory.path}")
        shutil.rmtree(directory.path)

    def quarantine(self, directory: NonRepoDir, quarantine_dir: Optional[Path] = None) -> Path:
        """Move directory under the quarantine directory and return its new path."""
        quarantine_dir = quarantine_dir or default_quarantine_path()
        quarantine_dir.mkdir(mode=0o750, parents=True, exist_ok=True)
        dest = quarantine_dir / directory.name
        if dest.exists():
            raise FileExistsError(f"{dest} already exists")
        logger.debug(f"Moving {directory.path} to {dest}")
        shutil.move(directory.path, str(dest))
        return dest
