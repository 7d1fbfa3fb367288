"""Repository discovery under the projects directory.

A directory may contain a ``.katazuke`` index file::

    groups:
      - work
      - oss
    ignores:
      - scratch

Groups are directories of repositories and are scanned recursively. Ignored
names are never scanned or reported. Without an index, every immediate
child directory that is a git checkout is reported.
"""

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set, Tuple

import yaml

from katazuke.constants import INDEX_FILE_NAME
from katazuke.exceptions import ConfigError, DiscoveryError
from katazuke.logging_config import get_logger
from katazuke.services.git.operations import GitOperations

logger = get_logger(__name__)

_INDEX_KEYS = {"groups", "ignores"}


@dataclass
class IndexFile:
    groups: List[str] = field(default_factory=list)
    ignores: List[str] = field(default_factory=list)


def is_excluded(name: str, patterns: Iterable[str]) -> bool:
    """Return True if name matches any of the shell glob patterns."""
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def _string_list(value, key: str, path: Path) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list", str(path))
    return [str(item) for item in value]


def load_index(directory: str) -> Tuple[Optional[IndexFile], bool]:
    """Load and validate the index file in directory.

    Returns:
        (index, exists). An empty file is a valid, empty index.

    Raises:
        ConfigError: If the file is not valid YAML or has keys other than
            ``groups`` and ``ignores``
    """
    path = Path(directory) / INDEX_FILE_NAME
    try:
        text = path.read_text()
    except FileNotFoundError:
        return None, False
    except OSError as e:
        raise ConfigError(f"reading index: {e}", str(path))

    if not text.strip():
        return IndexFile(), True

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"parsing index: {e}", str(path))

    if raw is None:
        return IndexFile(), True
    if not isinstance(raw, dict):
        raise ConfigError("index must be a mapping", str(path))

    for key in raw:
        if key not in _INDEX_KEYS:
            raise ConfigError(
                f"unknown field '{key}' (only 'groups' and 'ignores' are allowed)", str(path)
            )

    return IndexFile(
        groups=_string_list(raw.get("groups"), "groups", path),
        ignores=_string_list(raw.get("ignores"), "ignores", path),
    ), True


def list_child_dirs(directory: str) -> List[os.DirEntry]:
    """Non-hidden child directories, sorted by name."""
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise DiscoveryError(directory, str(e))

    children = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if not entry.is_dir():
                continue
        except OSError as e:
            logger.debug(f"Skipping {entry.path}: {e}")
            continue
        children.append(entry)
    return children


class Scanner:
    """Walks the projects tree and collects git checkouts."""

    def __init__(
        self,
        exclude_patterns: Optional[Iterable[str]] = None,
        is_repo: Optional[Callable[[str], bool]] = None,
    ):
        self.exclude_patterns = list(exclude_patterns or [])
        self.is_repo = is_repo or GitOperations().is_repo

    def scan(self, root: str) -> List[str]:
        """Return repository paths under root, in walk order.

        Raises:
            DiscoveryError: If a directory cannot be read
            ConfigError: If an index file is invalid
        """
        repos: List[str] = []
        self._scan(root, set(), repos)
        logger.debug(f"Discovered {len(repos)} repositories under {root}")
        return repos

    def _scan(self, directory: str, visited: Set[str], repos: List[str]) -> None:
        try:
            resolved = os.path.realpath(directory, strict=True)
        except OSError as e:
            raise DiscoveryError(directory, f"resolving path: {e}")
        if resolved in visited:
            logger.debug(f"Already visited {resolved}, skipping")
            return
        visited.add(resolved)

        index, has_index = load_index(directory)
        skip: Set[str] = set()

        if has_index:
            ignores = set(index.ignores)
            for group in index.groups:
                if group in ignores or group.startswith("."):
                    continue
                group_path = os.path.join(directory, group)
                if not os.path.isdir(group_path):
                    logger.debug(f"Group {group_path} is missing or not a directory, skipping")
                    continue
                self._scan(group_path, visited, repos)
            skip = ignores | set(index.groups)

        for entry in list_child_dirs(directory):
            if entry.name in skip or is_excluded(entry.name, self.exclude_patterns):
                continue
            if self.is_repo(entry.path):
                repos.append(entry.path)


def scan(root: str, exclude_patterns: Optional[Iterable[str]] = None) -> List[str]:
    """Discover repositories under root using the real git adapter."""
    return Scanner(exclude_patterns).scan(root)
