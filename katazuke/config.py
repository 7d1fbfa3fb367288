"""Configuration handling for katazuke"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from katazuke.constants import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_STALE_THRESHOLD_DAYS,
    SYNC_STRATEGIES,
)
from katazuke.exceptions import ConfigError
from katazuke.logging_config import get_logger

logger = get_logger(__name__)

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


def default_workers() -> int:
    """Default worker count: the CPU count, capped at 4."""
    return min(4, os.cpu_count() or 1)


def expand_home(path: str) -> str:
    """Replace a leading ``~/`` with the user's home directory."""
    if path.startswith("~/"):
        return str(Path.home() / path[2:])
    return path


def config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def data_home() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"


def config_path() -> Path:
    """Location of the user's config file."""
    return config_home() / "katazuke" / "config.yaml"


@dataclass
class SyncConfig:
    """Settings for the sync command."""

    strategy: str = "rebase"  # rebase, merge, ff-only
    skip_dirty: bool = False  # skip dirty repos without simulating the merge
    auto_stash: bool = True  # stash/pop around the pull for dirty repos
    switch_merged_branch: bool = True  # move repos off merged feature branches
    workers: int = 0  # deprecated, use Config.workers

    def __post_init__(self):
        self._validate_strategy()

    def _validate_strategy(self):
        """Validate strategy is one of allowed values."""
        if self.strategy not in SYNC_STRATEGIES:
            raise ConfigError(
                f"invalid sync strategy '{self.strategy}' (valid: {', '.join(SYNC_STRATEGIES)})"
            )

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "SyncConfig":
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


@dataclass
class Config:
    """Configuration for katazuke with validation."""

    projects_dir: str = field(default_factory=lambda: str(Path.home() / "projects"))
    stale_threshold_days: int = DEFAULT_STALE_THRESHOLD_DAYS
    github_token: Optional[str] = None
    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    workers: int = field(default_factory=default_workers)
    sync: SyncConfig = field(default_factory=SyncConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.sync, Mapping):
            self.sync = SyncConfig.from_dict(self.sync)
        self._validate_stale_threshold_days()
        self._validate_workers()
        self._validate_exclude_patterns()
        self.projects_dir = expand_home(str(self.projects_dir))

    def _validate_stale_threshold_days(self):
        """Validate stale_threshold_days is positive."""
        if not isinstance(self.stale_threshold_days, int) or self.stale_threshold_days <= 0:
            raise ConfigError(
                f"stale_threshold_days must be positive, got {self.stale_threshold_days}"
            )

    def _validate_workers(self):
        """Validate workers is positive."""
        if not isinstance(self.workers, int) or self.workers <= 0:
            raise ConfigError(f"workers must be positive, got {self.workers}")

    def _validate_exclude_patterns(self):
        """Validate exclude_patterns is a list of strings."""
        if not isinstance(self.exclude_patterns, list):
            raise ConfigError("exclude_patterns must be a list")
        self.exclude_patterns = [str(p) for p in self.exclude_patterns]

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary (token redacted)."""
        return {
            "projects_dir": self.projects_dir,
            "stale_threshold_days": self.stale_threshold_days,
            "github_token": "***" if self.github_token else None,
            "exclude_patterns": list(self.exclude_patterns),
            "workers": self.workers,
            "sync": {
                "strategy": self.sync.strategy,
                "skip_dirty": self.sync.skip_dirty,
                "auto_stash": self.sync.auto_stash,
                "switch_merged_branch": self.sync.switch_merged_branch,
            },
        }

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known_fields)
        if unknown:
            logger.debug(f"Ignoring unknown config keys: {', '.join(unknown)}")

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


def _parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def _parse_positive_int(value: str) -> Optional[int]:
    try:
        number = int(value.strip())
    except ValueError:
        return None
    return number if number > 0 else None


def _read_config_file(path: Path) -> Dict[str, Any]:
    """Read the YAML config file, returning an empty mapping when absent."""
    try:
        text = path.read_text()
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise ConfigError(f"reading config: {e}", str(path))

    if not text.strip():
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"parsing config: {e}", str(path))

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping", str(path))
    return data


def _apply_env(values: Dict[str, Any], sync: Dict[str, Any], env: Mapping[str, str]) -> None:
    if env.get("KATAZUKE_PROJECTS_DIR"):
        values["projects_dir"] = expand_home(env["KATAZUKE_PROJECTS_DIR"])

    days = _parse_positive_int(env.get("KATAZUKE_STALE_THRESHOLD_DAYS", ""))
    if days is not None:
        values["stale_threshold_days"] = days

    for name in ("KATAZUKE_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN"):
        token = env.get(name)
        if token and (name == "KATAZUKE_GITHUB_TOKEN" or not values.get("github_token")):
            values["github_token"] = token

    if env.get("KATAZUKE_SYNC_STRATEGY"):
        sync["strategy"] = env["KATAZUKE_SYNC_STRATEGY"]

    for key in ("skip_dirty", "auto_stash", "switch_merged_branch"):
        flag = _parse_bool(env.get(f"KATAZUKE_SYNC_{key.upper()}", ""))
        if flag is not None:
            sync[key] = flag

    # Deprecated alias, promoted to the top level
    workers = _parse_positive_int(env.get("KATAZUKE_SYNC_WORKERS", ""))
    if workers is not None:
        sync["workers"] = workers
        values["workers"] = workers

    workers = _parse_positive_int(env.get("KATAZUKE_WORKERS", ""))
    if workers is not None:
        values["workers"] = workers


def load_config(path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Config:
    """Load configuration layered as defaults < config file < environment.

    Args:
        path: Config file to read (defaults to the XDG location)
        env: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    path = path or config_path()
    env = os.environ if env is None else env

    values = _read_config_file(path)
    sync = values.get("sync") or {}
    if not isinstance(sync, dict):
        raise ConfigError("sync must be a mapping", str(path))
    sync = dict(sync)

    # Migrate deprecated sync.workers unless workers is set explicitly
    legacy_workers = sync.get("workers")
    if isinstance(legacy_workers, int) and legacy_workers > 0 and "workers" not in values:
        logger.debug("Promoting deprecated sync.workers to workers")
        values["workers"] = legacy_workers

    _apply_env(values, sync, env)
    values["sync"] = sync

    config = Config.from_dict(values)
    logger.debug(f"Loaded config from {path}: {config.to_dict()}")
    return config
