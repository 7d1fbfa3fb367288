"""Shared constants for katazuke."""

from typing import Tuple


# Sync result tags printed per repository
SYNC_STATUS_TAGS = {
    "synced": "[green]\\[synced][/green]",
    "switched": "[cyan]\\[switched][/cyan]",
    "up_to_date": "[dim]\\[ok][/dim]",
    "skipped": "[yellow]\\[skip][/yellow]",
    "failed": "[red]\\[fail][/red]",
}


# Defaults
DEFAULT_STALE_THRESHOLD_DAYS = 30
DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (".archive", "vendor")
SYNC_STRATEGIES: Tuple[str, ...] = ("rebase", "merge", "ff-only")

# Name of the per-directory scanner index file
INDEX_FILE_NAME = ".katazuke"

# Branch name prefixes created by dependency bots and release tooling
AUTOMATION_PREFIXES: Tuple[str, ...] = ("dependabot/", "renovate/", "release-please--")

AUTO_STASH_MESSAGE = "katazuke: auto-stash before sync"
ARCHIVE_TAG_PREFIX = "archive/"
QUARANTINE_DIR_NAME = "katazuke-quarantine"

# Timeouts (seconds)
GIT_TIMEOUT = 300
GITHUB_TIMEOUT = 15

METRICS_SCHEMA_VERSION = 1
