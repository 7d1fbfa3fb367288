"""Local usage metrics.

Events are appended as JSON lines to
``<data-home>/katazuke/metrics/events-YYYY-MM.jsonl``. Metrics never
interrupt a command: write failures are logged at debug level and dropped.
"""

import hashlib
import json
import os
import uuid
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, TextIO

from katazuke.config import data_home
from katazuke.constants import METRICS_SCHEMA_VERSION
from katazuke.logging_config import get_logger

logger = get_logger(__name__)

# Suggestion action types
DELETE_MERGED_BRANCH = "delete_merged_branch"
DELETE_STALE_BRANCH = "delete_stale_branch"
SWITCH_MERGED_BRANCH_REPO = "switch_merged_branch_repo"
DELETE_ARCHIVED_REPO = "delete_archived_repo"
REMOVE_NON_GIT_DIR = "remove_non_git_dir"


def default_metrics_dir() -> Path:
    return data_home() / "katazuke" / "metrics"


def fingerprint(*parts: str) -> str:
    """Stable SHA-256 over length-prefixed parts, so ("ab", "c") != ("a", "bc")."""
    digest = hashlib.sha256()
    for part in parts:
        digest.update(f"{len(part)}:{part}".encode("utf-8"))
    return digest.hexdigest()


class MetricsLogger:
    """Appends metrics events to a monthly JSONL file.

    The file is opened lazily on the first event and reopened when the
    month changes. Use as a context manager to release the file handle.
    """

    def __init__(self, directory: Optional[Path] = None, clock: Optional[Callable[[], datetime]] = None):
        self.directory = Path(directory) if directory else default_metrics_dir()
        self.session_id = str(uuid.uuid4())
        self._clock = clock or (lambda: datetime.now().astimezone())
        self._lock = Lock()
        self._file: Optional[TextIO] = None
        self._file_path: Optional[Path] = None
        self.directory.mkdir(mode=0o750, parents=True, exist_ok=True)

    def __enter__(self) -> "MetricsLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _open_file(self, now: datetime) -> TextIO:
        """Return the handle for this month's file, rotating if needed. Caller holds the lock."""
        wanted = self.directory / f"events-{now:%Y-%m}.jsonl"
        if self._file is not None and self._file_path == wanted:
            return self._file

        if self._file is not None:
            self._file.close()
            self._file = None
            self._file_path = None

        fd = os.open(wanted, os.O_APPEND | os.O_CREAT | os.O_WRONLY, 0o600)
        self._file = os.fdopen(fd, "a", encoding="utf-8")
        self._file_path = wanted
        return self._file

    def log(self, event: Dict[str, Any]) -> None:
        """Stamp and append a single event."""
        now = self._clock()
        record = {
            "schema_version": METRICS_SCHEMA_VERSION,
            "timestamp": now.isoformat(),
            "session_id": self.session_id,
            **event,
        }
        try:
            line = json.dumps(record) + "\n"
            with self._lock:
                handle = self._open_file(now)
                handle.write(line)
                handle.flush()
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Dropping metrics event: {e}")

    def log_command(self, name: str, flags: List[str]) -> None:
        self.log({"command": {"name": name, "flags": list(flags)}})

    def log_suggestion(self, action_type: str, item_fingerprint: str, accepted: bool, age_days: int) -> None:
        self.log(
            {
                "suggestion": {
                    "action_type": action_type,
                    "item_fingerprint": item_fingerprint,
                    "accepted": accepted,
                },
                "age_days": age_days,
            }
        )

    def log_perf(self, repos_scanned: int, scan_duration_ms: int) -> None:
        self.log({"perf": {"repos_scanned": repos_scanned, "scan_duration_ms": scan_duration_ms}})

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                try:
                    self._file.close()
                finally:
                    self._file = None
                    self._file_path = None


class NullMetricsLogger:
    """Drop-in logger used when metrics are unavailable. Every method is a no-op."""

    session_id = ""

    def __enter__(self) -> "NullMetricsLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        pass

    def log(self, event: Dict[str, Any]) -> None:
        pass

    def log_command(self, name: str, flags: List[str]) -> None:
        pass

    def log_suggestion(self, action_type: str, item_fingerprint: str, accepted: bool, age_days: int) -> None:
        pass

    def log_perf(self, repos_scanned: int, scan_duration_ms: int) -> None:
        pass

    def close(self) -> None:
        pass


def create_metrics_logger(directory: Optional[Path] = None):
    """Real logger when the metrics directory is usable, otherwise a no-op one."""
    try:
        return MetricsLogger(directory)
    except OSError as e:
        logger.debug(f"Metrics disabled: {e}")
        return NullMetricsLogger()
