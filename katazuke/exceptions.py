"""Custom exceptions for katazuke"""

from typing import List, Optional


class KatazukeError(Exception):
    """Base exception for all katazuke errors."""
    pass


class ConfigError(KatazukeError):
    """Exception raised for invalid configuration or index files."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path

        error_msg = message
        if path:
            error_msg = f"{path}: {message}"

        super().__init__(error_msg)


class DiscoveryError(KatazukeError):
    """Exception raised when the projects tree cannot be walked."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message

        error_msg = f"Failed to scan '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class GitOperationError(KatazukeError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class GitHubAPIError(KatazukeError):
    """Exception raised for errors in GitHub API operations."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"GitHub API operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class DeletionError(KatazukeError):
    """Raised after a destructive batch in which some items failed."""

    def __init__(self, failed: List[str]):
        self.failed = failed
        noun = "item" if len(failed) == 1 else "items"
        super().__init__(f"{len(failed)} {noun} failed: {', '.join(failed)}")
