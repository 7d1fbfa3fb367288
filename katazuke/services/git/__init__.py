"""Git-related services for katazuke."""

from .operations import GitOperations
from .github import GitHubClient, parse_github_remote
from .merge_detector import MergeDetector

__all__ = [
    "GitOperations",
    "GitHubClient",
    "MergeDetector",
    "parse_github_remote",
]
