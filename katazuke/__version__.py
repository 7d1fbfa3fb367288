"""Version information for katazuke."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("katazuke")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    __version__ = "0.0.0+unknown"

try:
    # Written by the release tooling
    from katazuke._build_info import BUILD_DATE, COMMIT
except ImportError:
    COMMIT = "none"
    BUILD_DATE = "unknown"


def version_string() -> str:
    return f"katazuke {__version__} (commit: {COMMIT}, built: {BUILD_DATE})"
