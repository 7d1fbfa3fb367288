"""Utility functions for katazuke.

- parallel: bounded thread-pool map with results delivered on the calling thread
- threading: interpreter details for verbose diagnostics
"""

from .parallel import clamp_workers, run
from .threading import get_threading_info, gil_enabled

__all__ = ["clamp_workers", "gil_enabled", "get_threading_info", "run"]
