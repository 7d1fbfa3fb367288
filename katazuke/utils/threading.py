"""Interpreter details reported by ``--verbose``."""

import os
import platform
import sys
from typing import Any, Dict, Optional


def gil_enabled() -> Optional[bool]:
    """Whether the GIL is on; None on interpreters built without the switch (< 3.13)."""
    check = getattr(sys, "_is_gil_enabled", None)
    if check is None:
        return None
    return bool(check())


def get_threading_info(workers: int) -> Dict[str, Any]:
    """Interpreter and worker pool details for the verbose startup log."""
    gil = gil_enabled()
    if gil is None:
        mode = "GIL-enabled (Python < 3.13)"
    else:
        mode = "GIL-enabled" if gil else "free-threading"

    return {
        "mode": mode,
        "free_threading": gil is False,
        "cpu_count": os.cpu_count() or 1,
        "workers": workers,
        "python_version": platform.python_version(),
    }
