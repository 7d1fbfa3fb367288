"""Terminal user interface for katazuke."""

from .console import ConsoleUI, ProgressReporter
from .selection import Option, SelectionApp, run_selection

__all__ = ["ConsoleUI", "Option", "ProgressReporter", "SelectionApp", "run_selection"]
