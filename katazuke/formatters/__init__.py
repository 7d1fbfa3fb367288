"""Formatting utilities for katazuke.

This package provides formatting functions for terminal output,
organized into logical modules:
- date: Date and age formatting
- size: Byte size formatting
- branch: Branch labels and annotations
- status: Sync result formatting
"""

# Date formatters
from .date import age_days, format_age, format_date

# Size formatters
from .size import format_size

# Branch formatters
from .branch import (
    MAX_SUBJECT_SUMMARY_LEN,
    TIER_TITLES,
    format_merged_option,
    format_stale_notes,
    format_stale_option,
    truncate,
)

# Status formatters
from .status import format_sync_result, format_sync_summary

__all__ = [
    # Date
    "age_days",
    "format_age",
    "format_date",
    # Size
    "format_size",
    # Branch
    "MAX_SUBJECT_SUMMARY_LEN",
    "TIER_TITLES",
    "format_merged_option",
    "format_stale_notes",
    "format_stale_option",
    "truncate",
    # Status
    "format_sync_result",
    "format_sync_summary",
]
