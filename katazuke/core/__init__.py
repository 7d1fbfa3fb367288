"""Command orchestration: each module drives one subcommand."""

from .audit import AuditCommand
from .branches import BranchesCommand
from .context import CommandContext
from .repos import ReposCommand
from .sync import run_sync

__all__ = ["AuditCommand", "BranchesCommand", "CommandContext", "ReposCommand", "run_sync"]
