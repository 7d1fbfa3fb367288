"""Terminal interaction: printing, confirmations and selections."""

import sys
from typing import Any, Callable, List, Optional, Sequence

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, Prompt

from katazuke.logging_config import get_logger
from katazuke.ui.selection import Option, run_selection

logger = get_logger(__name__)


class ConsoleUI:
    """Everything the commands need from the terminal.

    When stdin is not a TTY the prompts answer for the user: nothing is
    selected, confirmations are declined and choices take their default.
    """

    def __init__(self, console: Optional[Console] = None, interactive: Optional[bool] = None):
        self.console = console or Console()
        self.interactive = sys.stdin.isatty() if interactive is None else interactive

    def print(self, *args, **kwargs) -> None:
        self.console.print(*args, **kwargs)

    def progress(self, description: str) -> "ProgressReporter":
        return ProgressReporter(self.console, description)

    def select(self, title: str, options: Sequence[Option]) -> List[Any]:
        """Multi-select; returns the values of the chosen options."""
        if not self.interactive:
            logger.debug(f"Non-interactive, selecting nothing for: {title}")
            return []
        return run_selection(title, options)

    def confirm(self, question: str, default: bool = False) -> bool:
        if not self.interactive:
            logger.debug(f"Non-interactive, declining: {question}")
            return False
        return Confirm.ask(question, default=default, console=self.console)

    def choose(self, title: str, choices: Sequence[str], default: str) -> str:
        """Single choice from a short list of keywords."""
        if not self.interactive:
            return default
        return Prompt.ask(title, choices=list(choices), default=default, console=self.console)


class ProgressReporter:
    """Transient progress bar driven by (completed, total) callbacks."""

    def __init__(self, console: Console, description: str):
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        )
        self._description = description
        self._task = None

    def __enter__(self) -> Callable[[int, int], None]:
        self._progress.start()
        self._task = self._progress.add_task(self._description, total=None)
        return self.update

    def __exit__(self, exc_type, exc, tb) -> None:
        self._progress.stop()

    def update(self, completed: int, total: int) -> None:
        self._progress.update(self._task, completed=completed, total=total)
