"""Multi-select prompt built on textual."""

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, SelectionList
from textual.widgets.selection_list import Selection

T = TypeVar("T")


@dataclass
class Option(Generic[T]):
    """One selectable entry."""
    label: str
    value: T
    selected: bool = False


class SelectionApp(App[List[Any]]):
    """Full-screen checklist. Returns the chosen values, or [] when cancelled."""

    CSS = """
    SelectionList {
        height: 1fr;
        border: round $accent;
    }
    """

    BINDINGS = [
        Binding("enter", "confirm", "Confirm", priority=True),
        Binding("escape", "cancel", "Cancel"),
        Binding("q", "cancel", "Cancel", show=False),
        Binding("a", "select_all", "Select All"),
        Binding("n", "select_none", "Select None"),
    ]

    def __init__(self, title: str, options: Sequence[Option]):
        super().__init__()
        self.prompt_title = title
        self.options = list(options)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False, icon="")
        yield SelectionList[int](
            *(Selection(option.label, index, option.selected) for index, option in enumerate(self.options)),
            id="choices",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.title = self.prompt_title
        self.sub_title = "space to toggle, enter to confirm"
        self.query_one(SelectionList).focus()

    def _choices(self) -> SelectionList:
        return self.query_one("#choices", SelectionList)

    def action_confirm(self) -> None:
        selected = set(self._choices().selected)
        self.exit([option.value for index, option in enumerate(self.options) if index in selected])

    def action_cancel(self) -> None:
        self.exit([])

    def action_select_all(self) -> None:
        self._choices().select_all()

    def action_select_none(self) -> None:
        self._choices().deselect_all()


def run_selection(title: str, options: Sequence[Option]) -> List[Any]:
    """Show the checklist and block until the user confirms or cancels."""
    if not options:
        return []
    result: Optional[List[Any]] = SelectionApp(title, options).run()
    return result or []
