"""Modal prompts used while gathering parameters for an action."""

from __future__ import annotations

from typing import Optional

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from ccrun.core.catalog import MethodCatalog
from ccrun.core.dispatcher import Mode
from ccrun.core.errors import InvalidProcessCount
from ccrun.core.params import MAX_PROCESS_COUNT, MIN_PROCESS_COUNT, parse_process_count


class MethodPicker(ModalScreen[Optional[str]]):
    """Single choice from a method catalog."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, title: str, catalog: MethodCatalog) -> None:
        super().__init__()
        self.title_text = title
        self.catalog = catalog

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static(f"[b]{self.title_text}[/b]")
            menu = OptionList()
            for name in self.catalog.names():
                menu.add_option(Option(name, id=name))
            yield menu

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_id:
            self.dismiss(event.option_id)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ProcessCountPrompt(ModalScreen[Optional[int]]):
    """Free-text process count; re-prompts until the input parses."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, label: str, default: int) -> None:
        super().__init__()
        self.label = label
        self.default = default

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static(
                f"[b]{self.label}[/b] "
                f"[dim]({MIN_PROCESS_COUNT}-{MAX_PROCESS_COUNT})[/]"
            )
            yield Input(value=str(self.default), id="np")
            yield Static("", id="np-error")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        try:
            count = parse_process_count(event.value)
        except InvalidProcessCount as e:
            self.query_one("#np-error", Static).update(f"[red]{escape(str(e))}[/]")
            return
        self.dismiss(count)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ModePrompt(ModalScreen[Optional[Mode]]):
    """Monitored run in the log view, or copy the command for a shell."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, default: Mode = Mode.MONITORED) -> None:
        super().__init__()
        self.default = default

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static("[b]How should the command run?[/b]")
            menu = OptionList()
            menu.add_option(Option("Run here and show the log", id=Mode.MONITORED.value))
            menu.add_option(Option("Copy the command to run it myself", id=Mode.HANDOFF.value))
            yield menu

    def on_mount(self) -> None:
        menu = self.query_one(OptionList)
        menu.highlighted = 0 if self.default is Mode.MONITORED else 1

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_id:
            self.dismiss(Mode(event.option_id))

    def action_cancel(self) -> None:
        self.dismiss(None)
