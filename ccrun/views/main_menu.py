from __future__ import annotations

from typing import TYPE_CHECKING, Any

from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option


if TYPE_CHECKING:
    from ccrun.app import CcRunApp


class MainMenu(Screen[Any]):
    BINDINGS = [
        ("q", "app.quit", "Quit"),
        ("1", "build", "Build"),
        ("2", "run", "Run"),
        ("3", "compile_and_run", "Compile and run"),
        ("4", "log", "Show last log"),
    ]

    if TYPE_CHECKING:

        @property
        def app(self) -> CcRunApp:
            """Type hint for app property."""
            ...

    def compose(self) -> ComposeResult:
        yield Static("[b]CCRUN[/b]", id="title")
        yield Static(self.app.active_file_label(), id="active-file")
        menu = OptionList()
        menu.add_option(Option("Build", id="build"))
        menu.add_option(Option("Run", id="run"))
        menu.add_option(Option("Compile and run", id="compile_and_run"))
        menu.add_option(Option("Show last log", id="log"))
        yield menu

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_id:
            self._route(event.option_id)

    def action_build(self) -> None:
        self._route("build")

    def action_run(self) -> None:
        self._route("run")

    def action_compile_and_run(self) -> None:
        self._route("compile_and_run")

    def action_log(self) -> None:
        self._route("log")

    def _route(self, key: str) -> None:
        match key:
            case "build":
                self.app.start_build()
            case "run":
                self.app.start_run()
            case "compile_and_run":
                self.app.start_compile_and_run()
            case "log":
                self.app.show_log()
            case _:
                pass  # Ignore unknown keys
