from __future__ import annotations

from typing import Any, Optional

from rich.markup import escape
from rich.text import Text
from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import RichLog, Static

from ccrun.core.diagnostics import Diagnostic, DiagnosticLog, LogLine
from ccrun.core.dispatcher import Dispatcher
from ccrun.views.updater import TaskBlock


class LogView(Screen[Any]):
    """Output of the current monitored run with diagnostic navigation."""

    BINDINGS = [
        ("q", "app.pop_screen", "Back"),
        ("n", "next_diagnostic", "Next error"),
        ("p", "previous_diagnostic", "Previous error"),
        ("c", "copy_command", "Copy command"),
        ("ctrl+k", "cancel_run", "Stop"),
    ]

    def __init__(self, dispatcher: Dispatcher) -> None:
        super().__init__()
        self.dispatcher = dispatcher
        self.block = TaskBlock()
        self.output = RichLog(highlight=False, markup=False, wrap=False, id="log")
        self.location = Static("", id="diag-location")

    @property
    def log_model(self) -> DiagnosticLog:
        return self.dispatcher.log

    def compose(self) -> ComposeResult:
        yield self.block
        yield self.output
        yield self.location

    def on_mount(self) -> None:
        self._replay()
        self.log_model.listeners.append(self._on_line)
        self.log_model.reset_listeners.append(self._on_reset)
        self.set_interval(0.1, self._tick)

    async def on_unmount(self) -> None:
        if self._on_line in self.log_model.listeners:
            self.log_model.listeners.remove(self._on_line)
        if self._on_reset in self.log_model.reset_listeners:
            self.log_model.reset_listeners.remove(self._on_reset)
        # Closing the log stops the run it shows.
        await self.action_cancel_run()

    def _replay(self) -> None:
        self.output.clear()
        self.block.title = escape(self.log_model.command)
        for line in self.log_model.lines:
            self._on_line(line)

    def _on_line(self, line: LogLine) -> None:
        self.output.write(Text(line.text, style="red" if line.is_stderr else ""))

    def _on_reset(self, command: str) -> None:
        self.output.clear()
        self.location.update("")
        self.block.title = escape(command)

    def _tick(self) -> None:
        task = self.dispatcher.current
        if task is None:
            self.block.status = "idle"
            return
        self.block.status = task.status
        self.block.elapsed = task.elapsed
        log = self.log_model
        self.block.tail = f"{log.errors} error(s), {log.warnings} warning(s)"

    def _show(self, diag: Optional[Diagnostic]) -> None:
        if diag is None:
            self.notify("no diagnostics in this run")
            return
        self.output.scroll_to(y=diag.log_index, animate=False)
        index = self.log_model.diagnostics.index(diag) + 1
        total = len(self.log_model.diagnostics)
        self.location.update(
            f"[{index}/{total}] [b]{escape(diag.location)}[/b] {diag.severity}: {escape(diag.message)}"
        )

    def action_next_diagnostic(self) -> None:
        self._show(self.log_model.next())

    def action_previous_diagnostic(self) -> None:
        self._show(self.log_model.previous())

    def action_copy_command(self) -> None:
        if self.log_model.command:
            self.dispatcher.handoff.write(self.log_model.command)
            self.notify("command copied")

    async def action_cancel_run(self) -> None:
        task = self.dispatcher.current
        if task is not None and task.status == "running":
            await task.cancel()
