"""Hand-off channels: places a command where the user can run it by hand.

Every channel keeps only the latest write; there is no history.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol

from rich.console import Console


if TYPE_CHECKING:
    from textual.app import App


class HandoffChannel(Protocol):
    def write(self, text: str) -> None: ...


class MemoryHandoff:
    """In-process channel, mostly for tests and embedding."""

    def __init__(self) -> None:
        self.content: Optional[str] = None
        self.writes = 0

    def write(self, text: str) -> None:
        self.content = text
        self.writes += 1


class ConsoleHandoff:
    """Prints the command on its own line so it can be copied or captured."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.content: Optional[str] = None

    def write(self, text: str) -> None:
        self.content = text
        self.console.print(text, markup=False)


class AppClipboardHandoff:
    """Copies the command to the terminal clipboard from a textual app."""

    def __init__(self, app: "App[Any]"):
        self.app = app
        self.content: Optional[str] = None

    def write(self, text: str) -> None:
        self.content = text
        self.app.copy_to_clipboard(text)
