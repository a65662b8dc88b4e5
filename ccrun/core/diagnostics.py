"""Persistent log of the current monitored run with diagnostic navigation.

Lines are appended as the process streams them. Compiler diagnostics in the
usual ``file:line[:col]: severity: message`` form are indexed so the user can
step between them after the run without running the command again.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional


DIAGNOSTIC_RE = re.compile(
    r"^(?P<file>[^\s:][^:]*):(?P<line>\d+):(?:(?P<column>\d+):)?\s*"
    r"(?P<severity>fatal error|error|warning|note):\s*(?P<message>.*)$"
)


@dataclass(frozen=True)
class Diagnostic:
    file: str
    line: int
    column: Optional[int]
    severity: str
    message: str
    log_index: int

    @property
    def is_error(self) -> bool:
        return self.severity in ("error", "fatal error")

    @property
    def location(self) -> str:
        if self.column is None:
            return f"{self.file}:{self.line}"
        return f"{self.file}:{self.line}:{self.column}"


def parse_diagnostic(text: str, log_index: int = 0) -> Optional[Diagnostic]:
    m = DIAGNOSTIC_RE.match(text)
    if not m:
        return None
    column = m.group("column")
    return Diagnostic(
        file=m.group("file"),
        line=int(m.group("line")),
        column=int(column) if column else None,
        severity=m.group("severity"),
        message=m.group("message").strip(),
        log_index=log_index,
    )


@dataclass
class LogLine:
    text: str
    is_stderr: bool = False


@dataclass
class DiagnosticLog:
    """Single-writer log view; ``reset`` replaces the previous run."""

    command: str = ""
    lines: List[LogLine] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    listeners: List[Callable[[LogLine], None]] = field(default_factory=list)
    reset_listeners: List[Callable[[str], None]] = field(default_factory=list)
    _cursor: int = -1

    def reset(self, command: str) -> None:
        self.command = command
        self.lines.clear()
        self.diagnostics.clear()
        self._cursor = -1
        for listener in self.reset_listeners:
            listener(command)

    def append(self, text: str, is_stderr: bool = False) -> None:
        entry = LogLine(text, is_stderr)
        self.lines.append(entry)
        diag = parse_diagnostic(text, len(self.lines) - 1)
        if diag is not None:
            self.diagnostics.append(diag)
        for listener in self.listeners:
            listener(entry)

    @property
    def errors(self) -> int:
        return sum(1 for d in self.diagnostics if d.is_error)

    @property
    def warnings(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == "warning")

    @property
    def current(self) -> Optional[Diagnostic]:
        if 0 <= self._cursor < len(self.diagnostics):
            return self.diagnostics[self._cursor]
        return None

    def next(self) -> Optional[Diagnostic]:
        """Move to the next diagnostic, wrapping to the first."""
        if not self.diagnostics:
            return None
        self._cursor = (self._cursor + 1) % len(self.diagnostics)
        return self.diagnostics[self._cursor]

    def previous(self) -> Optional[Diagnostic]:
        """Move to the previous diagnostic, wrapping to the last."""
        if not self.diagnostics:
            return None
        if self._cursor <= 0:
            self._cursor = len(self.diagnostics) - 1
        else:
            self._cursor -= 1
        return self.diagnostics[self._cursor]

    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)
