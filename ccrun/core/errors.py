"""Error taxonomy for command building and dispatch."""

from typing import Optional


class CcRunError(Exception):
    """Base class for all ccrun errors."""


class NoActiveFile(CcRunError):
    """Raised when no saved file is bound to the current action."""

    def __init__(self, message: str = "no active file (save the file first)"):
        super().__init__(message)


class UnknownMethod(CcRunError):
    """Raised when a method name is not in the catalog."""

    def __init__(self, name: str, known: Optional[list[str]] = None):
        self.name = name
        self.known = known or []
        message = f"unknown method '{name}'"
        if self.known:
            message += f" (valid: {', '.join(self.known)})"
        super().__init__(message)


class InvalidProcessCount(CcRunError):
    """Raised when a process count cannot be parsed or is missing."""

    def __init__(self, raw: object, reason: str = "not an integer"):
        self.raw = raw
        super().__init__(f"invalid process count {raw!r}: {reason}")


class TemplateMismatch(CcRunError):
    """Raised when a template's placeholders disagree with the substitution shape."""

    def __init__(self, method: str, expected: int, given: int):
        self.method = method
        self.expected = expected
        self.given = given
        super().__init__(
            f"template for '{method}' expects {expected} value(s), got {given}"
        )


class ToolNotFound(CcRunError):
    """Raised when a monitored run exits with the command-not-found status."""

    def __init__(self, command: str, exit_code: int):
        self.command = command
        self.exit_code = exit_code
        super().__init__(
            f"command not found (exit code {exit_code}); "
            "is the toolchain on the shell PATH?"
        )
