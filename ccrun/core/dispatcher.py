"""Executes built commands, monitored or handed off to the user.

Monitored runs stream into one shared ``DiagnosticLog``. Only one monitored
run owns the log at a time: a second dispatch waits for the first, or cancels
it when ``replace`` is set. Exit code 127 from a monitored run means the shell
could not find a tool; the same command is then handed off so the user can
retry it in a shell where the toolchain is on PATH.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ccrun.core.diagnostics import DiagnosticLog
from ccrun.core.environment import ShellEnvironment
from ccrun.core.errors import ToolNotFound
from ccrun.core.handoff import HandoffChannel
from ccrun.core.runner import run_task
from ccrun.core.task import TaskState


logger = logging.getLogger(__name__)

TOOL_NOT_FOUND_EXIT_CODE = 127


class Mode(Enum):
    MONITORED = "monitored"
    HANDOFF = "handoff"


@dataclass
class ExecutionOutcome:
    mode: Mode
    command: str
    exit_code: Optional[int] = None
    recovery_command: Optional[str] = None
    message: str = ""

    @property
    def handed_off(self) -> bool:
        return self.mode is Mode.HANDOFF or self.recovery_command is not None

    @property
    def succeeded(self) -> bool:
        if self.mode is Mode.HANDOFF:
            return True
        return self.exit_code == 0


def check_exit_code(command: str, exit_code: int) -> None:
    """Raise ToolNotFound for the command-not-found status, nothing otherwise."""
    if exit_code == TOOL_NOT_FOUND_EXIT_CODE:
        raise ToolNotFound(command, exit_code)


class Dispatcher:
    def __init__(
        self,
        handoff: HandoffChannel,
        environment: Optional[ShellEnvironment] = None,
        log: Optional[DiagnosticLog] = None,
    ):
        self.handoff = handoff
        self.environment = environment or ShellEnvironment()
        self.log = log or DiagnosticLog()
        self.current: Optional[TaskState] = None
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def dispatch(
        self,
        command: str,
        mode: Union[Mode, str] = Mode.MONITORED,
        *,
        cwd: Optional[Path] = None,
        replace: bool = False,
    ) -> ExecutionOutcome:
        mode = Mode(mode)
        if mode is Mode.HANDOFF:
            return self._hand_off(command)

        try:
            return await self._run_monitored(command, cwd=cwd, replace=replace)
        except ToolNotFound as e:
            logger.warning("%s", e)
            self.handoff.write(command)
            return ExecutionOutcome(
                mode=mode,
                command=command,
                exit_code=e.exit_code,
                recovery_command=command,
                message=f"{e}. The command was copied so you can run it in your own shell.",
            )

    def _hand_off(self, command: str) -> ExecutionOutcome:
        self.handoff.write(command)
        logger.info("handed off: %s", command)
        return ExecutionOutcome(
            mode=Mode.HANDOFF,
            command=command,
            message="command copied for manual execution",
        )

    async def _run_monitored(
        self, command: str, *, cwd: Optional[Path], replace: bool
    ) -> ExecutionOutcome:
        if replace and self.current is not None and self.current.active:
            logger.info("replacing active run: %s", self.current.command)
            await self.current.cancel()

        async with self._lock:
            task = TaskState(
                name=command.split(" ", 1)[0],
                command=command,
                argv=self.environment.wrap(command),
                cwd=str(cwd) if cwd else None,
            )
            self.current = task
            self.log.reset(command)
            logger.debug("running %s", task.argv)
            try:
                await run_task(task, env=self.environment.env(), on_line=self.log.append)
            except OSError as e:
                message = f"could not start {task.argv[0]}: {e.strerror or e}"
                logger.error("%s", message)
                self.log.append(message, is_stderr=True)
                return ExecutionOutcome(
                    mode=Mode.MONITORED, command=command, message=message
                )

        if task.status == "canceled" or task.returncode is None:
            return ExecutionOutcome(
                mode=Mode.MONITORED, command=command, message="run canceled"
            )

        check_exit_code(command, task.returncode)
        if task.returncode == 0:
            message = "finished"
        else:
            message = f"failed with exit code {task.returncode}, see the log"
        logger.info("%s: %s", command, message)
        return ExecutionOutcome(
            mode=Mode.MONITORED,
            command=command,
            exit_code=task.returncode,
            message=message,
        )
