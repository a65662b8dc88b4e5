from __future__ import annotations

import asyncio
from asyncio.subprocess import PIPE
from typing import AsyncIterator, Callable, Dict, Optional

from ccrun.core.task import TaskState


LineCallback = Callable[[str, bool], None]


async def _read_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    while not stream.at_eof():
        line = await stream.readline()
        if not line:
            break
        yield line.decode(errors="replace").rstrip("\r\n")


async def run_task(
    task: TaskState,
    *,
    env: Optional[Dict[str, str]] = None,
    on_line: Optional[LineCallback] = None,
) -> TaskState:
    """Run a task to completion, streaming each output line to ``on_line``.

    The callback receives the line and whether it came from stderr. There is
    no timeout; a hung process is only stopped by cancelling the task.
    """
    task.mark_running()
    try:
        proc = await asyncio.create_subprocess_exec(
            *task.argv, cwd=task.cwd, env=env, stdout=PIPE, stderr=PIPE
        )
    except OSError:
        task.mark_failed()
        raise
    task.process = proc  # Store process handle for cancellation

    async def pump(reader: asyncio.StreamReader, is_stderr: bool) -> None:
        async for line in _read_lines(reader):
            task.last_line = line
            if on_line is not None:
                on_line(line, is_stderr)

    try:
        await asyncio.gather(pump(proc.stdout, False), pump(proc.stderr, True))  # type: ignore
        rc = await proc.wait()
        if task.status == "running":
            task.mark_done(rc)
        else:
            task.returncode = rc
    except asyncio.CancelledError:
        # Task was cancelled - terminate the subprocess
        await task.cancel()
        raise
    return task
