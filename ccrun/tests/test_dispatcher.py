"""Tests for monitored and hand-off dispatch.

Monitored runs use a real ``/bin/sh`` with the inherited environment.
"""

import asyncio
from pathlib import Path

import pytest

from ccrun.core.dispatcher import (
    TOOL_NOT_FOUND_EXIT_CODE,
    Dispatcher,
    Mode,
    check_exit_code,
)
from ccrun.core.environment import ShellEnvironment
from ccrun.core.errors import ToolNotFound
from ccrun.core.handoff import MemoryHandoff


@pytest.fixture
def handoff() -> MemoryHandoff:
    return MemoryHandoff()


@pytest.fixture
def dispatcher(handoff: MemoryHandoff) -> Dispatcher:
    return Dispatcher(handoff=handoff, environment=ShellEnvironment("/bin/sh", "inherit"))


class TestHandoff:
    def test_command_written_verbatim(self, dispatcher, handoff):
        command = "mpiport -np 4 code.c && mpicc -DNUM_PROCS=4 -x c _code -o code"
        outcome = asyncio.run(dispatcher.dispatch(command, Mode.HANDOFF))
        assert handoff.content == command
        assert outcome.exit_code is None
        assert outcome.handed_off
        assert outcome.succeeded

    def test_nothing_executes(self, dispatcher, handoff, tmp_path: Path, monkeypatch):
        async def no_subprocess(*args, **kwargs):
            raise AssertionError("hand-off must not spawn a process")

        monkeypatch.setattr(asyncio, "create_subprocess_exec", no_subprocess)
        marker = tmp_path / "ran"
        command = f"touch {marker}"
        asyncio.run(dispatcher.dispatch(command, "handoff"))
        assert not marker.exists()
        assert handoff.content == command
        assert dispatcher.log.lines == []

    def test_channel_keeps_only_latest(self, dispatcher, handoff):
        asyncio.run(dispatcher.dispatch("make a", Mode.HANDOFF))
        asyncio.run(dispatcher.dispatch("make b", Mode.HANDOFF))
        assert handoff.content == "make b"
        assert handoff.writes == 2


class TestMonitored:
    def test_success_streams_output(self, dispatcher, handoff, tmp_path: Path):
        outcome = asyncio.run(
            dispatcher.dispatch("echo hello; echo oops >&2", Mode.MONITORED, cwd=tmp_path)
        )
        assert outcome.exit_code == 0
        assert outcome.succeeded
        texts = [(line.text, line.is_stderr) for line in dispatcher.log.lines]
        assert ("hello", False) in texts
        assert ("oops", True) in texts
        assert handoff.content is None

    def test_runs_in_working_directory(self, dispatcher, tmp_path: Path):
        asyncio.run(dispatcher.dispatch("touch here", cwd=tmp_path))
        assert (tmp_path / "here").exists()

    def test_tool_not_found_recovers_with_handoff(self, dispatcher, handoff):
        command = "definitely-not-a-real-tool-ccrun --version"
        outcome = asyncio.run(dispatcher.dispatch(command, Mode.MONITORED))
        assert outcome.exit_code == TOOL_NOT_FOUND_EXIT_CODE
        assert outcome.recovery_command == command
        assert handoff.content == command
        assert outcome.handed_off
        assert not outcome.succeeded

    def test_explicit_127_recovers(self, dispatcher, handoff):
        outcome = asyncio.run(dispatcher.dispatch("exit 127"))
        assert outcome.recovery_command == "exit 127"
        assert handoff.content == "exit 127"

    @pytest.mark.parametrize("code", [1, 2, 126, 128])
    def test_other_failures_leave_channel_untouched(self, dispatcher, handoff, code):
        outcome = asyncio.run(dispatcher.dispatch(f"exit {code}"))
        assert outcome.exit_code == code
        assert outcome.recovery_command is None
        assert handoff.content is None
        assert "see the log" in outcome.message

    def test_diagnostics_collected(self, dispatcher):
        command = "echo \"code.c:3:1: error: expected ';'\" >&2; exit 1"
        asyncio.run(dispatcher.dispatch(command))
        assert dispatcher.log.errors == 1
        assert dispatcher.log.next().location == "code.c:3:1"

    def test_rerun_replaces_log(self, dispatcher):
        asyncio.run(dispatcher.dispatch("echo first"))
        asyncio.run(dispatcher.dispatch("echo second"))
        assert [line.text for line in dispatcher.log.lines] == ["second"]
        assert dispatcher.log.command == "echo second"

    def test_missing_shell_fails_the_run(self, handoff):
        dispatcher = Dispatcher(
            handoff=handoff,
            environment=ShellEnvironment("/nonexistent/sh", "inherit"),
        )
        outcome = asyncio.run(dispatcher.dispatch("echo hi"))
        assert outcome.exit_code is None
        assert not outcome.succeeded
        assert "could not start /nonexistent/sh" in outcome.message
        assert dispatcher.current.status == "failed"
        assert dispatcher.current.end_ts is not None
        assert not dispatcher.busy
        assert handoff.content is None
        assert dispatcher.log.lines[-1].is_stderr


class TestSingleWriter:
    def test_second_dispatch_waits(self, dispatcher):
        seen: list[str] = []
        dispatcher.log.listeners.append(lambda line: seen.append(line.text))
        dispatcher.log.reset_listeners.append(lambda command: seen.append("--"))

        async def both():
            first = asyncio.create_task(
                dispatcher.dispatch("echo a; sleep 0.3; echo b")
            )
            await asyncio.sleep(0.05)
            second = asyncio.create_task(dispatcher.dispatch("echo c"))
            return await asyncio.gather(first, second)

        first, second = asyncio.run(both())
        assert first.exit_code == 0
        assert second.exit_code == 0
        assert seen == ["--", "a", "b", "--", "c"]

    @pytest.mark.slow
    def test_replace_cancels_active_run(self, dispatcher):
        async def both():
            first = asyncio.create_task(dispatcher.dispatch("exec sleep 30"))
            await asyncio.sleep(0.3)
            second = await dispatcher.dispatch("echo done", replace=True)
            return await first, second

        first, second = asyncio.run(asyncio.wait_for(both(), timeout=15))
        assert first.message == "run canceled"
        assert first.exit_code is None
        assert second.exit_code == 0
        assert [line.text for line in dispatcher.log.lines] == ["done"]


def test_check_exit_code():
    check_exit_code("make", 0)
    check_exit_code("make", 2)
    with pytest.raises(ToolNotFound) as exc:
        check_exit_code("mpicc x.c", 127)
    assert exc.value.command == "mpicc x.c"
