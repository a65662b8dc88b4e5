"""Tests for the non-interactive command line."""

import asyncio
from pathlib import Path

import pytest

from ccrun.app import main, parse_args, run_non_interactive
from ccrun.core.config import Config


def _run(argv: list[str], config: Config = Config(env_strategy="inherit", shell="/bin/sh")) -> int:
    return asyncio.run(run_non_interactive(parse_args(argv), config))


class TestHandoffCli:
    def test_build_prints_command(self, source_file: Path, capsys):
        rc = _run([str(source_file), "--build", "MPI Manual", "-n", "4", "--handoff"])
        assert rc == 0
        assert "mpicc -DNUM_PROCS=4 code.c -o code" in capsys.readouterr().out

    def test_compile_and_run(self, source_file: Path, capsys):
        rc = _run(
            [
                str(source_file),
                "--build",
                "MPI Manual",
                "--run",
                "MPI",
                "-n",
                "4",
                "--run-np",
                "2",
                "--handoff",
            ]
        )
        assert rc == 0
        out = capsys.readouterr().out
        assert "mpicc -DNUM_PROCS=4 code.c -o code && mpirun -np 2 ./code" in out

    def test_run_only(self, source_file: Path, capsys):
        assert _run([str(source_file), "--run", "MPI with Slurm", "-n", "500", "--handoff"]) == 0
        assert "srun -n 200 ./code" in capsys.readouterr().out

    def test_zero_run_process_count_is_clamped(self, source_file: Path, capsys):
        assert _run([str(source_file), "--run", "MPI", "--run-np", "0", "--handoff"]) == 0
        assert "mpirun -np 1 ./code" in capsys.readouterr().out


class TestErrors:
    def test_unknown_method(self, source_file: Path, capsys):
        assert _run([str(source_file), "--build", "Turbo", "--handoff"]) == 1
        assert "unknown method 'Turbo'" in capsys.readouterr().err

    def test_no_active_file(self, capsys):
        assert _run(["--build", "Basic (No MPI)", "--handoff"]) == 1
        assert "no active file" in capsys.readouterr().err

    def test_missing_process_count(self, source_file: Path, capsys):
        assert _run([str(source_file), "--build", "MPI Manual", "--handoff"]) == 1
        assert "needs a process count" in capsys.readouterr().err


class TestMonitoredCli:
    def test_exit_code_propagates(self, tmp_path: Path, capsys):
        target = tmp_path / "nothing.xyz"
        target.write_text("")
        # no Makefile and no implicit rule for "nothing"
        rc = _run([str(target), "--build", "Makefile (No MPI)"])
        assert rc != 0

    def test_tool_not_found_prints_recovery(self, tmp_path: Path, capsys):
        config = Config(env_strategy="inherit", shell="/bin/sh")
        config_path = tmp_path / "code.c"
        config_path.write_text("")
        rc = asyncio.run(
            run_non_interactive(
                parse_args([str(config_path), "--run", "Basic (No MPI)"]), config
            )
        )
        # ./code does not exist, so the shell reports 127
        assert rc == 127
        captured = capsys.readouterr()
        assert "./code" in captured.out
        assert "command not found" in captured.err


def test_list_methods(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--list"])
    assert exc.value.code == 0
    out = capsys.readouterr().out
    assert "MPI Portable Source" in out
    assert "MPI with Slurm" in out
