"""Tests for shell environment resolution."""

import os
from pathlib import Path

import pytest

from ccrun.core.config import Config
from ccrun.core.environment import ShellEnvironment


class TestWrap:
    def test_inherit(self):
        env = ShellEnvironment(shell="/bin/sh", strategy="inherit")
        assert env.wrap("make code") == ["/bin/sh", "-c", "make code"]

    def test_login_sources_profile(self, tmp_path: Path):
        profile = tmp_path / "profile"
        profile.write_text("export PATH=/opt/mpi/bin:$PATH\n")
        env = ShellEnvironment(shell="/bin/bash", strategy="login", profile=str(profile))
        argv = env.wrap("mpirun -np 4 ./code")
        assert argv[:3] == ["/bin/bash", "-l", "-c"]
        assert argv[3].startswith(f". {profile} ")
        assert argv[3].endswith("; mpirun -np 4 ./code")

    def test_login_without_profile(self, tmp_path: Path):
        env = ShellEnvironment(
            shell="/bin/bash", strategy="login", profile=str(tmp_path / "missing")
        )
        assert env.wrap("./code") == ["/bin/bash", "-l", "-c", "./code"]

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            ShellEnvironment(strategy="docker")


def test_env_inherits_process_environment(monkeypatch):
    monkeypatch.setenv("CCRUN_TEST_MARKER", "1")
    env = ShellEnvironment().env()
    assert env["CCRUN_TEST_MARKER"] == "1"
    assert env is not os.environ


def test_from_config():
    cfg = Config(shell="/bin/zsh", profile="~/.zshrc", env_strategy="login")
    env = ShellEnvironment.from_config(cfg)
    assert (env.shell, env.strategy, env.profile) == ("/bin/zsh", "login", "~/.zshrc")


def test_default_strategy_is_login():
    env = ShellEnvironment(profile=None)
    assert env.strategy == "login"
    assert env.wrap("./code") == ["/bin/sh", "-l", "-c", "./code"]
