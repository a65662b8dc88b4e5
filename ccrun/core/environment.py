"""Environment resolution for monitored runs.

Toolchains such as MPI are often put on PATH by the user's interactive shell
profile. A ``login`` environment runs the command in a login shell after
sourcing that profile so the child sees the same PATH as the user's terminal.
``inherit`` passes the invoking process environment through unchanged.
"""

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ccrun.core.config import ENV_STRATEGIES as STRATEGIES, Config


@dataclass(frozen=True)
class ShellEnvironment:
    shell: str = "/bin/sh"
    strategy: str = "login"
    profile: Optional[str] = None

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"unknown environment strategy '{self.strategy}' "
                f"(valid: {', '.join(STRATEGIES)})"
            )

    @classmethod
    def from_config(cls, cfg: Config) -> "ShellEnvironment":
        return cls(shell=cfg.shell, strategy=cfg.env_strategy, profile=cfg.profile)

    def profile_path(self) -> Optional[Path]:
        if not self.profile:
            return None
        path = Path(self.profile).expanduser()
        return path if path.is_file() else None

    def wrap(self, command: str) -> List[str]:
        """Return the argv that runs ``command`` in this environment."""
        if self.strategy == "inherit":
            return [self.shell, "-c", command]

        profile = self.profile_path()
        if profile is not None:
            command = f". {shlex.quote(str(profile))} >/dev/null 2>&1; {command}"
        return [self.shell, "-l", "-c", command]

    def env(self) -> Dict[str, str]:
        return dict(os.environ)
