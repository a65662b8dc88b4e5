from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

CONFIG_DIR = Path(os.path.expanduser("~/.ccrun"))
CONFIG_PATH = CONFIG_DIR / "config.json"

MODES = ("monitored", "handoff")
ENV_STRATEGIES = ("login", "inherit")


@dataclass
class Config:
    default_mode: str = "monitored"
    shell: str = os.environ.get("SHELL", "/bin/bash")
    profile: str = "~/.bashrc"
    env_strategy: str = "login"
    default_process_count: int = 4

    @classmethod
    def load(cls, path: Path = CONFIG_PATH) -> Config:
        try:
            data = json.loads(path.read_text())
            cfg = cls(**data)
            cfg.validate()
            return cfg
        except FileNotFoundError:
            return cls()
        except Exception as e:
            logger.warning("ignoring unreadable config %s: %s", path, e)
            return cls()

    def validate(self) -> None:
        if self.default_mode not in MODES:
            raise ValueError(f"default_mode must be one of {', '.join(MODES)}")
        if self.env_strategy not in ENV_STRATEGIES:
            raise ValueError(
                f"env_strategy must be one of {', '.join(ENV_STRATEGIES)}"
            )
        if not isinstance(self.default_process_count, int):
            raise ValueError("default_process_count must be an integer")

    def save(self, path: Path = CONFIG_PATH) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), indent=2))
