"""
State shared between a sync and a later, separately invoked cleanup.

A sync writes the repository path once; cleanup reads it once. The store is a
small INI file so both sides can live in different processes.
"""

import configparser
from pathlib import Path
from typing import Optional

from filelock import FileLock

from sourcesync.config import get_state_dir
from sourcesync.redaction import get_logger

logger = get_logger(__name__)

STATE_SECTION = "state"
REPOSITORY_PATH_KEY = "repository_path"


class StateStore:
    """Key-value store backed by `<state_dir>/state.cfg`."""

    def __init__(self, state_dir: Optional[Path] = None):
        self.state_dir = Path(state_dir) if state_dir else get_state_dir()
        self.state_file = self.state_dir / "state.cfg"
        self._lock_file = self.state_dir / "state.cfg.lock"

    def _read(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        if self.state_file.exists():
            parser.read(self.state_file)
        return parser

    def set(self, key: str, value: str) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        with FileLock(self._lock_file):
            parser = self._read()
            if not parser.has_section(STATE_SECTION):
                parser.add_section(STATE_SECTION)
            parser[STATE_SECTION][key] = value
            with open(self.state_file, "w") as f:
                parser.write(f)
        logger.debug(f"Saved state {key} to {self.state_file}")

    def get(self, key: str, default: str = "") -> str:
        return self._read().get(STATE_SECTION, key, fallback=default)

    def set_repository_path(self, repository_path: Path) -> None:
        self.set(REPOSITORY_PATH_KEY, str(repository_path))

    def get_repository_path(self) -> str:
        return self.get(REPOSITORY_PATH_KEY)
