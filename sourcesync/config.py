"""Configuration for the state directory and the default git server"""

import configparser
import os
import platform
from typing import Optional, Any

from pathlib import Path

from sourcesync.constants import SERVER_URL
from sourcesync.redaction import get_logger

APP_NAME = "sourcesync"

logger = get_logger(__name__)

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")
xdg_state_home = os.environ.get("XDG_STATE_HOME") or os.path.join(
    _home, ".local", "state"
)

STATE_DIR_ENV = "SOURCESYNC_STATE_DIR"

default_cfg = {
    "dirs": {"state": os.path.join(xdg_state_home, APP_NAME)},
    "github": {"server_url": SERVER_URL},
}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/sourcesync").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    return config_dir / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for configuration files.

    Missing sections or keys fall back to the given default, and a config file
    that cannot be written only produces a warning.

    Usage:
        config = ConfigAccessor()
        value = config.get('github', 'server_url', 'https://github.com')
    """

    def __init__(self, config_path: Optional[Path] = None):
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = config_path

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the section or key doesn't exist

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default

    def set(self, section: str, key: str, value: str) -> None:
        if not self.config.has_section(section):
            self.config.add_section(section)

        self.config[section][key] = value

    def save(self) -> None:
        """
        Save the current configuration to the config file.

        Fails gracefully if the file cannot be written (e.g., read-only filesystem).
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as configfile:
                self.config.write(configfile)
        except OSError as e:
            logger.warning(
                f"Could not save configuration to {self.config_path}: {e}. "
                "Configuration changes will not persist."
            )

    def sections(self) -> list:
        return self.config.sections()


# Create a global config accessor instance
config = ConfigAccessor()


def get_state_dir() -> Path:
    """
    Get the directory holding state shared between a sync and its later cleanup.

    Resolution order: SOURCESYNC_STATE_DIR, the `dirs.state` config key, then
    $XDG_STATE_HOME/sourcesync.

    Returns:
        Path to the state directory (not created)
    """
    from_env = os.environ.get(STATE_DIR_ENV)
    if from_env:
        return Path(from_env).expanduser()

    state_dir = config.get("dirs", "state", default_cfg["dirs"]["state"])
    return Path(state_dir).expanduser()


def get_server_url() -> str:
    """Get the configured git server root (defaults to https://github.com)."""
    server_url = config.get(
        "github", "server_url", default_cfg["github"]["server_url"]
    )
    return server_url.rstrip("/")
