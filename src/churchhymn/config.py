"""Configuration management for churchhymn.

Settings live in a TOML file in the platform config directory::

    [store]
    db_path = "~/.local/share/churchhymn/hymns.db"

    [presenter]
    cyclic = true
    chorus_only_fallback = false

    [import]
    chunk_size = 100

    [logging]
    log_dir = "~/.local/share/churchhymn/logs"
    level = "INFO"
"""

import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigError

APP_NAME = "churchhymn"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_config_dir() -> Path:
    """Get the platform-specific config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / APP_NAME
        return Path.home() / "AppData" / "Roaming" / APP_NAME
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_data_dir() -> Path:
    """Get the platform-specific data directory (database and logs)."""
    if sys.platform == "win32":
        return get_config_dir()
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


@dataclass
class AppConfig:
    """Configuration for churchhymn.

    Attributes:
        db_path: SQLite database holding the hymn collection
        cyclic: Presenter navigation wraps around at either end
        chorus_only_fallback: Show a lone chorus when a hymn has no verses (off: nothing to present)
        chunk_size: Hymns converted per step by the streaming JSON import
        log_dir: Directory for the session log file
        log_level: Level name for the ``churchhymn`` logger
    """

    db_path: Path = field(default_factory=lambda: get_data_dir() / "hymns.db")
    cyclic: bool = True
    chorus_only_fallback: bool = False
    chunk_size: int = 100
    log_dir: Path = field(default_factory=lambda: get_data_dir() / "logs")
    log_level: str = "INFO"

    @classmethod
    def load(cls, path: Path | None = None) -> "AppConfig":
        """Load configuration from a TOML file.

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigError: If the file is not valid TOML or holds a bad value
        """
        if path is None:
            path = get_config_path()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc

        config = cls()

        store = data.get("store", {})
        if "db_path" in store:
            config.db_path = _expand(store["db_path"], "store.db_path")

        presenter = data.get("presenter", {})
        if "cyclic" in presenter:
            config.cyclic = _expect(presenter["cyclic"], bool, "presenter.cyclic")
        if "chorus_only_fallback" in presenter:
            config.chorus_only_fallback = _expect(
                presenter["chorus_only_fallback"], bool, "presenter.chorus_only_fallback"
            )

        importing = data.get("import", {})
        if "chunk_size" in importing:
            chunk_size = _expect(importing["chunk_size"], int, "import.chunk_size")
            if chunk_size < 1:
                raise ConfigError(f"import.chunk_size must be at least 1, got {chunk_size}")
            config.chunk_size = chunk_size

        logging_section = data.get("logging", {})
        if "log_dir" in logging_section:
            config.log_dir = _expand(logging_section["log_dir"], "logging.log_dir")
        if "level" in logging_section:
            level = _expect(logging_section["level"], str, "logging.level").upper()
            if level not in LOG_LEVELS:
                raise ConfigError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")
            config.log_level = level

        return config

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "AppConfig":
        """Load the config file if it exists, defaults otherwise."""
        if path is None:
            path = get_config_path()
        if not path.exists():
            return cls()
        return cls.load(path)


def _expect(value, expected: type, name: str):
    if isinstance(value, bool) and expected is not bool:
        raise ConfigError(f"{name} must be of type {expected.__name__}")
    if not isinstance(value, expected):
        raise ConfigError(f"{name} must be of type {expected.__name__}")
    return value


def _expand(value, name: str) -> Path:
    return Path(_expect(value, str, name)).expanduser()
