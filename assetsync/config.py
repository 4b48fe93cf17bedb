"""Configuration of the bundle location and the remote bundle repository.

Settings live in ``assetsync.cfg``:

    [remote]
    url = https://example.com/bundles.git

    [dirs]
    bundle = ~/bundles

    [transfer]
    lock_timeout = 30
"""

import configparser
import logging
import os
import platform
from pathlib import Path
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

APP_NAME = "assetsync"

_home = os.path.expanduser("~")
xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")
xdg_data_home = os.environ.get("XDG_DATA_HOME") or os.path.join(
    _home, ".local", "share"
)

data_dir = os.path.join(xdg_data_home, APP_NAME)

if platform.system() == "Darwin":
    config_dir = Path(f"~/Library/Application Support/{APP_NAME}").expanduser()
else:
    config_dir = Path(xdg_config_home) / APP_NAME

default_cfg = {
    "dirs": {"bundle": os.path.join(data_dir, "OfflineResource.bundle")},
    "remote": {"url": ""},
    "transfer": {"lock_timeout": "-1"},
}


def get_config_file() -> Path:
    return config_dir / f"{APP_NAME}.cfg"


def init_dirs():
    """Create the config and data directories, warning when that is not possible."""
    for directory in (data_dir, config_dir):
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            logger.warning(
                f"Could not create {directory}: {e}. "
                "Pass --bundle-dir and --remote explicitly if this persists."
            )


class ConfigAccessor:
    """
    Read and write access to an ``assetsync.cfg`` file.

    Missing files, sections and keys read as defaults rather than errors.

    Usage:
        accessor = ConfigAccessor()
        url = accessor.get("remote", "url", default="")
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else get_config_file()
        init_dirs()

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        return self.config.get(section, key, fallback=default)

    def set(self, section: str, key: str, value: str) -> None:
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, value)

    def save(self) -> None:
        """Write the settings back; failures are logged and the settings stay in memory."""
        try:
            with open(self.config_path, "w") as configfile:
                self.config.write(configfile)
        except OSError as e:
            logger.warning(f"Could not save configuration to {self.config_path}: {e}")

    def sections(self) -> List[str]:
        return self.config.sections()

    def options(self, section: str) -> List[str]:
        if not self.config.has_section(section):
            return []
        return self.config.options(section)


config = ConfigAccessor()


def get_bundle_dir(accessor: Optional[ConfigAccessor] = None) -> Path:
    """
    Get the directory holding the working copies of all resources.

    Defaults to $XDG_DATA_HOME/assetsync/OfflineResource.bundle.
    """
    accessor = accessor or config
    bundle_dir = accessor.get("dirs", "bundle", default_cfg["dirs"]["bundle"])
    return Path(bundle_dir).expanduser()


def get_remote_url(accessor: Optional[ConfigAccessor] = None) -> Optional[str]:
    """Get the URL of the remote bundle repository, or None if none is configured."""
    accessor = accessor or config
    url = accessor.get("remote", "url", default_cfg["remote"]["url"])
    return url or None


def get_lock_timeout(accessor: Optional[ConfigAccessor] = None) -> float:
    """
    Get how many seconds to wait for a resource locked by another process.

    Negative values wait forever. Unparseable values fall back to the default.
    """
    accessor = accessor or config
    default = default_cfg["transfer"]["lock_timeout"]
    value = accessor.get("transfer", "lock_timeout", default)
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid transfer.lock_timeout {value!r}, using {default}")
        return float(default)
