"""Worker configuration: shared cache location, working root and checkout options"""

import configparser
import logging
import os
import platform
from typing import Optional, Any

from pathlib import Path
from pydantic import BaseModel, Field, field_validator

APP_NAME = "sharedcheckout"

logger = logging.getLogger(__name__)

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")
xdg_data_home = os.environ.get("XDG_DATA_HOME") or os.path.join(
    _home, ".local", "share"
)

data_dir = os.path.join(xdg_data_home, APP_NAME)

default_cfg = {
    "git": {
        "shared_root": "/mnt/nfs/git",
        "working_root": os.path.join(data_dir, "repos"),
        "lock_checkouts": "true",
        "lock_timeout": "-1",
        "allow_file_protocol": "true",
    }
}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path(f"~/Library/Application Support/{APP_NAME}").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    return config_dir / f"{APP_NAME}.cfg"


def init_dirs():
    """Initialize the configuration directory.

    Fails gracefully if it cannot be created (e.g., read-only filesystem).
    """
    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        logger.warning(
            f"Could not create config directory {config_dir}: {e}. "
            "Using in-memory configuration only."
        )


class ConfigAccessor:
    """
    Read access to the INI configuration file.

    Missing files, sections or keys fall back to the given default.

    Usage:
        config = ConfigAccessor()
        value = config.get('git', 'shared_root', default='/mnt/nfs/git')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Path to the configuration file. If None, uses the default path.
        """
        if config_path is None:
            self.config_path = get_config_file()
            init_dirs()
        else:
            self.config_path = Path(config_path)

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default


class MaterializerSettings(BaseModel):
    """Settings passed explicitly to a RepositoryMaterializer."""

    shared_root: Path = Field(description="Root of the NFS-mounted mirror cache")
    working_root: Path = Field(description="Root under which checkouts are created")
    lock_checkouts: bool = Field(
        True, description="Serialize materializations of the same checkout"
    )
    lock_timeout: float = Field(
        -1, description="Seconds to wait for the checkout lock, -1 waits forever"
    )
    allow_file_protocol: bool = Field(
        True, description="Allow submodules to be cloned from local paths"
    )

    @field_validator("shared_root", "working_root", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        if not str(v).strip():
            raise ValueError("Path cannot be empty")
        return Path(v).expanduser()


# Create a global config accessor instance
config = ConfigAccessor()


def get_settings(
    accessor: Optional[ConfigAccessor] = None, **overrides: Any
) -> MaterializerSettings:
    """
    Build MaterializerSettings from the ``[git]`` config section.

    Args:
        accessor: Config to read from (defaults to the global config)
        **overrides: Values taking precedence over the config file; None values
            are ignored

    Returns:
        Validated settings
    """
    if accessor is None:
        accessor = config

    values = {
        key: accessor.get("git", key, default)
        for key, default in default_cfg["git"].items()
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return MaterializerSettings(**values)
