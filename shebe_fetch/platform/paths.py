"""Platform-aware path utilities.

Locates the per-user data directory (where acquired binaries are cached)
and the per-user config directory.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from .detection import Os, detect_os

__all__ = [
    "home",
    "user_config_dir",
    "user_data_dir",
    "clear_caches",
]

# Application name used for directory naming
APP_NAME = "shebe-fetch"


@lru_cache(maxsize=1)
def home() -> Path:
    """Get the user's home directory.

    HOME (USERPROFILE on Windows) wins over Path.home() so containers and
    CI jobs can redirect it.
    """
    env_name = "USERPROFILE" if detect_os() == Os.WINDOWS else "HOME"
    value = os.environ.get(env_name)
    if value:
        return Path(value)
    return Path.home()


@lru_cache(maxsize=1)
def user_data_dir() -> Path:
    """Get the per-user data directory holding cached binaries.

    Location:
    - Linux: $XDG_DATA_HOME/shebe-fetch or ~/.local/share/shebe-fetch
    - macOS: ~/Library/Application Support/shebe-fetch
    - Windows: %LOCALAPPDATA%/shebe-fetch
    """
    match detect_os():
        case Os.MACOS:
            return home() / "Library" / "Application Support" / APP_NAME
        case Os.WINDOWS:
            local = os.environ.get("LOCALAPPDATA")
            if local:
                return Path(local) / APP_NAME
            return home() / "AppData" / "Local" / APP_NAME
        case _:
            xdg_data = os.environ.get("XDG_DATA_HOME")
            if xdg_data:
                return Path(xdg_data) / APP_NAME
            return home() / ".local" / "share" / APP_NAME


@lru_cache(maxsize=1)
def user_config_dir() -> Path:
    """Get the per-user configuration directory (config.toml lives here)."""
    if detect_os() == Os.WINDOWS:
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
        return home() / "AppData" / "Roaming" / APP_NAME

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return home() / ".config" / APP_NAME


def clear_caches() -> None:
    """Clear cached paths. Useful in tests when environment variables change."""
    home.cache_clear()
    user_data_dir.cache_clear()
    user_config_dir.cache_clear()
