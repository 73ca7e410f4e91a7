"""Typed configuration loading and access.

Configuration is layered: built-in defaults, then an optional TOML file,
then environment variables, then CLI options (applied by the CLI layer).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_int, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "NetworkConfig",
    "PathsConfig",
    "ReleaseConfig",
    "load_config",
    "DEFAULT_API_BASE",
    "DEFAULT_REPO",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_SECONDS",
]

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

DEFAULT_REPO = "rhobimd-oss/shebe"
DEFAULT_API_BASE = "https://api.github.com"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0

# Environment variables
ENV_DATA_DIR = "SHEBE_FETCH_DATA_DIR"
ENV_VERSION = "SHEBE_FETCH_VERSION"
ENV_TOKEN = "SHEBE_FETCH_TOKEN"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_CONFIG = "SHEBE_FETCH_CONFIG"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Where releases come from, and an optional pinned tag."""

    repo: str = DEFAULT_REPO
    api_base: str = DEFAULT_API_BASE
    version: str | None = None


@dataclass(frozen=True, slots=True)
class NetworkConfig:
    """HTTP behaviour.

    The token is never read from the config file, only from the
    environment, so config files can be shared safely.
    """

    timeout: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    token: str | None = field(default=None, repr=False)


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Filesystem locations. None means the platform default."""

    data_dir: str | None = None

    def resolved_data_dir(self, default: Path) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return default


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        release: StrDict = get_table(data, "release") or {}
        network: StrDict = get_table(data, "network") or {}
        paths: StrDict = get_table(data, "paths") or {}

        timeout = get_float(network, "timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"network.timeout must be positive, got {timeout}")
        retries = get_int(network, "retries")
        if retries is not None and retries < 1:
            raise ValueError(f"network.retries must be >= 1, got {retries}")
        retry_delay = get_float(network, "retry_delay")
        if retry_delay is not None and retry_delay < 0:
            raise ValueError(f"network.retry_delay must be >= 0, got {retry_delay}")

        return cls(
            release=ReleaseConfig(
                repo=get_str(release, "repo") or DEFAULT_REPO,
                api_base=(get_str(release, "api_base") or DEFAULT_API_BASE).rstrip("/"),
                version=get_str(release, "version"),
            ),
            network=NetworkConfig(
                timeout=timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS,
                retries=retries if retries is not None else DEFAULT_RETRY_ATTEMPTS,
                retry_delay=retry_delay if retry_delay is not None else DEFAULT_RETRY_DELAY_SECONDS,
            ),
            paths=PathsConfig(data_dir=get_str(paths, "data_dir")),
        )

    def with_env(self, environ: Mapping[str, str]) -> Config:
        """Return a copy with environment overrides applied.

        An empty or missing token variable leaves the token unset; running
        unauthenticated is valid.
        """
        token = (environ.get(ENV_TOKEN) or environ.get(ENV_GITHUB_TOKEN) or "").strip()
        version = (environ.get(ENV_VERSION) or "").strip()
        data_dir = (environ.get(ENV_DATA_DIR) or "").strip()

        return dataclasses.replace(
            self,
            release=dataclasses.replace(self.release, version=version or self.release.version),
            network=dataclasses.replace(self.network, token=token or self.network.token),
            paths=dataclasses.replace(self.paths, data_dir=data_dir or self.paths.data_dir),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to config.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
