from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import typer

from shebe_fetch.core.config import ENV_CONFIG, Config, load_config
from shebe_fetch.core.errors import ErrorCode
from shebe_fetch.core.result import Err
from shebe_fetch.fetch.http import HttpClient, RealHttpClient
from shebe_fetch.output.console import ConsoleProtocol, RichConsole
from shebe_fetch.platform.detection import PlatformDescriptor, detect_platform
from shebe_fetch.platform.paths import user_config_dir, user_data_dir

CONFIG_FILE_NAME = "config.toml"


@dataclass(frozen=True, slots=True)
class CLIContext:
    platform: PlatformDescriptor
    config: Config
    console: ConsoleProtocol
    data_dir: Path
    http: HttpClient


def _config_path() -> Path | None:
    """Config file to load: --config / $SHEBE_FETCH_CONFIG (must exist), else the user default."""
    explicit = os.environ.get(ENV_CONFIG, "").strip()
    if explicit:
        return Path(explicit).expanduser()
    default = user_config_dir() / CONFIG_FILE_NAME
    return default if default.is_file() else None


def build_context(
    *,
    quiet: bool = False,
    data_dir: Path | None = None,
    timeout: float | None = None,
) -> CLIContext:
    """Resolve configuration (file, then environment, then options) for a command."""
    console = RichConsole(quiet=quiet)

    config = Config()
    path = _config_path()
    if path is not None:
        config_result = load_config(path)
        if isinstance(config_result, Err):
            console.error(config_result.error.message)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = config_result.value
    config = config.with_env(os.environ)

    if timeout is not None:
        if timeout <= 0:
            console.error(f"--timeout must be positive, got {timeout}")
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = dataclasses.replace(
            config, network=dataclasses.replace(config.network, timeout=timeout)
        )

    if data_dir is not None:
        resolved_data_dir = data_dir.expanduser()
    else:
        resolved_data_dir = config.paths.resolved_data_dir(user_data_dir())

    http = RealHttpClient(
        timeout=config.network.timeout,
        token=config.network.token,
        api_host=urlparse(config.release.api_base).hostname or "api.github.com",
    )

    return CLIContext(
        platform=detect_platform(),
        config=config,
        console=console,
        data_dir=resolved_data_dir,
        http=http,
    )
