"""Tests for shebe_fetch.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from shebe_fetch.core.config import (
    DEFAULT_API_BASE,
    DEFAULT_REPO,
    Config,
    ConfigError,
    NetworkConfig,
    PathsConfig,
    load_config,
)
from shebe_fetch.core.result import Err, Ok


class TestDefaults:
    """Built-in defaults."""

    def test_release_defaults(self) -> None:
        config = Config()
        assert config.release.repo == DEFAULT_REPO == "rhobimd-oss/shebe"
        assert config.release.api_base == DEFAULT_API_BASE
        assert config.release.version is None

    def test_network_defaults(self) -> None:
        config = Config()
        assert config.network.timeout == 30.0
        assert config.network.retries == 3
        assert config.network.retry_delay == 1.0
        assert config.network.token is None

    def test_token_not_in_repr(self) -> None:
        """The token never shows up in reprs (logs, tracebacks)."""
        network = NetworkConfig(token="ghp_secret")
        assert "ghp_secret" not in repr(network)

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.release = None  # type: ignore[misc,assignment]


class TestPathsConfig:
    """Data directory resolution."""

    def test_default_used_when_unset(self, tmp_path: Path) -> None:
        assert PathsConfig().resolved_data_dir(tmp_path) == tmp_path

    def test_explicit_dir_wins(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom"
        assert PathsConfig(data_dir=str(custom)).resolved_data_dir(tmp_path / "x") == custom


class TestFromDict:
    """Config.from_dict validation."""

    def test_full(self) -> None:
        config = Config.from_dict(
            {
                "release": {
                    "repo": "someone/fork",
                    "api_base": "https://ghe.example.com/api/v3/",
                    "version": "v0.5.7",
                },
                "network": {"timeout": 5, "retries": 2, "retry_delay": 0.5},
                "paths": {"data_dir": "/opt/shebe"},
            }
        )
        assert config.release.repo == "someone/fork"
        assert config.release.api_base == "https://ghe.example.com/api/v3"
        assert config.release.version == "v0.5.7"
        assert config.network.timeout == 5.0
        assert config.network.retries == 2
        assert config.network.retry_delay == 0.5
        assert config.paths.data_dir == "/opt/shebe"

    def test_empty(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_token_ignored_in_file(self) -> None:
        """Tokens come from the environment only."""
        config = Config.from_dict({"network": {"token": "ghp_secret"}})
        assert config.network.token is None

    @pytest.mark.parametrize(
        "network",
        [{"timeout": 0}, {"timeout": -1.5}, {"retries": 0}, {"retry_delay": -1}],
    )
    def test_invalid_network_values(self, network: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            Config.from_dict({"network": network})

    def test_bool_retries_ignored(self) -> None:
        """Booleans are not integers here."""
        config = Config.from_dict({"network": {"retries": True}})
        assert config.network.retries == 3


class TestWithEnv:
    """Environment overrides."""

    def test_overrides(self) -> None:
        config = Config().with_env(
            {
                "SHEBE_FETCH_DATA_DIR": "/tmp/shebe",
                "SHEBE_FETCH_VERSION": "v0.5.6",
                "GITHUB_TOKEN": "ghp_abc",
            }
        )
        assert config.paths.data_dir == "/tmp/shebe"
        assert config.release.version == "v0.5.6"
        assert config.network.token == "ghp_abc"

    def test_specific_token_wins(self) -> None:
        config = Config().with_env({"SHEBE_FETCH_TOKEN": "mine", "GITHUB_TOKEN": "ci"})
        assert config.network.token == "mine"

    def test_empty_values_keep_config(self) -> None:
        """Empty variables are the same as unset ones."""
        base = Config.from_dict({"release": {"version": "v0.5.7"}})
        config = base.with_env({"SHEBE_FETCH_VERSION": "  ", "GITHUB_TOKEN": ""})
        assert config.release.version == "v0.5.7"
        assert config.network.token is None


class TestLoadConfig:
    """load_config()."""

    def test_load_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            '[release]\nversion = "v0.5.7"\n\n[network]\ntimeout = 12.5\n',
            encoding="utf-8",
        )
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.release.version == "v0.5.7"
        assert result.value.network.timeout == 12.5

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nope.toml"
        result = load_config(path)
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in result.error.message
        assert result.error.path == path

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[release\nrepo = ", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[network]\nretries = 0\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message
