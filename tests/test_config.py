"""Tests for ``bq_jobs.config``."""

from __future__ import annotations

from pathlib import Path

import pytest

from bq_jobs.config import (
    CONFIG_ENV,
    CONFIG_FILENAME,
    DEFAULT_API_ROOT,
    DEFAULT_TIMEOUT,
    EMULATOR_ENV,
    ApiConfig,
    discover_config,
    load_config,
    load_default_config,
)

VALID_TOML = """\
[api]
root = "https://bq.example.com/"
timeout = 30
"""

MINIMAL_TOML = """\
[api]
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.delenv(EMULATOR_ENV, raising=False)


class TestLoadConfig:
    """Tests for ``load_config``."""

    def test_valid_toml(self, tmp_path: Path) -> None:
        """Parse a well-formed config file; trailing slash is dropped."""
        cfg_path = tmp_path / CONFIG_FILENAME
        cfg_path.write_text(VALID_TOML)
        config = load_config(cfg_path)

        assert config.root == "https://bq.example.com"
        assert config.timeout == 30.0
        assert config.emulator is False

    def test_defaults_when_keys_missing(self, tmp_path: Path) -> None:
        """Keys missing from ``[api]`` keep their defaults."""
        cfg_path = tmp_path / CONFIG_FILENAME
        cfg_path.write_text(MINIMAL_TOML)
        config = load_config(cfg_path)

        assert config == ApiConfig(root=DEFAULT_API_ROOT, timeout=DEFAULT_TIMEOUT)

    def test_empty_file(self, tmp_path: Path) -> None:
        """A file without an ``[api]`` table yields defaults."""
        cfg_path = tmp_path / CONFIG_FILENAME
        cfg_path.write_text("")

        assert load_config(cfg_path) == ApiConfig()

    def test_bad_timeout_type(self, tmp_path: Path) -> None:
        """A non-numeric timeout raises ``TypeError``."""
        cfg_path = tmp_path / CONFIG_FILENAME
        cfg_path.write_text('[api]\ntimeout = "soon"\n')

        with pytest.raises(TypeError, match="timeout"):
            load_config(cfg_path)

    def test_bad_root_type(self, tmp_path: Path) -> None:
        """A non-string root raises ``TypeError``."""
        cfg_path = tmp_path / CONFIG_FILENAME
        cfg_path.write_text("[api]\nroot = 1\n")

        with pytest.raises(TypeError, match="root"):
            load_config(cfg_path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ``FileNotFoundError``."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / CONFIG_FILENAME)


class TestDiscoverConfig:
    """Tests for ``discover_config``."""

    def test_finds_in_cwd(self, tmp_path: Path) -> None:
        """Discover config in the start directory."""
        cfg_path = tmp_path / CONFIG_FILENAME
        cfg_path.write_text(VALID_TOML)

        found = discover_config(start=tmp_path)
        assert found == cfg_path.resolve()

    def test_walks_up_to_parent(self, tmp_path: Path) -> None:
        """Discover config in a parent directory."""
        cfg_path = tmp_path / CONFIG_FILENAME
        cfg_path.write_text(VALID_TOML)
        child = tmp_path / "sub" / "deep"
        child.mkdir(parents=True)

        found = discover_config(start=child)
        assert found == cfg_path.resolve()

    def test_raises_when_absent(self, tmp_path: Path) -> None:
        """Raise ``FileNotFoundError`` when no config exists."""
        with pytest.raises(FileNotFoundError):
            discover_config(start=tmp_path)


class TestLoadDefaultConfig:
    """Tests for ``load_default_config``."""

    def test_builtin_defaults(self, tmp_path: Path) -> None:
        """Without a file or env var, built-in defaults apply."""
        assert load_default_config(start=tmp_path) == ApiConfig()

    def test_discovered_file(self, tmp_path: Path) -> None:
        """A discovered ``bq_jobs.toml`` is loaded."""
        (tmp_path / CONFIG_FILENAME).write_text(VALID_TOML)

        config = load_default_config(start=tmp_path)
        assert config.root == "https://bq.example.com"

    def test_env_path_wins(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """``$BQ_JOBS_CONFIG`` takes precedence over discovery."""
        (tmp_path / CONFIG_FILENAME).write_text(MINIMAL_TOML)
        other = tmp_path / "other.toml"
        other.write_text(VALID_TOML)
        monkeypatch.setenv(CONFIG_ENV, str(other))

        config = load_default_config(start=tmp_path)
        assert config.timeout == 30.0

    def test_emulator_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """``$BIGQUERY_EMULATOR_HOST`` replaces the root, keeping other keys."""
        (tmp_path / CONFIG_FILENAME).write_text(VALID_TOML)
        monkeypatch.setenv(EMULATOR_ENV, "localhost:9050")

        config = load_default_config(start=tmp_path)
        assert config.root == "http://localhost:9050"
        assert config.emulator is True
        assert config.timeout == 30.0
