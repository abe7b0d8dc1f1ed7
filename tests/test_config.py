"""Tests for config (load_config, env substitution, env overrides)."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from revassign.config import AppConfig, DatabaseConfig, ServerConfig, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATABASE_PATH", "DATABASE_CONNECT_RETRIES", "SERVER_PORT", "SERVER_HOST", "LOGGING_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """No config file means every section uses its defaults."""
        config = load_config(tmp_path / "absent.yaml")
        assert isinstance(config, AppConfig)
        assert config.database.path == "revassign.db"
        assert config.database.connect_retries == 30
        assert config.database.retry_delay_seconds == 2.0
        assert config.server.port == 8080
        assert config.logging.level == "INFO"

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty YAML file is treated as no settings."""
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).server.host == "0.0.0.0"


class TestYaml:
    def test_sections_are_read(self, tmp_path: Path) -> None:
        """database, server and logging sections are read from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "database:\n"
            "  path: /data/reviews.db\n"
            "  connect_retries: 3\n"
            "server:\n"
            "  host: 127.0.0.1\n"
            "  port: 9000\n"
            "logging:\n"
            "  level: DEBUG\n"
        )
        config = load_config(path)
        assert config.database.path == "/data/reviews.db"
        assert config.database.connect_retries == 3
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 9000
        assert config.logging.level == "DEBUG"

    def test_env_placeholder_substituted(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """${VAR} is replaced from the environment."""
        monkeypatch.setenv("REVIEW_HOST", "10.0.0.5")
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  host: ${REVIEW_HOST}\n")
        assert load_config(path).server.host == "10.0.0.5"

    def test_unset_placeholder_kept(self, tmp_path: Path) -> None:
        """An unset $VAR is left as written."""
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  format: $NOT_SET_ANYWHERE\n")
        assert load_config(path).logging.format == "$NOT_SET_ANYWHERE"

    def test_database_path_env_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """DATABASE_PATH overrides database.path from the file."""
        monkeypatch.setenv("DATABASE_PATH", "/volume/db.sqlite")
        path = tmp_path / "config.yaml"
        path.write_text("database:\n  path: local.db\n")
        assert load_config(path).database.path == "/volume/db.sqlite"

    def test_env_fills_missing_keys(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Keys absent from YAML come from SERVER_* env vars."""
        monkeypatch.setenv("SERVER_PORT", "7070")
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  host: 127.0.0.1\n")
        assert load_config(path).server.port == 7070

    def test_example_config_loads(self) -> None:
        """The shipped example config is valid."""
        example = Path(__file__).resolve().parent.parent / "config.example.yaml"
        config = load_config(example)
        assert config.database.path == "revassign.db"
        assert config.server.port == 8080
        assert config.logging.access_log is False


class TestValidation:
    def test_port_range(self) -> None:
        """Ports above 65535 are rejected."""
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)

    def test_retries_at_least_one(self) -> None:
        """At least one connection attempt is required."""
        with pytest.raises(ValidationError):
            DatabaseConfig(connect_retries=0)
