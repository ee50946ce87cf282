"""
Tests for environment configuration and logging setup.
"""

import logging
from pathlib import Path

import pytest

from kvmcp.config import Settings
from kvmcp.logging_setup import configure_logging
from kvmcp.storage.postgres_store import PostgresStore

ENV_VARS = [
    "HOST", "PORT", "DB_PATH", "LOG_LEVEL", "LOG_DIR", "POSTGRES_DSN",
    "POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_USER", "POSTGRES_PASSWORD",
    "POSTGRES_DB", "POSTGRES_POOL_SIZE", "POSTGRES_CONNECT_TIMEOUT",
    "POSTGRES_ACQUIRE_TIMEOUT", "POSTGRES_IDLE_TIMEOUT", "HEALTH_PROBE",
    "MCP_SERVER_NAME",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep any developer .env out of the picture
    return str(tmp_path / "missing.env")


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings.from_env(clean_env)

        assert settings.host == "0.0.0.0"
        assert settings.port == 10000
        assert settings.db_path == Path("./data/mcp.db")
        assert settings.pg_pool_size == 10
        assert settings.pg_idle_timeout == 30.0
        assert settings.health_probe is True
        assert PostgresStore.from_settings(settings).configured is False

    def test_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("DB_PATH", "/tmp/kv.db")
        monkeypatch.setenv("POSTGRES_HOST", "db")
        monkeypatch.setenv("POSTGRES_PORT", "6543")
        monkeypatch.setenv("HEALTH_PROBE", "false")

        settings = Settings.from_env(clean_env)

        assert settings.port == 8080
        assert settings.db_path == Path("/tmp/kv.db")
        assert settings.pg_port == 6543
        assert settings.health_probe is False
        assert PostgresStore.from_settings(settings).configured is True

    def test_pool_timeouts_reach_the_store(self, clean_env, monkeypatch):
        monkeypatch.setenv("POSTGRES_CONNECT_TIMEOUT", "1.5")
        monkeypatch.setenv("POSTGRES_ACQUIRE_TIMEOUT", "3")
        monkeypatch.setenv("POSTGRES_IDLE_TIMEOUT", "12.5")

        store = PostgresStore.from_settings(Settings.from_env(clean_env))

        assert store.connect_timeout == 1.5
        assert store.acquire_timeout == 3.0
        assert store.idle_timeout == 12.5

    def test_dsn_alone_configures_postgres(self, clean_env, monkeypatch):
        monkeypatch.setenv("POSTGRES_DSN", "postgresql://u:p@h/db")
        settings = Settings.from_env(clean_env)
        assert PostgresStore.from_settings(settings).configured is True

    def test_empty_log_dir_disables_file_logs(self, clean_env, monkeypatch):
        monkeypatch.setenv("LOG_DIR", "")
        assert Settings.from_env(clean_env).log_dir is None

    def test_dotenv_file_is_read(self, clean_env, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("MCP_SERVER_NAME=From Dotenv\n")
        # registers the variable with monkeypatch so teardown removes it again
        monkeypatch.setenv("MCP_SERVER_NAME", "placeholder")
        monkeypatch.delenv("MCP_SERVER_NAME")

        settings = Settings.from_env(str(env_file))

        assert settings.server_name == "From Dotenv"


class TestLogging:

    def test_file_handlers(self, tmp_path):
        log_dir = tmp_path / "logs"
        configure_logging("debug", log_dir)

        logging.getLogger("kvmcp.test").error("boom")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "boom" in (log_dir / "combined.log").read_text()
        assert "boom" in (log_dir / "error.log").read_text()
        assert logging.getLogger().level == logging.DEBUG

        configure_logging("info", None)
