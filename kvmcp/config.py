"""
Server configuration.

Every setting comes from the environment (a local .env file is honoured)
and has a default, so the server starts with no configuration at all.
The networked backend is only configured when POSTGRES_HOST or
POSTGRES_DSN is set.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PORT = 10000
DEFAULT_DB_PATH = "./data/mcp.db"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    db_path: Path = Path(DEFAULT_DB_PATH)
    log_level: str = "info"
    log_dir: Optional[Path] = Path("./logs")

    pg_dsn: Optional[str] = None
    pg_host: Optional[str] = None
    pg_port: int = 5432
    pg_user: str = "postgres"
    pg_password: str = "postgres"
    pg_database: str = "mcp_demo"
    pg_pool_size: int = 10
    pg_connect_timeout: float = 2.0
    pg_acquire_timeout: float = 5.0
    pg_idle_timeout: float = 30.0

    health_probe: bool = True
    server_name: str = "MCP Database Server"
    server_description: str = "MCP server with SQLite and optional PostgreSQL support"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from the process environment."""
        load_dotenv(dotenv_path)

        log_dir = os.getenv("LOG_DIR", "./logs")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", str(DEFAULT_PORT))),
            db_path=Path(os.getenv("DB_PATH", DEFAULT_DB_PATH)),
            log_level=os.getenv("LOG_LEVEL", "info"),
            log_dir=Path(log_dir) if log_dir else None,
            pg_dsn=os.getenv("POSTGRES_DSN") or None,
            pg_host=os.getenv("POSTGRES_HOST") or None,
            pg_port=int(os.getenv("POSTGRES_PORT", "5432")),
            pg_user=os.getenv("POSTGRES_USER", "postgres"),
            pg_password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            pg_database=os.getenv("POSTGRES_DB", "mcp_demo"),
            pg_pool_size=int(os.getenv("POSTGRES_POOL_SIZE", "10")),
            pg_connect_timeout=float(os.getenv("POSTGRES_CONNECT_TIMEOUT", "2.0")),
            pg_acquire_timeout=float(os.getenv("POSTGRES_ACQUIRE_TIMEOUT", "5.0")),
            pg_idle_timeout=float(os.getenv("POSTGRES_IDLE_TIMEOUT", "30.0")),
            health_probe=_env_bool("HEALTH_PROBE", True),
            server_name=os.getenv("MCP_SERVER_NAME", "MCP Database Server"),
        )
