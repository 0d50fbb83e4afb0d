"""Process configuration read from environment variables.

Database coordinates follow the ``DB_HOST``/``DB_PORT``/``DB_USER``/
``DB_PASSWORD``/``DB_NAME`` convention and are all required. A complete
``DATABASE_URL`` may be given instead and takes precedence.
"""

import os
from dataclasses import dataclass
from typing import Mapping

from sqlalchemy.engine import URL

REQUIRED_DB_VARS = ("DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME")


class ConfigError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings.

    Attributes:
        database_url: SQLAlchemy URL of the orders database.
        statement_timeout_ms: Per-statement timeout passed to PostgreSQL.
        connect_timeout: Driver connect timeout in seconds.
        pool_size: Number of pooled connections kept open.
        pool_timeout: Seconds to wait for a free pooled connection.
        port: HTTP port the server binds to.
        log_level: Name of the root log level (e.g. ``info``).
    """

    database_url: str
    statement_timeout_ms: int = 5000
    connect_timeout: int = 10
    pool_size: int = 5
    pool_timeout: int = 30
    port: int = 5001
    log_level: str = "info"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from the environment.

        Args:
            env: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Settings: The parsed configuration.

        Raises:
            ConfigError: When a required variable is missing or a numeric
                variable cannot be parsed.
        """
        env = os.environ if env is None else env

        url = env.get("DATABASE_URL")
        if not url:
            missing = [name for name in REQUIRED_DB_VARS if not env.get(name)]
            if missing:
                raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
            url = URL.create(
                "postgresql+psycopg",
                username=env["DB_USER"],
                password=env["DB_PASSWORD"],
                host=env["DB_HOST"],
                port=_int(env, "DB_PORT", 5432),
                database=env["DB_NAME"],
            ).render_as_string(hide_password=False)

        return cls(
            database_url=url,
            statement_timeout_ms=_int(env, "DB_STATEMENT_TIMEOUT_MS", 5000),
            connect_timeout=_int(env, "DB_CONNECT_TIMEOUT", 10),
            pool_size=_int(env, "DB_POOL_SIZE", 5),
            pool_timeout=_int(env, "DB_POOL_TIMEOUT", 30),
            port=_int(env, "PORT", 5001),
            log_level=env.get("LOG_LEVEL", "info"),
        )
