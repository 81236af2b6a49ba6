"""
Application configuration

Settings are read from the process environment. A `.env` file in the
working directory is loaded first (already-set variables win).

Required:
    MONGO_URI       MongoDB connection string

Optional:
    DATABASE_NAME   database to use (defaults to the one in MONGO_URI)
    PORT            HTTP port (default 5000)
    HOST            bind address (default 0.0.0.0)
    LOG_LEVEL       DEBUG, INFO, WARNING, ERROR or CRITICAL (default INFO)
"""
import os
from typing import Mapping, NamedTuple, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_PORT = 5000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "INFO"

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(Exception):
    """Raised when the environment does not describe a runnable server."""


class Settings(NamedTuple):
    mongo_uri: str
    database_name: Optional[str]
    host: str
    port: int
    log_level: str


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Args:
        environ: mapping to read instead of os.environ. When omitted,
            `.env` is loaded into os.environ first.

    Raises:
        ConfigError: MONGO_URI is missing, or PORT / LOG_LEVEL is invalid.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    mongo_uri = (environ.get("MONGO_URI") or "").strip()
    if not mongo_uri:
        raise ConfigError("MONGO_URI is not set. Add it to the environment or to .env")

    raw_port = (environ.get("PORT") or "").strip()
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {raw_port!r}")
    else:
        port = DEFAULT_PORT

    log_level = (environ.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"Invalid LOG_LEVEL {log_level!r}. Must be one of: {sorted(LOG_LEVELS)}")

    return Settings(
        mongo_uri=mongo_uri,
        database_name=(environ.get("DATABASE_NAME") or "").strip() or None,
        host=(environ.get("HOST") or "").strip() or DEFAULT_HOST,
        port=port,
        log_level=log_level,
    )
