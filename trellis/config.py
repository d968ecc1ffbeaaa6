"""
Config system - startup settings read once from the environment.

Values come from process environment variables, optionally seeded from a
.env file through python-dotenv. Missing values fall back to defaults;
only features that need a value (a database, token signing) care
whether it is set.
"""

from dataclasses import dataclass
from typing import Mapping, Optional
import logging
import os

from dotenv import dotenv_values, load_dotenv


logger = logging.getLogger("trellis.config")


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass(frozen=True)
class Settings:
    """
    Application settings.

    Attributes:
        mode: Run mode (APP_ENV), "development" or "production"
        port: Listening port (PORT)
        database_url: Database connection string (DB_URL)
        jwt_secret: Token signing secret (JWT_SECRET)
        global_prefix: Prefix prepended to every compiled route (API_PREFIX)
    """

    mode: str = "development"
    port: int = 4600
    database_url: str = ""
    jwt_secret: str = ""
    global_prefix: str = "/api"

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Load settings.

        Args:
            env_file: .env file to read (default: python-dotenv's lookup)
            environ: Explicit variables instead of os.environ; env_file
                values then only fill keys missing from it

        Raises:
            ConfigError: If PORT is not an integer
        """
        if environ is None:
            # Never overrides variables that are already set
            load_dotenv(env_file, override=False)
            values: Mapping[str, Optional[str]] = os.environ
        else:
            merged = dict(dotenv_values(env_file)) if env_file else {}
            merged.update(environ)
            values = merged

        raw_port = values.get("PORT")
        if raw_port in (None, ""):
            port = cls.port
        else:
            try:
                port = int(raw_port)
            except ValueError:
                raise ConfigError(f"PORT must be an integer, got {raw_port!r}") from None

        settings = cls(
            mode=values.get("APP_ENV") or cls.mode,
            port=port,
            database_url=values.get("DB_URL") or "",
            jwt_secret=values.get("JWT_SECRET") or "",
            global_prefix=values.get("API_PREFIX", cls.global_prefix) or "",
        )

        if not settings.jwt_secret:
            logger.debug("JWT_SECRET is not set")
        if not settings.database_url:
            logger.debug("DB_URL is not set")
        return settings

    @property
    def is_production(self) -> bool:
        return self.mode.lower() in ("production", "prod")

    @property
    def is_development(self) -> bool:
        return self.mode.lower() in ("development", "dev")
