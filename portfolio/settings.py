"""
Runtime configuration.

Every option can be set through a `PORTFOLIO_*` environment variable or in
`settings.toml` / `settings.custom.toml` in the working directory.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class DatabaseDriver(str, Enum):
    """Database backends, each reached through its async driver."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class Settings(BaseSettings):
    """Portfolio backend settings.

    Lookup order is constructor arguments, then ``PORTFOLIO_*`` environment
    variables, then the TOML files (``settings.custom.toml`` overrides
    ``settings.toml``).
    """

    model_config = SettingsConfigDict(
        toml_file=["settings.toml", "settings.custom.toml"],
        env_prefix="PORTFOLIO_",
        extra="ignore",
    )

    # Server
    port: int = 8000
    host: str = "127.0.0.1"
    root_url: str = "/"
    debug: bool = False

    # Storage: SQLite file, uploaded CV and log files live here
    storage_path: str = str(Path.home() / "portfolio/data")

    # Database
    database_driver: DatabaseDriver = DatabaseDriver.SQLITE
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "portfolio"
    database_username: str = "postgres"
    database_password: str = "postgres"

    # Session token and cookie
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "urn:portfolio:issuer"
    jwt_audience: str = "urn:portfolio:audience"
    session_expire_hours: int = 2
    cookie_name: str = "admin-auth-token"

    # Routing
    admin_path_prefix: str = "/admin"
    login_path: str = "/login"

    # Construction mode
    construction_window_seconds: int = 5 * 60
    construction_unbounded_policy: Literal["active", "inactive"] = "inactive"

    # Idle timeout (client side)
    idle_warning_seconds: int = 2 * 60
    idle_logout_seconds: int = 3 * 60

    # Bootstrap admin
    admin_username: str = "admin"
    admin_password: str = "changeme"

    # Uploads
    cv_max_bytes: int = 2 * 1024 * 1024
    cv_filename: str = "cv.pdf"
    profile_image_placeholder: str = "https://placehold.co/240x240.png?text=Profile"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str | None = None  # defaults to {storage_path}/logs
    log_rotation: str = "20 MB"
    log_retention: str = "1 week"
    log_format: str | None = None

    @property
    def session_expire_seconds(self) -> int:
        """Get session expiration time in seconds."""
        return self.session_expire_hours * 3600

    @property
    def cookie_secure(self) -> bool:
        """Session cookie is HTTPS-only outside of debug mode."""
        return not self.debug

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # dotenv and secret-file sources are not used
        return init_settings, env_settings, TomlConfigSettingsSource(settings_cls)

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL using the async driver for the configured backend."""
        if self.database_driver == DatabaseDriver.SQLITE:
            return f"sqlite+aiosqlite:///{Path(self.storage_path) / self.database_name}.db"
        return (
            f"postgresql+asyncpg://{self.database_username}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    def get_log_dir(self) -> Path:
        """Get the log directory path.

        Returns:
            Path to the log directory. Uses log_dir if specified,
            otherwise creates logs directory in storage_path.
        """
        if self.log_dir:
            return Path(self.log_dir)
        return Path(self.storage_path) / "logs"

    def get_download_dir(self) -> Path:
        """Directory holding publicly downloadable files such as the CV."""
        return Path(self.storage_path) / "download"


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()


settings = get_settings()
