"""
Configuration management for the raw conversion pipeline.

Uses pydantic-settings to load configuration from environment variables
and .env files. AppConfig resolves the working directory of each meta data
provider below the downloads directory.
"""

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.providers import MAIN_PROVIDER_CONFIGS
from app.models.schemas import MetaDataProviderConfig


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Directories
    downloads_directory: Path = Path("/var/lib/modb/downloads")

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "Raw Conversion API"
    api_version: str = "1.0.0"

    # Worker Configuration
    fs_worker_threads: int = 4

    # Conversion status
    conversion_timeout: float = 10.0  # seconds
    status_poll_interval: float = 2.0  # seconds

    # Watch loop long poll
    long_poll_min_delay: float = 0.1
    long_poll_max_delay: float = 0.5
    long_poll_step: float = 0.1

    # Converter factories per provider hostname, as "module:attribute"
    converters: Dict[str, str] = {}

    model_config = SettingsConfigDict(
        env_prefix="MODB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class AppConfig:
    """Resolves directories for meta data providers."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        providers: Optional[Iterable[MetaDataProviderConfig]] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize app config.

        Args:
            settings: Settings instance, defaults to the cached one
            providers: Main provider configs checked by the status service
            today: Clock used to determine the current week
        """
        self.settings = settings or get_settings()
        self._providers = frozenset(providers if providers is not None else MAIN_PROVIDER_CONFIGS)
        self._today = today

    def downloads_directory(self) -> Path:
        """Root directory containing one directory per week."""
        directory = Path(self.settings.downloads_directory).expanduser()
        if not directory.is_dir():
            raise NotADirectoryError(
                f"Download directory set by 'downloads_directory' to [{directory}] "
                "doesn't exist or is not a directory."
            )
        return directory

    def current_week_working_dir(self) -> Path:
        """Directory of the current ISO week, e.g. ``2024-07``."""
        year, week, _ = self._today().isocalendar()
        return self.downloads_directory() / f"{year}-{week:02d}"

    def working_dir(self, config: MetaDataProviderConfig) -> Path:
        """
        Working directory holding raw, lock and conv files of a provider.

        Args:
            config: Meta data provider config

        Returns:
            Existing directory for the config
        """
        working_dir = self.current_week_working_dir() / config.directory_name

        if working_dir.is_file():
            raise NotADirectoryError(f"Working directory [{working_dir}] must not be a regular file.")

        working_dir.mkdir(parents=True, exist_ok=True)
        return working_dir

    def metadata_provider_configurations(self) -> frozenset[MetaDataProviderConfig]:
        """Duplicate free set of all main provider configs."""
        return self._providers

    def find_metadata_provider_config(self, hostname: str) -> MetaDataProviderConfig:
        """Find the main config of a provider by hostname."""
        for config in self.metadata_provider_configurations():
            if config.hostname == hostname:
                return config
        raise ValueError(f"No config found for [{hostname}]")
