"""
Watch service for providers whose raw files are self-contained.
"""

from concurrent.futures import Executor
from typing import Optional

from app.models.schemas import MetaDataProviderConfig
from app.utils.config import AppConfig, Settings
from domains.raw_conversion.converters.base import PathAnimeConverter
from domains.raw_conversion.converters.simple import SimpleFileConverter
from domains.raw_conversion.watchers.base import ConversionWatchService


def watch_label(config: MetaDataProviderConfig) -> str:
    """Label of a watched directory, unique per config identity."""
    return f"{config.directory_name}#{config.identity}"


class SimpleConversionWatchService(ConversionWatchService):
    """Watches the working directory of a single provider."""

    def __init__(
        self,
        app_config: AppConfig,
        config: MetaDataProviderConfig,
        converter: PathAnimeConverter,
        settings: Optional[Settings] = None,
        executor: Optional[Executor] = None,
    ):
        file_converter = SimpleFileConverter(
            app_config=app_config,
            config=config,
            converter=converter,
            executor=executor,
        )
        super().__init__(
            file_converter=file_converter,
            watched_dirs={watch_label(config): file_converter.working_dir},
            settings=settings,
        )
        self.config = config

    @property
    def name(self) -> str:
        return f"SimpleConversionWatchService[{self.config.hostname}]"
