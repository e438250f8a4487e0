"""
Watch service for providers which need files of several working
directories to convert a single anime.

Main and dependent files may arrive in any order. A lock removal in any of
the directories re-checks whether all files for that id exist now.
"""

from concurrent.futures import Executor
from typing import Iterable, Optional

from app.models.schemas import MetaDataProviderConfig
from app.utils.config import AppConfig, Settings
from domains.raw_conversion.converters.base import PathAnimeConverter
from domains.raw_conversion.converters.dependent import DependentFileConverter, require_same_provider
from domains.raw_conversion.watchers.base import ConversionWatchService
from domains.raw_conversion.watchers.simple import watch_label


class DependentConversionWatchService(ConversionWatchService):
    """Watches the main working directory and all dependent ones."""

    def __init__(
        self,
        app_config: AppConfig,
        main_config: MetaDataProviderConfig,
        dependent_configs: Iterable[MetaDataProviderConfig],
        converter: PathAnimeConverter,
        settings: Optional[Settings] = None,
        executor: Optional[Executor] = None,
    ):
        dependent_configs = list(dependent_configs)
        require_same_provider([main_config, *dependent_configs])

        file_converter = DependentFileConverter(
            app_config=app_config,
            main_config=main_config,
            dependent_configs=dependent_configs,
            converter=converter,
            executor=executor,
        )
        super().__init__(
            file_converter=file_converter,
            watched_dirs={
                watch_label(config): file_converter.working_dir(config)
                for config in file_converter.configs
            },
            settings=settings,
        )
        self.main_config = main_config
        self.dependent_configs = dependent_configs

    @property
    def name(self) -> str:
        return f"DependentConversionWatchService[{self.main_config.hostname}]"
