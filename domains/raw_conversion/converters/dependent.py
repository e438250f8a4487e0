"""
File converter for providers whose records are assembled from several
working directories (e.g. the anime page plus a separately crawled
relations page).
"""

from concurrent.futures import Executor
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from app.models.schemas import MetaDataProviderConfig, identity_token
from app.utils.config import AppConfig
from domains.raw_conversion.converters.base import FileConverter, PathAnimeConverter
from domains.raw_conversion.errors import ConfigurationError, ConversionError
from domains.raw_conversion.filesystem import (
    file_of,
    has_conv_file,
    id_of,
    list_regular_files,
    lock_file_exists,
    write_conv_file,
)


def require_same_provider(configs: Iterable[MetaDataProviderConfig]) -> None:
    """Raise ConfigurationError unless all configs share one hostname."""
    if len({config.hostname for config in configs}) != 1:
        raise ConfigurationError("All configs must be from the same meta data provider.")


def unique_configs(
    main_config: MetaDataProviderConfig,
    dependent_configs: Iterable[MetaDataProviderConfig],
) -> list[MetaDataProviderConfig]:
    """Main config followed by the dependent configs, each identity once."""
    configs: dict[int, MetaDataProviderConfig] = {identity_token(main_config): main_config}
    for config in dependent_configs:
        configs.setdefault(identity_token(config), config)
    return list(configs.values())


class DependentFileConverter(FileConverter):
    """
    Converts a raw file of the main config once every dependent working
    directory holds a file with the same id.

    Conv files are written to the main working directory only. The injected
    converter receives the main raw file and reads companion files itself.
    """

    def __init__(
        self,
        app_config: AppConfig,
        main_config: MetaDataProviderConfig,
        dependent_configs: Iterable[MetaDataProviderConfig],
        converter: PathAnimeConverter,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize dependent file converter.

        Args:
            app_config: Resolves working directories by config identity
            main_config: Config whose working directory receives the conv files
            dependent_configs: Configs providing companion files
            converter: Converts a main raw file into records
            executor: Pool for backlog drains, defaults to the shared one
        """
        dependent_configs = list(dependent_configs)
        require_same_provider([main_config, *dependent_configs])

        super().__init__(converter, executor)
        self.main_config = main_config
        self.configs = unique_configs(main_config, dependent_configs)
        self.working_dirs = {
            identity_token(config): app_config.working_dir(config)
            for config in self.configs
        }
        self.output_dir = self.working_dirs[identity_token(main_config)]

    def working_dir(self, config: MetaDataProviderConfig) -> Path:
        return self.working_dirs[identity_token(config)]

    def convert_unconverted_files(self) -> int:
        """
        Convert every id which has all of its files and no conv file.

        Returns:
            Number of conv files written
        """
        logger.info(f"Converting unconverted files for [{self.main_config.hostname}].")

        candidate_ids: set[str] = set()
        for config in self.configs:
            for file in list_regular_files(self.working_dir(config), config.file_suffix):
                candidate_ids.add(id_of(file))

        ready = [
            file_of(self.output_dir, anime_id, self.main_config.file_suffix)
            for anime_id in sorted(candidate_ids)
            if not has_conv_file(self.output_dir, anime_id) and self.all_files_exist(anime_id)
        ]
        converted = self._convert_all(ready)

        logger.info(f"Finished converting unconverted files for [{self.main_config.hostname}]. Converted {converted} of {len(ready)}.")
        return converted

    def all_files_exist(self, anime_id: str) -> bool:
        """
        Check if every working directory holds a finished file for ``anime_id``.

        A file whose lock file still exists is not finished yet.
        """
        for config in self.configs:
            working_dir = self.working_dir(config)
            if not file_of(working_dir, anime_id, config.file_suffix).is_file():
                return False
            if lock_file_exists(working_dir, anime_id):
                return False
        return True

    def convert_file_to_conv_file(self, file: Path) -> bool:
        """
        Convert the main raw file for the id of ``file`` if all files exist.

        Args:
            file: Main raw file or any file sharing its id

        Returns:
            True if a conv file was written, False if already converted or not ready yet

        Raises:
            ConversionError: If the converter failed. No conv file is written.
        """
        anime_id = id_of(file)

        with self.id_lock(anime_id):
            return self._convert(anime_id)

    def _convert(self, anime_id: str) -> bool:
        if has_conv_file(self.output_dir, anime_id):
            logger.debug(f"Skipping [{anime_id}] from [{self.main_config.hostname}], already converted")
            return False

        if not self.all_files_exist(anime_id):
            logger.debug(f"Not converting [{anime_id}] from [{self.main_config.hostname}] yet, files missing")
            return False

        raw_file = file_of(self.output_dir, anime_id, self.main_config.file_suffix)
        logger.debug(f"Converting [{raw_file.name}] from [{self.main_config.hostname}]")

        try:
            records = list(self.converter.convert(raw_file))
        except Exception as e:
            raise ConversionError(raw_file, f"Unable to convert [{raw_file.name}] from [{self.main_config.hostname}]: {e}") from e

        write_conv_file(raw_file, records)
        return True
