"""
File converter for providers whose raw files are self-contained.
"""

from concurrent.futures import Executor
from pathlib import Path
from typing import Optional

from loguru import logger

from app.models.schemas import MetaDataProviderConfig
from app.utils.config import AppConfig
from domains.raw_conversion.converters.base import FileConverter, PathAnimeConverter
from domains.raw_conversion.errors import ConversionError
from domains.raw_conversion.filesystem import (
    file_of,
    has_conv_file,
    id_of,
    list_regular_files,
    lock_file_exists,
    write_conv_file,
)


class SimpleFileConverter(FileConverter):
    """Converts raw files of a single provider working directory."""

    def __init__(
        self,
        app_config: AppConfig,
        config: MetaDataProviderConfig,
        converter: PathAnimeConverter,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize simple file converter.

        Args:
            app_config: Resolves the working directory of ``config``
            config: Meta data provider config
            converter: Converts a raw file of ``config`` into records
            executor: Pool for backlog drains, defaults to the shared one
        """
        super().__init__(converter, executor)
        self.config = config
        self.working_dir = app_config.working_dir(config)

    def convert_unconverted_files(self) -> int:
        """
        Convert all raw files which have not been converted yet.

        Returns:
            Number of conv files written
        """
        logger.info(f"Converting unconverted files for [{self.config.hostname}].")

        unconverted = [
            file for file in list_regular_files(self.working_dir, self.config.file_suffix)
            if not has_conv_file(self.working_dir, id_of(file))
            and not lock_file_exists(self.working_dir, id_of(file))
        ]
        converted = self._convert_all(unconverted)

        logger.info(f"Finished converting unconverted files for [{self.config.hostname}]. Converted {converted} of {len(unconverted)}.")
        return converted

    def convert_file_to_conv_file(self, file: Path) -> bool:
        """
        Convert a single raw file into its conv file.

        Args:
            file: Raw file or any sibling sharing its id

        Returns:
            True if a conv file was written, False if there was nothing to do

        Raises:
            ConversionError: If the converter failed. No conv file is written.
        """
        anime_id = id_of(file)

        with self.id_lock(anime_id):
            return self._convert(anime_id)

    def _convert(self, anime_id: str) -> bool:
        if has_conv_file(self.working_dir, anime_id):
            logger.debug(f"Skipping [{anime_id}] from [{self.config.hostname}], already converted")
            return False

        raw_file = file_of(self.working_dir, anime_id, self.config.file_suffix)
        if not raw_file.is_file():
            logger.debug(f"Skipping [{anime_id}] from [{self.config.hostname}], no raw file")
            return False

        if lock_file_exists(self.working_dir, anime_id):
            logger.debug(f"Not converting [{anime_id}] from [{self.config.hostname}] yet, still locked")
            return False

        logger.debug(f"Converting [{raw_file.name}] from [{self.config.hostname}]")

        try:
            records = list(self.converter.convert(raw_file))
        except Exception as e:
            raise ConversionError(raw_file, f"Unable to convert [{raw_file.name}] from [{self.config.hostname}]: {e}") from e

        write_conv_file(raw_file, records)
        return True
