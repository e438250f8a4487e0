"""
Converter interfaces.

Per provider parsers plug into the pipeline as ``PathAnimeConverter``
strategies. ``FileConverter`` implementations decide when a raw file is
eligible and call the strategy exactly once per id.
"""

import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, as_completed
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Sequence, runtime_checkable

from loguru import logger

from app.utils.executor import get_fs_executor
from domains.raw_conversion.filesystem import list_regular_files

# Files converted per batch during a backlog drain
BACKLOG_CHUNK_SIZE = 250

# Locks serializing conversions of the same id
ID_LOCK_STRIPES = 64


@runtime_checkable
class AnimeConverter(Protocol):
    """Converts the raw content of a single file into a record."""

    def convert(self, raw_content: str) -> Any:
        ...


@runtime_checkable
class PathAnimeConverter(Protocol):
    """Converts a raw file into zero or more records."""

    def convert(self, path: Path) -> Sequence[Any]:
        ...


class DefaultPathAnimeConverter:
    """Applies an ``AnimeConverter`` to a file or to every raw file of a directory."""

    def __init__(self, anime_converter: AnimeConverter, file_suffix: str):
        """
        Initialize path converter.

        Args:
            anime_converter: Converter for the content of a single file
            file_suffix: Suffix of raw files when converting a directory
        """
        self.anime_converter = anime_converter
        self.file_suffix = file_suffix

    def convert(self, path: Path) -> list[Any]:
        """
        Convert a file or a directory.

        Args:
            path: Raw file or directory of raw files

        Returns:
            One record per converted file
        """
        if path.is_file():
            return [self._convert_file(path)]

        if path.is_dir():
            return [self._convert_file(file) for file in list_regular_files(path, self.file_suffix)]

        raise ValueError(f"Given path [{path}] is neither file nor directory.")

    def _convert_file(self, file: Path) -> Any:
        return self.anime_converter.convert(file.read_text(encoding="utf-8"))


class FileConverter(ABC):
    """Converts raw files of a provider into conv files."""

    def __init__(self, converter: PathAnimeConverter, executor: Optional[Executor] = None):
        self.converter = converter
        self._executor = executor
        self._id_locks = [threading.Lock() for _ in range(ID_LOCK_STRIPES)]

    @property
    def executor(self) -> Executor:
        if self._executor is None:
            self._executor = get_fs_executor()
        return self._executor

    def id_lock(self, anime_id: str) -> threading.Lock:
        """Lock held while ``anime_id`` is checked and converted."""
        return self._id_locks[hash(anime_id) % ID_LOCK_STRIPES]

    @abstractmethod
    def convert_unconverted_files(self) -> int:
        """Convert every eligible raw file that has no conv file yet."""

    @abstractmethod
    def convert_file_to_conv_file(self, file: Path) -> bool:
        """Convert a single raw file, returns whether a conv file was written."""

    def _convert_all(self, files: Iterable[Path]) -> int:
        """Convert files on the executor in chunks, failures are logged and skipped."""
        files = list(files)
        converted = 0

        for start in range(0, len(files), BACKLOG_CHUNK_SIZE):
            chunk = files[start:start + BACKLOG_CHUNK_SIZE]
            futures = {
                self.executor.submit(self.convert_file_to_conv_file, file): file
                for file in chunk
            }

            for future in as_completed(futures):
                try:
                    if future.result():
                        converted += 1
                except Exception as e:
                    logger.error(f"Skipping [{futures[future].name}]: {e}")

        return converted
