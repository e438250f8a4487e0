"""Filesystem probe and file conventions of provider working directories.

A working directory contains three kinds of files per anime id:

``<id>.<suffix>``
    raw file written by a crawler
``<id>.lock``
    exists while the crawler is still writing the raw file
``<id>.conv``
    written by the converters once the raw file has been converted

All helpers are stateless and tolerate the directory being modified while
they run.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger

from app.utils.helpers import records_to_json

LOCK_FILE_SUFFIX = "lock"
CONVERTED_FILE_SUFFIX = "conv"
TEMPORARY_FILE_SUFFIX = "tmp"


def list_regular_files(directory: Path, suffix: Optional[str] = None) -> list[Path]:
    """Return regular files directly inside ``directory`` ending in ``.suffix``."""

    files: list[Path] = []

    try:
        entries = list(directory.iterdir())
    except FileNotFoundError:
        return files

    for entry in entries:
        if suffix is not None and entry.suffix != f".{suffix}":
            continue
        # Entries may vanish between listing and checking.
        if entry.is_file():
            files.append(entry)

    return sorted(files)


def id_of(path: Path) -> str:
    """Anime id derived from the file name without its suffix."""

    return path.stem


def change_suffix(path: Path, suffix: str) -> Path:
    """Sibling of ``path`` with the same id and a different suffix."""

    return path.with_name(f"{id_of(path)}.{suffix}")


def file_of(directory: Path, anime_id: str, suffix: str) -> Path:
    return directory / f"{anime_id}.{suffix}"


def conv_file_of(raw_file: Path) -> Path:
    return change_suffix(raw_file, CONVERTED_FILE_SUFFIX)


def has_conv_file(directory: Path, anime_id: str) -> bool:
    return file_of(directory, anime_id, CONVERTED_FILE_SUFFIX).is_file()


def lock_file_exists(directory: Path, anime_id: str) -> bool:
    return file_of(directory, anime_id, LOCK_FILE_SUFFIX).is_file()


def is_lock_file(path: Path) -> bool:
    return path.suffix == f".{LOCK_FILE_SUFFIX}"


def delete_lock_files(directory: Path) -> int:
    """Remove stale lock files. Directories named ``*.lock`` are kept."""

    logger.info(f"Deleting [{LOCK_FILE_SUFFIX}] files in [{directory}]")

    deleted = 0
    for lock_file in list_regular_files(directory, LOCK_FILE_SUFFIX):
        logger.debug(f"Deleting [{lock_file}]")
        try:
            lock_file.unlink()
            deleted += 1
        except FileNotFoundError:
            continue

    return deleted


def delete_temporary_conv_files(directory: Path) -> int:
    """Remove conv files left half written by an interrupted run."""

    deleted = 0
    for tmp_file in list_regular_files(directory, TEMPORARY_FILE_SUFFIX):
        if f".{CONVERTED_FILE_SUFFIX}." not in tmp_file.name:
            continue
        logger.debug(f"Deleting [{tmp_file}]")
        try:
            tmp_file.unlink()
            deleted += 1
        except FileNotFoundError:
            continue

    return deleted


def write_conv_file(raw_file: Path, records: Iterable[Any]) -> Path:
    """Persist ``records`` next to ``raw_file`` as its conv file.

    The content is written to a temporary sibling first and moved into place,
    so the conv file never exists in a partially written state.
    """

    conv_file = conv_file_of(raw_file)
    tmp_file = conv_file.with_name(f"{conv_file.name}.{os.getpid()}-{threading.get_ident()}.{TEMPORARY_FILE_SUFFIX}")
    tmp_file.write_text(records_to_json(records), encoding="utf-8")
    os.replace(tmp_file, conv_file)
    return conv_file


def already_downloaded_ids(directory: Path, suffix: str) -> set[str]:
    """Ids of all raw files present in ``directory``."""

    return {id_of(raw_file) for raw_file in list_regular_files(directory, suffix)}
