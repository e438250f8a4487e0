"""
Bounded worker pool for filesystem operations.

Backlog drains of all watch services share this pool so that a large backlog
cannot open an unbounded number of files at once.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from loguru import logger

from app.utils.config import get_settings

# Global executor instance
_executor: Optional[ThreadPoolExecutor] = None


def get_fs_executor() -> ThreadPoolExecutor:
    """Get global filesystem executor."""
    global _executor
    if _executor is None:
        workers = max(1, get_settings().fs_worker_threads)
        logger.debug(f"Creating filesystem executor with {workers} workers")
        _executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="modb-fs")
    return _executor


def close_fs_executor():
    """Shut down global filesystem executor."""
    global _executor
    if _executor:
        _executor.shutdown(wait=True)
        _executor = None
