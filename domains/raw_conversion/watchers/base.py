"""
Watch service lifecycle shared by simple and dependent conversion watchers.

A watch service owns a watchdog observer on one or more working
directories. Crawlers delete ``<id>.lock`` once ``<id>.<suffix>`` has been
written completely; that deletion is the trigger for a conversion attempt.
"""

import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.utils.config import Settings, get_settings
from domains.raw_conversion.converters.base import FileConverter
from domains.raw_conversion.filesystem import delete_lock_files, delete_temporary_conv_files, is_lock_file
from domains.raw_conversion.watchers.polling import WatchQueue

# (label of the watched directory, path of the removed lock file)
LockEvent = Tuple[str, Path]


class WatchServiceState(str, Enum):
    """Lifecycle states of a watch service."""
    STOPPED = "STOPPED"
    PREPARING = "PREPARING"
    WATCHING = "WATCHING"


class LockFileRemovedHandler(FileSystemEventHandler):
    """Watchdog handler forwarding removed lock files to a watch queue."""

    def __init__(self, watch_queue: WatchQueue, label: str):
        """
        Initialize event handler.

        Args:
            watch_queue: Queue consumed by the watch loop
            label: Name of the watched directory, passed along with each event
        """
        super().__init__()
        self.watch_queue = watch_queue
        self.label = label

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle lock file deletion."""
        if event.is_directory:
            return
        self._handle_removal(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """A lock file renamed to something else is gone as well."""
        if event.is_directory:
            return
        self._handle_removal(event.src_path)

    def _handle_removal(self, raw_path) -> None:
        path = Path(str(raw_path))
        if not is_lock_file(path):
            return

        logger.debug(f"Lock removed in [{self.label}]: {path.name}")
        self.watch_queue.put((self.label, path))


class ConversionWatchService:
    """
    Converts raw files of watched directories as soon as their lock file is gone.

    Lifecycle: ``prepare()`` purges stale locks, starts the observer and
    drains the backlog. ``watch()`` blocks and processes lock removals until
    ``stop()`` is called. ``start()`` runs both, the latter on a daemon thread.
    """

    def __init__(self, file_converter: FileConverter, watched_dirs: Dict[str, Path], settings: Optional[Settings] = None):
        """
        Initialize watch service.

        Args:
            file_converter: Converter invoked for backlog and lock removals
            watched_dirs: Directories to watch, keyed by a label used in logs
            settings: Settings for the long poll backoff
        """
        self.file_converter = file_converter
        self.watched_dirs = watched_dirs
        self.settings = settings or get_settings()

        self.state = WatchServiceState.STOPPED
        self._lifecycle_lock = threading.Lock()
        self._queue: Optional[WatchQueue[LockEvent]] = None
        self._observer: Optional[Observer] = None
        self._thread: Optional[threading.Thread] = None
        self._is_prepared = False

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def prepare(self) -> None:
        """Delete stale locks and temporary files, start observing and convert the backlog."""
        if self._is_prepared:
            return

        self.state = WatchServiceState.PREPARING

        for directory in set(self.watched_dirs.values()):
            delete_lock_files(directory)
            delete_temporary_conv_files(directory)

        self._queue = WatchQueue(
            min_delay=self.settings.long_poll_min_delay,
            max_delay=self.settings.long_poll_max_delay,
            step=self.settings.long_poll_step,
        )
        self._start_observer(self._queue)

        # Lock removals during the drain are queued and handled by watch()
        self.file_converter.convert_unconverted_files()
        self._is_prepared = True

    def _start_observer(self, watch_queue: WatchQueue[LockEvent]) -> None:
        observer = Observer()
        scheduled: set[Path] = set()

        for label, directory in self.watched_dirs.items():
            if directory in scheduled:
                continue
            observer.schedule(LockFileRemovedHandler(watch_queue, label), str(directory), recursive=False)
            scheduled.add(directory)
            logger.info(f"{self.name} watching [{label}]: {directory}")

        observer.daemon = True
        observer.start()
        self._observer = observer

    def watch(self) -> None:
        """Process lock removals until the service is stopped."""
        if not self._is_prepared:
            self.prepare()

        watch_queue = self._queue
        if watch_queue is None:
            return

        self.state = WatchServiceState.WATCHING

        event = watch_queue.long_poll()
        while event is not None:
            label, lock_file = event
            try:
                self.on_lock_removed(label, lock_file)
            except Exception as e:
                logger.error(f"{self.name} failed to convert [{lock_file.name}] after lock removal in [{label}]: {e}")

            event = watch_queue.long_poll()

        logger.info(f"{self.name} stopped watching")

    def on_lock_removed(self, label: str, lock_file: Path) -> None:
        """Try to convert the raw file belonging to ``lock_file``."""
        if self.file_converter.convert_file_to_conv_file(lock_file):
            logger.debug(f"{self.name} converted [{lock_file.stem}] after lock removal in [{label}]")

    def start(self) -> bool:
        """
        Prepare and watch in the background.

        Returns:
            False if the service is already running, True otherwise
        """
        with self._lifecycle_lock:
            if self.is_running:
                logger.info(f"Skipping start of {self.name}, because it is already running.")
                return False

            try:
                self.prepare()
            except Exception:
                self._release()
                raise

            self._thread = threading.Thread(target=self.watch, name=self.name, daemon=True)
            self._thread.start()
            return True

    def stop(self) -> None:
        """Stop watching and release the observer. Idempotent."""
        with self._lifecycle_lock:
            self._release()

    def _release(self) -> None:
        if self._queue is not None:
            self._queue.close()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.settings.long_poll_max_delay * 10)

        self._queue = None
        self._observer = None
        self._thread = None
        self._is_prepared = False
        self.state = WatchServiceState.STOPPED
