import sys
import threading
import time
import types
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import pytest

from app.models.schemas import AnimeRaw, MetaDataProviderConfig
from app.utils.config import Settings


class FakeAppConfig:
    """Maps provider configs to directories by identity."""

    def __init__(self, dirs: Dict[MetaDataProviderConfig, Path], providers: Optional[Iterable[MetaDataProviderConfig]] = None):
        self.dirs = dirs
        self.providers = frozenset(providers if providers is not None else dirs)
        self.lookups = 0

    def working_dir(self, config: MetaDataProviderConfig) -> Path:
        self.lookups += 1
        return self.dirs[config]

    def metadata_provider_configurations(self):
        return self.providers


class RecordingConverter:
    """Converter counting its invocations, optionally failing for some ids."""

    def __init__(self, failing_ids: Iterable[str] = ()):
        self.calls: list[Path] = []
        self.failing_ids = set(failing_ids)
        self._lock = threading.Lock()

    @property
    def invocations(self) -> int:
        return len(self.calls)

    def convert(self, path: Path):
        with self._lock:
            self.calls.append(path)
        if path.stem in self.failing_ids:
            raise RuntimeError(f"broken raw file {path.name}")
        return [AnimeRaw(title=f"Anime {path.stem}", sources=[f"https://example.org/anime/{path.stem}"])]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        downloads_directory=tmp_path,
        long_poll_min_delay=0.01,
        long_poll_max_delay=0.05,
        long_poll_step=0.01,
        status_poll_interval=0.05,
        conversion_timeout=1.0,
        fs_worker_threads=2,
    )


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def converter() -> RecordingConverter:
    return RecordingConverter()


@pytest.fixture
def make_dir(tmp_path) -> Callable[[str], Path]:
    def _make_dir(name: str) -> Path:
        directory = tmp_path / name
        directory.mkdir()
        return directory

    return _make_dir


@pytest.fixture
def make_app_config() -> Callable[..., FakeAppConfig]:
    return FakeAppConfig


@pytest.fixture
def make_converter() -> Callable[..., RecordingConverter]:
    return RecordingConverter


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.02)
        return predicate()

    return _wait_until


def json_config(hostname: str = "example.org", suffix: str = "json") -> MetaDataProviderConfig:
    return MetaDataProviderConfig(hostname=hostname, file_suffix=suffix)


@pytest.fixture
def provider_config() -> Callable[..., MetaDataProviderConfig]:
    return json_config


@pytest.fixture
def converter_module(monkeypatch, converter):
    """Importable module exposing a converter factory as ``recording_converters:build``."""
    module = types.ModuleType("recording_converters")
    module.requested = []

    def build(config):
        module.requested.append(config)
        return converter

    module.build = build
    monkeypatch.setitem(sys.modules, module.__name__, module)
    return module
