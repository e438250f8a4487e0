"""
Raw file conversion service.

Runs one watch service per registered provider and tells the orchestration
when every raw file of every provider has been converted.
"""

import importlib
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from loguru import logger

from app.models.providers import DEPENDENT_PROVIDER_CONFIGS
from app.models.schemas import MetaDataProviderConfig, ProviderConversionStatus
from app.utils.config import AppConfig, Settings, get_settings
from domains.raw_conversion.converters.base import PathAnimeConverter
from domains.raw_conversion.errors import ConfigurationError, ConversionTimeoutError
from domains.raw_conversion.filesystem import (
    has_conv_file,
    id_of,
    list_regular_files,
)
from domains.raw_conversion.watchers.base import ConversionWatchService
from domains.raw_conversion.watchers.dependent import DependentConversionWatchService
from domains.raw_conversion.watchers.simple import SimpleConversionWatchService


@dataclass(frozen=True)
class ConversionRegistration:
    """Converter of a provider, optionally depending on role configs."""

    config: MetaDataProviderConfig
    converter: PathAnimeConverter
    dependent_configs: Sequence[MetaDataProviderConfig] = field(default_factory=tuple)

    def build_watch_service(self, app_config: AppConfig, settings: Settings) -> ConversionWatchService:
        if self.dependent_configs:
            return DependentConversionWatchService(
                app_config=app_config,
                main_config=self.config,
                dependent_configs=self.dependent_configs,
                converter=self.converter,
                settings=settings,
            )

        return SimpleConversionWatchService(
            app_config=app_config,
            config=self.config,
            converter=self.converter,
            settings=settings,
        )


ConverterFactory = Callable[[MetaDataProviderConfig], PathAnimeConverter]


def load_converter_factory(reference: str) -> ConverterFactory:
    """
    Import a converter factory.

    Args:
        reference: ``module:attribute`` of a callable taking the provider config

    Raises:
        ConfigurationError: If the reference is malformed or cannot be imported
    """
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"Converter reference [{reference}] must look like [module:attribute].")

    try:
        factory = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Unable to load converter [{reference}]: {e}") from e

    if not callable(factory):
        raise ConfigurationError(f"Converter reference [{reference}] is not callable.")
    return factory


def build_registrations(
    app_config: AppConfig,
    factories: Mapping[str, ConverterFactory],
) -> List[ConversionRegistration]:
    """
    Create one registration per main provider which has a converter factory.

    Providers with role configs get a dependent registration.
    """
    registrations = []
    known_hostnames = set()

    for config in sorted(app_config.metadata_provider_configurations(), key=lambda c: c.directory_name):
        known_hostnames.add(config.hostname)
        factory = factories.get(config.hostname)
        if factory is None:
            logger.warning(f"No converter registered for [{config.hostname}], its raw files will not be converted.")
            continue

        registrations.append(ConversionRegistration(
            config=config,
            converter=factory(config),
            dependent_configs=DEPENDENT_PROVIDER_CONFIGS.get(config, ()),
        ))

    for hostname in sorted(set(factories) - known_hostnames):
        logger.warning(f"Ignoring converter for unknown provider [{hostname}]")

    return registrations


class RawFileConversionService:
    """Starts watch services and checks the conversion status of raw files."""

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        registrations: Iterable[ConversionRegistration] = (),
        settings: Optional[Settings] = None,
    ):
        """
        Initialize conversion service.

        Args:
            app_config: Provider configs and working directories
            registrations: Converters to run watch services for
            settings: Timeout and poll interval settings
        """
        self.settings = settings or get_settings()
        self.app_config = app_config or AppConfig(settings=self.settings)
        self.registrations = list(registrations)
        self.watch_services: List[ConversionWatchService] = []
        self._started = False
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        app_config: Optional[AppConfig] = None,
    ) -> "RawFileConversionService":
        """
        Create a service with a registration per converter in ``settings.converters``.

        Raises:
            ConfigurationError: If a configured converter cannot be loaded
        """
        settings = settings or get_settings()
        app_config = app_config or AppConfig(settings=settings)
        factories = {
            hostname: load_converter_factory(reference)
            for hostname, reference in settings.converters.items()
        }

        return cls(
            app_config=app_config,
            registrations=build_registrations(app_config, factories),
            settings=settings,
        )

    def conversion_status(self) -> List[ProviderConversionStatus]:
        """
        Count raw, converted and pending files per provider.

        Returns:
            One entry per configured provider
        """
        statuses = []

        for config in sorted(self.app_config.metadata_provider_configurations(), key=lambda c: c.directory_name):
            working_dir = self.app_config.working_dir(config)
            raw_files = list_regular_files(working_dir, config.file_suffix)
            pending = sum(1 for file in raw_files if not has_conv_file(working_dir, id_of(file)))

            statuses.append(ProviderConversionStatus(
                hostname=config.hostname,
                working_dir=str(working_dir),
                raw_files=len(raw_files),
                converted_files=len(raw_files) - pending,
                pending_files=pending,
            ))

        return statuses

    def unconverted_files_exist(self) -> bool:
        """
        Check if any raw file of any provider lacks its conv file.

        Returns:
            True if there are files which still need to be converted
        """
        logger.info("Checking if there are still files which need to be converted.")

        for config in self.app_config.metadata_provider_configurations():
            working_dir = self.app_config.working_dir(config)
            for raw_file in list_regular_files(working_dir, config.file_suffix):
                if not has_conv_file(working_dir, id_of(raw_file)):
                    logger.debug(f"Unconverted file in [{config.hostname}]: {raw_file.name}")
                    return True

        return False

    def wait_for_all_raw_files_to_be_converted(self, timeout: Optional[float] = None) -> None:
        """
        Block until all raw files have been converted.

        Args:
            timeout: Upper bound in seconds, defaults to settings.conversion_timeout

        Raises:
            ConversionTimeoutError: If files are still unconverted after ``timeout``
        """
        timeout = self.settings.conversion_timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout

        while self.unconverted_files_exist():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ConversionTimeoutError(timeout)
            time.sleep(min(self.settings.status_poll_interval, remaining))

    def start(self) -> bool:
        """
        Build, prepare and start a watch service per registration.

        Returns:
            False if watch services are already running, True otherwise
        """
        with self._lock:
            if self._started:
                logger.info(
                    "Skipping start, because watch services are already running. "
                    "Either use shutdown before starting anew or create new instance of the class."
                )
                return False

            logger.info("Starting watch services.")

            self.watch_services = [
                registration.build_watch_service(self.app_config, self.settings)
                for registration in self.registrations
            ]

            try:
                for watch_service in self.watch_services:
                    watch_service.start()
            except Exception:
                self._stop_all()
                raise

            self._started = True
            logger.success(f"Started {len(self.watch_services)} watch services")
            return True

    def shutdown(self) -> None:
        """Stop all watch services and free resources."""
        with self._lock:
            self._stop_all()

    def _stop_all(self) -> None:
        for watch_service in self.watch_services:
            watch_service.stop()
        self.watch_services = []
        self._started = False


# Global service instance
_service: Optional[RawFileConversionService] = None


def get_conversion_service() -> RawFileConversionService:
    """Get global conversion service instance."""
    global _service
    if _service is None:
        _service = RawFileConversionService.from_settings()
    return _service


def close_conversion_service():
    """Shut down global conversion service."""
    global _service
    if _service:
        _service.shutdown()
        _service = None
