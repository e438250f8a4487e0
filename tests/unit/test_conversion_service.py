import threading
import time

import pytest

from app.models.providers import ANIDB, KITSU, KITSU_RELATIONS, KITSU_TAGS
from app.utils.config import AppConfig
from domains.raw_conversion.converters import DefaultPathAnimeConverter
from domains.raw_conversion.errors import ConfigurationError, ConversionTimeoutError
from domains.raw_conversion.service import (
    ConversionRegistration,
    RawFileConversionService,
    build_registrations,
    load_converter_factory,
)
from domains.raw_conversion.watchers import DependentConversionWatchService, SimpleConversionWatchService


@pytest.fixture
def two_providers(make_dir, provider_config, make_app_config):
    first, second = provider_config("example.org", "json"), provider_config("other-example.com", "html")
    first_dir, second_dir = make_dir("provider1"), make_dir("provider2")
    return make_app_config({first: first_dir, second: second_dir}), first, second, first_dir, second_dir


def test_unconverted_files_exist(two_providers, settings):
    app_config, first, second, first_dir, second_dir = two_providers
    (first_dir / "1.json").write_text("{}")
    (first_dir / "1.conv").write_text("[]")
    (second_dir / "3.html").write_text("")

    service = RawFileConversionService(app_config=app_config, settings=settings)

    assert service.unconverted_files_exist() is True

    (second_dir / "3.conv").write_text("[]")

    assert service.unconverted_files_exist() is False


def test_files_of_other_suffixes_are_not_counted(two_providers, settings):
    app_config, first, second, first_dir, second_dir = two_providers
    (first_dir / "1.lock").write_text("")
    (first_dir / "2.BAK").write_text("")
    (second_dir / "3.json").write_text("")

    service = RawFileConversionService(app_config=app_config, settings=settings)

    assert service.unconverted_files_exist() is False


def test_conversion_status_counts_per_provider(two_providers, settings):
    app_config, first, second, first_dir, second_dir = two_providers
    for name in ("1.json", "1.conv", "2.json"):
        (first_dir / name).write_text("")

    statuses = {s.hostname: s for s in RawFileConversionService(app_config=app_config, settings=settings).conversion_status()}

    assert statuses["example.org"].raw_files == 2
    assert statuses["example.org"].converted_files == 1
    assert statuses["example.org"].pending_files == 1
    assert statuses["other-example.com"].raw_files == 0


def test_wait_returns_once_everything_is_converted(two_providers, settings):
    app_config, first, second, first_dir, second_dir = two_providers
    (first_dir / "1.json").write_text("{}")
    timer = threading.Timer(0.3, (first_dir / "1.conv").write_text, args=("[]",))
    timer.start()

    service = RawFileConversionService(app_config=app_config, settings=settings)
    started = time.monotonic()
    service.wait_for_all_raw_files_to_be_converted(timeout=5.0)

    assert 0.25 <= time.monotonic() - started < 5.0


def test_wait_raises_timeout_after_the_bound(two_providers, settings):
    app_config, first, second, first_dir, second_dir = two_providers
    (second_dir / "3.html").write_text("")

    service = RawFileConversionService(app_config=app_config, settings=settings)
    started = time.monotonic()

    with pytest.raises(ConversionTimeoutError) as exc_info:
        service.wait_for_all_raw_files_to_be_converted(timeout=1.0)

    elapsed = time.monotonic() - started
    assert 1.0 <= elapsed < 3.0
    assert exc_info.value.timeout == 1.0
    assert str(exc_info.value) == "Timed out waiting for 1000 ms"


def test_wait_uses_configured_timeout(two_providers, settings):
    app_config, first, second, first_dir, second_dir = two_providers
    (first_dir / "1.json").write_text("{}")

    service = RawFileConversionService(app_config=app_config, settings=settings.model_copy(update={"conversion_timeout": 0.2}))

    with pytest.raises(TimeoutError, match="200 ms"):
        service.wait_for_all_raw_files_to_be_converted()


def test_start_twice_returns_false(two_providers, settings):
    app_config = two_providers[0]
    service = RawFileConversionService(app_config=app_config, settings=settings)

    try:
        assert service.start() is True
        assert service.start() is False
    finally:
        service.shutdown()

    assert service.start() is True
    service.shutdown()


def test_start_builds_watch_services_for_registrations(make_dir, provider_config, make_app_config, converter, settings, wait_until):
    simple, main, relations = provider_config("simple.example.org"), provider_config("kitsu.example.org"), provider_config("kitsu.example.org")
    simple_dir, main_dir, relations_dir = make_dir("simple"), make_dir("main"), make_dir("relations")
    (simple_dir / "1.json").write_text("{}")
    (main_dir / "2.json").write_text("{}")
    (relations_dir / "2.json").write_text("{}")

    service = RawFileConversionService(
        app_config=make_app_config({simple: simple_dir, main: main_dir, relations: relations_dir}, providers=[simple, main]),
        registrations=[
            ConversionRegistration(config=simple, converter=converter),
            ConversionRegistration(config=main, converter=converter, dependent_configs=(relations,)),
        ],
        settings=settings,
    )

    try:
        assert service.start() is True
        assert [type(w) for w in service.watch_services] == [SimpleConversionWatchService, DependentConversionWatchService]
        assert all(w.is_running for w in service.watch_services)

        service.wait_for_all_raw_files_to_be_converted(timeout=2.0)
        assert (simple_dir / "1.conv").is_file()
        assert (main_dir / "2.conv").is_file()
    finally:
        service.shutdown()

    assert service.watch_services == []


# =====================================================
# Registrations from settings
# =====================================================

def test_load_converter_factory():
    factory = load_converter_factory("domains.raw_conversion.converters:DefaultPathAnimeConverter")

    assert factory is DefaultPathAnimeConverter


@pytest.mark.parametrize("reference", [
    "domains.raw_conversion.converters",
    ":DefaultPathAnimeConverter",
    "domains.raw_conversion.converters:MissingConverter",
    "domains.raw_conversion.no_such_module:build",
    "domains.raw_conversion.converters.base:BACKLOG_CHUNK_SIZE",
])
def test_load_converter_factory_rejects_invalid_references(reference):
    with pytest.raises(ConfigurationError):
        load_converter_factory(reference)


def test_build_registrations_uses_dependent_provider_configs(settings, converter_module):
    app_config = AppConfig(settings=settings)

    registrations = build_registrations(app_config, {
        "kitsu.app": converter_module.build,
        "anidb.net": converter_module.build,
        "unknown.example.org": converter_module.build,
    })

    assert [r.config for r in registrations] == [ANIDB, KITSU]
    assert registrations[0].dependent_configs == ()
    assert registrations[1].dependent_configs == (KITSU_RELATIONS, KITSU_TAGS)
    assert converter_module.requested == [ANIDB, KITSU]


def test_service_from_settings_starts_one_watch_service_per_converter(settings, converter_module, converter, wait_until):
    settings = settings.model_copy(update={"converters": {
        "anidb.net": "recording_converters:build",
        "kitsu.app": "recording_converters:build",
    }})
    app_config = AppConfig(settings=settings)
    anidb_dir = app_config.working_dir(ANIDB)
    (anidb_dir / "1535.html").write_text("<html/>")

    service = RawFileConversionService.from_settings(settings, app_config)

    try:
        assert service.start() is True
        assert [type(w) for w in service.watch_services] == [SimpleConversionWatchService, DependentConversionWatchService]
        assert all(w.is_running for w in service.watch_services)
        assert (anidb_dir / "1535.conv").is_file()

        kitsu_dirs = [app_config.working_dir(c) for c in (KITSU, KITSU_RELATIONS, KITSU_TAGS)]
        for directory in kitsu_dirs:
            (directory / "1.lock").write_text("")
            (directory / "1.json").write_text("{}")
            (directory / "1.lock").unlink()

        assert wait_until(lambda: (kitsu_dirs[0] / "1.conv").is_file())
    finally:
        service.shutdown()

    assert converter.invocations == 2


def test_service_from_settings_without_converters(settings):
    service = RawFileConversionService.from_settings(settings)

    assert service.registrations == []
