import os

from modelcache.config import (
    XML_PATH_LOG_ACTIVE,
    XML_PATH_LOG_FILE,
    SettingsConfigReader,
    get_settings,
    profiler_enabled,
)


def test_settings_reader_resolves_config_paths() -> None:
    reader = SettingsConfigReader()

    assert reader.get(XML_PATH_LOG_ACTIVE) is True
    assert reader.get(XML_PATH_LOG_FILE) == "modelcache.log"
    assert reader.get("dev/unknown/path") is None


def test_settings_reader_follows_settings_changes(monkeypatch) -> None:
    reader = SettingsConfigReader()
    monkeypatch.setenv("MODELCACHE_LOG_ACTIVE", "false")
    get_settings.cache_clear()

    assert reader.get(XML_PATH_LOG_ACTIVE) is False


def test_profiler_gate_reads_environment(monkeypatch) -> None:
    assert profiler_enabled() is True

    monkeypatch.setenv("PROFILER_ENABLED", "0")
    get_settings.cache_clear()
    assert profiler_enabled() is False


def test_path_prefix_ends_with_separator() -> None:
    assert get_settings().path_prefix == "/app" + os.sep
