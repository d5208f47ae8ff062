from __future__ import annotations

import json

from addonhub.config.settings import AddonHubSettings, SettingsManager, load_settings, parse_bool
from addonhub.core.addons import AddonPolicy, SettingsPolicySource


def test_missing_file_yields_defaults(tmp_path) -> None:
    settings = SettingsManager(tmp_path / "settings.json").load()
    assert settings == AddonHubSettings()
    assert settings.remote_enabled is True
    assert settings.include_incompatible is False
    assert settings.cache_ttl_seconds == 900


def test_unreadable_file_yields_defaults(tmp_path, caplog) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{broken", encoding="utf-8")
    assert SettingsManager(path).load() == AddonHubSettings()
    assert "Failed to load settings" in caplog.text


def test_save_and_update(tmp_path) -> None:
    manager = SettingsManager(tmp_path / "nested" / "settings.json")
    manager.update(catalog_url="https://catalog.example.org/index.json", include_incompatible=True)

    data = json.loads((tmp_path / "nested" / "settings.json").read_text(encoding="utf-8"))
    assert data["catalog_url"] == "https://catalog.example.org/index.json"
    assert manager.load().include_incompatible is True


def test_env_overrides(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ADDONHUB_REMOTE", "off")
    monkeypatch.setenv("ADDONHUB_INCLUDE_INCOMPATIBLE", "maybe")
    monkeypatch.setenv("ADDONHUB_CORE_VERSION", "4.2.0")

    settings = load_settings(tmp_path / "settings.json")

    assert settings.remote_enabled is False
    assert settings.include_incompatible is False
    assert settings.core_version == "4.2.0"


def test_parse_bool() -> None:
    assert parse_bool("YES", False) is True
    assert parse_bool("0", True) is False
    assert parse_bool("", True) is True
    assert parse_bool(False, True) is False


def test_policy_source_reads_fresh_each_time(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("ADDONHUB_REMOTE", raising=False)
    monkeypatch.delenv("ADDONHUB_INCLUDE_INCOMPATIBLE", raising=False)
    path = tmp_path / "settings.json"
    source = SettingsPolicySource(lambda: load_settings(path))
    assert source.load() == AddonPolicy()

    SettingsManager(path).update(remote_enabled=False, include_incompatible=True)
    assert source.load() == AddonPolicy(remote_enabled=False, include_incompatible=True)


def test_policy_source_falls_back_to_defaults() -> None:
    def broken():
        raise OSError("no such file")

    assert SettingsPolicySource(broken).load() == AddonPolicy()
