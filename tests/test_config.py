"""Tests for configuration and persisted settings."""

import argparse
import json

import pytest

from locale_translator.config import TranslatorConfig, API_KEY_ENV, API_URL_ENV
from locale_translator.models import ProviderKind
from locale_translator.settings import (
    AppSettings,
    get_settings_path,
    load_settings,
    save_settings,
    SETTINGS_ENV,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.delenv(API_URL_ENV, raising=False)
    monkeypatch.delenv("LIBRETRANSLATE_API_KEY", raising=False)


class TestTranslatorConfig:

    def test_defaults_are_valid(self):
        config = TranslatorConfig()
        assert config.provider == "libretranslate"
        assert config.validate() is None

    def test_google_key_from_env(self, monkeypatch):
        monkeypatch.setenv(API_KEY_ENV, "env-key")
        config = TranslatorConfig(provider="google")
        assert config.api_key == "env-key"
        assert config.validate() is None

    def test_google_without_key(self):
        error = TranslatorConfig(provider="google").validate()
        assert "API key" in error

    def test_unknown_provider(self):
        assert "Unknown provider" in TranslatorConfig(provider="bing").validate()

    def test_unsupported_language(self):
        assert "Unsupported" in TranslatorConfig(target_language="xx").validate()

    def test_negative_delay(self):
        assert "delay" in TranslatorConfig(pacing_delay=-1).validate()

    def test_retries_range(self):
        assert "Retries" in TranslatorConfig(max_retries=0).validate()

    def test_selection_carries_only_needed_credentials(self, monkeypatch):
        monkeypatch.setenv(API_URL_ENV, "http://lt.local")
        selection = TranslatorConfig(provider="mymemory", api_key="k").to_selection()
        assert selection.kind is ProviderKind.MYMEMORY
        assert selection.api_key is None
        assert selection.api_url is None

        selection = TranslatorConfig(provider="libretranslate").to_selection()
        assert selection.api_url == "http://lt.local"

    def test_from_args_overrides_settings(self):
        args = argparse.Namespace(
            provider="mymemory", target_language=None, api_key=None, api_url=None,
            source_language="en", pacing_delay=0.5, max_retries=3,
        )
        settings = AppSettings(provider="google", target_language="uk")

        config = TranslatorConfig.from_args(args, settings)

        assert config.provider == "mymemory"
        assert config.target_language == "uk"
        assert config.pacing_delay == 0.5
        assert config.max_retries == 3


class TestSettings:

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "settings.json"
        settings = AppSettings(
            source_file="/a/in.json", target_file="/a/out.json",
            target_language="ru", provider="mymemory",
        )
        assert save_settings(settings, path) is True
        assert load_settings(path) == settings

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "none.json") == AppSettings()

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{broken", encoding="utf-8")
        assert load_settings(path) == AppSettings()

    def test_unknown_fields_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"provider": "google", "ApiKey": "x"}), encoding="utf-8")
        assert load_settings(path) == AppSettings(provider="google")

    def test_no_credentials_stored(self, tmp_path):
        path = tmp_path / "settings.json"
        save_settings(AppSettings(provider="google"), path)
        assert "key" not in path.read_text(encoding="utf-8").lower()

    def test_path_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv(SETTINGS_ENV, str(tmp_path / "custom.json"))
        assert get_settings_path() == tmp_path / "custom.json"
