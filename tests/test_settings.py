"""Tests for settings persistence and overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from aura.ai.client import DEFAULT_CHAT_ENDPOINT
from aura.ai.prompts import DEFAULT_MODEL, DEFAULT_SYSTEM_PROMPT
from aura.services.settings import Settings, SettingsStore


def test_defaults_when_file_is_missing(tmp_path: Path) -> None:
    settings = SettingsStore(tmp_path / "settings.json").load()

    assert settings == Settings()
    assert settings.endpoint == DEFAULT_CHAT_ENDPOINT == "http://localhost:11434/api/chat"
    assert settings.model == DEFAULT_MODEL
    assert settings.system_prompt == DEFAULT_SYSTEM_PROMPT
    assert settings.request_timeout is None


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "nested" / "settings.json")
    original = Settings(model="llama3", platform="linux", request_timeout=30.0, desktop_dir="~/Desk")

    path = store.save(original)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert store.load() == original
    assert not path.with_suffix(".tmp").exists()


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"model": "mistral", "theme": "dark"}), encoding="utf-8")

    assert SettingsStore(path).load().model == "mistral"


@pytest.mark.parametrize("body", ["{not json", "[1, 2, 3]"])
def test_unreadable_payload_falls_back_to_defaults(tmp_path: Path, body: str) -> None:
    path = tmp_path / "settings.json"
    path.write_text(body, encoding="utf-8")

    assert SettingsStore(path).load() == Settings()


def test_cli_overrides_apply_after_file(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    store.save(Settings(model="mistral"))

    settings = store.load(overrides={"model": "llama3", "not_a_field": 1})

    assert settings.model == "llama3"


def test_environment_overrides_win(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AURA_MODEL", "phi3")
    monkeypatch.setenv("AURA_ENDPOINT", "http://gpu-box:11434/api/chat")
    monkeypatch.setenv("AURA_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("AURA_REQUEST_TIMEOUT", "12.5")

    settings = SettingsStore(tmp_path / "settings.json").load(overrides={"model": "llama3"})

    assert settings.model == "phi3"
    assert settings.endpoint == "http://gpu-box:11434/api/chat"
    assert settings.debug_logging is True
    assert settings.request_timeout == 12.5


def test_timeout_environment_override_accepts_none(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    store.save(Settings(request_timeout=5.0))
    monkeypatch.setenv("AURA_REQUEST_TIMEOUT", "none")

    assert store.load().request_timeout is None


def test_invalid_timeout_environment_override_is_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AURA_REQUEST_TIMEOUT", "soon")

    assert SettingsStore(tmp_path / "settings.json").load().request_timeout is None
