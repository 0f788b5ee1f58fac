"""Settings dataclass and its JSON persistence.

Precedence, lowest first: dataclass defaults, ``~/.aura/settings.json``,
overrides passed to :meth:`SettingsStore.load` (the ``--set`` CLI flag), and
``AURA_*`` environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Tuple

from ..ai.client import DEFAULT_CHAT_ENDPOINT
from ..ai.prompts import DEFAULT_MODEL, DEFAULT_SYSTEM_PROMPT

__all__ = ["Settings", "SettingsStore", "DEFAULT_SETTINGS_PATH"]

LOGGER = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".aura" / "settings.json"
SETTINGS_VERSION = 1


@dataclass(slots=True)
class Settings:
    """Everything the console needs to build a session, client and dispatcher."""

    endpoint: str = DEFAULT_CHAT_ENDPOINT
    model: str = DEFAULT_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    # None disables the HTTP timeout; streams run until the backend ends them.
    request_timeout: float | None = None
    platform: str = "auto"
    ollama_command: str = "ollama"
    desktop_dir: str | None = None
    archive_dir: str | None = None
    debug_logging: bool = False


def _parse_flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on", "debug"}


def _parse_optional_seconds(raw: str) -> float | None:
    if raw.strip().lower() in {"", "none", "null"}:
        return None
    return float(raw)


_ENVIRONMENT: Mapping[str, Tuple[str, Callable[[str], Any]]] = {
    "AURA_ENDPOINT": ("endpoint", str),
    "AURA_MODEL": ("model", str),
    "AURA_SYSTEM_PROMPT": ("system_prompt", str),
    "AURA_PLATFORM": ("platform", str),
    "AURA_OLLAMA_COMMAND": ("ollama_command", str),
    "AURA_DESKTOP_DIR": ("desktop_dir", str),
    "AURA_ARCHIVE_DIR": ("archive_dir", str),
    "AURA_DEBUG_LOGGING": ("debug_logging", _parse_flag),
    "AURA_REQUEST_TIMEOUT": ("request_timeout", _parse_optional_seconds),
}


class SettingsStore:
    """Reads and writes :class:`Settings` as a JSON document."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Return the effective settings.

        A missing or unreadable file yields the defaults; unknown keys in the
        file or in ``overrides`` are ignored.
        """

        settings = self._from_file()
        if overrides:
            settings = _merge(settings, overrides, source="CLI")
        environment = self._environment_overrides()
        if environment:
            settings = _merge(settings, environment, source="environment")
        return settings

    def save(self, settings: Settings) -> Path:
        """Write ``settings`` through a temporary file so readers never see half a document."""

        document = dict(asdict(settings), version=SETTINGS_VERSION)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _from_file(self) -> Settings:
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Settings()
        except json.JSONDecodeError as exc:
            LOGGER.warning("Ignoring %s: not valid JSON (%s)", self._path, exc)
            return Settings()
        if not isinstance(document, dict):
            LOGGER.warning("Ignoring %s: expected a JSON object", self._path)
            return Settings()
        try:
            settings = Settings(**_known_fields(document))
        except TypeError as exc:
            LOGGER.warning("Ignoring %s: %s", self._path, exc)
            return Settings()
        LOGGER.debug("Settings loaded from %s (model=%s)", self._path, settings.model)
        return settings

    @staticmethod
    def _environment_overrides() -> Dict[str, Any]:
        found: Dict[str, Any] = {}
        for variable, (field_name, parse) in _ENVIRONMENT.items():
            raw = os.environ.get(variable)
            if raw is None:
                continue
            try:
                found[field_name] = parse(raw)
            except ValueError:
                LOGGER.warning("Ignoring %s=%r: not a valid value for %s", variable, raw, field_name)
        return found


def _known_fields(values: Mapping[str, Any]) -> Dict[str, Any]:
    names = {item.name for item in fields(Settings)}
    return {key: value for key, value in values.items() if key in names}


def _merge(settings: Settings, values: Mapping[str, Any], *, source: str) -> Settings:
    known = _known_fields(values)
    if not known:
        return settings
    LOGGER.debug("Applying %s overrides: %s", source, sorted(known))
    return replace(settings, **known)
