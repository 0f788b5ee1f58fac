"""Service layer helpers (settings, model discovery)."""

from .models import ModelListError, list_models, parse_model_table
from .settings import DEFAULT_SETTINGS_PATH, Settings, SettingsStore

__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "ModelListError",
    "Settings",
    "SettingsStore",
    "list_models",
    "parse_model_table",
]
