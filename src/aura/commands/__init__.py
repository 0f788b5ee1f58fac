"""Platform command dispatchers and their selection."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .base import SUPPORTED_TOOLS, CommandDispatcher, CommandResult, ProcessRunner, coerce_volume_level
from .errors import (
    CommandError,
    ErrorCode,
    InvalidParamError,
    MissingParamsError,
    SubprocessFailureError,
    UnknownToolError,
)
from .linux import LinuxDispatcher
from .windows import WindowsDispatcher

LOGGER = logging.getLogger(__name__)

__all__ = [
    "SUPPORTED_TOOLS",
    "CommandDispatcher",
    "CommandError",
    "CommandResult",
    "ErrorCode",
    "InvalidParamError",
    "LinuxDispatcher",
    "MissingParamsError",
    "ProcessRunner",
    "SubprocessFailureError",
    "UnknownToolError",
    "WindowsDispatcher",
    "coerce_volume_level",
    "resolve_platform",
    "select_dispatcher",
]


def resolve_platform(name: str | None = None) -> str:
    """Map ``name`` (or ``sys.platform`` for ``auto``) to a dispatcher key."""

    value = (name or "auto").strip().lower()
    if value == "auto":
        value = sys.platform
    if value.startswith("win"):
        return "windows"
    if value.startswith("linux"):
        return "linux"
    raise RuntimeError(f"No command dispatcher available for platform '{value}'")


def select_dispatcher(
    platform_name: str | None = None,
    *,
    runner: ProcessRunner | None = None,
    desktop_dir: Path | str | None = None,
    archive_dir: Path | str | None = None,
) -> CommandDispatcher:
    """Build the one dispatcher used for the lifetime of the process."""

    key = resolve_platform(platform_name)
    LOGGER.debug("Selected %s command dispatcher", key)
    if key == "windows":
        return WindowsDispatcher(runner=runner)
    return LinuxDispatcher(runner=runner, desktop_dir=desktop_dir, archive_dir=archive_dir)
