"""Linux desktop implementation of the command dispatcher."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .base import CommandDispatcher, ProcessRunner
from .errors import SubprocessFailureError

LOGGER = logging.getLogger(__name__)

__all__ = ["LinuxDispatcher", "archive_directory"]


def archive_directory(source: Path, destination: Path) -> list[str]:
    """Move every entry of ``source`` into ``destination``.

    Same-named entries already in ``destination`` are replaced. Returns the
    names that were moved.
    """

    destination.mkdir(parents=True, exist_ok=True)
    if not source.is_dir():
        return []
    moved: list[str] = []
    for entry in sorted(source.iterdir()):
        target = destination / entry.name
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        shutil.move(str(entry), str(target))
        moved.append(entry.name)
    return moved


class LinuxDispatcher(CommandDispatcher):
    """Drives ALSA, the freedesktop screensaver and GNOME settings."""

    platform = "linux"

    def __init__(
        self,
        *,
        runner: ProcessRunner | None = None,
        desktop_dir: Path | str | None = None,
        archive_dir: Path | str | None = None,
    ) -> None:
        super().__init__(runner=runner)
        home = Path.home()
        self._desktop_dir = Path(desktop_dir).expanduser() if desktop_dir else home / "Desktop"
        self._archive_dir = (
            Path(archive_dir).expanduser() if archive_dir else home / "Documents" / "DesktopArchive"
        )

    def mute(self) -> str:
        try:
            self._runner(["amixer", "set", "Master", "toggle"])
        except OSError:
            LOGGER.warning("amixer not available; mute is a no-op")
            return "Audio mute toggled (no-op: amixer not found)"
        return "Audio mute toggled"

    def lock(self) -> str:
        try:
            self._runner(["xdg-screensaver", "lock"])
        except OSError:
            LOGGER.warning("xdg-screensaver not available; lock is a no-op")
            return "Screen lock requested (no-op: xdg-screensaver not found)"
        return "Screen locked"

    def clean_desktop(self) -> str:
        try:
            moved = archive_directory(self._desktop_dir, self._archive_dir)
        except OSError as exc:
            raise SubprocessFailureError(tool="clean_desktop", cause=str(exc)) from exc
        LOGGER.info("Archived %d desktop item(s) into %s", len(moved), self._archive_dir)
        return f"Desktop cleaned: moved {len(moved)} item(s) to {self._archive_dir}"

    def dark_mode(self) -> str:
        self._run_checked(
            "dark_mode",
            ["gsettings", "set", "org.gnome.desktop.interface", "color-scheme", "prefer-dark"],
        )
        return "Dark mode enabled"

    def set_volume(self, level: int) -> str:
        self._run_checked("set_volume", ["amixer", "set", "Master", f"{level}%"])
        return f"Volume set to {level}%"

    def _run_checked(self, tool: str, args: list[str]) -> str:
        try:
            completed = self._runner(args)
        except OSError as exc:
            raise SubprocessFailureError(tool=tool, cause=str(exc)) from exc
        if completed.returncode != 0:
            cause = (completed.stderr or completed.stdout or "").strip() or f"exit status {completed.returncode}"
            raise SubprocessFailureError(tool=tool, cause=cause)
        return (completed.stdout or "").strip()
