"""Windows implementation of the command dispatcher.

Actions are realized through PowerShell and ``rundll32``. Media keys are sent
through ``WScript.Shell``: 0xAD toggles mute, 0xAE/0xAF step the volume down
and up by two percent.
"""

from __future__ import annotations

import logging

from .base import CommandDispatcher, ProcessRunner
from .errors import SubprocessFailureError

LOGGER = logging.getLogger(__name__)

__all__ = ["WindowsDispatcher", "effective_volume", "volume_script"]

_MUTE_SCRIPT = "$w = new-object -com wscript.shell; $w.sendkeys([char]0xAD)"
_CLEAN_DESKTOP_SCRIPT = (
    "mkdir -Force $HOME\\Documents\\DesktopArchive | Out-Null; "
    "Move-Item -Path $HOME\\Desktop\\* -Destination $HOME\\Documents\\DesktopArchive\\ -Force"
)
_PERSONALIZE_KEY = "HKCU:\\SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\Themes\\Personalize"
_DARK_MODE_SCRIPT = (
    f"Set-ItemProperty -Path {_PERSONALIZE_KEY} -Name AppsUseLightTheme -Value 0; "
    f"Set-ItemProperty -Path {_PERSONALIZE_KEY} -Name SystemUsesLightTheme -Value 0"
)
_VOLUME_STEPS = 50


def effective_volume(level: int) -> int:
    """The level the key presses actually reach; odd levels round down to the 2% step."""

    return (max(0, min(level, 100)) // 2) * 2


def volume_script(level: int) -> str:
    """PowerShell that zeroes the volume, then raises it to ``level`` percent."""

    steps_up = effective_volume(level) // 2
    script = f"$w = new-object -com wscript.shell; 1..{_VOLUME_STEPS} | ForEach-Object {{ $w.SendKeys([char]0xAE) }}"
    if steps_up:
        script += f"; 1..{steps_up} | ForEach-Object {{ $w.SendKeys([char]0xAF) }}"
    return script


class WindowsDispatcher(CommandDispatcher):
    """Drives PowerShell scripts and the user32 lock entry point."""

    platform = "windows"

    def __init__(self, *, runner: ProcessRunner | None = None, powershell: str = "powershell") -> None:
        super().__init__(runner=runner)
        self._powershell = powershell

    def mute(self) -> str:
        try:
            output = self._run_powershell("mute", _MUTE_SCRIPT)
        except SubprocessFailureError as exc:
            LOGGER.warning("Mute key could not be sent: %s", exc.details.get("cause", exc))
            return f"Audio mute toggled (no-op: {self._powershell} not available)"
        return output or "Audio mute toggled"

    def lock(self) -> str:
        try:
            self._runner(["rundll32.exe", "user32.dll,LockWorkStation"])
        except OSError as exc:
            raise SubprocessFailureError(tool="lock", cause=str(exc)) from exc
        return "Workstation Locked"

    def clean_desktop(self) -> str:
        return self._run_powershell("clean_desktop", _CLEAN_DESKTOP_SCRIPT) or (
            "Desktop cleaned: files moved to Documents\\DesktopArchive"
        )

    def dark_mode(self) -> str:
        return self._run_powershell("dark_mode", _DARK_MODE_SCRIPT) or "Dark mode enabled"

    def set_volume(self, level: int) -> str:
        output = self._run_powershell("set_volume", volume_script(level))
        return output or f"Volume set to {effective_volume(level)}%"

    def _run_powershell(self, tool: str, script: str) -> str:
        try:
            completed = self._runner([self._powershell, "-NoProfile", "-Command", script])
        except OSError as exc:
            raise SubprocessFailureError(tool=tool, cause=str(exc)) from exc
        if completed.returncode != 0:
            LOGGER.warning(
                "PowerShell exited with %s for %s: %s",
                completed.returncode,
                tool,
                (completed.stderr or "").strip(),
            )
        return (completed.stdout or "").strip()
