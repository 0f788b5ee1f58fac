"""Platform-neutral contract for privileged local actions.

Each host platform provides one :class:`CommandDispatcher` subclass that
implements the five supported actions. The base class owns tool routing,
parameter validation and result wrapping so that the platform classes only
describe how an action is realized.

Dispatch performs a real side effect. Nothing here retries: toggling mute
twice unmutes again.
"""

from __future__ import annotations

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Mapping, Sequence

from .errors import (
    CommandError,
    InvalidParamError,
    MissingParamsError,
    UnknownToolError,
)

LOGGER = logging.getLogger(__name__)

SUPPORTED_TOOLS: tuple[str, ...] = ("mute", "lock", "clean_desktop", "dark_mode", "set_volume")

ProcessRunner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]

__all__ = [
    "SUPPORTED_TOOLS",
    "CommandDispatcher",
    "CommandResult",
    "ProcessRunner",
    "coerce_volume_level",
    "run_process",
]


def run_process(args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
    """Run ``args`` to completion, capturing text output.

    Raises:
        OSError: the executable could not be started (e.g. not installed).
    """

    LOGGER.debug("Running %s", args[0] if args else "<empty command>")
    return subprocess.run(list(args), capture_output=True, text=True, check=False)


@dataclass(slots=True)
class CommandResult:
    """Outcome of one dispatch.

    Attributes:
        success: Whether the action completed.
        output: Human-readable success text.
        error: The failure when ``success`` is false.
        tool_name: Name of the tool that was requested.
        duration_ms: Wall time spent in the dispatcher.
    """

    success: bool
    output: str = ""
    error: CommandError | None = None
    tool_name: str = ""
    duration_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "tool_name": self.tool_name,
            "duration_ms": self.duration_ms,
        }
        if self.success:
            data["output"] = self.output
        else:
            data["error"] = self.error.to_dict() if self.error else {"message": "Unknown error"}
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


def coerce_volume_level(params: Mapping[str, Any] | None, *, tool: str = "set_volume") -> int:
    """Validate the ``level`` parameter of ``set_volume``.

    Accepts an int, an integral float or a numeric string in the range 0..100.
    """

    if params is None:
        raise MissingParamsError(tool=tool, param="level")
    if not isinstance(params, Mapping):
        raise InvalidParamError(tool=tool, param="params", value=params, message="params must be a JSON object")
    if "level" not in params or params["level"] is None:
        raise MissingParamsError(tool=tool, param="level")

    raw = params["level"]
    level: int | None = None
    if isinstance(raw, bool):
        level = None
    elif isinstance(raw, int):
        level = raw
    elif isinstance(raw, float) and raw.is_integer():
        level = int(raw)
    elif isinstance(raw, str):
        try:
            level = int(raw.strip(), 10)
        except ValueError:
            level = None
    if level is None:
        raise InvalidParamError(tool=tool, param="level", value=raw, suggestion="Pass an integer between 0 and 100")
    if not 0 <= level <= 100:
        raise InvalidParamError(
            tool=tool,
            param="level",
            value=raw,
            message=f"Volume level must be between 0 and 100, got {level}",
        )
    return level


class CommandDispatcher(ABC):
    """Executes a named action on the host platform."""

    platform: ClassVar[str] = "unknown"

    def __init__(self, *, runner: ProcessRunner | None = None) -> None:
        self._runner: ProcessRunner = runner or run_process

    @property
    def tools(self) -> tuple[str, ...]:
        return SUPPORTED_TOOLS

    def execute(self, tool_name: str, params: Mapping[str, Any] | None = None) -> str:
        """Perform ``tool_name`` and return its success text.

        Raises:
            UnknownToolError: ``tool_name`` is not one of :data:`SUPPORTED_TOOLS`.
            MissingParamsError, InvalidParamError: bad ``set_volume`` params.
            SubprocessFailureError: the platform call failed.
        """

        name = (tool_name or "").strip()
        if name not in SUPPORTED_TOOLS:
            raise UnknownToolError(tool=tool_name, available=SUPPORTED_TOOLS)

        LOGGER.info("Executing tool %s on %s", name, self.platform)
        if name == "set_volume":
            return self.set_volume(coerce_volume_level(params, tool=name))
        action: Callable[[], str] = getattr(self, name)
        return action()

    def dispatch(self, tool_name: str, params: Mapping[str, Any] | None = None) -> CommandResult:
        """Like :meth:`execute` but reports failures in a :class:`CommandResult`."""

        started = time.perf_counter()
        try:
            output = self.execute(tool_name, params)
        except CommandError as exc:
            elapsed = (time.perf_counter() - started) * 1000
            LOGGER.warning("Tool %s failed: %s", tool_name, exc)
            return CommandResult(
                success=False,
                error=exc,
                tool_name=tool_name,
                duration_ms=elapsed,
                metadata={"platform": self.platform},
            )
        elapsed = (time.perf_counter() - started) * 1000
        return CommandResult(
            success=True,
            output=output,
            tool_name=tool_name,
            duration_ms=elapsed,
            metadata={"platform": self.platform},
        )

    @abstractmethod
    def mute(self) -> str:
        """Toggle the system audio mute."""

    @abstractmethod
    def lock(self) -> str:
        """Lock the interactive session."""

    @abstractmethod
    def clean_desktop(self) -> str:
        """Move the desktop's entries into the archive folder."""

    @abstractmethod
    def dark_mode(self) -> str:
        """Switch the system theme to dark."""

    @abstractmethod
    def set_volume(self, level: int) -> str:
        """Set the output volume to ``level`` percent."""
