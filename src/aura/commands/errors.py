"""Error types returned to callers of the command dispatcher.

Every failure carries a machine-readable code and serializes consistently so
a host can display it or forward it as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class ErrorCode:
    """Constants for error codes used in command results."""

    UNKNOWN_TOOL = "unknown_tool"
    MISSING_PARAMS = "missing_params"
    INVALID_PARAM = "invalid_param"
    SUBPROCESS_FAILURE = "subprocess_failure"


@dataclass
class CommandError(Exception):
    """Base exception class for all dispatcher failures.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for JSON responses."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


@dataclass
class UnknownToolError(CommandError):
    """The requested tool is not offered by the active dispatcher."""

    error_code: str = field(default=ErrorCode.UNKNOWN_TOOL)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    tool: str = field(default="")
    available: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Unknown tool: {self.tool}"
        self.details.setdefault("tool", self.tool)
        if self.available and not self.suggestion:
            self.suggestion = f"Use one of: {', '.join(self.available)}"
        super().__post_init__()


@dataclass
class MissingParamsError(CommandError):
    """A tool that needs parameters was invoked without them."""

    error_code: str = field(default=ErrorCode.MISSING_PARAMS)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    tool: str = field(default="")
    param: str | None = field(default=None)

    def __post_init__(self) -> None:
        if not self.message:
            if self.param:
                self.message = f"Tool '{self.tool}' requires the '{self.param}' parameter"
            else:
                self.message = f"Tool '{self.tool}' requires parameters"
        self.details.setdefault("tool", self.tool)
        if self.param:
            self.details.setdefault("param", self.param)
        super().__post_init__()


@dataclass
class InvalidParamError(CommandError):
    """A parameter is present but has the wrong type or range."""

    error_code: str = field(default=ErrorCode.INVALID_PARAM)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    tool: str = field(default="")
    param: str = field(default="")
    value: Any = field(default=None)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Invalid value for '{self.param}' of tool '{self.tool}': {self.value!r}"
        self.details.setdefault("tool", self.tool)
        self.details.setdefault("param", self.param)
        self.details.setdefault("value", repr(self.value))
        super().__post_init__()


@dataclass
class SubprocessFailureError(CommandError):
    """The platform utility behind a tool failed or could not be started."""

    error_code: str = field(default=ErrorCode.SUBPROCESS_FAILURE)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    tool: str = field(default="")
    cause: str = field(default="")

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Tool '{self.tool}' failed: {self.cause}" if self.cause else f"Tool '{self.tool}' failed"
        self.details.setdefault("tool", self.tool)
        if self.cause:
            self.details.setdefault("cause", self.cause)
        super().__post_init__()


__all__ = [
    "ErrorCode",
    "CommandError",
    "UnknownToolError",
    "MissingParamsError",
    "InvalidParamError",
    "SubprocessFailureError",
]
