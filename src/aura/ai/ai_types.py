"""Shared data contracts for the conversation layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class Role(str, Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def coerce(cls, value: "Role | str") -> "Role":
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown chat role: {value!r}") from exc


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A single entry of the conversation history."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Immutable copy of the session taken at one instant."""

    messages: tuple[ChatMessage, ...]
    model: str

    def __len__(self) -> int:
        return len(self.messages)

    def as_payload(self) -> list[dict[str, str]]:
        """Return the history in the wire shape expected by the chat endpoint."""

        return [message.to_dict() for message in self.messages]


@dataclass(frozen=True, slots=True)
class ToolInvocation:
    """A structured action request parsed out of assistant text.

    Attributes:
        tool: Name of the requested tool.
        params: Parameters for the tool, if the model supplied any.
        raw: The complete JSON object the invocation was parsed from.
    """

    tool: str
    params: Mapping[str, Any] | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"tool": self.tool}
        if self.params is not None:
            payload["params"] = dict(self.params)
        return payload
