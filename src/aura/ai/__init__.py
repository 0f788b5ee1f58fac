"""Conversation session, streaming chat client and tool-call extraction."""

from .ai_types import ChatMessage, Role, SessionSnapshot, ToolInvocation
from .client import ChatConnectionError, ClientSettings, StreamingChatClient
from .orchestrator import SessionOrchestrator, TurnResult, TurnState
from .session import Session
from .tool_call_parser import extract_tool_invocation

__all__ = [
    "ChatConnectionError",
    "ChatMessage",
    "ClientSettings",
    "Role",
    "Session",
    "SessionOrchestrator",
    "SessionSnapshot",
    "StreamingChatClient",
    "ToolInvocation",
    "TurnResult",
    "TurnState",
    "extract_tool_invocation",
]
