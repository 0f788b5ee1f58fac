"""Turn protocol tying the session, the streaming client and the dispatcher.

One turn walks ``IDLE -> STREAMING -> TOOL_CHECK -> DONE``:

1. the user text is appended to the session;
2. the chat is streamed from a snapshot and every fragment is published as
   :class:`~aura.events.StreamFragment` in arrival order;
3. the accumulated reply is appended as the assistant message;
4. the reply is scanned for a tool call and, if found,
   :class:`~aura.events.ToolDetected` is published;
5. :class:`~aura.events.StreamDone` is published last.

The session's exclusive lock is held from step 1 through step 5, so a second
``send_message`` waits for the first turn to finish. There is no cancellation
and no timeout at this layer.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, AsyncIterator, Callable, Iterable, Mapping, Protocol

from ..commands.base import CommandDispatcher, CommandResult
from ..events import EventBus, StreamDone, StreamFragment, ToolDetected
from .ai_types import ChatMessage, Role, ToolInvocation
from .session import Session
from .tool_call_parser import extract_tool_invocation

LOGGER = logging.getLogger(__name__)

__all__ = [
    "ChatStreamer",
    "SessionOrchestrator",
    "TurnResult",
    "TurnState",
]


class ChatStreamer(Protocol):
    """Anything that can open a fragment stream for a model and history."""

    async def stream_chat(self, model: str, messages: Iterable[ChatMessage]) -> AsyncIterator[str]:
        ...


class TurnState(Enum):
    """Phase of the current (or most recent) turn."""

    IDLE = auto()
    STREAMING = auto()
    TOOL_CHECK = auto()
    DONE = auto()


@dataclass(frozen=True, slots=True)
class TurnResult:
    """What a completed turn produced."""

    turn_id: str
    text: str
    invocation: ToolInvocation | None = None


class SessionOrchestrator:
    """Runs chat turns against one session and exposes tool execution."""

    def __init__(
        self,
        *,
        session: Session,
        client: ChatStreamer,
        dispatcher: CommandDispatcher,
        event_bus: EventBus | None = None,
        extractor: Callable[[str], ToolInvocation | None] = extract_tool_invocation,
    ) -> None:
        self._session = session
        self._client = client
        self._dispatcher = dispatcher
        self._events: EventBus = event_bus or EventBus()
        self._extract = extractor
        self._state = TurnState.IDLE
        self._turn_counter = itertools.count(1)
        self._dispatch_lock = asyncio.Lock()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    @property
    def state(self) -> TurnState:
        return self._state

    async def send_message(self, text: str) -> TurnResult:
        """Run one full turn for ``text``.

        Raises:
            ChatConnectionError: the backend could not be reached. The user
                message stays recorded and no further events are published.
        """

        async with self._session.exclusive() as session:
            turn_id = f"turn-{next(self._turn_counter)}"
            self._state = TurnState.IDLE
            LOGGER.info("Starting %s (%d chars)", turn_id, len(text or ""))
            session.append(Role.USER, text)

            self._state = TurnState.STREAMING
            snapshot = session.snapshot()
            try:
                stream = await self._client.stream_chat(snapshot.model, snapshot.messages)
            except Exception:
                self._state = TurnState.IDLE
                LOGGER.warning("%s aborted before streaming", turn_id)
                raise

            parts: list[str] = []
            try:
                async for fragment in stream:
                    parts.append(fragment)
                    self._events.publish(StreamFragment(turn_id=turn_id, content=fragment))
            except Exception:
                self._state = TurnState.IDLE
                LOGGER.warning("%s aborted after %d fragment(s)", turn_id, len(parts))
                raise
            reply = "".join(parts)
            session.append(Role.ASSISTANT, reply)

            self._state = TurnState.TOOL_CHECK
            invocation = self._extract(reply)
            if invocation is not None:
                LOGGER.info("%s requested tool %s", turn_id, invocation.tool)
                self._events.publish(ToolDetected(turn_id=turn_id, invocation=invocation))

            self._state = TurnState.DONE
            self._events.publish(StreamDone(turn_id=turn_id))
            LOGGER.info("Finished %s with %d fragment(s)", turn_id, len(parts))
            return TurnResult(turn_id=turn_id, text=reply, invocation=invocation)

    async def execute_tool(self, name: str, params: Mapping[str, Any] | None = None) -> CommandResult:
        """Run a dispatcher action without touching the session lock.

        The blocking platform call runs in a worker thread; concurrent calls
        to this method are executed one at a time.
        """

        async with self._dispatch_lock:
            return await asyncio.to_thread(self._dispatcher.dispatch, name, params)

    def set_model(self, model: str) -> None:
        """Select the model for the next turn; an in-flight stream is unaffected."""

        self._session.set_model(model)

    async def aclose(self) -> None:
        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()
