"""Conversation session shared by the orchestrator and its callers.

The history always starts with the system prompt supplied at construction and
only ever grows at the tail. Two guards protect it:

- an :class:`asyncio.Lock` taken through :meth:`Session.exclusive` that a
  caller holds for a whole turn, network round trip included;
- a short internal lock that makes :meth:`Session.snapshot` and
  :meth:`Session.set_model` atomic with respect to :meth:`Session.append`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import AsyncIterator

from .ai_types import ChatMessage, Role, SessionSnapshot

LOGGER = logging.getLogger(__name__)

__all__ = ["Session"]


class Session:
    """Ordered chat history plus the active model identifier."""

    def __init__(self, *, system_prompt: str, model: str) -> None:
        if not model or not model.strip():
            raise ValueError("model is required to create a session")
        self._history: list[ChatMessage] = [ChatMessage(Role.SYSTEM, system_prompt)]
        self._model = model.strip()
        self._turn_lock = asyncio.Lock()
        self._owner: asyncio.Task | None = None
        self._state_lock = threading.Lock()

    @property
    def model(self) -> str:
        with self._state_lock:
            return self._model

    def __len__(self) -> int:
        with self._state_lock:
            return len(self._history)

    @contextlib.asynccontextmanager
    async def exclusive(self) -> AsyncIterator["Session"]:
        """Hold exclusive access to the session for the duration of the block.

        Waiters are served in arrival order, so concurrent turns run one after
        another rather than interleaving.
        """

        async with self._turn_lock:
            self._owner = asyncio.current_task()
            try:
                yield self
            finally:
                self._owner = None

    def is_held(self) -> bool:
        return self._turn_lock.locked()

    def append(self, role: Role | str, content: str) -> ChatMessage:
        """Append a user or assistant message at the tail of the history.

        Must be called from the task that currently holds :meth:`exclusive`.
        The system message is only ever created by the constructor.
        """

        if self._owner is None or self._owner is not asyncio.current_task():
            raise RuntimeError("Session.append requires exclusive access; use 'async with session.exclusive()'")
        resolved = Role.coerce(role)
        if resolved is Role.SYSTEM:
            raise ValueError("The system message is fixed at construction and cannot be appended")
        message = ChatMessage(resolved, content or "")
        with self._state_lock:
            self._history.append(message)
            size = len(self._history)
        LOGGER.debug("Appended %s message (%d chars); history size=%d", resolved.value, len(message.content), size)
        return message

    def snapshot(self) -> SessionSnapshot:
        """Return an immutable copy of the history and the current model."""

        with self._state_lock:
            return SessionSnapshot(messages=tuple(self._history), model=self._model)

    def set_model(self, model: str) -> None:
        """Switch the model used by subsequent turns."""

        normalized = (model or "").strip()
        if not normalized:
            raise ValueError("model must be a non-empty identifier")
        with self._state_lock:
            previous, self._model = self._model, normalized
        if previous != normalized:
            LOGGER.info("Active model changed from %s to %s", previous, normalized)
