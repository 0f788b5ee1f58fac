"""Async streaming client for the local chat inference endpoint.

The endpoint answers a chat request with newline-delimited JSON objects of the
shape ``{"message": {"role": ..., "content": ...}}``. Each transport read is
decoded on its own: every complete, well-formed line inside that read
contributes its ``content`` and the concatenation becomes one fragment.
Lines that are blank or do not match the expected shape are dropped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping

import httpx

from .ai_types import ChatMessage

LOGGER = logging.getLogger(__name__)

DEFAULT_CHAT_ENDPOINT = "http://localhost:11434/api/chat"

# Failures while reading the body; each one ends the fragment sequence.
_BODY_ERRORS = (httpx.TransportError, httpx.DecodingError, httpx.StreamError)

__all__ = [
    "DEFAULT_CHAT_ENDPOINT",
    "ChatConnectionError",
    "ClientSettings",
    "StreamingChatClient",
    "decode_fragment",
]


class ChatConnectionError(ConnectionError):
    """Raised when the chat request cannot be delivered to the backend."""

    def __init__(self, message: str, *, endpoint: str | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the chat client."""

    endpoint: str = DEFAULT_CHAT_ENDPOINT
    request_timeout: float | None = None
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False


def decode_fragment(chunk: bytes) -> str:
    """Concatenate the message contents carried by one transport read."""

    text = chunk.decode("utf-8", errors="replace")
    parts: List[str] = []
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        content = _parse_content(line)
        if content is None:
            LOGGER.debug("Dropping malformed stream line: %.120s", line)
            continue
        parts.append(content)
    return "".join(parts)


def _parse_content(line: str) -> str | None:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if not isinstance(message, dict):
        return None
    role = message.get("role")
    content = message.get("content")
    if not isinstance(role, str) or not isinstance(content, str):
        return None
    return content


class StreamingChatClient:
    """Issues streamed chat requests and yields decoded text fragments."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._timeout = httpx.Timeout(self._settings.request_timeout)
        self._owns_client = client is None
        self._client = client or self._build_client(self._settings)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def stream_chat(self, model: str, messages: Iterable[ChatMessage]) -> AsyncIterator[str]:
        """Send the chat request and return the lazy fragment sequence.

        Raises:
            ChatConnectionError: the request could not be established. No
                fragments exist in that case.
        """

        payload = self._build_payload(model, messages)
        endpoint = self._settings.endpoint
        LOGGER.debug(
            "Starting streamed chat via %s with %s message(s) on %s",
            model,
            len(payload["messages"]),
            endpoint,
        )
        if self._settings.debug_logging:
            self._log_prompt_payload(payload)

        request = self._client.build_request("POST", endpoint, json=payload, timeout=self._timeout)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.TransportError as exc:
            LOGGER.warning("Chat request to %s failed: %s", endpoint, exc)
            raise ChatConnectionError(f"Cannot reach chat backend at {endpoint}: {exc}", endpoint=endpoint) from exc

        if response.is_error:
            LOGGER.warning("Chat backend answered HTTP %s for model %s", response.status_code, model)
        return self._iter_fragments(response)

    async def _iter_fragments(self, response: httpx.Response) -> AsyncIterator[str]:
        fragment_count = 0
        try:
            async for chunk in response.aiter_bytes():
                fragment = decode_fragment(chunk)
                if not fragment:
                    continue
                fragment_count += 1
                yield fragment
        except _BODY_ERRORS as exc:
            # A broken body ends the stream; whatever arrived so far stands.
            LOGGER.warning("Chat stream interrupted after %d fragment(s): %s", fragment_count, exc)
        finally:
            await response.aclose()
        LOGGER.debug("Chat stream finished with %d fragment(s)", fragment_count)

    def _build_client(self, settings: ClientSettings) -> httpx.AsyncClient:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return httpx.AsyncClient(timeout=self._timeout, headers=headers)

    @staticmethod
    def _build_payload(model: str, messages: Iterable[ChatMessage]) -> Dict[str, Any]:
        normalized = [message.to_dict() for message in messages]
        if not normalized:
            raise ValueError("At least one message is required to start a chat")
        return {"model": model, "messages": normalized, "stream": True}

    def _log_prompt_payload(self, payload: Mapping[str, Any]) -> None:
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("Chat payload (unserializable): %s", payload)
        else:
            LOGGER.debug("Chat payload:\n%s", serialized)

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this instance created it."""

        if self._owns_client:
            await self._client.aclose()
