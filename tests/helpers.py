"""Shared test helpers and stub classes.

Import from here instead of duplicating these stubs in individual test files.
"""

from __future__ import annotations

import json
import subprocess
from typing import AsyncIterator, Iterable, Mapping, Sequence

import httpx

from aura.ai.ai_types import ChatMessage


class FakeRunner:
    """Stand-in for ``subprocess.run`` that records every command line."""

    def __init__(
        self,
        *,
        outputs: Mapping[str, "subprocess.CompletedProcess[str]"] | None = None,
        missing: Sequence[str] = (),
    ) -> None:
        self.calls: list[list[str]] = []
        self._outputs = dict(outputs or {})
        self._missing = set(missing)

    def __call__(self, args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
        command = list(args)
        self.calls.append(command)
        executable = command[0]
        if executable in self._missing:
            raise FileNotFoundError(2, "No such file or directory", executable)
        if executable in self._outputs:
            return self._outputs[executable]
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> "subprocess.CompletedProcess[str]":
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr)


class ChunkedStream(httpx.AsyncByteStream):
    """Response body that yields the given chunks as separate transport reads.

    When ``fail_after`` is set, a read error is raised once that many chunks
    have been delivered.
    """

    def __init__(self, chunks: Iterable[bytes], *, fail_after: int | None = None) -> None:
        self._chunks = list(chunks)
        self._fail_after = fail_after
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for index, chunk in enumerate(self._chunks):
            if self._fail_after is not None and index >= self._fail_after:
                raise httpx.ReadError("connection reset by peer")
            yield chunk
        if self._fail_after is not None and self._fail_after >= len(self._chunks):
            raise httpx.ReadError("connection reset by peer")

    async def aclose(self) -> None:
        self.closed = True


def ndjson_line(content: str, *, role: str = "assistant", done: bool = False) -> bytes:
    return (json.dumps({"message": {"role": role, "content": content}, "done": done}) + "\n").encode("utf-8")


class StubChatClient:
    """Chat client double that replays scripted fragment batches."""

    def __init__(self, *replies: Sequence[str], error: Exception | None = None) -> None:
        self._replies = [list(reply) for reply in replies]
        self._error = error
        self.calls: list[tuple[str, tuple[ChatMessage, ...]]] = []
        self.closed = False

    async def stream_chat(self, model: str, messages: Iterable[ChatMessage]) -> AsyncIterator[str]:
        self.calls.append((model, tuple(messages)))
        if self._error is not None:
            raise self._error
        fragments = self._replies.pop(0) if self._replies else []
        return self._iterate(fragments)

    async def _iterate(self, fragments: list[str]) -> AsyncIterator[str]:
        for fragment in fragments:
            yield fragment

    async def aclose(self) -> None:
        self.closed = True
