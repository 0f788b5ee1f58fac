"""Shared pytest fixtures."""

from __future__ import annotations

import os

import pytest

from tests.helpers import FakeRunner


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer ``AURA_*`` variables from leaking into settings tests."""

    for name in list(os.environ):
        if name.startswith("AURA_"):
            monkeypatch.delenv(name, raising=False)
