"""Tests for the system prompt template."""

from __future__ import annotations

from aura.ai.prompts import DEFAULT_SYSTEM_PROMPT, TOOL_DESCRIPTIONS, system_prompt
from aura.commands import SUPPORTED_TOOLS


def test_default_prompt_advertises_every_supported_tool() -> None:
    assert set(TOOL_DESCRIPTIONS) == set(SUPPORTED_TOOLS)
    for name in SUPPORTED_TOOLS:
        assert f"- {name}:" in DEFAULT_SYSTEM_PROMPT


def test_prompt_names_the_assistant_and_tool_format() -> None:
    prompt = system_prompt(tools=["lock"], assistant_name="Nova")

    assert prompt.startswith("You are Nova")
    assert '{"tool": "TOOL_NAME"}' in prompt
    assert "- mute:" not in prompt
