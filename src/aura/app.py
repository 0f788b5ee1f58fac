"""Console entry point for the Aura assistant."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Sequence, TextIO, get_args, get_type_hints

from .ai.client import ChatConnectionError, ClientSettings, StreamingChatClient
from .ai.ai_types import ToolInvocation
from .ai.orchestrator import SessionOrchestrator
from .ai.session import Session
from .commands import select_dispatcher
from .events import EventBus, StreamDone, StreamFragment, ToolDetected
from .services.models import ModelListError, list_models
from .services.settings import Settings, SettingsStore
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_CONFIRM_VALUES = {"y", "yes"}

InputFunc = Callable[[str], str]


def configure_logging(debug: bool = False, *, force: bool = False, console: bool = False) -> None:
    """Configure logging; the console handler stays off so it does not mix with chat output."""

    level = logging.DEBUG if debug else logging.INFO
    logging_utils.setup_logging(level, console=console, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    store: SettingsStore | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Return the effective settings; an unreadable settings file means defaults."""

    store = store or SettingsStore()
    try:
        return store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Cannot read %s (%s); using default settings", store.path, exc)
        return Settings()


def build_orchestrator(settings: Settings, *, event_bus: EventBus | None = None) -> SessionOrchestrator:
    """Wire session, client and the platform dispatcher from ``settings``."""

    session = Session(system_prompt=settings.system_prompt, model=settings.model)
    dispatcher = select_dispatcher(
        settings.platform,
        desktop_dir=settings.desktop_dir,
        archive_dir=settings.archive_dir,
    )
    client = StreamingChatClient(
        ClientSettings(
            endpoint=settings.endpoint,
            request_timeout=settings.request_timeout,
            debug_logging=settings.debug_logging,
        )
    )
    return SessionOrchestrator(session=session, client=client, dispatcher=dispatcher, event_bus=event_bus)


class ConsoleHost:
    """Terminal stand-in for the chat window.

    Fragments are printed as they arrive. A detected tool call is held until
    the turn is done and then offered for confirmation before it runs.
    """

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        *,
        settings: Settings,
        input_func: InputFunc = input,
        output: TextIO | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._settings = settings
        self._input = input_func
        self._output = output or sys.stdout
        self._pending: ToolInvocation | None = None
        events = orchestrator.events
        events.subscribe(StreamFragment, self._on_fragment)
        events.subscribe(ToolDetected, self._on_tool_detected)
        events.subscribe(StreamDone, self._on_done)

    async def run(self) -> None:
        self._write(f"Aura ready (model: {self._orchestrator.session.model}). Type /quit to exit.\n")
        while True:
            line = await self._read("> ")
            if line is None:
                break
            text = line.strip()
            if not text:
                continue
            if text.startswith("/"):
                if not await self._handle_command(text):
                    break
                continue
            try:
                await self._orchestrator.send_message(text)
            except ChatConnectionError as exc:
                self._write(f"Error: {exc}\n")
                continue
            if self._pending is not None:
                await self._confirm_pending()

    async def _handle_command(self, text: str) -> bool:
        command, _, argument = text.partition(" ")
        command = command.lower()
        argument = argument.strip()
        if command in {"/quit", "/exit"}:
            return False
        if command == "/models":
            try:
                models = await asyncio.to_thread(list_models, self._settings.ollama_command)
            except ModelListError as exc:
                self._write(f"Unable to list models: {exc}\n")
            else:
                active = self._orchestrator.session.model
                for name in models:
                    marker = "*" if name == active else " "
                    self._write(f"{marker} {name}\n")
            return True
        if command == "/model":
            if not argument:
                self._write(f"Active model: {self._orchestrator.session.model}\n")
                return True
            self._orchestrator.set_model(argument)
            self._write(f"Model set to {argument}\n")
            return True
        self._write(f"Unknown command: {command}\n")
        return True

    async def _confirm_pending(self) -> None:
        invocation, self._pending = self._pending, None
        if invocation is None:
            return
        answer = await self._read(f"Run tool '{invocation.tool}'? [y/N] ")
        if (answer or "").strip().lower() not in _CONFIRM_VALUES:
            self._write("(Action cancelled by user)\n")
            return
        result = await self._orchestrator.execute_tool(invocation.tool, invocation.params)
        if result.success:
            self._write(f"{result.output}\n")
        else:
            self._write(f"Tool execution failed: {result.error}\n")

    async def _read(self, prompt: str) -> str | None:
        try:
            return await asyncio.to_thread(self._input, prompt)
        except EOFError:
            return None

    def _write(self, text: str) -> None:
        self._output.write(text)
        self._output.flush()

    def _on_fragment(self, event: StreamFragment) -> None:
        self._write(event.content)

    def _on_tool_detected(self, event: ToolDetected) -> None:
        self._pending = event.invocation

    def _on_done(self, event: StreamDone) -> None:
        self._write("\n")


async def run_console(settings: Settings) -> None:
    orchestrator = build_orchestrator(settings)
    host = ConsoleHost(orchestrator, settings=settings)
    try:
        await host.run()
    finally:
        await orchestrator.aclose()


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `aura` console script."""

    args = _build_parser().parse_args(argv)
    debug = args.debug or _is_truthy(os.environ.get("AURA_DEBUG", ""))
    configure_logging(debug)

    raw_path = args.settings_path or os.environ.get("AURA_SETTINGS_PATH")
    store = SettingsStore(Path(raw_path).expanduser() if raw_path else None)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc
    settings = load_settings(store=store, overrides=cli_overrides)

    if args.dump_settings:
        _dump_settings(settings, store, overrides=cli_overrides)
        return
    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    try:
        asyncio.run(run_console(settings))
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Interrupted; exiting.")
    except RuntimeError as exc:
        print(f"Aura cannot start: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aura",
        description="Chat with a local model and let it request system actions.",
    )
    parser.add_argument("--settings-path", metavar="PATH", help="Settings file (default: ~/.aura/settings.json).")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Override one settings field for this run; may be repeated.",
    )
    parser.add_argument("--dump-settings", action="store_true", help="Print the effective settings as JSON and exit.")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level.")
    return parser


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn ``FIELD=VALUE`` strings into typed :class:`Settings` overrides."""

    annotations = get_type_hints(Settings)
    overrides: Dict[str, Any] = {}
    for item in items:
        name, separator, raw = item.partition("=")
        name = name.strip()
        if not separator:
            raise ValueError(f"expected FIELD=VALUE, got '{item}'")
        if not name:
            raise ValueError(f"missing field name in '{item}'")
        if name not in annotations:
            raise ValueError(f"unknown setting '{name}'")
        overrides[name] = _convert(raw.strip(), annotations[name])
    return overrides


def _convert(raw: str, annotation: Any) -> Any:
    members = [member for member in get_args(annotation) if member is not type(None)]
    nullable = len(members) < len(get_args(annotation))
    target = members[0] if members else annotation
    if nullable and raw.lower() in {"", "none", "null"}:
        return None
    if target is bool:
        if _is_truthy(raw):
            return True
        if raw.lower() in _FALSE_VALUES:
            return False
        raise ValueError(f"'{raw}' is not a boolean")
    if target in (int, float):
        return target(raw)
    return raw


def _is_truthy(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    report = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": sorted(name for name in os.environ if name.startswith("AURA_")),
        },
    }
    out = stream or sys.stdout
    out.write(json.dumps(report, indent=2) + "\n")


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
