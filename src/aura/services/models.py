"""Discovery of locally installed models through the ``ollama list`` command."""

from __future__ import annotations

import logging
from typing import List

from ..commands.base import ProcessRunner, run_process

LOGGER = logging.getLogger(__name__)

__all__ = ["ModelListError", "list_models", "parse_model_table"]


class ModelListError(RuntimeError):
    """Raised when the model listing command cannot be run or fails."""


def parse_model_table(output: str) -> List[str]:
    """Return the first column of every row after the header line."""

    models: List[str] = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if parts:
            models.append(parts[0])
    return models


def list_models(command: str = "ollama", *, runner: ProcessRunner | None = None) -> List[str]:
    """Run ``<command> list`` and return the model identifiers it reports."""

    run = runner or run_process
    try:
        completed = run([command, "list"])
    except OSError as exc:
        LOGGER.warning("Unable to run %s list: %s", command, exc)
        raise ModelListError(str(exc)) from exc
    if completed.returncode != 0:
        message = (completed.stderr or "").strip() or f"{command} list exited with status {completed.returncode}"
        LOGGER.warning("Model listing failed: %s", message)
        raise ModelListError(message)
    models = parse_model_table(completed.stdout or "")
    LOGGER.debug("Discovered %d model(s): %s", len(models), models)
    return models
