"""Log file setup for the Aura console.

Everything goes to ``~/.aura/logs/aura.log`` (``AURA_LOG_DIR`` moves it). The
console handler is optional because the chat itself is printed to stdout.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["get_log_path", "resolve_level", "setup_logging"]

LOG_FILE_NAME = "aura.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers capped at WARNING unless the root level is stricter.
_CHATTY_LIBRARIES: tuple[str, ...] = ("asyncio", "httpcore", "httpx")

_active_log_path: Path | None = None


def setup_logging(
    level: int | str = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the rotating log file (and optionally stderr) on the root logger.

    Repeated calls are no-ops returning the existing path unless ``force`` is
    set, in which case the root handlers are replaced.
    """

    global _active_log_path
    if _active_log_path is not None and not force:
        return _active_log_path

    numeric_level = resolve_level(level)
    log_path = _log_directory(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)
    logging.captureWarnings(True)

    library_level = max(numeric_level, logging.WARNING)
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    _active_log_path = log_path
    return log_path


def get_log_path() -> Path | None:
    return _active_log_path


def resolve_level(level: int | str) -> int:
    """Accept a numeric level or a level name such as ``"debug"``."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _log_directory(log_dir: Path | str | None) -> Path:
    chosen = log_dir or os.environ.get("AURA_LOG_DIR") or Path.home() / ".aura" / "logs"
    return Path(chosen).expanduser()
