from __future__ import annotations

import logging
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path

_LOGGER = logging.getLogger("repobeats.logging")
_LOG_DIR_ENV = "REPOBEATS_LOG_DIR"
_LOG_LEVEL_ENV = "REPOBEATS_LOG_LEVEL"
_LOG_FILE = "repobeats.log"
_HANDLER_NAME = "repobeats.stderr"


def get_log_dir() -> Path:
    configured = os.environ.get(_LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "repobeats" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / _LOG_FILE


def configure_logging(level: int | str | None = None) -> None:
    """Attach a single stderr handler to the ``repobeats`` logger.

    The level comes from ``level``, then ``REPOBEATS_LOG_LEVEL``, then WARNING.
    Calling this again only updates the level.
    """
    resolved = level if level is not None else os.environ.get(_LOG_LEVEL_ENV, "WARNING")
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING

    logger = logging.getLogger("repobeats")
    logger.setLevel(resolved)
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return
    handler = logging.StreamHandler(stream=sys.__stderr__)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)


def log_exception(context: str, exc: BaseException) -> Path | None:
    """Append ``exc`` with its traceback to the repobeats log file.

    Returns the log path, or None when the file could not be written.
    """
    path = get_log_path()
    header = f"[{datetime.now().isoformat()}] {context} failed: {type(exc).__name__}"
    code = getattr(exc, "code", None)
    if code:
        header += f" [{code}]"
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"{header}: {exc}\n{trace}\n")
    except OSError as log_exc:
        _LOGGER.warning("Failed to write log file %s: %s", path, log_exc)
        return None
    return path
