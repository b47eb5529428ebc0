from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_NAME = "dotfile-linker.log"

_FILE_FORMAT = logging.Formatter(
    fmt="%(asctime)s - %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def default_log_path() -> Path:
    return Path.home() / DEFAULT_LOG_NAME


def configure_logging(
    console: Console,
    log_path: Path | None = None,
    verbose: bool = False,
) -> Path | None:
    """Send package logs to the rich console and append them to a log file.

    The console shows warnings and errors (everything with ``verbose``); the
    file gets INFO and above. If the log file cannot be opened the file
    handler falls back to the working directory, and if that fails too the
    run continues with console logging only.

    Returns the log file actually in use, or None. Calling this again is a
    no-op that returns the first result.
    """
    logger = logging.getLogger("dotfile_linker")
    if getattr(logger, "_dotfile_linker_configured", False):
        return getattr(logger, "_dotfile_linker_log_path", None)

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    console_handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        level=logging.DEBUG if verbose else logging.WARNING,
    )
    logger.addHandler(console_handler)

    requested = log_path or default_log_path()
    chosen: Path | None = None
    for candidate in (requested, Path.cwd() / DEFAULT_LOG_NAME):
        try:
            candidate.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(candidate, encoding="utf-8")
        except OSError:
            continue
        file_handler.setFormatter(_FILE_FORMAT)
        file_handler.setLevel(logging.INFO)
        logger.addHandler(file_handler)
        chosen = candidate
        break

    if chosen is None:
        logger.warning("Could not open a log file (tried %s); logging to console only", requested)
    elif chosen != requested:
        logger.warning("Could not write %s; logging to %s instead", requested, chosen)

    setattr(logger, "_dotfile_linker_configured", True)
    setattr(logger, "_dotfile_linker_log_path", chosen)
    return chosen
