# src/taskdeck/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """Console shows every taskdeck record; anything else (httpx, asyncio, py.warnings) only at ERROR+."""

    def __init__(self, app_logger: str = "taskdeck", floor: int = logging.ERROR) -> None:
        super().__init__()
        self._app = app_logger
        self._floor = floor

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == self._app or name.startswith(self._app + "."):
            return True
        return record.levelno >= self._floor


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskdeck",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    quiet_loggers: tuple[str, ...] = ("httpx", "httpcore", "asyncio"),
    app_logger: str = "taskdeck",
) -> Path:
    """
    Configure logging with:
    - Console handler: readable + filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info). Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{app_logger}.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter(app_logger))
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)

    # HTTP client libraries log every request at INFO.
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
