"""Centralized logging configuration for experiment runs."""

import logging
import sys
import uuid
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime, timezone
from typing import Iterator
from contextvars import ContextVar

# Current experiment stage (e.g. "with_addr_state_te")
stage_var: ContextVar[str] = ContextVar("stage", default="-")

# Unique ID for this run (set once at import)
RUN_ID: str = uuid.uuid4().hex[:8]
RUN_START_TIME: datetime = datetime.now(timezone.utc)

# Logger cache
_LOGGERS = {}


class UTCFormatter(logging.Formatter):
    """Formatter that always uses UTC and stamps the current stage."""

    converter = lambda *args: datetime.now(timezone.utc).timetuple()

    def format(self, record):
        record.stage = stage_var.get()
        return super().format(record)


@contextmanager
def stage(name: str) -> Iterator[str]:
    """Label every log line emitted inside the block with `name`."""
    token = stage_var.set(name)
    try:
        yield name
    finally:
        stage_var.reset(token)


def log_session_start(logger: logging.Logger):
    """Log a clear session start banner."""
    banner = "=" * 80
    logger.info(banner)
    logger.info(f"SESSION START | Run ID: {RUN_ID}")
    logger.info(banner)


def log_session_end(logger: logging.Logger):
    """Log a clear session end banner."""
    duration = datetime.now(timezone.utc) - RUN_START_TIME
    minutes, seconds = divmod(int(duration.total_seconds()), 60)
    hours, minutes = divmod(minutes, 60)

    if hours > 0:
        duration_str = f"{hours}h {minutes}m {seconds}s"
    elif minutes > 0:
        duration_str = f"{minutes}m {seconds}s"
    else:
        duration_str = f"{seconds}s"

    banner = "=" * 80
    logger.info(banner)
    logger.info(f"SESSION END | Run ID: {RUN_ID} | Duration: {duration_str}")
    logger.info(banner)


def get_logger(
    name: str,
    level: int = logging.INFO,
    log_dir: Path = Path("logs")
) -> logging.Logger:
    """
    Get or create configured logger.

    Features:
    - UTC timestamps
    - Stage labels (which model of the comparison emitted the line)
    - Session separators (clear start/end markers)
    - Fixed-width formatting
    """

    if name in _LOGGERS:
        return _LOGGERS[name]

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        return logger

    # Format: timestamp | level | module | [stage] | message
    log_format = (
        "%(asctime)s UTC | "
        "%(levelname)-8s | "
        "%(name)-28s | "
        "[%(stage)s] | "
        "%(message)s"
    )

    formatter = UTCFormatter(
        fmt=log_format,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    log_dir.mkdir(parents=True, exist_ok=True)

    module_parts = name.split(".")
    if len(module_parts) >= 2:
        module_name = module_parts[-1]
    else:
        module_name = name

    date_str = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    log_file = log_dir / f"{module_name}_{date_str}.log"

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    _LOGGERS[name] = logger
    return logger
