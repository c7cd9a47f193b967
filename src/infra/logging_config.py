"""Loguru sinks for the CLI.

Records emitted while a job is being polled carry ``extra["job_id"]`` (bound by
``JobMonitor.attach``); everything else is tagged with ``NO_JOB``.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

NO_JOB = "-"

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | job={extra[job_id]} | {name}:{line} | {message}"
CONSOLE_FORMAT = "{message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib records (httpx, httpcore, asyncio) to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the stdlib caller, not this handler, as the record origin.
        frame, depth = logging.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(
    log_file_prefix: str,
    logs_dir: str = "logs",
    third_party_levels: Optional[Dict[str, str]] = None,
    console_level: str = "INFO",
) -> str:
    """Install a DEBUG file sink, a ``console_level`` stderr sink and stdlib interception.

    Returns:
        Path of the log file written for this run.
    """
    log_path = Path(logs_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    log_file = log_path / f"{log_file_prefix}_{timestamp}.log"

    logger.remove()
    logger.configure(extra={"job_id": NO_JOB})
    logger.add(str(log_file), level="DEBUG", format=FILE_FORMAT, encoding="utf-8")
    logger.add(sys.stderr, level=console_level.upper(), format=CONSOLE_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.DEBUG, force=True)

    for logger_name, level_name in (third_party_levels or {}).items():
        logging.getLogger(logger_name).setLevel(getattr(logging, level_name.upper(), logging.INFO))

    return str(log_file)
