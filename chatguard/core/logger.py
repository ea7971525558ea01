"""Logger configuration for chatguard.

Two output modes:
- Console (default): colored, human-readable lines on stderr.
- JSON lines on stdout: one object per record with ``severity``, ``message``,
  ``timestamp`` and any bound extra fields. Cloud Logging ingests these
  directly and correlates ``trace_id`` with Cloud Trace when a project is set.
"""

import json
import os
import sys
from pathlib import Path

from loguru import logger

# loguru level name -> Cloud Logging severity
_SEVERITY_BY_LEVEL = {
    "TRACE": "DEBUG",
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "INFO",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL",
}


def _json_sink(message) -> None:
    """Write a loguru record as a single JSON line on stdout."""
    record = message.record
    entry: dict = {
        "severity": _SEVERITY_BY_LEVEL.get(record["level"].name, "DEFAULT"),
        "message": record["message"],
        "timestamp": record["time"].isoformat(),
        "logger": f"{record['name']}:{record['function']}:{record['line']}",
    }
    entry.update(record["extra"])

    trace_id = record["extra"].get("trace_id")
    project_id = os.getenv("GOOGLE_CLOUD_PROJECT")
    if trace_id and project_id:
        entry["logging.googleapis.com/trace"] = f"projects/{project_id}/traces/{trace_id}"

    if record["exception"] is not None:
        entry["exception"] = repr(record["exception"].value)

    sys.stdout.write(json.dumps(entry, default=str) + "\n")
    sys.stdout.flush()


def setup_logger(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru logger with console/JSON output and optional file output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Emit JSON lines on stdout instead of colored console lines
        log_file: Optional path to log file. If None, no file logging.
        rotation: Log rotation size (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days", "1 month")
    """
    # Remove default handler
    logger.remove()

    if json_logs:
        logger.add(_json_sink, level=level, format="{message}")
    else:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> {extra}",
            level=level,
            colorize=True,
        )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} {extra}",
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"Logger initialized with level={level} json={json_logs}")
