"""Logging configuration for jira-gitbot."""

import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

LOGGER_NAME = "jira_gitbot"


def setup_logging(verbose: int = 0, log_file: Path | None = None) -> None:
    """Configure logging based on verbosity level and optional file output.

    Args:
        verbose: Verbosity level (0=off, 1=INFO, 2+=DEBUG)
        log_file: Optional path to write logs to file
    """
    if verbose == 0 and log_file is None:
        return

    level = logging.DEBUG if verbose >= 2 else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if verbose > 0:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(level)
        stderr_handler.setFormatter(formatter)
        logger.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    level_name = "DEBUG" if verbose >= 2 else "INFO"
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("")
    logger.info("=" * 60)
    logger.info("jira-gitbot starting | %s | level=%s", timestamp, level_name)
    logger.info("=" * 60)


def log_event(
    name: str,
    action: str | None,
    payload: dict[str, Any],
    dump_dir: Path | None = None,
) -> None:
    """Log an incoming event, dumping its payload when debugging.

    The payload is written to ``{dump_dir}/last_payload.json`` only when
    DEBUG is enabled for the package logger and a dump directory is given.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.debug("%s.%s", name, action)
    if dump_dir is None or not logger.isEnabledFor(logging.DEBUG):
        return
    dump_dir.mkdir(parents=True, exist_ok=True)
    (dump_dir / "last_payload.json").write_text(json.dumps(payload, indent=2), encoding="utf-8")
