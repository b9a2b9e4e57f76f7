"""Logging setup and configuration check for the LessonSync CLI.

Commands:
- check-config: Validate the environment without running a transfer
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from lessonsync.core.config import OPTIONAL_KEYS, REQUIRED_KEYS, load_config
from lessonsync.core.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_path: Path | None = None) -> None:
    """Configure logging to output to stderr and optionally a file.

    Command output stays alone on stdout, so `run --json` can be piped.

    Args:
        level: Level name for the lessonsync logger.
        log_path: Optional path to a log file.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger("lessonsync")
    root_logger.setLevel(level.upper())
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_path is not None:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


@click.command("check-config")
def check_config() -> None:
    """Validate the environment settings.

    Lists which settings are present; values are never printed.
    """
    for key in REQUIRED_KEYS:
        state = "set" if os.environ.get(key, "").strip() else "MISSING"
        click.echo(f"{key}: {state}")
    for key in OPTIONAL_KEYS:
        state = "set" if os.environ.get(key, "").strip() else "default"
        click.echo(f"{key}: {state}")

    try:
        load_config(os.environ)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo("Configuration OK")
