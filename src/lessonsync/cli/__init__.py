"""Command-line interface for LessonSync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- run: Transfer the latest lesson video to Drive
- locate: Only locate the latest lesson video
- check-config: Validate the environment settings
"""

from __future__ import annotations

from pathlib import Path

import click

from lessonsync.cli.config import check_config, setup_logging
from lessonsync.cli.run import locate, run


@click.group()
@click.version_option(package_name="lessonsync")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Log level for transfer events.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write logs to this file.",
)
def cli(log_level: str, log_file: Path | None) -> None:
    """LessonSync - Copy the latest lesson recording to Google Drive."""
    setup_logging(log_level, log_file)


cli.add_command(run)
cli.add_command(locate)
cli.add_command(check_config)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "setup_logging",
]
