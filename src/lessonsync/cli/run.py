"""Transfer commands for the LessonSync CLI.

Commands:
- run: Transfer the latest lesson video to Drive
- locate: Only locate the latest lesson video
"""

from __future__ import annotations

import json
import os
import sys

import click

from lessonsync.core.errors import AutomationError, ConfigurationError, WorkflowError
from lessonsync.core.types import TransferStatus


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as JSON.")
def run(as_json: bool) -> None:
    """Transfer the latest lesson video to the Drive folder.

    Skips the upload when a file with the same name already exists.
    """
    from lessonsync.transfer.workflow import run_transfer

    try:
        outcome = run_transfer(os.environ)
    except WorkflowError as e:
        click.echo(f"Error [{e.step}]: {e.message}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), ensure_ascii=False))
        return

    if outcome.status is TransferStatus.SKIPPED:
        click.echo(f"Skipped {outcome.canonical_name}: already uploaded ({outcome.remote_file_id})")
    else:
        click.echo(f"Uploaded {outcome.canonical_name} ({outcome.remote_file_id})")


@click.command()
def locate() -> None:
    """Locate the latest lesson video without transferring it."""
    from lessonsync.core.config import load_config
    from lessonsync.locator.browser import BrowserAssetLocator

    try:
        config = load_config(os.environ)
        locator = BrowserAssetLocator(
            site_url=config.site_url,
            headless=config.headless,
            timeout=config.browser_timeout,
        )
        asset = locator.locate(config.site_credentials)
    except (ConfigurationError, AutomationError) as e:
        click.echo(f"Error [{e.step}]: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"Label: {asset.label}")
    click.echo(f"Name: {asset.canonical_name}")
    click.echo(f"Source: {asset.source_url}")
