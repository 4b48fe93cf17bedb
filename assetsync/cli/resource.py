"""cli commands to download, update and inspect resources"""

import click
from rich.console import Console
from rich.table import Table

from assetsync.cli.context import engine_from_context
from assetsync.cli.progress import TransferProgressDisplay
from assetsync.cli.utils.logging import logger
from assetsync.errors import ValidationError
from assetsync.model import UpdateStatus
from assetsync.naming import refspec_of_branch, require_branch_name


@click.command("download")
@click.argument("locale")
@click.argument("type")
@click.option("--quiet", "-q", is_flag=True, help="Do not show a progress bar.")
@click.pass_context
def download(ctx, locale: str, type: str, quiet: bool):
    """Download the resource bundle of LOCALE and TYPE."""
    with engine_from_context(ctx) as sync:
        if quiet:
            sha = sync.download(locale, type)
        else:
            with TransferProgressDisplay(f"{locale}/{type}") as display:
                sha = sync.download(locale, type, on_progress=display)
            display.summary()
    logger.info(f"Downloaded {locale}/{type} at {sha}")


@click.command("update")
@click.argument("locale")
@click.argument("type")
@click.option("--quiet", "-q", is_flag=True, help="Do not show a progress bar.")
@click.option(
    "--download-missing",
    is_flag=True,
    help="Download the resource if it has not been downloaded yet.",
)
@click.pass_context
def update(ctx, locale: str, type: str, quiet: bool, download_missing: bool):
    """Update the resource bundle of LOCALE and TYPE."""
    with engine_from_context(ctx) as sync:
        operation = sync.sync if download_missing else sync.update
        if quiet:
            status = operation(locale, type)
        else:
            with TransferProgressDisplay(f"{locale}/{type}") as display:
                status = operation(locale, type, on_progress=display)
        revision = sync.revision(locale, type)

    if status == UpdateStatus.UP_TO_DATE:
        logger.info(f"{locale}/{type} is up to date at {revision}")
    else:
        logger.info(f"Updated {locale}/{type} to {revision}")


@click.command("check")
@click.argument("locale")
@click.argument("type")
@click.pass_context
def check(ctx, locale: str, type: str):
    """Check whether an update is available for LOCALE and TYPE.

    Exits with status 0 when an update is available and 2 when the local copy
    is current, so the command can drive shell scripts.
    """
    with engine_from_context(ctx) as sync:
        result = sync.check_for_update(locale, type)

    logger.info(f"local:  {result.local_sha or '-'}")
    logger.info(f"remote: {result.remote_sha}")
    if result.is_update_available:
        logger.info("Update available")
    else:
        logger.info("Up to date")
        ctx.exit(2)


@click.command("status")
@click.pass_context
def status(ctx):
    """List downloaded resources and their revisions."""
    with engine_from_context(ctx) as sync:
        copies = sync.working_copies()

    if not copies:
        logger.info(f"No resources downloaded in {sync.bundle_dir}")
        return

    table = Table(title=f"Resources in {sync.bundle_dir}")
    table.add_column("Resource", style="cyan")
    table.add_column("Revision")
    table.add_column("Remote", style="dim")
    for copy in copies:
        table.add_row(str(copy.key), copy.revision or "-", copy.remote_url or "-")
    Console().print(table)


@click.command("branch")
@click.argument("locale")
@click.argument("type")
def branch(locale: str, type: str):
    """Print the branch and refspec that LOCALE and TYPE map to."""
    try:
        name = require_branch_name(locale, type)
    except ValidationError as e:
        raise click.BadParameter(str(e))
    click.echo(name)
    click.echo(refspec_of_branch(name))
