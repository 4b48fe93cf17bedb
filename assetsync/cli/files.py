"""cli commands to read files of downloaded resources"""

import sys

import click

from assetsync.cli.context import engine_from_context
from assetsync.cli.utils.logging import logger


@click.command("ls")
@click.argument("locale")
@click.argument("type")
@click.argument("path", default="")
@click.pass_context
def ls(ctx, locale: str, type: str, path: str):
    """List a directory of the LOCALE/TYPE bundle."""
    with engine_from_context(ctx) as sync:
        if sync.revision(locale, type) is None:
            logger.error(f"{locale}/{type} has not been downloaded")
            sys.exit(1)
        entries = sync.contents_of_directory(path, locale, type)
    for entry in entries:
        click.echo(entry)


@click.command("cat")
@click.argument("locale")
@click.argument("type")
@click.argument("path")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the file here instead of standard output.",
)
@click.pass_context
def cat(ctx, locale: str, type: str, path: str, output):
    """Print a file of the LOCALE/TYPE bundle."""
    with engine_from_context(ctx) as sync:
        if output:
            sync.write_file(path, locale, type, output)
            return
        data = sync.file_data(path, locale, type)
    if data is None:
        logger.error(f"No file '{path}' in {locale}/{type}")
        sys.exit(1)
    click.echo(data, nl=False)


@click.command("hash")
@click.argument("locale")
@click.argument("type")
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--expect",
    default=None,
    help="Expected hash; fail if the (single) file does not match.",
)
@click.pass_context
def hash_file(ctx, locale: str, type: str, paths, expect):
    """Print the content hash of files in the LOCALE/TYPE bundle."""
    if expect and len(paths) != 1:
        raise click.UsageError("--expect takes exactly one path")
    with engine_from_context(ctx) as sync:
        for path in paths:
            if expect:
                digest = sync.verify_file(path, locale, type, expect)
            else:
                digest = sync.file_hash(path, locale, type)
            click.echo(f"{digest}  {path}")
