"""assetsync CLI"""

import click

from assetsync import __version__
from assetsync.cli.config import config_group
from assetsync.cli.files import cat, hash_file, ls
from assetsync.cli.resource import branch, check, download, status, update

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="assetsync")
@click.option(
    "--remote",
    "-r",
    envvar="ASSETSYNC_REMOTE",
    default=None,
    help="URL of the remote bundle repository (defaults to the configured one).",
)
@click.option(
    "--bundle-dir",
    "-d",
    envvar="ASSETSYNC_BUNDLE_DIR",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding downloaded resources (defaults to the configured one).",
)
@click.pass_context
def cli(ctx, remote, bundle_dir):
    """
    Download, update and verify offline resource bundles.
    """
    ctx.ensure_object(dict)
    ctx.obj["REMOTE"] = remote
    ctx.obj["BUNDLE_DIR"] = bundle_dir


for command in (
    download,
    update,
    check,
    status,
    branch,
    ls,
    cat,
    hash_file,
    config_group,
):
    cli.add_command(add_debug_option(command))

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
