"""cli commands to inspect and change settings"""

import click

from assetsync.cli.utils.logging import logger
from assetsync.config import ConfigAccessor, default_cfg


def _split_setting(name: str):
    section, _, key = name.partition(".")
    if section not in default_cfg or key not in default_cfg[section]:
        known = ", ".join(f"{s}.{k}" for s in default_cfg for k in default_cfg[s])
        raise click.BadParameter(f"Unknown setting '{name}'; expected one of: {known}")
    return section, key


@click.group("config")
@click.option(
    "--file",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file to use (defaults to the user configuration).",
)
@click.pass_context
def config_group(ctx, config_file):
    """Show or change assetsync settings."""
    ctx.ensure_object(dict)
    ctx.obj["CONFIG"] = ConfigAccessor(config_file)


@config_group.command("show")
@click.pass_context
def show(ctx):
    """Print every setting, configured values first, then defaults."""
    accessor: ConfigAccessor = ctx.obj["CONFIG"]
    logger.info(f"# {accessor.config_path}")
    for section in accessor.sections():
        for key in accessor.options(section):
            click.echo(f"{section}.{key} = {accessor.get(section, key)}")
    for section, values in default_cfg.items():
        for key, value in values.items():
            if key not in accessor.options(section):
                click.echo(f"{section}.{key} = {value}  (default)")


@config_group.command("set")
@click.argument("name")
@click.argument("value")
@click.pass_context
def set_value(ctx, name: str, value: str):
    """Set NAME (section.key, e.g. remote.url) to VALUE and save."""
    section, key = _split_setting(name)
    accessor: ConfigAccessor = ctx.obj["CONFIG"]
    accessor.set(section, key, value)
    accessor.save()
    logger.info(f"Set {section}.{key} in {accessor.config_path}")
