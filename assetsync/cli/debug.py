import click

from .utils.logging import configure_logging


def _set_debug(ctx, param, value: bool):
    """Record the flag on the root context; a --debug anywhere wins."""
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    debug = root_ctx.obj.get("DEBUG", False) or value
    # --no-debug on the group itself resets
    if ctx is root_ctx:
        debug = value
    root_ctx.obj["DEBUG"] = debug
    configure_logging(debug)
    return debug


def add_debug_option(cmd):
    """Decorator to add a --debug/--no-debug option to a command or group"""
    option = click.Option(
        ["--debug/--no-debug"],
        is_eager=True,
        expose_value=False,
        callback=_set_debug,
        help="Enable debug mode",
    )
    if isinstance(cmd, click.Command):
        if not any(param.name == "debug" for param in cmd.params):
            cmd.params.insert(0, option)
        return cmd
    return click.option(
        "--debug/--no-debug",
        is_eager=True,
        expose_value=False,
        callback=_set_debug,
        help="Enable debug mode",
    )(cmd)
