"""sourcesync CLI"""

import click

from sourcesync import __version__
from sourcesync.cli.sync import cleanup_command, sync_command
from sourcesync.cli.utils.logging import configure_logging


def _configure_debug(ctx, param, value):
    """Callback of --debug; the outermost explicit --debug wins."""
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    if value or "DEBUG" not in root_ctx.obj:
        root_ctx.obj["DEBUG"] = value
    configure_logging(root_ctx.obj["DEBUG"])
    return root_ctx.obj["DEBUG"]


def debug_option(cmd):
    """Add a --debug/--no-debug flag to a command or group."""
    return click.option(
        "--debug/--no-debug",
        is_eager=True,
        expose_value=False,
        callback=_configure_debug,
        help="Enable debug mode",
    )(cmd)


@click.group()
@click.version_option(__version__, prog_name="sourcesync")
@debug_option
@click.pass_context
def cli(ctx):
    """
    Sync a local directory with a ref of a remote git repository.
    """
    ctx.ensure_object(dict)


cli.add_command(debug_option(sync_command))
cli.add_command(debug_option(cleanup_command))

if __name__ == "__main__":
    cli(obj={})
