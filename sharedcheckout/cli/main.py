"""sharedcheckout CLI"""

import click

from sharedcheckout import __version__
from sharedcheckout.cli.checkout import materialize, paths

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="sharedcheckout")
@click.pass_context
def cli(ctx):
    """
    Materialize build checkouts from a shared git mirror cache.
    """
    ctx.ensure_object(dict)


cli.add_command(add_debug_option(materialize))
cli.add_command(add_debug_option(paths))

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
