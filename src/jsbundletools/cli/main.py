"""jsbundletools CLI entrypoint.

Typer application with one subcommand per run mode (`unpack`, `pack`,
`patch`) plus `version`. Progress is logged to stderr; each command echoes the
path it produced on stdout.
"""

from __future__ import annotations

import logging
import sys

import typer

app = typer.Typer(
    name="jsbundletools",
    add_completion=False,
    no_args_is_help=True,
    help="Unpack, patch and repack indexed .jsbundle files.",
)


def _configure_logging(*, verbose: int, quiet: int) -> logging.Logger:
    level = logging.INFO
    if quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger = logging.getLogger("jsbundletools")
    logger.setLevel(level)
    logger.propagate = False

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


@app.callback()
def _callback(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="More log output (repeatable)."),
    quiet: int = typer.Option(0, "--quiet", "-q", count=True, help="Less log output (repeatable)."),
) -> None:
    """jsbundletools CLI."""
    _configure_logging(verbose=verbose, quiet=quiet)


@app.command("version")
def version() -> None:
    """Print the installed jsbundletools version."""
    from jsbundletools import __version__

    typer.echo(__version__)


def _register_commands() -> None:
    """Register CLI subcommands.

    Importing these modules must remain lightweight so `jsbundletools --help` is fast.
    """
    from jsbundletools.cli.commands import pack as pack_cmd
    from jsbundletools.cli.commands import patch as patch_cmd
    from jsbundletools.cli.commands import unpack as unpack_cmd

    unpack_cmd.register(app)
    pack_cmd.register(app)
    patch_cmd.register(app)


_register_commands()
