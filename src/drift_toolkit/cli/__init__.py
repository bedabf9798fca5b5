"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from drift_toolkit import __version__


@click.group()
@click.version_option(version=__version__, prog_name="drift")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """drift — detect and fix configuration drift across repositories."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@main.group()
def code() -> None:
    """Code domain: protected files, scans and dependency changes."""


def _register_commands() -> None:
    from drift_toolkit.cli.fix import fix  # noqa: F811
    from drift_toolkit.cli.scan import scan  # noqa: F811

    code.add_command(scan)
    code.add_command(fix)


_register_commands()
