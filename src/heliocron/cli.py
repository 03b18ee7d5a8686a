"""
heliocron CLI

Command-line interface for deploying a tick contract and scheduling it
with the chain's cron precompile.

Commands:
  deploy    - Deploy the tick contract and write deployment.json
  schedule  - Register the recurring tick() job
  whoami    - Show the signing address and balance
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__, console
from .chain.rpc import ChainClient
from .commands.deploy import deploy
from .commands.schedule import schedule
from .config import load_settings
from .utils import format_native


@click.group()
@click.version_option(version=__version__, prog_name="heliocron")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: ./.env)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log RPC and submission details")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path], verbose: bool) -> None:
    """heliocron — deploy a contract and schedule it on-chain."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"env_file": env_file}


cli.add_command(deploy)
cli.add_command(schedule)


@cli.command()
@click.pass_obj
def whoami(obj: dict) -> None:
    """Show the signing address and its balance."""
    with console.supervised():
        settings = load_settings(obj.get("env_file"))
        account = settings.account()
        click.echo(f"Address: {account.address}")
        with ChainClient(settings.rpc_url) as client:
            click.echo(f"Balance: {format_native(client.get_balance(account.address))}")


def main() -> None:
    """heliocron CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: old Python or non-tty
    cli()


if __name__ == "__main__":
    main()
