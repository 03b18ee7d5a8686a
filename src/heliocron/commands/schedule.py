"""
Schedule - Register the cron job that ticks the target contract.

Flow:
1. Validate settings (TARGET_CONTRACT, PRIVATE_KEY) before touching the network
2. Read the current block and compute the expiration block
3. Funds pre-flight (deposit + gas)
4. createCron on the scheduler precompile, with retry
"""

from __future__ import annotations

import click

from .. import console
from ..chain.rpc import ChainClient
from ..config import load_settings
from ..submit.jobs import JobSpec
from ..submit.submitter import TransactionSubmitter


@click.command()
@click.pass_obj
def schedule(obj: dict) -> None:
    """Register a recurring tick() job on the scheduler."""
    with console.supervised():
        settings = load_settings(obj.get("env_file"))
        settings.validate_for_schedule()
        account = settings.account()

        console.header("Schedule", "Create a cron task")
        console.field("Wallet", account.address)
        console.field("Scheduler", settings.cron_address)
        console.field("Network", settings.rpc_url)
        click.echo()

        def on_prepared(job: JobSpec, current_block: int) -> None:
            console.step(1, 2, "Preparing task...")
            console.job_details(job, current_block, settings)
            click.echo()
            console.step(2, 2, "Sending createCron transaction...")

        with ChainClient(settings.rpc_url) as client:
            submitter = TransactionSubmitter(
                client,
                account,
                settings,
                on_sent=lambda tx_hash: console.tx_status(tx_hash, "pending"),
            )
            result = submitter.register_job_with_retry(on_prepared=on_prepared)

        console.tx_status(result.tx_hash, "success")
        click.echo()
        click.echo(
            click.style("  ◆ ", fg="green")
            + click.style("Cron task registered", fg="green", bold=True)
        )
        click.echo()
        click.echo(f"  Transaction hash: {result.tx_hash}")
        click.echo("  You can view the transaction details in the block explorer.")
        click.echo()
