"""
Deploy - Put the tick contract on chain.

Flow:
1. Load settings and the compiled artifact
2. Deploy with retry (balance check, nonce handling, receipt wait)
3. Verify code and read the contract's info
4. Write deployment.json and point TARGET_CONTRACT at the new address
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from .. import console
from ..chain.abi import load_artifact
from ..chain.rpc import ChainClient
from ..config import load_settings
from ..record import DEFAULT_RECORD_PATH, DeploymentRecord, update_env_file, write_deployment_record
from ..submit.submitter import TransactionSubmitter
from ..submit.verify import DeploymentVerifier


@click.command()
@click.option(
    "--artifact",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Compiled contract artifact (default: CONTRACT_ARTIFACT)",
)
@click.option("--contract-name", default=None, help="Contract to pick from solc standard-JSON output")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_RECORD_PATH,
    show_default=True,
    help="Where to write the deployment record",
)
@click.option(
    "--update-env/--no-update-env",
    default=True,
    help="Write the new address to TARGET_CONTRACT in .env",
)
@click.pass_obj
def deploy(
    obj: dict,
    artifact: Optional[Path],
    contract_name: Optional[str],
    output: Path,
    update_env: bool,
) -> None:
    """Deploy the tick contract and record the deployment."""
    with console.supervised():
        settings = load_settings(obj.get("env_file"))
        settings.validate_for_deploy()
        account = settings.account()
        contract = load_artifact(artifact or settings.artifact_path, contract_name)

        console.header("Deploy", f"{contract.name}")
        console.field("Deployer", account.address)
        console.field("Network", settings.rpc_url)
        click.echo()

        with ChainClient(settings.rpc_url) as client:
            console.step(1, 3, "Sending deployment transaction...")
            submitter = TransactionSubmitter(
                client,
                account,
                settings,
                on_sent=lambda tx_hash: console.tx_status(tx_hash, "pending"),
            )
            result = submitter.deploy_with_retry(contract)
            console.tx_status(result.tx_hash, "success")
            console.field("Contract address", result.contract_address)
            click.echo()

            console.step(2, 3, "Verifying contract deployment...")
            report = DeploymentVerifier(client).verify(result.contract_address, contract.abi)
            console.field("Code size", f"{report.code_size} bytes")
            if report.info_ok:
                for name, value in report.info.items():
                    console.field(name, value)
            else:
                click.secho(f"        Contract info unavailable: {report.info_error}", fg="yellow")
            click.echo()

        console.step(3, 3, "Saving deployment information...")
        record = DeploymentRecord(
            address=result.contract_address,
            tx_hash=result.tx_hash,
            network=settings.rpc_url,
            deployer=account.address,
            abi=contract.abi,
        )
        path = write_deployment_record(record, output)
        console.field("Record", path)
        if update_env and settings.env_path and update_env_file(settings.env_path, record.address):
            console.field(".env", f"TARGET_CONTRACT={record.address}")

        click.echo()
        click.echo(
            click.style("  ◆ ", fg="green")
            + click.style("Deployment Complete", fg="green", bold=True)
        )
        click.echo()
        click.secho("  Next steps:", fg="cyan")
        click.echo("    1. Verify the contract in the block explorer")
        click.echo("    2. Run 'heliocron schedule' to create the cron task")
        click.echo()

