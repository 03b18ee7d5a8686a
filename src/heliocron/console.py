"""Console rendering shared by the CLI commands."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Iterator

import click

from .config import Settings
from .errors import HeliocronError, NonceConflictError, RetriesExhaustedError
from .submit.jobs import JobSpec
from .utils import format_blocks_to_time, format_native

_STATUS_STYLE = {
    "pending": ("PENDING", "yellow"),
    "success": ("SUCCESS", "green"),
    "failed": ("FAILED", "red"),
}


def header(title: str, subtitle: str) -> None:
    click.echo()
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style(title, fg="bright_white", bold=True)
        + click.style(f" ─── {subtitle}", fg="cyan")
    )
    click.echo()


def step(number: int, total: int, text: str) -> None:
    click.secho(f"  [{number}/{total}] {text}", fg="bright_white")


def field(label: str, value: object) -> None:
    click.echo(click.style(f"        {label}: ", dim=True) + str(value))


def tx_status(tx_hash: str, status: str) -> None:
    label, color = _STATUS_STYLE[status]
    click.echo(click.style("        Status: ", dim=True) + click.style(label, fg=color, bold=True))
    field("TX", tx_hash)


def job_details(job: JobSpec, current_block: int, settings: Settings) -> None:
    click.secho("        Task configuration:", fg="cyan")
    field("Target contract", job.target_address)
    field(
        "Frequency",
        f"every {job.frequency} blocks (~{format_blocks_to_time(job.frequency, settings.block_time)})",
    )
    field("Deposit", format_native(job.deposit))
    field("Gas limit", f"{job.gas_limit:,}")
    field("Gas price", f"{settings.gas_price_gwei} gwei")
    field("Current block", f"{current_block:,}")
    field("Expiration block", f"{job.expiration_block:,}")
    field(
        "Validity",
        format_blocks_to_time(job.expiration_block - current_block, settings.block_time),
    )


def report_failure(exc: HeliocronError) -> None:
    click.echo()
    click.secho(f"  Failed: {exc}", fg="red", bold=True)

    cause = exc.last_error if isinstance(exc, RetriesExhaustedError) else exc
    if isinstance(cause, NonceConflictError):
        click.echo()
        click.secho("  Nonce mismatch detected. This usually happens when:", fg="yellow")
        click.echo("    - There are pending transactions that haven't been confirmed")
        click.echo("    - The wallet was used elsewhere with a different nonce")

    if exc.hint:
        click.echo()
        click.secho("  Suggestion:", fg="yellow")
        click.echo(f"    {exc.hint}")
    click.echo()


@contextmanager
def supervised() -> Iterator[None]:
    """Map failures to exit codes; an interrupt exits at once, leaving sent transactions alone."""
    try:
        yield
    except KeyboardInterrupt:
        click.echo()
        click.secho("  Interrupted by user.", fg="yellow")
        sys.exit(130)
    except HeliocronError as exc:
        report_failure(exc)
        sys.exit(exc.exit_code)
