from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from eth_utils import to_checksum_address

from ..chain.abi import tick_abi_json
from ..config import Settings

SECONDS_PER_WEEK = 7 * 24 * 60 * 60
DEFAULT_BLOCK_TIME = 1.2
TICK_METHOD = "tick"


def compute_expiration_block(
    current_block: int,
    validity_weeks: float,
    average_block_time: float = DEFAULT_BLOCK_TIME,
) -> int:
    blocks_per_week = SECONDS_PER_WEEK / average_block_time
    return current_block + math.floor(blocks_per_week * validity_weeks)


@dataclass(frozen=True)
class JobSpec:
    """A recurring call the scheduler makes on ``target_address``."""
    target_address: str
    method_name: str
    method_abi: str
    frequency: int
    expiration_block: int
    gas_limit: int
    max_gas_price: int
    deposit: int
    params: tuple[str, ...] = field(default_factory=tuple)

    def create_cron_args(self) -> list[Any]:
        """Arguments for ``createCron`` in ABI order."""
        return [
            to_checksum_address(self.target_address),
            self.method_abi,
            self.method_name,
            list(self.params),
            self.frequency,
            self.expiration_block,
            self.gas_limit,
            self.max_gas_price,
            self.deposit,
        ]


def build_job_spec(settings: Settings, current_block: int) -> JobSpec:
    return JobSpec(
        target_address=settings.target_contract or "",
        method_name=TICK_METHOD,
        method_abi=tick_abi_json(),
        frequency=settings.frequency,
        expiration_block=compute_expiration_block(
            current_block, settings.validity_weeks, settings.block_time
        ),
        gas_limit=settings.gas_limit,
        max_gas_price=settings.gas_price_wei,
        deposit=settings.deposit_wei,
    )
