from __future__ import annotations

import os
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from eth_utils import from_wei

NATIVE_SYMBOL = "HLS"


def utc_now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def format_blocks_to_time(blocks: int, block_time: float = 1.2) -> str:
    seconds = blocks * block_time
    minutes = int(seconds // 60)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days} days {hours % 24} hours"
    if hours > 0:
        return f"{hours} hours {minutes % 60} minutes"
    return f"{minutes} minutes"


def format_native(wei: int) -> str:
    """Render a wei amount in native units, e.g. ``0.0206 HLS``."""
    value = Decimal(from_wei(wei, "ether"))
    text = format(value.normalize(), "f") if value else "0"
    return f"{text} {NATIVE_SYMBOL}"


def atomic_write(path: Path, data: bytes) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp.open("wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
