from __future__ import annotations

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

from ..errors import (
    ConfigurationError,
    InsufficientBalanceError,
    ReceiptTimeoutError,
    RetriesExhaustedError,
    VerificationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Retrying cannot fix these.
FATAL_ERRORS: Tuple[Type[BaseException], ...] = (
    ConfigurationError,
    InsufficientBalanceError,
    ReceiptTimeoutError,
    VerificationError,
)


def run_with_retry(
    attempt: Callable[[], T],
    max_attempts: int = 3,
    delay_ms: int = 2000,
    *,
    sleep: Callable[[float], None] = time.sleep,
    give_up_on: Tuple[Type[BaseException], ...] = FATAL_ERRORS,
) -> T:
    """
    Call ``attempt`` until it succeeds, at most ``max_attempts`` times.

    Waits a fixed ``delay_ms`` between attempts.  Each call must be
    self-contained: nonce and fees are derived inside ``attempt``.

    Raises:
        RetriesExhaustedError: After the last failed attempt
        Any ``give_up_on`` error, unchanged, as soon as it occurs
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for number in range(1, max_attempts + 1):
        try:
            return attempt()
        except give_up_on:
            raise
        except Exception as exc:
            logger.warning("Attempt %d/%d failed: %s", number, max_attempts, exc)
            if number == max_attempts:
                raise RetriesExhaustedError(max_attempts, exc) from exc
            logger.info("Retrying in %.1f seconds...", delay_ms / 1000)
            sleep(delay_ms / 1000)

    raise AssertionError("unreachable")
