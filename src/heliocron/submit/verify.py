"""
Post-deployment checks.

A success receipt for a creation transaction does not guarantee there is
code at the new address.  ``DeploymentVerifier`` checks the code first
(a hard failure) and then asks the contract to describe itself (a
diagnostic only: the deployment is already final).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from eth_abi.exceptions import DecodingError

from ..chain.abi import output_names
from ..chain.rpc import ChainClient
from ..errors import ChainError, VerificationError

logger = logging.getLogger(__name__)

DEFAULT_INFO_METHOD = "getContractInfo"


@dataclass(frozen=True)
class VerificationReport:
    address: str
    code_size: int
    info: dict[str, Any] = field(default_factory=dict)
    info_error: Optional[str] = None

    @property
    def info_ok(self) -> bool:
        return self.info_error is None


class DeploymentVerifier:
    def __init__(self, client: ChainClient, info_method: str = DEFAULT_INFO_METHOD) -> None:
        self.client = client
        self.info_method = info_method

    def verify(self, address: str, abi: Sequence[dict[str, Any]]) -> VerificationReport:
        """
        Verify a deployed contract.

        Raises:
            VerificationError: If there is no code at ``address``
        """
        code = self.client.get_code(address)
        if not code:
            raise VerificationError(address, "contract address has no code")
        logger.info("Code present at %s (%d bytes)", address, len(code))

        try:
            info = self._read_info(address, abi)
        except (ChainError, DecodingError, ValueError) as exc:
            logger.warning("Introspection call %s on %s failed: %s", self.info_method, address, exc)
            return VerificationReport(address=address, code_size=len(code), info_error=str(exc))

        return VerificationReport(address=address, code_size=len(code), info=info)

    def _read_info(self, address: str, abi: Sequence[dict[str, Any]]) -> dict[str, Any]:
        names = output_names(abi, self.info_method)
        result = self.client.call(address, abi, self.info_method)
        if result is None:
            raise ValueError(f"{self.info_method} returned no data")
        values = result if len(names) > 1 else (result,)
        return dict(zip(names, values))
