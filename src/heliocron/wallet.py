"""
Signing identity for heliocron.

A single ECDSA/secp256k1 key, read from configuration and kept in memory
for the life of the process.  Nothing here writes the key anywhere.

Dependencies: eth-account (no full web3.py needed)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from eth_account import Account as _EthAccount
from eth_account.signers.local import LocalAccount

from .errors import ConfigurationError

PRIVATE_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


@dataclass(frozen=True)
class Account:
    """
    The signing identity.

    Attributes:
        address: 0x-prefixed checksummed address
        private_key: 0x-prefixed hex private key (66 chars)
    """
    address: str
    private_key: str = field(repr=False)

    @classmethod
    def from_key(cls, private_key: str) -> "Account":
        validate_private_key(private_key)
        return cls(address=_EthAccount.from_key(private_key).address, private_key=private_key)

    def signer(self) -> LocalAccount:
        """Open a fresh signing session for this key."""
        return _EthAccount.from_key(self.private_key)


def validate_private_key(private_key: str) -> None:
    if not PRIVATE_KEY_PATTERN.match(private_key or ""):
        raise ConfigurationError(
            "Invalid private key format, should start with 0x and be 66 characters long"
        )


def validate_address(address: str, name: str = "address") -> None:
    if not ADDRESS_PATTERN.match(address or ""):
        raise ConfigurationError(
            f"Invalid {name} format, should start with 0x and be 42 characters long"
        )
