"""
Settings - one immutable configuration object per run.

Values come from a ``.env`` file (python-dotenv) layered under the process
environment.  ``load_settings`` parses and validates everything up front so
that a bad value fails before any network call; the resulting ``Settings``
is handed to every component constructor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values
from eth_utils import to_wei

from .errors import ConfigurationError
from .wallet import Account, validate_address, validate_private_key

# ---- Defaults (Helios testnet) ----
DEFAULT_RPC_URL = "https://testnet1.helioschainlabs.org"
CRON_PRECOMPILE_ADDRESS = "0x0000000000000000000000000000000000000830"
DEFAULT_ARTIFACT = Path("contracts") / "out" / "TickContract.sol" / "TickContract.json"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    rpc_url: str = DEFAULT_RPC_URL
    cron_address: str = CRON_PRECOMPILE_ADDRESS
    private_key: Optional[str] = None
    target_contract: Optional[str] = None

    # Cron job
    frequency: int = 300
    gas_limit: int = 300_000
    gas_price_gwei: str = "2"
    deposit: str = "0.02"
    validity_weeks: int = 2
    block_time: float = 1.2

    # Submission
    max_retries: int = 3
    retry_delay_ms: int = 2000
    pending_grace_seconds: float = 10.0
    receipt_timeout: Optional[float] = 300.0
    deploy_min_balance: str = "0.01"
    deploy_nonce_reset: bool = True
    register_nonce_reset: bool = False

    artifact_path: Path = DEFAULT_ARTIFACT
    env_path: Optional[Path] = None

    @property
    def gas_price_wei(self) -> int:
        return int(to_wei(Decimal(self.gas_price_gwei), "gwei"))

    @property
    def deposit_wei(self) -> int:
        return int(to_wei(Decimal(self.deposit), "ether"))

    @property
    def deploy_min_balance_wei(self) -> int:
        return int(to_wei(Decimal(self.deploy_min_balance), "ether"))

    def account(self) -> Account:
        if not self.private_key:
            raise ConfigurationError("Missing required environment variables: PRIVATE_KEY")
        return Account.from_key(self.private_key)

    def validate_for_deploy(self) -> None:
        if not self.private_key:
            raise ConfigurationError("Missing required environment variables: PRIVATE_KEY")
        validate_private_key(self.private_key)

    def validate_for_schedule(self) -> None:
        missing = [
            name
            for name, value in (("TARGET_CONTRACT", self.target_contract), ("PRIVATE_KEY", self.private_key))
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")
        validate_private_key(self.private_key or "")
        validate_address(self.target_contract or "", "contract address")
        validate_address(self.cron_address, "cron address")


def load_settings(
    env_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from a .env file and the environment.

    Args:
        env_path: Path to .env file (default: ./.env)
        environ: Environment mapping (default: os.environ); wins over the file

    Returns:
        Parsed, validated Settings

    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    env_path = env_path or Path.cwd() / ".env"
    values: dict[str, Optional[str]] = {}
    if env_path.exists():
        values.update(dotenv_values(env_path))
    values.update(os.environ if environ is None else environ)

    def get(key: str) -> Optional[str]:
        value = values.get(key)
        if value is None:
            return None
        value = value.strip()
        return value or None

    receipt_timeout = _parse_float(get, "RECEIPT_TIMEOUT", 300.0)

    settings = Settings(
        rpc_url=get("RPC_URL") or DEFAULT_RPC_URL,
        cron_address=get("CRON_ADDRESS") or CRON_PRECOMPILE_ADDRESS,
        private_key=_normalize_key(get("PRIVATE_KEY")),
        target_contract=get("TARGET_CONTRACT"),
        frequency=_parse_int(get, "FREQUENCY", 300, positive=True),
        gas_limit=_parse_int(get, "GAS_LIMIT", 300_000, positive=True),
        gas_price_gwei=_parse_decimal(get, "GAS_PRICE", "2"),
        deposit=_parse_decimal(get, "DEPOSIT", "0.02"),
        validity_weeks=_parse_int(get, "VALIDITY_WEEKS", 2, positive=True),
        block_time=_parse_float(get, "BLOCK_TIME", 1.2),
        max_retries=_parse_int(get, "MAX_RETRIES", 3),
        retry_delay_ms=_parse_int(get, "RETRY_DELAY", 2000),
        pending_grace_seconds=_parse_float(get, "PENDING_GRACE", 10.0),
        receipt_timeout=receipt_timeout if receipt_timeout > 0 else None,
        deploy_min_balance=_parse_decimal(get, "DEPLOY_MIN_BALANCE", "0.01"),
        deploy_nonce_reset=_parse_bool(get, "DEPLOY_NONCE_RESET", True),
        register_nonce_reset=_parse_bool(get, "REGISTER_NONCE_RESET", False),
        artifact_path=Path(get("CONTRACT_ARTIFACT") or DEFAULT_ARTIFACT),
        env_path=env_path,
    )

    if settings.block_time <= 0:
        raise ConfigurationError("BLOCK_TIME must be positive")
    if settings.max_retries < 1:
        raise ConfigurationError("MAX_RETRIES must be at least 1")
    return settings


def _normalize_key(private_key: Optional[str]) -> Optional[str]:
    if private_key and not private_key.startswith("0x"):
        return "0x" + private_key
    return private_key


def _parse_int(get, key: str, default: int, positive: bool = False) -> int:
    raw = get(key)
    if raw is None:
        return default
    try:
        value = int(raw.replace("_", ""))
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
    if positive and value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}")
    if value < 0:
        raise ConfigurationError(f"{key} must not be negative, got {value}")
    return value


def _parse_float(get, key: str, default: float) -> float:
    raw = get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None


def _parse_decimal(get, key: str, default: str) -> str:
    raw = get(key)
    if raw is None:
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ConfigurationError(f"{key} must be a decimal amount, got {raw!r}") from None
    if not value.is_finite() or value < 0:
        raise ConfigurationError(f"{key} must be a non-negative amount, got {raw!r}")
    return raw


def _parse_bool(get, key: str, default: bool) -> bool:
    raw = get(key)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be true or false, got {raw!r}")
