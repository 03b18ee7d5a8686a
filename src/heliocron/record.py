"""Deployment record and .env update, written once after a verified deploy."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .utils import atomic_write, utc_now_rfc3339

DEFAULT_RECORD_PATH = Path("deployment.json")


@dataclass(frozen=True)
class DeploymentRecord:
    address: str
    tx_hash: str
    network: str
    deployer: str
    abi: list[dict[str, Any]]
    deployed_at: str = field(default_factory=utc_now_rfc3339)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "txHash": self.tx_hash,
            "deployedAt": self.deployed_at,
            "network": self.network,
            "deployer": self.deployer,
            "abi": self.abi,
        }


def write_deployment_record(record: DeploymentRecord, path: Path = DEFAULT_RECORD_PATH) -> Path:
    """Write ``record`` as indented JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = json.dumps(record.to_dict(), indent=2) + "\n"
    atomic_write(path, data.encode("utf-8"))
    return path


def update_env_file(env_path: Path, contract_address: str, key: str = "TARGET_CONTRACT") -> bool:
    """
    Set ``key`` to the deployed address in an existing .env file.

    Returns:
        False if the file does not exist (nothing written)
    """
    if not env_path.exists():
        return False

    content = env_path.read_text(encoding="utf-8")
    pattern = re.compile(rf"^{re.escape(key)}=.*$", re.MULTILINE)
    if pattern.search(content):
        content = pattern.sub(f"{key}={contract_address}", content)
    else:
        if content and not content.endswith("\n"):
            content += "\n"
        content += f"{key}={contract_address}\n"

    atomic_write(env_path, content.encode("utf-8"))
    return True
