"""
ABI handling - contract artifacts, call encoding, result decoding.

Artifacts are the JSON files an external compiler leaves behind
(Foundry ``out/``, Hardhat ``artifacts/``, or solc standard-JSON output);
heliocron never compiles anything itself.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from eth_abi import decode, encode
from eth_hash.auto import keccak

from ..errors import ConfigurationError

# Method the scheduler calls on the target contract.
TICK_ABI: list[dict[str, Any]] = [
    {
        "name": "tick",
        "type": "function",
        "inputs": [],
        "outputs": [],
        "stateMutability": "nonpayable",
    }
]

# Cron precompile (scheduler) interface.
CRON_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "address", "name": "contractAddress", "type": "address"},
            {"internalType": "string", "name": "abi", "type": "string"},
            {"internalType": "string", "name": "methodName", "type": "string"},
            {"internalType": "string[]", "name": "params", "type": "string[]"},
            {"internalType": "uint64", "name": "frequency", "type": "uint64"},
            {"internalType": "uint64", "name": "expirationBlock", "type": "uint64"},
            {"internalType": "uint64", "name": "gasLimit", "type": "uint64"},
            {"internalType": "uint256", "name": "maxGasPrice", "type": "uint256"},
            {"internalType": "uint256", "name": "amountToDeposit", "type": "uint256"},
        ],
        "name": "createCron",
        "outputs": [{"internalType": "bool", "name": "success", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    }
]


def tick_abi_json() -> str:
    """The target ABI as the JSON string the scheduler stores."""
    return json.dumps(TICK_ABI, separators=(",", ":"))


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    abi: list[dict[str, Any]]
    bytecode: str  # 0x-prefixed


def load_artifact(path: Path, contract_name: Optional[str] = None) -> ContractArtifact:
    """
    Load ABI and creation bytecode from a compiler artifact.

    Accepts Foundry (``bytecode.object``), Hardhat (``bytecode`` string) and
    solc standard-JSON output (``contracts.<file>.<name>.evm.bytecode.object``).

    Args:
        path: Artifact JSON file
        contract_name: Contract to pick from standard-JSON output
            (default: file stem)

    Raises:
        ConfigurationError: If the file or its bytecode is missing
    """
    if not path.exists():
        raise ConfigurationError(
            f"Contract artifact not found: {path}. Compile the contract first "
            f"(e.g. 'forge build')."
        )

    try:
        with path.open("r", encoding="utf-8") as f:
            artifact = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Contract artifact is not valid JSON: {path}: {exc}") from exc

    name = contract_name or path.stem
    if "contracts" in artifact and "abi" not in artifact:
        artifact = _pick_standard_json_contract(artifact["contracts"], name, path)

    abi = artifact.get("abi")
    if not isinstance(abi, list):
        raise ConfigurationError(f"No ABI in artifact {path}")

    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode:
        bytecode = artifact.get("evm", {}).get("bytecode", {}).get("object")
    if not bytecode or bytecode in ("0x", "0x0"):
        raise ConfigurationError(f"No bytecode in artifact for {name}")

    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    return ContractArtifact(name=name, abi=abi, bytecode=bytecode)


def _pick_standard_json_contract(contracts: dict, name: str, path: Path) -> dict:
    for per_file in contracts.values():
        if name in per_file:
            return per_file[name]
    raise ConfigurationError(f"Contract {name} not found in compiler output {path}")


# ============ Encoding ============


def _canonical_type(param: dict[str, Any]) -> str:
    kind = param["type"]
    if kind.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){kind[len('tuple'):]}"
    return kind


def find_function(abi: Sequence[dict[str, Any]], function_name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type", "function") == "function" and entry.get("name") == function_name:
            return entry
    raise ValueError(f"Function {function_name} not found in ABI")


def function_selector(entry: dict[str, Any]) -> bytes:
    input_types = [_canonical_type(inp) for inp in entry.get("inputs", [])]
    sig = f"{entry['name']}({','.join(input_types)})"
    return keccak(sig.encode("utf-8"))[:4]


def encode_function_call(abi: Sequence[dict[str, Any]], function_name: str, args: Sequence[Any]) -> str:
    """ABI-encode a function call to 0x-prefixed hex calldata."""
    func = find_function(abi, function_name)
    input_types = [_canonical_type(inp) for inp in func.get("inputs", [])]
    if len(args) != len(input_types):
        raise ValueError(
            f"{function_name} takes {len(input_types)} arguments, got {len(args)}"
        )

    encoded_args = encode(input_types, list(args)) if input_types else b""
    return "0x" + function_selector(func).hex() + encoded_args.hex()


def encode_deploy_data(artifact: ContractArtifact, constructor_args: Sequence[Any] = ()) -> str:
    """Creation bytecode with ABI-encoded constructor arguments appended."""
    if not constructor_args:
        return artifact.bytecode

    constructor = next((e for e in artifact.abi if e.get("type") == "constructor"), None)
    if constructor is None:
        raise ValueError(
            f"Constructor not found in ABI for {artifact.name}, "
            f"but constructor_args were provided."
        )
    input_types = [_canonical_type(inp) for inp in constructor.get("inputs", [])]
    return artifact.bytecode + encode(input_types, list(constructor_args)).hex()


def decode_function_result(abi: Sequence[dict[str, Any]], function_name: str, data: str) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        None for no outputs, the value for one output, a tuple otherwise
    """
    func = find_function(abi, function_name)
    output_types = [_canonical_type(out) for out in func.get("outputs", [])]
    if not output_types:
        return None

    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    decoded = decode(output_types, raw)

    if len(decoded) == 1:
        return decoded[0]
    return decoded


def output_names(abi: Sequence[dict[str, Any]], function_name: str) -> list[str]:
    """Output names of a function, ``output<i>`` where the ABI leaves one blank."""
    func = find_function(abi, function_name)
    return [out.get("name") or f"output{i}" for i, out in enumerate(func.get("outputs", []))]
