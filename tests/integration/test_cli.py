"""
CLI integration tests using Click's test runner.

The commands run end to end against the in-memory node from conftest;
only the ChainClient construction is redirected to the mock transport.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner
from eth_abi import encode

from heliocron import __version__
from heliocron.chain.rpc import ChainClient
from heliocron.cli import cli
from heliocron.wallet import Account

from conftest import DEPLOYED_ADDRESS, ETHER, PRIVATE_KEY, TARGET_CONTRACT, FakeNode

SETTING_KEYS = [
    "RPC_URL", "CRON_ADDRESS", "PRIVATE_KEY", "TARGET_CONTRACT", "FREQUENCY", "GAS_LIMIT",
    "GAS_PRICE", "DEPOSIT", "VALIDITY_WEEKS", "BLOCK_TIME", "MAX_RETRIES", "RETRY_DELAY",
    "PENDING_GRACE", "RECEIPT_TIMEOUT", "DEPLOY_MIN_BALANCE", "DEPLOY_NONCE_RESET",
    "REGISTER_NONCE_RESET", "CONTRACT_ARTIFACT",
]

INFO_ABI = [
    {
        "type": "function",
        "name": "getContractInfo",
        "inputs": [],
        "outputs": [
            {"name": "tickCount", "type": "uint256"},
            {"name": "owner", "type": "address"},
        ],
        "stateMutability": "view",
    }
]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def node(monkeypatch: pytest.MonkeyPatch) -> FakeNode:
    fake = FakeNode()

    def make_client(url: str, **kwargs) -> ChainClient:
        return ChainClient(url, transport=httpx.MockTransport(fake.handle), sleep=lambda s: None)

    for module in ("heliocron.cli", "heliocron.commands.deploy", "heliocron.commands.schedule"):
        monkeypatch.setattr(f"{module}.ChainClient", make_client)
    for key in SETTING_KEYS:
        monkeypatch.delenv(key, raising=False)
    return fake


@pytest.fixture()
def address() -> str:
    return Account.from_key(PRIVATE_KEY).address


@pytest.fixture()
def env_file(tmp_path: Path) -> Path:
    path = tmp_path / ".env"
    path.write_text(
        "\n".join(
            [
                "RPC_URL=http://node.test",
                f"PRIVATE_KEY={PRIVATE_KEY}",
                f"TARGET_CONTRACT={TARGET_CONTRACT}",
                "RETRY_DELAY=0",
                "PENDING_GRACE=0",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def artifact(tmp_path: Path) -> Path:
    path = tmp_path / "TickContract.json"
    path.write_text(json.dumps({"abi": INFO_ABI, "bytecode": {"object": "0x6080604052"}}), encoding="utf-8")
    return path


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestWhoami:
    def test_shows_address_and_balance(self, runner, node, env_file, address) -> None:
        node.fund(address, ETHER)
        result = runner.invoke(cli, ["--env-file", str(env_file), "whoami"])
        assert result.exit_code == 0
        assert address in result.output
        assert "1 HLS" in result.output


class TestDeploy:
    def test_deploys_verifies_and_records(self, runner, node, env_file, artifact, address, tmp_path) -> None:
        node.fund(address, ETHER)
        node.code[DEPLOYED_ADDRESS] = "0x6080604052"
        node.call_results[DEPLOYED_ADDRESS] = "0x" + encode(["uint256", "address"], [0, address]).hex()
        output = tmp_path / "deployment.json"

        result = runner.invoke(
            cli,
            ["--env-file", str(env_file), "deploy", "--artifact", str(artifact), "--output", str(output)],
        )

        assert result.exit_code == 0, result.output
        assert "Deployment Complete" in result.output
        record = json.loads(output.read_text(encoding="utf-8"))
        assert record["address"] == DEPLOYED_ADDRESS
        assert record["txHash"] == node.sent[0]["hash"]
        assert record["deployer"] == address
        assert record["network"] == "http://node.test"
        assert f"TARGET_CONTRACT={DEPLOYED_ADDRESS}" in env_file.read_text(encoding="utf-8")

    def test_empty_code_fails_without_record(self, runner, node, env_file, artifact, address, tmp_path) -> None:
        node.fund(address, ETHER)
        output = tmp_path / "deployment.json"

        result = runner.invoke(
            cli,
            ["--env-file", str(env_file), "deploy", "--artifact", str(artifact), "--output", str(output)],
        )

        assert result.exit_code == 1
        assert "no code" in result.output
        assert not output.exists()
        assert f"TARGET_CONTRACT={TARGET_CONTRACT}" in env_file.read_text(encoding="utf-8")

    def test_missing_artifact(self, runner, node, env_file, tmp_path) -> None:
        result = runner.invoke(
            cli, ["--env-file", str(env_file), "deploy", "--artifact", str(tmp_path / "none.json")]
        )
        assert result.exit_code == 1
        assert node.calls == []


class TestSchedule:
    def test_registers_job(self, runner, node, env_file, address) -> None:
        node.fund(address, ETHER)
        result = runner.invoke(cli, ["--env-file", str(env_file), "schedule"])

        assert result.exit_code == 0, result.output
        assert "Cron task registered" in result.output
        assert "1,508,000" in result.output
        assert node.sent[0]["hash"] in result.output
        assert len(node.sent) == 1

    def test_insufficient_balance(self, runner, node, env_file, address) -> None:
        node.fund(address, ETHER // 1000)
        result = runner.invoke(cli, ["--env-file", str(env_file), "schedule"])

        assert result.exit_code == 1
        assert "Insufficient balance" in result.output
        assert "reduce DEPOSIT" in result.output
        assert node.sent == []

    def test_missing_configuration_fails_before_network(self, runner, node, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text(f"PRIVATE_KEY={PRIVATE_KEY}\n", encoding="utf-8")
        result = runner.invoke(cli, ["--env-file", str(env), "schedule"])

        assert result.exit_code == 1
        assert "TARGET_CONTRACT" in result.output
        assert node.calls == []

    def test_exhausted_retries(self, runner, node, env_file, address) -> None:
        node.fund(address, ETHER)
        node.receipt_status = 0
        result = runner.invoke(cli, ["--env-file", str(env_file), "schedule"])

        assert result.exit_code == 1
        assert "All 3 attempts failed" in result.output
        assert len(node.sent) == 3

    def test_interrupt_exits_immediately(self, runner, node, env_file, monkeypatch) -> None:
        def interrupted(request: httpx.Request) -> httpx.Response:
            raise KeyboardInterrupt

        monkeypatch.setattr(node, "handle", interrupted)
        result = runner.invoke(cli, ["--env-file", str(env_file), "schedule"])

        assert result.exit_code == 130
        assert "Interrupted" in result.output
