from __future__ import annotations

from pathlib import Path

import pytest

from deploykit import cli
from deploykit.ledger_client import ConfirmationHandle, RPCError
from deploykit.model import AccountSnapshot, ActivationState

GIVER = "0:" + "1" * 64
WALLET = "0:" + "2" * 64


class GatewayStub:
    def __init__(self, states: dict, balances: dict, error: Exception | None = None) -> None:
        self.states = states
        self.balances = balances
        self.error = error
        self.calls: list[str] = []

    def __call__(self, net_config):
        self.net_config = net_config
        return self

    def query_snapshot(self, address, name=None):
        if self.error is not None:
            raise self.error
        return AccountSnapshot(address, self.states[address], self.balances[address], name)

    def submit_value_transfer(self, giver, to, amount):
        self.calls.append(f"transfer {amount}")
        self.balances[to] += amount
        return ConfirmationHandle("m1", to)

    def submit_deployment(self, contract, constructor_args):
        self.calls.append("deploy")
        self.states[contract.address] = ActivationState.ACTIVE
        return ConfirmationHandle("m2", contract.address)

    def call_method(self, contract, method, params, keys=None):
        self.calls.append(f"{method} {params['value']}")
        return ConfirmationHandle("m3", params["dest"])

    def wait_for_confirmation(self, handle):
        self.calls.append(f"wait {handle.message_id}")

    def close(self):
        self.calls.append("close")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DEPLOYKIT_NET_URL",
        "DEPLOYKIT_NET_TIMEOUT",
        "DEPLOYKIT_LOCALE",
        "DEPLOYKIT_KEYS",
        "DEPLOYKIT_GIVER_KEYS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "deploykit.yaml"
    path.write_text(
        f"""
net:
  url: http://localhost:8080
  transactions:
    fee: 0.001
    tolerance: 0.000000001
locale: en
keys: wallet.keys.json
giver:
  name: GiverV2
  address: "{GIVER}"
  keys: giver.keys.json
contract:
  name: SafeMultisigWallet
  address: "{WALLET}"
required_for_deployment: 0.03
"""
    )
    return path


def test_deploy_command_funds_and_deploys(config_path, monkeypatch, capsys) -> None:
    gateway = GatewayStub(
        {GIVER: ActivationState.ACTIVE, WALLET: ActivationState.UNINITIALIZED},
        {GIVER: 40_000_000, WALLET: 0},
    )
    monkeypatch.setattr(cli, "LedgerRPCClient", gateway)

    cli.main(["--config", str(config_path), "deploy"])

    assert gateway.calls == ["transfer 30000000", "wait m1", "deploy", "wait m2", "close"]
    assert gateway.net_config.url == "http://localhost:8080"
    assert (config_path.parent / "wallet.keys.json").exists()
    assert (config_path.parent / "giver.keys.json").exists()
    assert "DEPLOYED" in capsys.readouterr().out


def test_deploy_with_poor_giver_exits_non_zero(config_path, monkeypatch) -> None:
    gateway = GatewayStub(
        {GIVER: ActivationState.ACTIVE, WALLET: ActivationState.UNINITIALIZED},
        {GIVER: 100, WALLET: 0},
    )
    monkeypatch.setattr(cli, "LedgerRPCClient", gateway)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "deploy"])

    assert excinfo.value.code == 1
    assert gateway.calls == ["close"]


def test_call_with_wrong_argument_count_reports_fields(config_path, monkeypatch, capsys) -> None:
    gateway = GatewayStub({WALLET: ActivationState.ACTIVE}, {WALLET: 10})
    monkeypatch.setattr(cli, "LedgerRPCClient", gateway)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "call", "multisig-send", GIVER, "1"])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "INVALID ARGUMENTS COUNT" in captured.out
    assert "    comment" in captured.out
    assert captured.err.startswith("error:")
    assert gateway.calls == []


def test_call_giver_send_runs_strategy(config_path, monkeypatch) -> None:
    gateway = GatewayStub(
        {WALLET: ActivationState.ACTIVE, GIVER: ActivationState.ACTIVE},
        {WALLET: 10**10, GIVER: 0},
    )
    monkeypatch.setattr(cli, "LedgerRPCClient", gateway)

    cli.main(["--config", str(config_path), "call", "giver-send", GIVER, "1_000"])

    assert gateway.calls == ["sendTransaction 1000", "wait m3", "close"]


def test_rpc_errors_exit_with_hint(config_path, monkeypatch, capsys) -> None:
    gateway = GatewayStub({}, {}, error=RPCError(404, "Account does not exist"))
    monkeypatch.setattr(cli, "LedgerRPCClient", gateway)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "info"])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "RPC error 404" in err
    assert "Hint:" in err
    assert gateway.calls == ["close"]


def test_info_accepts_address_override(config_path, monkeypatch, capsys) -> None:
    other = "0:" + "9" * 64
    gateway = GatewayStub({other: ActivationState.FROZEN}, {other: 2_000_000_000})
    monkeypatch.setattr(cli, "LedgerRPCClient", gateway)

    cli.main(["--config", str(config_path), "info", "--address", other])

    assert f"{other}   2   Frozen" in capsys.readouterr().out


def test_commands_lists_schemas(capsys) -> None:
    cli.main(["commands"])

    out = capsys.readouterr().out
    assert "multisig-send" in out
    assert "address value bounce flags comment" in out
