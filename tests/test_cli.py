"""Tests for the typer CLI."""

import json
from decimal import Decimal

import pytest
from rich.console import Console
from typer.testing import CliRunner

from conftest import WALLET, FakePricing, FakeProvider, FakeTransferSource, make_transfer, rpc_error

from wallet_activity_tracker.cli import main as cli
from wallet_activity_tracker.core.cache import ActivityCache
from wallet_activity_tracker.errors import UpstreamRequestFailed

runner = CliRunner()


class ClosingSource(FakeTransferSource):
    def close(self) -> None:
        self.closed = True


class ClosingPricing(FakePricing):
    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("WALLET_ACTIVITY_PREFERENCES", str(tmp_path / "prefs.json"))
    monkeypatch.delenv("ALCHEMY_API_KEY", raising=False)
    monkeypatch.delenv("WALLET_RPC_URL", raising=False)
    monkeypatch.setattr(cli, "console", Console(width=200))
    monkeypatch.setattr(cli, "activity_cache", ActivityCache())
    return tmp_path


@pytest.fixture
def fake_upstream(monkeypatch):
    monkeypatch.setenv("ALCHEMY_API_KEY", "test-key")
    source = ClosingSource(incoming=[make_transfer("0x01", timestamp="2024-05-01T10:30:00.000Z")])
    pricing = ClosingPricing(Decimal("3000"))
    monkeypatch.setattr(cli, "AlchemyTransferSource", lambda api_key, timeout: source)
    monkeypatch.setattr(cli, "CoinGeckoPricing", lambda base_url, timeout: pricing)
    return source, pricing


def test_chains_lists_registry():
    result = runner.invoke(cli.app, ["chains"])

    assert result.exit_code == 0
    assert "Ethereum" in result.output
    assert "Polygon" in result.output
    assert "Arbitrum" in result.output


def test_select_chain_persists(env):
    result = runner.invoke(cli.app, ["select-chain", "137"])

    assert result.exit_code == 0
    assert "Polygon" in result.output
    saved = json.loads((env / "prefs.json").read_text(encoding="utf-8"))
    assert saved["selected_chain_id"] == 137


def test_select_unknown_chain():
    result = runner.invoke(cli.app, ["select-chain", "56"])

    assert result.exit_code == 1
    assert "Unsupported chain 56" in result.output


def test_activity_requires_api_key():
    result = runner.invoke(cli.app, ["activity", WALLET])

    assert result.exit_code == 1
    assert "ALCHEMY_API_KEY" in result.output


def test_activity_json(fake_upstream):
    source, pricing = fake_upstream

    result = runner.invoke(cli.app, ["activity", WALLET, "--chain", "1", "--format", "json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert len(data) == 1
    assert data[0]["tx_hash"] == "0x01"
    assert data[0]["direction"] == "received"
    assert data[0]["usd_value"] == "3000.00"
    assert source.closed and pricing.closed


def test_activity_table_uses_selected_chain(fake_upstream):
    runner.invoke(cli.app, ["select-chain", "137"])

    result = runner.invoke(cli.app, ["activity", WALLET])

    assert result.exit_code == 0, result.output
    assert "Polygon" in result.output
    assert "received" in result.output


def test_activity_upstream_failure(fake_upstream):
    source, _ = fake_upstream
    source.error = UpstreamRequestFailed("RPC error 500: boom", status_code=500)

    result = runner.invoke(cli.app, ["activity", WALLET, "--chain", "1"])

    assert result.exit_code == 1
    assert "boom" in result.output


def test_wallet_without_wallet_host():
    result = runner.invoke(cli.app, ["wallet"])

    assert result.exit_code == 1
    assert "No wallet found" in result.output


def test_activity_reuses_cached_feed(fake_upstream):
    source, pricing = fake_upstream

    runner.invoke(cli.app, ["activity", WALLET, "--chain", "1"])
    result = runner.invoke(cli.app, ["activity", WALLET, "--chain", "1"])

    assert result.exit_code == 0, result.output
    assert sorted(source.calls) == ["incoming", "outgoing"]
    assert pricing.calls == 1


def test_activity_refresh_bypasses_cache(fake_upstream):
    source, _ = fake_upstream

    runner.invoke(cli.app, ["activity", WALLET, "--chain", "1"])
    result = runner.invoke(cli.app, ["activity", WALLET, "--chain", "1", "--refresh"])

    assert result.exit_code == 0, result.output
    assert sorted(source.calls) == ["incoming", "incoming", "outgoing", "outgoing"]


@pytest.fixture
def wallet_host(monkeypatch):
    provider = FakeProvider(chain_id=1)
    monkeypatch.setattr(cli, "http_provider_factory", lambda url, timeout, network_names: lambda: provider)
    return provider


def test_wallet_reports_network_mismatch(fake_upstream, wallet_host):
    runner.invoke(cli.app, ["select-chain", "137"])

    result = runner.invoke(cli.app, ["wallet"])

    assert result.exit_code == 0, result.output
    assert "Connected as 0xd8dA...6045" in result.output
    assert "Network mismatch" in result.output
    assert "on Polygon" in result.output
    assert wallet_host.sent == []
    assert wallet_host.closed


def test_wallet_switch_moves_to_selected_chain(fake_upstream, wallet_host):
    runner.invoke(cli.app, ["select-chain", "137"])

    result = runner.invoke(cli.app, ["wallet", "--switch", "--format", "json"])

    assert result.exit_code == 0, result.output
    assert wallet_host.methods() == ["wallet_switchEthereumChain"]
    assert wallet_host.chain_id == 137
    assert "Network mismatch" not in result.output
    assert '"tx_hash": "0x01"' in result.output
    assert wallet_host.closed


def test_wallet_switch_failure(fake_upstream, wallet_host):
    wallet_host.send_errors = {"wallet_switchEthereumChain": [rpc_error(4001, "User rejected")]}
    runner.invoke(cli.app, ["select-chain", "137"])

    result = runner.invoke(cli.app, ["wallet", "--switch"])

    assert result.exit_code == 1
    assert "User rejected" in result.output
    assert wallet_host.closed
