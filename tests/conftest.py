"""Pytest configuration and shared fakes for wallet-activity-tracker tests."""

from decimal import Decimal
from typing import Any

import pytest

from wallet_activity_tracker.core.models import Chain, Network, RawTransfer
from wallet_activity_tracker.core.registry import ChainRegistry
from wallet_activity_tracker.errors import ProviderRpcError

WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
OTHER = "0x1111111111111111111111111111111111111111"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransferSource:
    """Transfer source returning canned transfers and counting calls."""

    def __init__(
        self,
        outgoing: list[RawTransfer] | None = None,
        incoming: list[RawTransfer] | None = None,
        error: Exception | None = None,
        incoming_error: Exception | None = None,
    ) -> None:
        self.outgoing = outgoing or []
        self.incoming = incoming or []
        self.error = error
        self.incoming_error = incoming_error
        self.calls: list[str] = []

    def fetch_outgoing(self, address: str, chain: Chain) -> list[RawTransfer]:
        self.calls.append("outgoing")
        if self.error:
            raise self.error
        return self.outgoing

    def fetch_incoming(self, address: str, chain: Chain) -> list[RawTransfer]:
        self.calls.append("incoming")
        if self.incoming_error:
            raise self.incoming_error
        return self.incoming


class FakePricing:
    """Price oracle returning a fixed price, or raising."""

    def __init__(self, price: Decimal | None = Decimal("2000"), error: Exception | None = None) -> None:
        self.price = price
        self.error = error
        self.calls = 0

    def fetch_reference_price(self, chain: Chain) -> Decimal | None:
        self.calls += 1
        if self.error:
            raise self.error
        return self.price


class FakeSigner:
    def __init__(self, address: str) -> None:
        self.address = address

    def get_address(self) -> str:
        return self.address


class FakeProvider:
    """
    Scriptable wallet provider.

    ``send_errors`` maps a method name to a list of errors raised on
    successive calls (None meaning success).
    """

    def __init__(
        self,
        address: str = WALLET,
        chain_id: int = 1,
        accounts_error: Exception | None = None,
        send_errors: dict[str, list[Exception | None]] | None = None,
    ) -> None:
        self.address = address
        self.chain_id = chain_id
        self.accounts_error = accounts_error
        self.send_errors = send_errors or {}
        self.sent: list[tuple[str, list[Any]]] = []
        self.closed = False

    def request_accounts(self) -> list[str]:
        if self.accounts_error:
            raise self.accounts_error
        return [self.address]

    def get_signer(self) -> FakeSigner:
        return FakeSigner(self.address)

    def get_network(self) -> Network:
        return Network(chain_id=self.chain_id, name=f"chain-{self.chain_id}")

    def send(self, method: str, params: list[Any]) -> Any:
        self.sent.append((method, params))
        errors = self.send_errors.get(method)
        if errors:
            error = errors.pop(0)
            if error is not None:
                raise error
        if method == "wallet_switchEthereumChain":
            self.chain_id = int(params[0]["chainId"], 16)
        return None

    def methods(self) -> list[str]:
        return [method for method, _ in self.sent]

    def close(self) -> None:
        self.closed = True


def make_transfer(
    tx_hash: str,
    timestamp: str | None = "2024-01-01T00:00:00.000Z",
    sender: str = OTHER,
    recipient: str = WALLET,
    value: str | int | float | None = "1000000000000000000",
    decimals: int | None = 18,
    symbol: str | None = "ETH",
) -> RawTransfer:
    return RawTransfer(
        counterparty_from=sender,
        counterparty_to=recipient,
        raw_value=value,
        tx_hash=tx_hash,
        asset_symbol=symbol,
        asset_decimals=decimals,
        block_timestamp=timestamp,
        category="external",
    )


def rpc_error(code: int, message: str = "provider error", data: Any = None) -> ProviderRpcError:
    return ProviderRpcError(code, message, data)


@pytest.fixture
def registry() -> ChainRegistry:
    return ChainRegistry.from_yaml()


@pytest.fixture
def ethereum(registry: ChainRegistry) -> Chain:
    return registry.require(1)


@pytest.fixture
def polygon(registry: ChainRegistry) -> Chain:
    return registry.require(137)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
