"""Data models for chains, raw transfers, and normalized activity records."""

from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

API_KEY_PLACEHOLDER = "${API_KEY}"
REDACTED_API_KEY = "<your-key>"


class ActivityDirection(StrEnum):
    """Direction of a transfer relative to the queried address."""

    SENT = "sent"
    RECEIVED = "received"


class ActivityStatus(StrEnum):
    """Confirmation state of a transfer."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class Chain(BaseModel):
    """
    Supported chain metadata.

    Attributes
    ----------
    chain_id : int
        Numeric EVM chain id (identity)
    hex_chain_id : str
        Chain id as a 0x-prefixed hex string, as wallets expect it
    name : str
        Display name (e.g., 'Ethereum')
    native_symbol : str
        Symbol of the native asset (e.g., 'ETH')
    upstream_network : str
        Alchemy network key (e.g., 'eth-mainnet')
    rpc_url : str
        RPC URL template containing ``${API_KEY}``
    block_explorer : str
        Block explorer base URL
    price_oracle_id : str | None
        CoinGecko id of the reference asset

    """

    model_config = ConfigDict(frozen=True)

    chain_id: int
    hex_chain_id: str
    name: str
    native_symbol: str
    upstream_network: str
    rpc_url: str
    block_explorer: str
    price_oracle_id: str | None = None

    def rpc_endpoint(self, api_key: str) -> str:
        """Return the RPC URL with the real API key substituted."""
        return self.rpc_url.replace(API_KEY_PLACEHOLDER, api_key)

    def redacted_rpc_url(self) -> str:
        """Return the RPC URL with the key replaced by a placeholder."""
        return self.rpc_url.replace(API_KEY_PLACEHOLDER, REDACTED_API_KEY)


class Network(BaseModel):
    """Network reported by a wallet provider."""

    model_config = ConfigDict(frozen=True)

    chain_id: int
    name: str = "unknown"


class RawTransfer(BaseModel):
    """
    Transfer record as returned by the upstream transfer service.

    Attributes
    ----------
    counterparty_from : str
        Sender address
    counterparty_to : str
        Recipient address (empty for contract creations)
    raw_value : str | int | float | None
        Unscaled value in the asset's smallest unit
    tx_hash : str
        Transaction hash
    asset_symbol : str | None
        Asset symbol, when upstream knows it
    asset_decimals : int | None
        Asset decimals, when upstream reports contract metadata
    block_timestamp : str | None
        ISO-8601 block timestamp
    category : str | None
        Upstream transfer category ('external', 'erc20', ...)

    """

    model_config = ConfigDict(frozen=True)

    counterparty_from: str
    counterparty_to: str = ""
    raw_value: str | int | float | None = None
    tx_hash: str
    asset_symbol: str | None = None
    asset_decimals: int | None = None
    block_timestamp: str | None = None
    category: str | None = None


class ActivityRecord(BaseModel):
    """
    Normalized transfer shown in the activity feed.

    Attributes
    ----------
    tx_hash : str
        Transaction hash (unique within a feed)
    timestamp : str
        ISO-8601 timestamp, empty when upstream had none
    direction : ActivityDirection
        Sent or received, relative to the queried address
    amount : Decimal
        Amount in asset units, 6 fractional digits
    symbol : str
        Asset symbol
    usd_value : Decimal | None
        USD value, 2 fractional digits, only when a price was resolved
    counterparty_from : str
        Sender address
    counterparty_to : str
        Recipient address
    status : ActivityStatus
        Confirmation status
    chain : Chain
        Chain the transfer happened on

    """

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    timestamp: str
    direction: ActivityDirection
    amount: Decimal
    symbol: str
    usd_value: Decimal | None = None
    counterparty_from: str
    counterparty_to: str
    status: ActivityStatus = ActivityStatus.CONFIRMED
    chain: Chain
