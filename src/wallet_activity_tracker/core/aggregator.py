"""Activity aggregator merging sent and received transfers into one priced feed."""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Protocol

from wallet_activity_tracker.core.cache import ActivityCache
from wallet_activity_tracker.core.models import (
    ActivityDirection,
    ActivityRecord,
    ActivityStatus,
    Chain,
    RawTransfer,
)
from wallet_activity_tracker.errors import ActivityFetchFailed, UpstreamRequestFailed

logger = logging.getLogger(__name__)

FEED_SIZE = 10
DEFAULT_DECIMALS = 18
AMOUNT_QUANTUM = Decimal("0.000001")
USD_QUANTUM = Decimal("0.01")


class TransferSource(Protocol):
    """Interface of the upstream transfer service."""

    def fetch_outgoing(self, address: str, chain: Chain) -> list[RawTransfer]: ...

    def fetch_incoming(self, address: str, chain: Chain) -> list[RawTransfer]: ...


class PriceOracle(Protocol):
    """Interface of the reference-price service."""

    def fetch_reference_price(self, chain: Chain) -> Decimal | None: ...


class ActivityAggregator:
    """
    Builds the recent-activity feed for one address on one chain.

    Workflow:
    1. Serve from cache while the entry is fresh
    2. Fetch outgoing, incoming, and price concurrently
    3. Merge and dedupe by transaction hash
    4. Normalize amounts, direction, and USD value
    5. Order newest first, truncate, cache

    Parameters
    ----------
    transfer_source : TransferSource
        Upstream transfer client
    pricing_service : PriceOracle
        Reference price client
    cache : ActivityCache | None
        Feed cache (a fresh 60-second cache if None)
    feed_size : int
        Maximum number of records returned

    """

    def __init__(
        self,
        transfer_source: TransferSource,
        pricing_service: PriceOracle,
        cache: ActivityCache | None = None,
        feed_size: int = FEED_SIZE,
    ) -> None:
        self.transfer_source = transfer_source
        self.pricing_service = pricing_service
        self.cache = cache if cache is not None else ActivityCache()
        self.feed_size = feed_size

    def get_recent_activity(self, address: str, chain: Chain) -> list[ActivityRecord]:
        """
        Get the most recent transfers for an address on a chain.

        Parameters
        ----------
        address : str
            Wallet address
        chain : Chain
            Chain to query

        Returns
        -------
        list[ActivityRecord]
            Newest-first records, at most ``feed_size`` long

        Raises
        ------
        ActivityFetchFailed
            If either transfer query fails or returns malformed data

        """
        cached = self.cache.get(address, chain.chain_id)
        if cached is not None:
            logger.debug("Activity cache hit for %s on %s", address, chain.name)
            return cached

        logger.debug("Activity cache miss for %s on %s", address, chain.name)
        outgoing, incoming, usd_price = self._fetch_upstream(address, chain)

        try:
            records = [
                normalize_transfer(transfer, address, chain, usd_price)
                for transfer in dedupe_transfers([*outgoing, *incoming])
            ]
        except UpstreamRequestFailed as e:
            msg = f"Failed to normalize activity on {chain.name}: {e}"
            raise ActivityFetchFailed(msg) from e

        records = sort_records(records)[: self.feed_size]
        self.cache.set(address, chain.chain_id, records)
        return records

    def invalidate(self, address: str, chain: Chain) -> None:
        """Forget the cached feed for an address on a chain."""
        self.cache.invalidate(address, chain.chain_id)

    def _fetch_upstream(
        self,
        address: str,
        chain: Chain,
    ) -> tuple[list[RawTransfer], list[RawTransfer], Decimal | None]:
        """
        Run the three upstream calls concurrently and join them.

        Returns
        -------
        tuple[list[RawTransfer], list[RawTransfer], Decimal | None]
            Outgoing transfers, incoming transfers, and the USD price

        """
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="activity") as executor:
            outgoing_future = executor.submit(self.transfer_source.fetch_outgoing, address, chain)
            incoming_future = executor.submit(self.transfer_source.fetch_incoming, address, chain)
            price_future = executor.submit(self._fetch_price, chain)

            try:
                outgoing = outgoing_future.result()
                incoming = incoming_future.result()
            except Exception as e:
                for future in (outgoing_future, incoming_future, price_future):
                    future.cancel()
                msg = f"Failed to fetch activity on {chain.name}: {e}"
                raise ActivityFetchFailed(msg) from e

            return outgoing, incoming, price_future.result()

    def _fetch_price(self, chain: Chain) -> Decimal | None:
        try:
            price = self.pricing_service.fetch_reference_price(chain)
        except Exception as e:
            logger.debug("Price lookup failed for %s: %s", chain.name, e)
            return None

        if price is not None and not price.is_finite():
            logger.debug("Ignoring non-finite price for %s: %s", chain.name, price)
            return None
        return price


def dedupe_transfers(transfers: list[RawTransfer]) -> list[RawTransfer]:
    """
    Keep one transfer per transaction hash.

    The last occurrence wins; output order follows first occurrence.

    """
    by_hash: dict[str, RawTransfer] = {}
    for transfer in transfers:
        by_hash[transfer.tx_hash] = transfer
    return list(by_hash.values())


def scale_raw_value(raw_value: str | int | float | None, decimals: int | None) -> Decimal:
    """
    Convert an unscaled upstream value into asset units.

    Parameters
    ----------
    raw_value : str | int | float | None
        Decimal string, hex string, or number; None counts as zero
    decimals : int | None
        Asset decimals (18 if None)

    Returns
    -------
    Decimal
        Amount rounded half-up to 6 fractional digits

    Raises
    ------
    UpstreamRequestFailed
        If the value cannot be parsed as a number

    Examples
    --------
    >>> scale_raw_value("2500000", 6)
    Decimal('2.500000')

    """
    if decimals is None:
        decimals = DEFAULT_DECIMALS

    with localcontext() as ctx:
        ctx.prec = 100
        try:
            if raw_value is None or raw_value == "":
                value = Decimal(0)
            elif isinstance(raw_value, str) and raw_value.lower().startswith("0x"):
                value = Decimal(int(raw_value, 16))
            elif isinstance(raw_value, float):
                value = Decimal(str(raw_value))
            else:
                value = Decimal(raw_value)
        except (InvalidOperation, ValueError) as e:
            msg = f"Malformed transfer value: {raw_value!r}"
            raise UpstreamRequestFailed(msg) from e

        if not value.is_finite():
            msg = f"Malformed transfer value: {raw_value!r}"
            raise UpstreamRequestFailed(msg)

        return (value.scaleb(-decimals)).quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def normalize_transfer(
    transfer: RawTransfer,
    address: str,
    chain: Chain,
    usd_price: Decimal | None,
) -> ActivityRecord:
    """
    Turn an upstream transfer into an activity record.

    Parameters
    ----------
    transfer : RawTransfer
        Upstream transfer
    address : str
        Queried wallet address
    chain : Chain
        Chain the transfer belongs to
    usd_price : Decimal | None
        Reference price, or None when unknown

    Returns
    -------
    ActivityRecord
        Normalized record

    """
    amount = scale_raw_value(transfer.raw_value, transfer.asset_decimals)

    direction = (
        ActivityDirection.SENT
        if transfer.counterparty_from.lower() == address.lower()
        else ActivityDirection.RECEIVED
    )

    usd_value = None
    if usd_price is not None:
        with localcontext() as ctx:
            ctx.prec = 100
            usd_value = (amount * usd_price).quantize(USD_QUANTUM, rounding=ROUND_HALF_UP)

    # The transfer API only returns mined transfers; finality is not reported
    return ActivityRecord(
        tx_hash=transfer.tx_hash,
        timestamp=transfer.block_timestamp or "",
        direction=direction,
        amount=amount,
        symbol=transfer.asset_symbol or chain.native_symbol,
        usd_value=usd_value,
        counterparty_from=transfer.counterparty_from,
        counterparty_to=transfer.counterparty_to,
        status=ActivityStatus.CONFIRMED,
        chain=chain,
    )


def sort_records(records: list[ActivityRecord]) -> list[ActivityRecord]:
    """
    Order records newest first.

    ISO-8601 UTC timestamps compare correctly as strings. Records without a
    timestamp go last; ties keep their input order.

    """
    return sorted(records, key=lambda record: (bool(record.timestamp), record.timestamp), reverse=True)
