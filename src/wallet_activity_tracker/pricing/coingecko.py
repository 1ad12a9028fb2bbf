"""CoinGecko pricing service for reference-asset USD prices."""

import logging
from decimal import Decimal, InvalidOperation

import httpx

from wallet_activity_tracker.config import DEFAULT_COINGECKO_URL
from wallet_activity_tracker.core.models import Chain

logger = logging.getLogger(__name__)


class CoinGeckoPricing:
    """
    Fetches the spot USD price of a chain's native asset from CoinGecko.

    Prices are an enrichment: every failure degrades to ``None``.

    Parameters
    ----------
    base_url : str
        CoinGecko API base URL
    timeout : float
        Request timeout in seconds
    client : httpx.Client | None
        Preconfigured HTTP client (mainly for tests)

    """

    def __init__(
        self,
        base_url: str = DEFAULT_COINGECKO_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def fetch_reference_price(self, chain: Chain) -> Decimal | None:
        """
        Fetch the USD price of the chain's reference asset.

        Parameters
        ----------
        chain : Chain
            Chain whose ``price_oracle_id`` is looked up

        Returns
        -------
        Decimal | None
            USD price, or None when unknown

        Examples
        --------
        >>> pricing = CoinGeckoPricing()
        >>> pricing.fetch_reference_price(registry.require(1))

        """
        coin_id = chain.price_oracle_id
        if not coin_id:
            return None

        prices = self._fetch_prices([coin_id])
        price_info = prices.get(coin_id)
        if not isinstance(price_info, dict) or price_info.get("usd") is None:
            logger.debug("No USD price for %s in oracle response", coin_id)
            return None

        try:
            price = Decimal(str(price_info["usd"]))
        except InvalidOperation:
            logger.debug("Malformed USD price for %s: %r", coin_id, price_info["usd"])
            return None

        if not price.is_finite() or price < 0:
            logger.debug("Rejecting USD price for %s: %s", coin_id, price)
            return None
        return price

    def _fetch_prices(self, coin_ids: list[str]) -> dict:
        """
        Fetch prices from the simple/price endpoint.

        Parameters
        ----------
        coin_ids : list[str]
            CoinGecko coin ids

        Returns
        -------
        dict
            Raw mapping of coin id to price object, empty on failure

        """
        try:
            response = self.client.get(
                f"{self.base_url}/simple/price",
                params={"ids": ",".join(coin_ids), "vs_currencies": "usd"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.debug("Price request failed: %s", e)
            return {}
        except ValueError as e:
            logger.debug("Price response is not JSON: %s", e)
            return {}

        if not isinstance(data, dict):
            return {}
        return data

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self) -> "CoinGeckoPricing":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
