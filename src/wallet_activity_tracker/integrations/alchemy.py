"""Alchemy client for outgoing and incoming asset transfers."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from wallet_activity_tracker.core.models import Chain, RawTransfer
from wallet_activity_tracker.errors import MissingCredential, UpstreamRequestFailed

logger = logging.getLogger(__name__)

MAX_TRANSFERS = 10


class AlchemyTransferSource:
    """
    Client for ``alchemy_getAssetTransfers``.

    Each fetch issues exactly one JSON-RPC call for the most recent
    external and ERC-20 transfers in one direction.

    Parameters
    ----------
    api_key : str
        Alchemy API key
    timeout : float
        Request timeout in seconds
    client : httpx.Client | None
        Preconfigured HTTP client (mainly for tests)

    """

    URL_TEMPLATE = "https://{network}.g.alchemy.com/v2/{api_key}"
    CATEGORIES = ["external", "erc20"]

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            msg = "Alchemy API key is required to fetch activity"
            raise MissingCredential(msg)
        self.api_key = api_key
        self.client = client or httpx.Client(timeout=timeout)

    def fetch_outgoing(self, address: str, chain: Chain) -> list[RawTransfer]:
        """Fetch the most recent transfers sent by ``address``."""
        return self._fetch_transfers(chain, {"fromAddress": address})

    def fetch_incoming(self, address: str, chain: Chain) -> list[RawTransfer]:
        """Fetch the most recent transfers received by ``address``."""
        return self._fetch_transfers(chain, {"toAddress": address})

    def build_payload(self, address_filter: dict[str, str]) -> dict[str, Any]:
        """
        Build the JSON-RPC request body.

        Parameters
        ----------
        address_filter : dict[str, str]
            Either ``{"fromAddress": ...}`` or ``{"toAddress": ...}``

        Returns
        -------
        dict[str, Any]
            Request payload

        """
        return {
            "id": 1,
            "jsonrpc": "2.0",
            "method": "alchemy_getAssetTransfers",
            "params": [
                {
                    "fromBlock": "0x0",
                    "toBlock": "latest",
                    "category": self.CATEGORIES,
                    "withMetadata": True,
                    "maxCount": hex(MAX_TRANSFERS),
                    "order": "desc",
                    "excludeZeroValue": True,
                    **address_filter,
                }
            ],
        }

    def _fetch_transfers(self, chain: Chain, address_filter: dict[str, str]) -> list[RawTransfer]:
        """
        Run one transfer query and parse the result.

        Raises
        ------
        UpstreamRequestFailed
            On transport errors, non-2xx responses, embedded JSON-RPC errors,
            or malformed transfer records

        """
        url = self.URL_TEMPLATE.format(network=chain.upstream_network, api_key=self.api_key)
        logger.debug("alchemy_getAssetTransfers on %s with %s", chain.upstream_network, address_filter)

        try:
            response = self.client.post(url, json=self.build_payload(address_filter))
        except httpx.HTTPError as e:
            msg = f"Transfer request failed: {e}"
            raise UpstreamRequestFailed(msg) from e

        if response.is_error:
            msg = f"RPC error {response.status_code}: {response.text}"
            raise UpstreamRequestFailed(msg, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            msg = "Transfer response is not valid JSON"
            raise UpstreamRequestFailed(msg, status_code=response.status_code) from e

        if not isinstance(body, dict):
            msg = "Transfer response is not a JSON object"
            raise UpstreamRequestFailed(msg, status_code=response.status_code)

        error = body.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            raise UpstreamRequestFailed(message or "RPC error", status_code=response.status_code)

        result = body.get("result") or {}
        transfers = result.get("transfers") if isinstance(result, dict) else None
        if transfers is None:
            return []
        if not isinstance(transfers, list):
            msg = "Transfer response has no transfer list"
            raise UpstreamRequestFailed(msg, status_code=response.status_code)
        return [self._parse_transfer(item) for item in transfers]

    def _parse_transfer(self, item: Any) -> RawTransfer:
        """
        Parse an upstream transfer into a RawTransfer.

        Parameters
        ----------
        item : Any
            Raw transfer object from the response

        Returns
        -------
        RawTransfer
            Parsed transfer

        """
        if not isinstance(item, dict):
            msg = f"Malformed transfer record: {item!r}"
            raise UpstreamRequestFailed(msg)

        raw_contract = item.get("rawContract") or {}
        metadata = item.get("metadata") or {}
        if not isinstance(raw_contract, dict) or not isinstance(metadata, dict):
            msg = f"Malformed transfer record: {item!r}"
            raise UpstreamRequestFailed(msg)

        try:
            return RawTransfer(
                counterparty_from=item.get("from") or "",
                counterparty_to=item.get("to") or "",
                raw_value=item.get("value"),
                tx_hash=item["hash"],
                asset_symbol=item.get("asset"),
                asset_decimals=_parse_decimals(raw_contract.get("decimals")),
                block_timestamp=metadata.get("blockTimestamp"),
                category=item.get("category"),
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            msg = f"Malformed transfer record: {e}"
            raise UpstreamRequestFailed(msg) from e

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self) -> "AlchemyTransferSource":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()


def _parse_decimals(value: Any) -> int | None:
    # Alchemy reports decimals as an int or a hex string ("0x12")
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return int(value, 16) if value.lower().startswith("0x") else int(value)
    return int(value)
