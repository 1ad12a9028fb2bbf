"""Tests for the CoinGecko pricing service."""

from decimal import Decimal

import httpx

from wallet_activity_tracker.core.models import Chain
from wallet_activity_tracker.pricing import CoinGeckoPricing


def make_pricing(handler) -> CoinGeckoPricing:
    return CoinGeckoPricing(
        base_url="https://api.coingecko.test/api/v3",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_fetch_reference_price(polygon):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"matic-network": {"usd": 0.7123}})

    with make_pricing(handler) as pricing:
        price = pricing.fetch_reference_price(polygon)

    assert price == Decimal("0.7123")
    assert requests[0].url.path == "/api/v3/simple/price"
    assert requests[0].url.params["ids"] == "matic-network"
    assert requests[0].url.params["vs_currencies"] == "usd"


def test_chain_without_oracle_id_makes_no_request(ethereum):
    calls = []
    chain = Chain(**{**ethereum.model_dump(), "price_oracle_id": None})

    pricing = make_pricing(lambda request: calls.append(request) or httpx.Response(200, json={}))

    assert pricing.fetch_reference_price(chain) is None
    assert calls == []


def test_missing_key_in_response(ethereum):
    pricing = make_pricing(lambda request: httpx.Response(200, json={"bitcoin": {"usd": 1}}))
    assert pricing.fetch_reference_price(ethereum) is None


def test_error_status_degrades_to_unknown(ethereum):
    pricing = make_pricing(lambda request: httpx.Response(503, text="unavailable"))
    assert pricing.fetch_reference_price(ethereum) is None


def test_transport_error_degrades_to_unknown(ethereum):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    assert make_pricing(handler).fetch_reference_price(ethereum) is None


def test_malformed_body_degrades_to_unknown(ethereum):
    assert make_pricing(lambda request: httpx.Response(200, text="not json")).fetch_reference_price(ethereum) is None
    assert make_pricing(lambda request: httpx.Response(200, json=[1, 2])).fetch_reference_price(ethereum) is None
    assert (
        make_pricing(lambda request: httpx.Response(200, json={"ethereum": {"usd": "n/a"}})).fetch_reference_price(
            ethereum
        )
        is None
    )


def test_infinite_price_degrades_to_unknown(ethereum):
    pricing = make_pricing(lambda request: httpx.Response(200, content=b'{"ethereum": {"usd": 1e400}}'))
    assert pricing.fetch_reference_price(ethereum) is None


def test_nan_price_degrades_to_unknown(ethereum):
    pricing = make_pricing(lambda request: httpx.Response(200, content=b'{"ethereum": {"usd": NaN}}'))
    assert pricing.fetch_reference_price(ethereum) is None


def test_negative_price_degrades_to_unknown(ethereum):
    pricing = make_pricing(lambda request: httpx.Response(200, json={"ethereum": {"usd": -1}}))
    assert pricing.fetch_reference_price(ethereum) is None
