"""Pricing services for USD valuation of activity."""

from wallet_activity_tracker.pricing.coingecko import CoinGeckoPricing

__all__ = [
    "CoinGeckoPricing",
]
