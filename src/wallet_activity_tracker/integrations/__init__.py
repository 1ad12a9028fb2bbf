"""Third-party API integrations."""

from wallet_activity_tracker.integrations.alchemy import MAX_TRANSFERS, AlchemyTransferSource

__all__ = [
    "MAX_TRANSFERS",
    "AlchemyTransferSource",
]
