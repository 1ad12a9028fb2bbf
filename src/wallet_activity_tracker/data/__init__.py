"""Static chain metadata."""

from wallet_activity_tracker.data.loader import CHAINS_FILE, get_all_supported_chain_ids, load_chain_data

__all__ = [
    "CHAINS_FILE",
    "get_all_supported_chain_ids",
    "load_chain_data",
]
