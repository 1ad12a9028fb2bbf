"""Core functionality including models, registry, cache, and aggregator."""

from wallet_activity_tracker.core.aggregator import ActivityAggregator
from wallet_activity_tracker.core.cache import ActivityCache, CacheEntry
from wallet_activity_tracker.core.models import (
    ActivityDirection,
    ActivityRecord,
    ActivityStatus,
    Chain,
    Network,
    RawTransfer,
)
from wallet_activity_tracker.core.registry import ChainRegistry, get_default_registry

__all__ = [
    "ActivityAggregator",
    "ActivityCache",
    "ActivityDirection",
    "ActivityRecord",
    "ActivityStatus",
    "CacheEntry",
    "Chain",
    "ChainRegistry",
    "Network",
    "RawTransfer",
    "get_default_registry",
]
