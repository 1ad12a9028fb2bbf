"""Wallet session management."""

from wallet_activity_tracker.wallet.manager import SessionState, SessionStatus, WalletConnectionManager
from wallet_activity_tracker.wallet.preferences import PreferencesStore, UserPreferences
from wallet_activity_tracker.wallet.provider import (
    HttpWalletProvider,
    ProviderFactory,
    WalletProvider,
    http_provider_factory,
)

__all__ = [
    "HttpWalletProvider",
    "PreferencesStore",
    "ProviderFactory",
    "SessionState",
    "SessionStatus",
    "UserPreferences",
    "WalletConnectionManager",
    "WalletProvider",
    "http_provider_factory",
]
