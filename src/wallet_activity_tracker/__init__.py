"""Wallet connection and recent-activity feeds for EVM chains."""

__version__ = "0.1.0"
