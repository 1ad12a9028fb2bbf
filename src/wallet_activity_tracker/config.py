"""Runtime settings read from the environment."""

import os
from pathlib import Path

from pydantic import BaseModel

from wallet_activity_tracker.errors import MissingCredential

DEFAULT_COINGECKO_URL = "https://api.coingecko.com/api/v3"
DEFAULT_PREFERENCES_PATH = Path("~/.config/wallet-activity-tracker/preferences.json")


class Settings(BaseModel):
    """
    Process-wide configuration.

    Attributes
    ----------
    alchemy_api_key : str | None
        Credential for the transfer service (required for activity)
    coingecko_base_url : str
        Price oracle base URL
    wallet_rpc_url : str | None
        HTTP JSON-RPC endpoint of a local wallet, if any
    preferences_path : Path
        Where the selected chain is persisted
    timeout : float
        HTTP timeout in seconds

    """

    alchemy_api_key: str | None = None
    coingecko_base_url: str = DEFAULT_COINGECKO_URL
    wallet_rpc_url: str | None = None
    preferences_path: Path = DEFAULT_PREFERENCES_PATH
    timeout: float = 30.0

    def require_api_key(self) -> str:
        """
        Return the transfer service key or fail.

        Raises
        ------
        MissingCredential
            If ``ALCHEMY_API_KEY`` is unset or empty

        """
        if not self.alchemy_api_key:
            msg = "Missing ALCHEMY_API_KEY environment variable"
            raise MissingCredential(msg)
        return self.alchemy_api_key


def load_settings() -> Settings:
    """Build settings from environment variables."""
    return Settings(
        alchemy_api_key=os.getenv("ALCHEMY_API_KEY") or None,
        coingecko_base_url=os.getenv("COINGECKO_BASE_URL", DEFAULT_COINGECKO_URL),
        wallet_rpc_url=os.getenv("WALLET_RPC_URL") or None,
        preferences_path=Path(os.getenv("WALLET_ACTIVITY_PREFERENCES", str(DEFAULT_PREFERENCES_PATH))).expanduser(),
        timeout=float(os.getenv("WALLET_ACTIVITY_TIMEOUT", "30.0")),
    )
