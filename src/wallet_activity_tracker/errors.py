"""Exception hierarchy for wallet sessions and activity fetching."""

from typing import Any


class WalletActivityError(Exception):
    """Base class for all errors raised by this package."""


class WalletError(WalletActivityError):
    """Errors raised by the wallet connection manager."""


class ProviderUnavailable(WalletError):
    """No wallet host is present to hand out a provider."""


class UserRejected(WalletError):
    """The wallet declined a request (EIP-1193 code 4001)."""


class UnsupportedChain(WalletError):
    """The requested chain id is not in the chain registry."""

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(f"Unsupported chain: {chain_id}")


class ChainSwitchFailed(WalletError):
    """
    The wallet refused to switch (or add-then-switch) networks.

    Parameters
    ----------
    message : str
        Human readable reason
    code : int | None
        Provider error code, when one was reported

    """

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)


class WalletBusy(WalletError):
    """A connect or switch operation is already in flight for this session."""


class ProviderRpcError(WalletError):
    """
    Error reported by a wallet provider.

    Parameters
    ----------
    code : int
        EIP-1193 / JSON-RPC error code
    message : str
        Error message from the provider
    data : Any
        Optional extra payload from the provider

    """

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.data = data
        super().__init__(message)


class MissingCredential(WalletActivityError):
    """The upstream API key is not configured."""


class UpstreamRequestFailed(WalletActivityError):
    """
    Transport or protocol failure from the transfer service.

    Parameters
    ----------
    message : str
        Error message
    status_code : int | None
        HTTP status, when the failure came with one

    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ActivityFetchFailed(WalletActivityError):
    """Activity could not be assembled; the cause is chained."""
