"""Wallet provider interface and an HTTP JSON-RPC implementation."""

import itertools
import logging
from collections.abc import Callable
from typing import Any, Protocol

import httpx

from wallet_activity_tracker.core.models import Network
from wallet_activity_tracker.errors import ProviderRpcError

logger = logging.getLogger(__name__)

# EIP-1193 / EIP-3085 error codes
USER_REJECTED_CODE = 4001
UNRECOGNIZED_CHAIN_CODE = 4902
INTERNAL_ERROR_CODE = -32603


class Signer(Protocol):
    """Account handle able to sign on behalf of an address."""

    def get_address(self) -> str: ...


class WalletProvider(Protocol):
    """
    Interface a wallet host must supply.

    Methods
    -------
    request_accounts()
        Ask the user to expose accounts
    get_signer()
        Signer for the active account
    get_network()
        Network the wallet is currently on
    send(method, params)
        Raw EIP-1193 request (wallet_switchEthereumChain, ...)

    """

    def request_accounts(self) -> list[str]: ...

    def get_signer(self) -> Signer: ...

    def get_network(self) -> Network: ...

    def send(self, method: str, params: list[Any]) -> Any: ...


ProviderFactory = Callable[[], WalletProvider | None]


class AccountSigner:
    """Signer bound to a single account address."""

    def __init__(self, provider: "HttpWalletProvider", address: str) -> None:
        self.provider = provider
        self.address = address

    def get_address(self) -> str:
        return self.address


class HttpWalletProvider:
    """
    Wallet provider speaking EIP-1193 methods over HTTP JSON-RPC.

    Desktop wallets such as Frame expose such an endpoint locally.

    Parameters
    ----------
    url : str
        Wallet JSON-RPC endpoint
    timeout : float
        Request timeout in seconds
    client : httpx.Client | None
        Preconfigured HTTP client (mainly for tests)
    network_names : dict[int, str] | None
        Display names for known chain ids

    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
        network_names: dict[int, str] | None = None,
    ) -> None:
        self.url = url
        self.client = client or httpx.Client(timeout=timeout)
        self.network_names = network_names or {}
        self._ids = itertools.count(1)

    def send(self, method: str, params: list[Any]) -> Any:
        """
        Send a JSON-RPC request to the wallet.

        Parameters
        ----------
        method : str
            RPC method name
        params : list[Any]
            Method parameters

        Returns
        -------
        Any
            The ``result`` member of the response

        Raises
        ------
        ProviderRpcError
            On transport failures or when the wallet returns an error object

        """
        payload = {"id": next(self._ids), "jsonrpc": "2.0", "method": method, "params": params}
        logger.debug("Wallet request %s", method)

        try:
            response = self.client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            msg = f"Wallet request {method} failed: {e}"
            raise ProviderRpcError(INTERNAL_ERROR_CODE, msg) from e
        except ValueError as e:
            msg = f"Wallet returned invalid JSON for {method}"
            raise ProviderRpcError(INTERNAL_ERROR_CODE, msg) from e

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            raise ProviderRpcError(
                _coerce_code(error.get("code")),
                error.get("message") or f"Wallet rejected {method}",
                error.get("data"),
            )
        return body.get("result") if isinstance(body, dict) else None

    def request_accounts(self) -> list[str]:
        return list(self.send("eth_requestAccounts", []) or [])

    def get_signer(self) -> AccountSigner:
        accounts = self.send("eth_accounts", []) or []
        if not accounts:
            msg = "Wallet has no authorized accounts"
            raise ProviderRpcError(USER_REJECTED_CODE, msg)
        return AccountSigner(self, accounts[0])

    def get_network(self) -> Network:
        chain_id = int(self.send("eth_chainId", []), 16)
        return Network(chain_id=chain_id, name=self.network_names.get(chain_id, "unknown"))

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()


def _coerce_code(value: Any) -> int:
    if isinstance(value, bool):
        return INTERNAL_ERROR_CODE
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return INTERNAL_ERROR_CODE


def error_code(error: ProviderRpcError) -> int:
    """
    Extract the effective provider error code.

    Some mobile wallets wrap the real code in ``data.originalError.code``.

    """
    data = error.data
    if isinstance(data, dict):
        original = data.get("originalError")
        if isinstance(original, dict) and isinstance(original.get("code"), int):
            return original["code"]
    return error.code


def http_provider_factory(
    url: str | None,
    timeout: float = 30.0,
    network_names: dict[int, str] | None = None,
) -> ProviderFactory:
    """
    Build a provider factory for an optional wallet endpoint.

    The factory returns None when no endpoint is configured, which the
    connection manager reports as an unavailable wallet.

    """

    def factory() -> WalletProvider | None:
        if not url:
            return None
        return HttpWalletProvider(url, timeout=timeout, network_names=network_names)

    return factory
