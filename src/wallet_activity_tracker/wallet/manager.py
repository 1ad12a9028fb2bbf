"""Wallet connection state machine."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from wallet_activity_tracker.core.models import Chain, Network
from wallet_activity_tracker.core.registry import ChainRegistry
from wallet_activity_tracker.errors import (
    ChainSwitchFailed,
    ProviderRpcError,
    ProviderUnavailable,
    UnsupportedChain,
    UserRejected,
    WalletBusy,
    WalletError,
)
from wallet_activity_tracker.wallet.preferences import PreferencesStore, UserPreferences
from wallet_activity_tracker.wallet.provider import (
    UNRECOGNIZED_CHAIN_CODE,
    USER_REJECTED_CODE,
    ProviderFactory,
    Signer,
    WalletProvider,
    error_code,
)

logger = logging.getLogger(__name__)


class SessionStatus(StrEnum):
    """Connection state."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class SessionState:
    """Live, non-persisted session fields."""

    selected_chain_id: int
    status: SessionStatus = SessionStatus.IDLE
    address: str | None = None
    network: Network | None = None
    provider: WalletProvider | None = None
    signer: Signer | None = None
    last_error: str | None = None


class WalletConnectionManager:
    """
    Owns the wallet session and every transition of it.

    Errors are recorded in ``last_error`` for display and re-raised to the
    caller. Only ``selected_chain_id`` is persisted.

    Parameters
    ----------
    registry : ChainRegistry
        Supported chains
    provider_factory : ProviderFactory
        Returns the host's wallet provider, or None when there is none
    preferences : PreferencesStore | None
        Where the selected chain is persisted (not persisted if None)

    """

    def __init__(
        self,
        registry: ChainRegistry,
        provider_factory: ProviderFactory,
        preferences: PreferencesStore | None = None,
    ) -> None:
        self.registry = registry
        self.provider_factory = provider_factory
        self.preferences = preferences
        self._lock = threading.Lock()

        stored = preferences.load() if preferences else UserPreferences()
        selected = stored.selected_chain_id
        if selected not in registry:
            selected = registry.default().chain_id
        self._session = SessionState(selected_chain_id=selected)

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def address(self) -> str | None:
        return self._session.address

    @property
    def network(self) -> Network | None:
        return self._session.network

    @property
    def last_error(self) -> str | None:
        return self._session.last_error

    @property
    def selected_chain_id(self) -> int:
        return self._session.selected_chain_id

    @property
    def selected_chain(self) -> Chain:
        """Selected chain, falling back to the registry default."""
        return self.registry.get(self._session.selected_chain_id) or self.registry.default()

    @property
    def network_mismatch(self) -> bool:
        """True when connected and the wallet is on a different chain than selected."""
        network = self._session.network
        return (
            self._session.status is SessionStatus.CONNECTED
            and network is not None
            and network.chain_id != self._session.selected_chain_id
        )

    def connect(self) -> str:
        """
        Connect to the host wallet.

        Returns
        -------
        str
            Connected account address

        Raises
        ------
        WalletBusy
            If another connect or switch is in flight
        ProviderUnavailable
            If the host has no wallet
        UserRejected
            If the user declined account access
        ProviderRpcError
            For any other provider failure

        """
        with self._exclusive():
            session = self._session
            if session.status is SessionStatus.CONNECTED and session.address:
                return session.address

            session.status = SessionStatus.CONNECTING
            session.last_error = None
            logger.debug("Connecting wallet")

            provider = None
            try:
                provider = self._acquire_provider()
                provider.request_accounts()
                signer, address, network = self._derive(provider)
            except ProviderRpcError as e:
                self._release(provider)
                if error_code(e) == USER_REJECTED_CODE:
                    rejected = UserRejected(str(e))
                    self._reset(str(rejected))
                    raise rejected from e
                self._reset(str(e))
                raise
            except Exception as e:
                self._release(provider)
                self._reset(str(e))
                raise

            session.provider = provider
            session.signer = signer
            session.address = address
            session.network = network
            session.status = SessionStatus.CONNECTED
            logger.info("Wallet connected as %s on chain %s", address, network.chain_id)
            return address

    def disconnect(self) -> None:
        """Forget the session and close its provider. Wallet-side permissions are left as they are."""
        session = self._session
        self._release(session.provider)
        session.address = None
        session.signer = None
        session.provider = None
        session.network = None
        session.status = SessionStatus.IDLE
        logger.debug("Wallet disconnected")

    def switch_chain(self, chain_id: int) -> None:
        """
        Ask the wallet to switch to a supported chain.

        When idle, a provider is acquired from the host first. If the
        wallet does not know the chain (code 4902) it is added once and the
        switch is retried once.

        Raises
        ------
        UnsupportedChain
            If the chain is not in the registry
        WalletBusy
            If another connect or switch is in flight
        ProviderUnavailable
            If no provider is active and the host has no wallet
        ChainSwitchFailed
            If the wallet refused the switch, the add, or the retry

        """
        try:
            chain = self.registry.require(chain_id)
        except UnsupportedChain as e:
            self._session.last_error = str(e)
            raise

        with self._exclusive():
            session = self._session
            provider = session.provider
            acquired = None
            try:
                if provider is None:
                    provider = acquired = self._acquire_provider()
                self._request_switch(provider, chain)
                signer, address, network = self._derive(provider)
            except ProviderRpcError as e:
                self._release(acquired)
                session.last_error = str(e)
                msg = f"Switching to {chain.name} failed: {e}"
                raise ChainSwitchFailed(msg, code=error_code(e)) from e
            except WalletError as e:
                self._release(acquired)
                session.last_error = str(e)
                raise
            except Exception as e:
                self._release(acquired)
                session.last_error = str(e)
                msg = f"Switching to {chain.name} failed: {e}"
                raise ChainSwitchFailed(msg) from e

            session.provider = provider
            session.signer = signer
            session.address = address
            session.network = network
            session.status = SessionStatus.CONNECTED
            session.last_error = None
            self._store_selection(chain.chain_id)
            logger.info("Wallet switched to %s", chain.name)

    def set_selected_chain_id(self, chain_id: int) -> None:
        """
        Record the user's chain choice without touching the wallet.

        Raises
        ------
        UnsupportedChain
            If the chain is not in the registry

        """
        self.registry.require(chain_id)
        self._store_selection(chain_id)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            msg = "A wallet operation is already in progress"
            raise WalletBusy(msg)
        try:
            yield
        finally:
            self._lock.release()

    def _acquire_provider(self) -> WalletProvider:
        provider = self.provider_factory()
        if provider is None:
            msg = "No wallet found. Install or start a wallet that exposes a provider."
            raise ProviderUnavailable(msg)
        return provider

    def _derive(self, provider: WalletProvider) -> tuple[Signer, str, Network]:
        signer = provider.get_signer()
        return signer, signer.get_address(), provider.get_network()

    def _request_switch(self, provider: WalletProvider, chain: Chain) -> None:
        switch_params = [{"chainId": chain.hex_chain_id}]
        try:
            provider.send("wallet_switchEthereumChain", switch_params)
            return
        except ProviderRpcError as e:
            code = error_code(e)
            if code != UNRECOGNIZED_CHAIN_CODE:
                msg = f"Switching to {chain.name} failed: {e}"
                raise ChainSwitchFailed(msg, code=code) from e

        logger.info("Wallet does not know %s, adding it", chain.name)
        try:
            provider.send("wallet_addEthereumChain", [self._add_chain_params(chain)])
            provider.send("wallet_switchEthereumChain", switch_params)
        except ProviderRpcError as e:
            msg = f"Adding {chain.name} to the wallet failed: {e}"
            raise ChainSwitchFailed(msg, code=error_code(e)) from e

    @staticmethod
    def _add_chain_params(chain: Chain) -> dict[str, Any]:
        return {
            "chainId": chain.hex_chain_id,
            "chainName": chain.name,
            "nativeCurrency": {"name": chain.native_symbol, "symbol": chain.native_symbol, "decimals": 18},
            "rpcUrls": [chain.redacted_rpc_url()],
            "blockExplorerUrls": [chain.block_explorer],
        }

    @staticmethod
    def _release(provider: WalletProvider | None) -> None:
        close = getattr(provider, "close", None)
        if callable(close):
            close()

    def _reset(self, error: str) -> None:
        self.disconnect()
        self._session.last_error = error

    def _store_selection(self, chain_id: int) -> None:
        self._session.selected_chain_id = chain_id
        if self.preferences is not None:
            self.preferences.save(UserPreferences(selected_chain_id=chain_id))
