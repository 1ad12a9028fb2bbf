"""Registry of supported chains."""

from functools import lru_cache
from pathlib import Path

from wallet_activity_tracker.core.models import Chain
from wallet_activity_tracker.data import load_chain_data
from wallet_activity_tracker.errors import UnsupportedChain


class ChainRegistry:
    """
    Read-only catalog of supported chains, keyed by numeric chain id.

    The first chain is the default selection.

    Parameters
    ----------
    chains : list[Chain]
        Supported chains in display order

    """

    def __init__(self, chains: list[Chain]) -> None:
        if not chains:
            msg = "ChainRegistry requires at least one chain"
            raise ValueError(msg)
        self._chains: dict[int, Chain] = {}
        for chain in chains:
            if chain.chain_id in self._chains:
                msg = f"Duplicate chain id {chain.chain_id}"
                raise ValueError(msg)
            self._chains[chain.chain_id] = chain

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "ChainRegistry":
        """
        Build a registry from chains.yaml.

        Parameters
        ----------
        path : Path | None
            Alternative YAML file

        Returns
        -------
        ChainRegistry
            Registry holding every configured chain

        """
        return cls([Chain.model_validate(entry) for entry in load_chain_data(path)])

    def get(self, chain_id: int | None) -> Chain | None:
        """
        Get chain by id.

        Parameters
        ----------
        chain_id : int | None
            Numeric chain id

        Returns
        -------
        Chain | None
            Chain, or None if not supported

        """
        if chain_id is None:
            return None
        return self._chains.get(chain_id)

    def require(self, chain_id: int) -> Chain:
        """
        Get chain by id or fail.

        Raises
        ------
        UnsupportedChain
            If the id is not in the registry

        """
        chain = self.get(chain_id)
        if chain is None:
            raise UnsupportedChain(chain_id)
        return chain

    def default(self) -> Chain:
        """Return the default chain (first entry)."""
        return next(iter(self._chains.values()))

    def all(self) -> list[Chain]:
        """Return every chain in display order."""
        return list(self._chains.values())

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    def __len__(self) -> int:
        return len(self._chains)


@lru_cache(maxsize=1)
def get_default_registry() -> ChainRegistry:
    """Return the process-wide registry built from the bundled chains.yaml."""
    return ChainRegistry.from_yaml()
