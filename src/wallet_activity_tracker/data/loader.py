"""Chain metadata loader."""

from pathlib import Path
from typing import Any

import yaml

CHAINS_FILE = Path(__file__).parent / "chains.yaml"


def load_chain_data(path: Path | None = None) -> list[dict[str, Any]]:
    """
    Load raw chain entries from chains.yaml.

    Parameters
    ----------
    path : Path | None
        Alternative YAML file (defaults to the bundled chains.yaml)

    Returns
    -------
    list[dict[str, Any]]
        One mapping per chain, in file order

    """
    with open(path or CHAINS_FILE, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data.get("chains", [])


def get_all_supported_chain_ids(path: Path | None = None) -> list[int]:
    """
    Get numeric ids of every configured chain.

    Returns
    -------
    list[int]
        Chain ids in file order

    """
    return [entry["chain_id"] for entry in load_chain_data(path)]
