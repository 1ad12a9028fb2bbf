"""Tests for the chain registry."""

import pytest

from wallet_activity_tracker.core.models import Chain
from wallet_activity_tracker.core.registry import ChainRegistry, get_default_registry
from wallet_activity_tracker.errors import UnsupportedChain


def test_registry_loads_bundled_chains(registry):
    """Test that all bundled chains are registered in order."""
    assert [chain.chain_id for chain in registry.all()] == [1, 137, 42161]
    assert len(registry) == 3


def test_default_chain_is_first_entry(registry):
    assert registry.default().chain_id == 1


def test_get_chain(registry):
    """Test retrieving chains by id."""
    polygon = registry.get(137)
    assert polygon is not None
    assert polygon.hex_chain_id == "0x89"
    assert polygon.native_symbol == "MATIC"
    assert polygon.price_oracle_id == "matic-network"

    assert registry.get(10) is None
    assert registry.get(None) is None


def test_require_unknown_chain(registry):
    with pytest.raises(UnsupportedChain) as exc_info:
        registry.require(56)

    assert exc_info.value.chain_id == 56


def test_contains(registry):
    assert 42161 in registry
    assert 56 not in registry
    assert None not in registry


def test_duplicate_chain_rejected(ethereum):
    with pytest.raises(ValueError):
        ChainRegistry([ethereum, ethereum])


def test_empty_registry_rejected():
    with pytest.raises(ValueError):
        ChainRegistry([])


def test_hex_ids_match_numeric_ids(registry):
    """Every chain's hex id encodes its numeric id."""
    for chain in registry.all():
        assert int(chain.hex_chain_id, 16) == chain.chain_id


def test_default_registry_is_shared():
    assert get_default_registry() is get_default_registry()
    assert isinstance(get_default_registry().default(), Chain)
