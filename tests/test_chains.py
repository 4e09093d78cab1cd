"""Tests for chain resolution and native denominations."""

import pytest

from xchain_bridge.chains import (
    CHAIN_FAMILIES,
    ChainFamily,
    ChainId,
    chain_family,
    chain_name,
    chains_in_family,
    coalesce_chain_id,
    cosmwasm_chain_info,
    is_native_denom,
    origin_chain_id,
)
from xchain_bridge.exceptions import UnknownChainError


class TestCoalesceChainId:
    """Test chain id resolution."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (ChainId.SOLANA, ChainId.SOLANA),
            (2, ChainId.ETHEREUM),
            ("2", ChainId.ETHEREUM),
            ("ethereum", ChainId.ETHEREUM),
            ("Solana", ChainId.SOLANA),
            ("TERRA2", ChainId.TERRA2),
            ("eth", ChainId.ETHEREUM),
            ("injective", ChainId.INJECTIVE),
        ],
    )
    def test_resolves(self, value, expected):
        """Test ids, names and aliases."""
        assert coalesce_chain_id(value) is expected

    @pytest.mark.parametrize("value", [0, 3, 9999, "dogechain", "", True])
    def test_unknown_chain_raises_error(self, value):
        """Test that unsupported inputs raise UnknownChainError."""
        with pytest.raises(UnknownChainError):
            coalesce_chain_id(value)


class TestOriginChainId:
    """Test origin chain resolution for wrapped assets."""

    @pytest.mark.parametrize(
        "value, expected",
        [(2, ChainId.ETHEREUM), ("1", ChainId.SOLANA), ("bsc", ChainId.BSC)],
    )
    def test_listed_chains_resolve_to_members(self, value, expected):
        """Test that known ids still resolve to ChainId members."""
        assert origin_chain_id(value) is expected

    @pytest.mark.parametrize("value", [8, 15, 21, 22, "22"])
    def test_unlisted_protocol_chains_stay_ints(self, value):
        """Test that other protocol chain ids are kept as plain ints."""
        result = origin_chain_id(value)
        assert type(result) is int
        assert result == int(value)

    @pytest.mark.parametrize("value", [0, 70000, "dogechain", True])
    def test_invalid_origin_raises_error(self, value):
        """Test that out-of-range ids and unknown names still fail."""
        with pytest.raises(UnknownChainError):
            origin_chain_id(value)


class TestFamilies:
    """Test family classification."""

    def test_every_chain_has_one_family(self):
        """Test that the family table covers the whole enumeration."""
        assert set(CHAIN_FAMILIES) == set(ChainId)
        for family in ChainFamily:
            assert chains_in_family(family)

    def test_family_lookup(self):
        """Test representative chains."""
        assert chain_family("solana") is ChainFamily.SOLANA
        assert chain_family(ChainId.BASE) is ChainFamily.EVM
        assert chain_family(ChainId.XPLA) is ChainFamily.COSMWASM

    def test_chain_name(self):
        """Test lower-case names."""
        assert chain_name(18) == "terra2"

    def test_cosmwasm_info_rejects_evm(self):
        """Test that metadata exists only for CosmWasm chains."""
        assert cosmwasm_chain_info(ChainId.INJECTIVE).bech32_prefix == "inj"
        with pytest.raises(UnknownChainError):
            cosmwasm_chain_info(ChainId.ETHEREUM)


class TestNativeDenoms:
    """Test native denomination detection."""

    def test_terra_denoms(self):
        """Test uluna and u-prefixed three-letter denoms."""
        assert is_native_denom(ChainId.TERRA2, "uluna")
        assert is_native_denom(ChainId.TERRA2, "uusd")
        assert not is_native_denom(ChainId.TERRA2, "usdc1")
        assert not is_native_denom(ChainId.TERRA2, "terra1abc")

    def test_exact_match_for_injective_and_xpla(self):
        """Test that only the exact denom matches."""
        assert is_native_denom(ChainId.INJECTIVE, "inj")
        assert not is_native_denom(ChainId.INJECTIVE, "INJ")
        assert is_native_denom(ChainId.XPLA, "axpla")

    def test_evm_and_solana_have_no_native_denoms(self):
        """Test that EVM and Solana never report native denoms."""
        assert not is_native_denom(ChainId.ETHEREUM, "eth")
        assert not is_native_denom(ChainId.SOLANA, "sol")
