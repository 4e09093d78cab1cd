"""Tests for token identity derivation."""

from __future__ import annotations

import pytest
from solders.pubkey import Pubkey
from web3 import Web3

from xchain_bridge.chains import ChainId
from xchain_bridge.exceptions import InvalidAddressError
from xchain_bridge.identity import (
    build_cosmwasm_token_id,
    derive_token_identity,
    derive_wrapped_address,
    identity_to_native,
)

EVM_TOKEN = "0x" + "ab" * 20
SOL_MINT = "So11111111111111111111111111111111111111112"
TOKEN_BRIDGE = "wormDTUJ6AWPNvk59vGQbDvGJmqbDTdgWgAqcLBCgUb"
INJ_CONTRACT = "inj1sthrn5ep8ls5vzz8f9gp89khhmedahhdkqa8z3"
TERRA_CONTRACT = "terra1nc5tatafv6eyq7llkr2gv50ff9e22mnf70qgjlv737ktmt4eswrquka9l6"


def _keccak(text: str) -> bytes:
    return bytes(Web3.keccak(text.encode("utf-8")))


def test_native_denom_identity_is_tagged() -> None:
    token_id = build_cosmwasm_token_id(ChainId.INJECTIVE, "inj")

    assert len(token_id) == 32
    assert token_id[0] == 0x01
    assert token_id[1:] == _keccak("inj")[1:]


def test_contract_identity_is_tagged() -> None:
    token_id = build_cosmwasm_token_id(ChainId.INJECTIVE, INJ_CONTRACT)

    assert token_id[0] == 0x00
    assert token_id[1:] == _keccak(INJ_CONTRACT)[1:]


def test_terra_identity_and_determinism() -> None:
    first = derive_token_identity("terra2", TERRA_CONTRACT)
    second = derive_token_identity(ChainId.TERRA2, TERRA_CONTRACT)

    assert first == second
    assert first.chain is ChainId.TERRA2
    assert derive_token_identity(ChainId.TERRA2, "uluna").address[0] == 0x01


@pytest.mark.parametrize(
    "chain, address",
    [
        (ChainId.INJECTIVE, "terra1abc"),
        (ChainId.INJECTIVE, "inj1"),
        (ChainId.INJECTIVE, "inj1INVALIDCHARS"),
        (ChainId.XPLA, ""),
    ],
)
def test_malformed_cosmwasm_address(chain: ChainId, address: str) -> None:
    with pytest.raises(InvalidAddressError):
        build_cosmwasm_token_id(chain, address)


def test_evm_identity_left_pads() -> None:
    identity = derive_token_identity(ChainId.ETHEREUM, EVM_TOKEN)

    assert identity.address == bytes(12) + bytes.fromhex("ab" * 20)
    assert identity_to_native(ChainId.ETHEREUM, identity.address) == Web3.to_checksum_address(
        EVM_TOKEN
    )


def test_evm_identity_rejects_bad_address() -> None:
    with pytest.raises(InvalidAddressError):
        derive_token_identity(ChainId.POLYGON, "0x1234")


def test_evm_identity_to_native_rejects_high_bytes() -> None:
    with pytest.raises(InvalidAddressError):
        identity_to_native(ChainId.ETHEREUM, b"\x01" * 32)


def test_solana_identity_passthrough() -> None:
    identity = derive_token_identity(ChainId.SOLANA, SOL_MINT)

    assert identity.address == bytes(Pubkey.from_string(SOL_MINT))
    assert identity_to_native(ChainId.SOLANA, identity.address) == SOL_MINT


def test_solana_identity_rejects_garbage() -> None:
    with pytest.raises(InvalidAddressError):
        derive_token_identity(ChainId.SOLANA, "not a pubkey")


def test_cosmwasm_identity_is_not_reversible() -> None:
    token_id = build_cosmwasm_token_id(ChainId.XPLA, "axpla")
    with pytest.raises(InvalidAddressError):
        identity_to_native(ChainId.XPLA, token_id)


def test_wrapped_address_matches_program_derivation() -> None:
    origin = bytes(12) + bytes.fromhex("ab" * 20)
    expected, _ = Pubkey.find_program_address(
        [b"wrapped", (2).to_bytes(2, "big"), origin], Pubkey.from_string(TOKEN_BRIDGE)
    )

    assert derive_wrapped_address(TOKEN_BRIDGE, ChainId.ETHEREUM, origin) == str(expected)
    assert derive_wrapped_address(TOKEN_BRIDGE, "ethereum", "0x" + origin.hex()) == str(expected)


def test_wrapped_address_token_id_extends_seeds() -> None:
    origin = bytes(31) + b"\x07"
    fungible = derive_wrapped_address(TOKEN_BRIDGE, ChainId.ETHEREUM, origin)
    nft = derive_wrapped_address(TOKEN_BRIDGE, ChainId.ETHEREUM, origin, token_id=1)
    expected, _ = Pubkey.find_program_address(
        [b"wrapped", (2).to_bytes(2, "big"), origin, (1).to_bytes(32, "big")],
        Pubkey.from_string(TOKEN_BRIDGE),
    )

    assert nft != fungible
    assert nft == str(expected)


def test_wrapped_address_for_unlisted_origin_chain() -> None:
    origin = b"\x11" * 32
    expected, _ = Pubkey.find_program_address(
        [b"wrapped", (22).to_bytes(2, "big"), origin], Pubkey.from_string(TOKEN_BRIDGE)
    )

    assert derive_wrapped_address(TOKEN_BRIDGE, 22, origin) == str(expected)
