"""Canonical token identities and deterministic wrapped-asset addresses.

Every function in this module is pure: the same inputs always produce the
same 32-byte identity and no network access is performed.
"""

from __future__ import annotations

import re

from eth_typing import HexStr
from web3 import Web3

from .chains import (
    ChainFamily,
    ChainId,
    chain_family,
    coalesce_chain_id,
    cosmwasm_chain_info,
    is_native_denom,
    origin_chain_id,
)
from .constants import ADDRESS_LENGTH, EVM_ADDRESS_LENGTH, TokenIdTag
from .exceptions import InvalidAddressError
from .solana.accounts import derive_wrapped_mint_key, to_pubkey
from .types import TokenIdentity
from .utils import ensure_bytes, keccak, to_bytes32

_BECH32_CHARSET = re.compile(r"^[02-9ac-hj-np-z]+$")


def _evm_address_bytes(address: str) -> bytes:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidAddressError("Invalid EVM address", chain="evm", address=address)
    return Web3.to_bytes(hexstr=HexStr(address))


def _validate_cosmwasm_address(chain: ChainId, address: str) -> None:
    if not isinstance(address, str) or not address:
        raise InvalidAddressError("Empty CosmWasm address", chain=chain.name, address=address)

    if is_native_denom(chain, address):
        return

    prefix = cosmwasm_chain_info(chain).bech32_prefix + "1"
    data = address[len(prefix) :]
    if not address.startswith(prefix) or not data or not _BECH32_CHARSET.match(data):
        raise InvalidAddressError(
            f"Invalid {chain.name.lower()} address",
            chain=chain.name,
            address=address,
            details={"expected_prefix": prefix},
        )


def build_cosmwasm_token_id(chain: ChainId | int | str, address: str) -> bytes:
    """Build the 32-byte identity of a CosmWasm token or native denomination.

    The first byte tags native denominations (``01``) versus contract tokens
    (``00``); the remaining 31 bytes are the keccak-256 hash of the UTF-8
    address with its leading byte dropped. Hash collisions are not checked.
    """
    chain_id = coalesce_chain_id(chain)
    _validate_cosmwasm_address(chain_id, address)
    tag = TokenIdTag.NATIVE_DENOM if is_native_denom(chain_id, address) else TokenIdTag.CONTRACT
    # Must match the token bridge contracts: tag plus keccak256 minus its first byte
    return bytes([tag]) + keccak(address.encode("utf-8"))[1:]


def native_address_to_bytes32(chain: ChainId | int | str, native_address: str) -> bytes:
    """Return the 32-byte protocol form of a chain-native address."""
    chain_id = coalesce_chain_id(chain)
    family = chain_family(chain_id)

    if family is ChainFamily.EVM:
        return _evm_address_bytes(native_address).rjust(ADDRESS_LENGTH, b"\x00")

    if family is ChainFamily.SOLANA:
        return bytes(to_pubkey(native_address))

    return build_cosmwasm_token_id(chain_id, native_address)


def derive_token_identity(chain: ChainId | int | str, native_address: str) -> TokenIdentity:
    """Compute the canonical identity of ``native_address`` on ``chain``."""
    chain_id = coalesce_chain_id(chain)
    address = native_address_to_bytes32(chain_id, native_address)
    return TokenIdentity(chain=chain_id, address=address)


def identity_to_native(chain: ChainId | int | str, address: bytes | str) -> str:
    """Convert a 32-byte protocol address back to the chain-native format.

    CosmWasm identities are hashes and cannot be reversed locally.
    """
    chain_id = coalesce_chain_id(chain)
    raw = to_bytes32(ensure_bytes(address))
    family = chain_family(chain_id)

    if family is ChainFamily.EVM:
        if any(raw[: ADDRESS_LENGTH - EVM_ADDRESS_LENGTH]):
            raise InvalidAddressError(
                "Address does not fit in 20 bytes", chain=chain_id.name, address=raw.hex()
            )
        return Web3.to_checksum_address(raw[ADDRESS_LENGTH - EVM_ADDRESS_LENGTH :])

    if family is ChainFamily.SOLANA:
        return str(to_pubkey(raw))

    raise InvalidAddressError(
        "CosmWasm token identities are one-way hashes; query the bridge registry instead",
        chain=chain_id.name,
        address=raw.hex(),
    )


def derive_wrapped_address(
    bridge_address: str,
    origin_chain: ChainId | int | str,
    origin_address: bytes | str,
    token_id: int | None = None,
) -> str:
    """Derive the Solana mint address that hosts a wrapped foreign asset.

    The result does not depend on whether the mint currently exists.
    """
    mint = derive_wrapped_mint_key(
        to_pubkey(bridge_address, field="bridge_address"),
        origin_chain_id(origin_chain),
        to_bytes32(origin_address, field="origin_address"),
        token_id,
    )
    return str(mint)
