"""Program-derived account addresses and account layouts for the Solana bridge."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from solders.pubkey import Pubkey

from ..constants import ADDRESS_LENGTH
from ..exceptions import InvalidAddressError, ValidationError

METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")

# SPL mint layout: COption<Pubkey> authority (36) + supply (8) precede decimals
_MINT_DECIMALS_OFFSET = 44
# Core bridge data: guardian_set_index u32, last_lamports u64, expiration u32, fee u64
_BRIDGE_FEE_OFFSET = 16
_WRAPPED_META_LENGTH = 35


def to_pubkey(value: Pubkey | str | bytes, *, field: str = "address") -> Pubkey:
    """Coerce base58 strings and 32-byte values into a ``Pubkey``."""
    if isinstance(value, Pubkey):
        return value

    try:
        if isinstance(value, str):
            return Pubkey.from_string(value)
        if isinstance(value, bytes | bytearray) and len(value) == ADDRESS_LENGTH:
            return Pubkey.from_bytes(bytes(value))
    except ValueError as exc:
        raise InvalidAddressError(
            f"Invalid Solana {field}", chain="solana", address=value, details={"error": str(exc)}
        ) from exc

    raise InvalidAddressError(f"Invalid Solana {field}", chain="solana", address=value)


def _pda(seeds: list[bytes], program_id: Pubkey) -> Pubkey:
    address, _bump = Pubkey.find_program_address(seeds, program_id)
    return address


def _chain_seed(chain: int) -> bytes:
    return struct.pack(">H", int(chain))


def _address_seed(address: bytes) -> bytes:
    if len(address) != ADDRESS_LENGTH:
        raise ValidationError(
            "Origin address must be 32 bytes", field="origin_address", value=address
        )
    return bytes(address)


# ----------------------------------------------------------------------
# Token bridge accounts
# ----------------------------------------------------------------------
def derive_token_bridge_config_key(token_bridge: Pubkey) -> Pubkey:
    return _pda([b"config"], token_bridge)


def derive_authority_signer_key(token_bridge: Pubkey) -> Pubkey:
    return _pda([b"authority_signer"], token_bridge)


def derive_custody_signer_key(token_bridge: Pubkey) -> Pubkey:
    return _pda([b"custody_signer"], token_bridge)


def derive_mint_authority_key(token_bridge: Pubkey) -> Pubkey:
    return _pda([b"mint_signer"], token_bridge)


def derive_custody_key(token_bridge: Pubkey, mint: Pubkey) -> Pubkey:
    return _pda([bytes(mint)], token_bridge)


def derive_emitter_key(token_bridge: Pubkey) -> Pubkey:
    return _pda([b"emitter"], token_bridge)


def derive_endpoint_key(
    token_bridge: Pubkey, emitter_chain: int, emitter_address: bytes
) -> Pubkey:
    return _pda([_chain_seed(emitter_chain), _address_seed(emitter_address)], token_bridge)


def derive_wrapped_mint_key(
    token_bridge: Pubkey,
    origin_chain: int,
    origin_address: bytes,
    token_id: int | None = None,
) -> Pubkey:
    """Derive the mint that hosts the wrapped representation of a foreign asset.

    The optional ``token_id`` extends the seeds for non-fungible assets.
    """
    seeds = [b"wrapped", _chain_seed(origin_chain), _address_seed(origin_address)]
    if token_id is not None:
        if token_id < 0 or token_id >= 2**256:
            raise ValidationError("Token id must be a uint256", field="token_id", value=token_id)
        seeds.append(token_id.to_bytes(32, "big"))
    return _pda(seeds, token_bridge)


def derive_wrapped_meta_key(token_bridge: Pubkey, mint: Pubkey) -> Pubkey:
    return _pda([b"meta", bytes(mint)], token_bridge)


def derive_claim_key(
    program_id: Pubkey, emitter_address: bytes, emitter_chain: int, sequence: int
) -> Pubkey:
    """Derive the claim account created when a VAA is redeemed."""
    return _pda(
        [_address_seed(emitter_address), _chain_seed(emitter_chain), struct.pack(">Q", sequence)],
        program_id,
    )


def derive_spl_metadata_key(mint: Pubkey) -> Pubkey:
    return _pda([b"metadata", bytes(METADATA_PROGRAM_ID), bytes(mint)], METADATA_PROGRAM_ID)


# ----------------------------------------------------------------------
# Core bridge accounts
# ----------------------------------------------------------------------
def derive_core_bridge_data_key(core_bridge: Pubkey) -> Pubkey:
    return _pda([b"Bridge"], core_bridge)


def derive_fee_collector_key(core_bridge: Pubkey) -> Pubkey:
    return _pda([b"fee_collector"], core_bridge)


def derive_sequence_key(core_bridge: Pubkey, emitter: Pubkey) -> Pubkey:
    return _pda([b"Sequence", bytes(emitter)], core_bridge)


def derive_posted_vaa_key(core_bridge: Pubkey, digest: bytes) -> Pubkey:
    return _pda([b"PostedVAA", bytes(digest)], core_bridge)


# ----------------------------------------------------------------------
# Account layouts
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class WrappedMeta:
    """Wrapped-meta account: origin of a token bridge mint."""

    chain: int
    token_address: bytes
    original_decimals: int

    @classmethod
    def deserialize(cls, data: bytes) -> WrappedMeta:
        if len(data) < _WRAPPED_META_LENGTH:
            raise ValidationError(
                "Wrapped meta account data is truncated", field="data", value=len(data)
            )
        (chain,) = struct.unpack_from("<H", data, 0)
        return cls(chain=chain, token_address=bytes(data[2:34]), original_decimals=data[34])


def parse_mint_decimals(data: bytes) -> int:
    if len(data) <= _MINT_DECIMALS_OFFSET:
        raise ValidationError("Mint account data is truncated", field="data", value=len(data))
    return data[_MINT_DECIMALS_OFFSET]


def parse_bridge_fee(data: bytes) -> int:
    if len(data) < _BRIDGE_FEE_OFFSET + 8:
        raise ValidationError("Bridge account data is truncated", field="data", value=len(data))
    (fee,) = struct.unpack_from("<Q", data, _BRIDGE_FEE_OFFSET)
    return fee
