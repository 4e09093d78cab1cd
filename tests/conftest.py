from __future__ import annotations

import struct
from collections.abc import Callable

import pytest

from xchain_bridge.constants import ADDRESS_LENGTH, PayloadID
from xchain_bridge.vaa import GuardianSignature, TokenTransfer

EMITTER = bytes.fromhex("ec7372995d5cc8732397fb0ad35c0121e0eaa90d26f828a534cab54391b3a4f5")


def _uint(value: int, size: int) -> bytes:
    return value.to_bytes(size, "big")


def encode_token_transfer_payload(transfer: TokenTransfer) -> bytes:
    parts = [
        _uint(transfer.payload_type, 1),
        _uint(transfer.amount, 32),
        transfer.token_address,
        _uint(transfer.token_chain, 2),
        transfer.to,
        _uint(transfer.to_chain, 2),
    ]
    if transfer.payload_type is PayloadID.TRANSFER:
        parts.append(_uint(transfer.fee or 0, 32))
    else:
        parts.append(transfer.from_address or bytes(ADDRESS_LENGTH))
        parts.append(transfer.payload or b"")
    return b"".join(parts)


def encode_vaa(
    *,
    emitter_chain: int,
    emitter_address: bytes,
    sequence: int,
    payload: bytes,
    timestamp: int = 0,
    nonce: int = 0,
    consistency_level: int = 1,
    guardian_set_index: int = 0,
    signatures: tuple[GuardianSignature, ...] = (),
) -> bytes:
    header = struct.pack(">BIB", 1, guardian_set_index, len(signatures))
    sigs = b"".join(_uint(sig.index, 1) + sig.signature for sig in signatures)
    body = (
        struct.pack(">IIH", timestamp, nonce, emitter_chain)
        + emitter_address
        + struct.pack(">QB", sequence, consistency_level)
        + payload
    )
    return header + sigs + body


@pytest.fixture
def make_transfer_vaa() -> Callable[..., bytes]:
    """Factory for signed-looking token transfer VAAs (signatures are dummies)."""

    def _make(
        *,
        amount: int = 100_000_000,
        token_address: bytes = bytes(31) + b"\x01",
        token_chain: int = 2,
        to: bytes = bytes(31) + b"\x02",
        to_chain: int = 1,
        fee: int = 0,
        payload: bytes | None = None,
        emitter_chain: int = 2,
        sequence: int = 42,
    ) -> bytes:
        payload_type = PayloadID.TRANSFER if payload is None else PayloadID.TRANSFER_WITH_PAYLOAD
        transfer = TokenTransfer(
            payload_type=payload_type,
            amount=amount,
            token_address=token_address,
            token_chain=token_chain,
            to=to,
            to_chain=to_chain,
            fee=fee if payload is None else None,
            from_address=None if payload is None else bytes(31) + b"\x03",
            payload=payload,
        )
        return encode_vaa(
            emitter_chain=emitter_chain,
            emitter_address=EMITTER,
            sequence=sequence,
            payload=encode_token_transfer_payload(transfer),
            timestamp=1_700_000_000,
            nonce=7,
            signatures=(GuardianSignature(index=0, signature=b"\x11" * 65),),
        )

    return _make
