"""Structural decoder for signed attestations (VAAs).

Only the byte layout is checked here. Guardian signatures are verified by
the bridge contracts that consume the VAA during redemption.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import ADDRESS_LENGTH, UINT64_MAX, PayloadID
from .exceptions import MalformedAttestationError, ValidationError
from .utils import ensure_bytes, keccak

_BODY_FIXED_LENGTH = 51


@dataclass(frozen=True)
class GuardianSignature:
    index: int
    signature: bytes


@dataclass(frozen=True)
class SignedVaa:
    """Decoded header and body of a signed VAA."""

    version: int
    guardian_set_index: int
    signatures: tuple[GuardianSignature, ...]
    timestamp: int
    nonce: int
    emitter_chain: int
    emitter_address: bytes
    sequence: int
    consistency_level: int
    payload: bytes
    body: bytes
    raw: bytes

    @property
    def digest(self) -> bytes:
        """keccak-256 of the body; seeds the Solana posted-VAA account."""
        return keccak(self.body)

    @property
    def hash(self) -> bytes:
        """Double keccak-256 of the body, as tracked by EVM bridge contracts."""
        return keccak(self.digest)


@dataclass(frozen=True)
class TokenTransfer:
    """Token bridge transfer payload (types 1 and 3)."""

    payload_type: PayloadID
    amount: int
    token_address: bytes
    token_chain: int
    to: bytes
    to_chain: int
    fee: int | None = None
    from_address: bytes | None = None
    payload: bytes | None = None


@dataclass(frozen=True)
class AssetMeta:
    """Token bridge attestation payload (type 2)."""

    token_address: bytes
    token_chain: int
    decimals: int
    symbol: str
    name: str


@dataclass(frozen=True)
class TokenTransferVaa:
    vaa: SignedVaa
    transfer: TokenTransfer


class _Reader:
    """Bounds-checked big-endian reader."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self.offset = 0

    def take(self, size: int, what: str) -> bytes:
        end = self.offset + size
        if end > len(self._data):
            raise MalformedAttestationError(
                f"Truncated attestation while reading {what}",
                offset=self.offset,
                details={"needed": size, "available": len(self._data) - self.offset},
            )
        chunk = self._data[self.offset : end]
        self.offset = end
        return chunk

    def uint(self, size: int, what: str) -> int:
        return int.from_bytes(self.take(size, what), "big")

    def rest(self) -> bytes:
        chunk = self._data[self.offset :]
        self.offset = len(self._data)
        return chunk

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset


def _coerce(data: bytes | bytearray | str) -> bytes:
    try:
        return ensure_bytes(data)
    except ValidationError as exc:
        raise MalformedAttestationError(
            "Attestation is not valid hex", details=exc.details
        ) from exc


def parse_vaa(data: bytes | bytearray | str) -> SignedVaa:
    """Decode the header and body of a signed VAA.

    Raises:
        MalformedAttestationError: On truncated or structurally invalid input
    """
    raw = _coerce(data)
    reader = _Reader(raw)

    version = reader.uint(1, "version")
    if version != 1:
        raise MalformedAttestationError(f"Unsupported VAA version {version}", offset=0)

    guardian_set_index = reader.uint(4, "guardian set index")
    num_signatures = reader.uint(1, "signature count")
    signatures = []
    for _ in range(num_signatures):
        index = reader.uint(1, "guardian index")
        signatures.append(GuardianSignature(index=index, signature=reader.take(65, "signature")))

    body_offset = reader.offset
    if reader.remaining < _BODY_FIXED_LENGTH:
        raise MalformedAttestationError(
            "Truncated attestation body", offset=body_offset, details={"length": len(raw)}
        )

    timestamp = reader.uint(4, "timestamp")
    nonce = reader.uint(4, "nonce")
    emitter_chain = reader.uint(2, "emitter chain")
    emitter_address = reader.take(ADDRESS_LENGTH, "emitter address")
    sequence = reader.uint(8, "sequence")
    consistency_level = reader.uint(1, "consistency level")
    payload = reader.rest()

    return SignedVaa(
        version=version,
        guardian_set_index=guardian_set_index,
        signatures=tuple(signatures),
        timestamp=timestamp,
        nonce=nonce,
        emitter_chain=emitter_chain,
        emitter_address=emitter_address,
        sequence=sequence,
        consistency_level=consistency_level,
        payload=payload,
        body=raw[body_offset:],
        raw=raw,
    )


def _payload_id(reader: _Reader) -> PayloadID:
    discriminator = reader.uint(1, "payload type")
    try:
        return PayloadID(discriminator)
    except ValueError as exc:
        raise MalformedAttestationError(
            f"Unknown token bridge payload type {discriminator}", offset=0
        ) from exc


def parse_token_transfer_payload(payload: bytes) -> TokenTransfer:
    """Decode a token transfer payload (with or without arbitrary payload)."""
    reader = _Reader(bytes(payload))
    payload_type = _payload_id(reader)
    if payload_type not in (PayloadID.TRANSFER, PayloadID.TRANSFER_WITH_PAYLOAD):
        raise MalformedAttestationError(
            f"Payload type {payload_type.name} is not a token transfer", offset=0
        )

    amount = reader.uint(32, "amount")
    token_address = reader.take(ADDRESS_LENGTH, "token address")
    token_chain = reader.uint(2, "token chain")
    to = reader.take(ADDRESS_LENGTH, "recipient")
    to_chain = reader.uint(2, "recipient chain")

    if amount > UINT64_MAX:
        # Wire amounts are normalized to 8 decimals and must fit a uint64
        raise MalformedAttestationError(
            "Transfer amount exceeds uint64", offset=1, details={"amount": amount}
        )

    if payload_type is PayloadID.TRANSFER:
        fee = reader.uint(32, "fee")
        if reader.remaining:
            raise MalformedAttestationError(
                "Unexpected trailing bytes in transfer payload",
                offset=reader.offset,
                details={"extra": reader.remaining},
            )
        if fee > amount:
            raise MalformedAttestationError(
                "Transfer fee exceeds amount", details={"amount": amount, "fee": fee}
            )
        return TokenTransfer(
            payload_type=payload_type,
            amount=amount,
            token_address=token_address,
            token_chain=token_chain,
            to=to,
            to_chain=to_chain,
            fee=fee,
        )

    from_address = reader.take(ADDRESS_LENGTH, "sender")
    return TokenTransfer(
        payload_type=payload_type,
        amount=amount,
        token_address=token_address,
        token_chain=token_chain,
        to=to,
        to_chain=to_chain,
        from_address=from_address,
        payload=reader.rest(),
    )


def _fixed_string(raw: bytes) -> str:
    return raw.rstrip(b"\x00").decode("utf-8", errors="replace")


def parse_asset_meta_payload(payload: bytes) -> AssetMeta:
    """Decode an asset attestation payload."""
    reader = _Reader(bytes(payload))
    payload_type = _payload_id(reader)
    if payload_type is not PayloadID.ASSET_META:
        raise MalformedAttestationError(
            f"Payload type {payload_type.name} is not an asset attestation", offset=0
        )

    token_address = reader.take(ADDRESS_LENGTH, "token address")
    token_chain = reader.uint(2, "token chain")
    decimals = reader.uint(1, "decimals")
    symbol = _fixed_string(reader.take(32, "symbol"))
    name = _fixed_string(reader.take(32, "name"))
    return AssetMeta(
        token_address=token_address,
        token_chain=token_chain,
        decimals=decimals,
        symbol=symbol,
        name=name,
    )


def parse_token_transfer_vaa(data: bytes | bytearray | str) -> TokenTransferVaa:
    vaa = parse_vaa(data)
    return TokenTransferVaa(vaa=vaa, transfer=parse_token_transfer_payload(vaa.payload))

