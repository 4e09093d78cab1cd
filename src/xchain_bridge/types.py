"""Type definitions and data models for the cross-chain bridge client."""

from __future__ import annotations

from dataclasses import dataclass

from .chains import ChainId, coalesce_chain_id
from .constants import ADDRESS_LENGTH
from .exceptions import ValidationError

Address = str  # Address in the chain's native format
Bytes32 = bytes


@dataclass(frozen=True)
class TokenIdentity:
    """Chain-independent identity of a token: origin chain plus 32-byte address."""

    chain: ChainId
    address: Bytes32

    def __post_init__(self) -> None:
        if len(self.address) != ADDRESS_LENGTH:
            raise ValidationError(
                "Token identity address must be 32 bytes",
                field="address",
                value=self.address,
            )

    def hex(self) -> str:
        return self.address.hex()


@dataclass(frozen=True)
class WrappedAssetMeta:
    """Origin of a token as observed on some chain."""

    origin_chain: ChainId | int
    origin_address: Bytes32
    is_wrapped: bool


@dataclass(frozen=True)
class TransferIntent:
    """Amount, recipient and fee of an outbound transfer."""

    amount: int
    recipient_chain: ChainId
    recipient_address: Bytes32
    relayer_fee: int = 0
    payload: bytes | None = None

    @classmethod
    def create(
        cls,
        amount: int,
        recipient_chain: ChainId | int | str,
        recipient_address: bytes,
        relayer_fee: int = 0,
        payload: bytes | None = None,
    ) -> TransferIntent:
        intent = cls(
            amount=amount,
            recipient_chain=coalesce_chain_id(recipient_chain),
            recipient_address=bytes(recipient_address),
            relayer_fee=relayer_fee,
            payload=bytes(payload) if payload is not None else None,
        )
        intent.validate()
        return intent

    def validate(self) -> None:
        if self.amount <= 0:
            raise ValidationError(
                "Transfer amount must be positive", field="amount", value=self.amount
            )
        if self.relayer_fee < 0:
            raise ValidationError(
                "Relayer fee cannot be negative", field="relayer_fee", value=self.relayer_fee
            )
        if self.relayer_fee > self.amount:
            raise ValidationError(
                "Relayer fee exceeds transfer amount",
                field="relayer_fee",
                value=self.relayer_fee,
                details={"amount": self.amount},
            )
        if len(self.recipient_address) != ADDRESS_LENGTH:
            raise ValidationError(
                "Recipient address must be 32 bytes",
                field="recipient_address",
                value=self.recipient_address,
            )
        if self.payload is not None and self.relayer_fee:
            raise ValidationError(
                "Transfers with payload do not carry a relayer fee",
                field="relayer_fee",
                value=self.relayer_fee,
            )

    def with_amount(self, amount: int, relayer_fee: int | None = None) -> TransferIntent:
        return TransferIntent(
            amount=amount,
            recipient_chain=self.recipient_chain,
            recipient_address=self.recipient_address,
            relayer_fee=self.relayer_fee if relayer_fee is None else relayer_fee,
            payload=self.payload,
        )
