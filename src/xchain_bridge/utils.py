"""Utility functions for amount normalization and byte handling."""

import random

from eth_typing import HexStr
from web3 import Web3

from .constants import ADDRESS_LENGTH, MAX_VAA_DECIMALS, UINT32_MAX, UINT64_MAX
from .exceptions import ValidationError


def _check_amount(amount: int, decimals: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("Amount must be an integer", field="amount", value=amount)
    if amount < 0:
        raise ValidationError("Amount cannot be negative", field="amount", value=amount)
    if decimals < 0:
        raise ValidationError("Decimals cannot be negative", field="decimals", value=decimals)


def normalize_amount(amount: int, decimals: int) -> int:
    """Convert a native-precision amount to wire precision (at most 8 decimals).

    Digits beyond the eighth decimal are dropped.
    """
    _check_amount(amount, decimals)
    if decimals > MAX_VAA_DECIMALS:
        amount //= 10 ** (decimals - MAX_VAA_DECIMALS)

    if amount > UINT64_MAX:
        raise ValidationError(
            "Normalized amount exceeds uint64 maximum",
            field="amount",
            value=amount,
            details={"decimals": decimals},
        )
    return amount


def denormalize_amount(amount: int, decimals: int) -> int:
    """Convert a wire-precision amount back to native precision."""
    _check_amount(amount, decimals)
    if decimals > MAX_VAA_DECIMALS:
        amount *= 10 ** (decimals - MAX_VAA_DECIMALS)
    return amount


def truncate_amount(amount: int, decimals: int) -> int:
    """Round ``amount`` down to the precision representable on the wire."""
    return denormalize_amount(normalize_amount(amount, decimals), decimals)


def generate_nonce() -> int:
    """Generate a random uint32 message nonce."""
    return random.randint(0, UINT32_MAX)


def validate_nonce(nonce: int | None) -> int:
    if nonce is None:
        return generate_nonce()

    if isinstance(nonce, bool) or not isinstance(nonce, int) or not 0 <= nonce <= UINT32_MAX:
        raise ValidationError("Nonce must be a uint32", field="nonce", value=nonce)
    return nonce


def ensure_bytes(value: bytes | bytearray | str) -> bytes:
    """Return ``value`` as bytes, decoding 0x-prefixed or bare hex strings."""
    if isinstance(value, bytes):
        return value

    if isinstance(value, bytearray | memoryview):
        return bytes(value)

    if isinstance(value, str):
        try:
            return Web3.to_bytes(hexstr=HexStr(value))
        except ValueError as exc:
            raise ValidationError(
                "Expected a hex string", field="value", value=value, details={"error": str(exc)}
            ) from exc

    raise ValidationError("Unsupported byte value", field="value", value=value)


def to_bytes32(value: bytes | bytearray | str, *, field: str = "address") -> bytes:
    """Return ``value`` as exactly 32 bytes, left-padding shorter inputs."""
    raw = ensure_bytes(value)
    if len(raw) > ADDRESS_LENGTH:
        raise ValidationError(
            "Value is longer than 32 bytes", field=field, value=value, details={"length": len(raw)}
        )
    return raw.rjust(ADDRESS_LENGTH, b"\x00")


def keccak(data: bytes) -> bytes:
    return bytes(Web3.keccak(data))
