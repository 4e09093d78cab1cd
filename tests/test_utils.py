"""Tests for utility functions."""

import pytest

from xchain_bridge.constants import UINT32_MAX, UINT64_MAX
from xchain_bridge.exceptions import ValidationError
from xchain_bridge.utils import (
    denormalize_amount,
    ensure_bytes,
    generate_nonce,
    normalize_amount,
    to_bytes32,
    truncate_amount,
    validate_nonce,
)


class TestAmountNormalization:
    """Test conversion between native and wire precision."""

    def test_normalize_18_decimals(self):
        """Test that 18-decimal amounts drop ten digits."""
        assert normalize_amount(1_234_567_890_123_456_789, 18) == 123_456_789

    def test_normalize_small_decimals_is_noop(self):
        """Test that tokens with at most 8 decimals are untouched."""
        assert normalize_amount(1_000_000, 6) == 1_000_000
        assert normalize_amount(123_456_789, 8) == 123_456_789

    def test_denormalize_scales_up(self):
        """Test scaling a wire amount back to 9-decimal native units."""
        assert denormalize_amount(100_000_000, 9) == 1_000_000_000

    def test_truncate_drops_dust(self):
        """Test truncation to the largest multiple of 10**(d-8)."""
        assert truncate_amount(1_234_567_890_123_456_789, 18) == 1_234_567_890_000_000_000

    def test_round_trip_precision(self):
        """Test denormalize(normalize(x)) == x - x mod 10**(d-8)."""
        for decimals in (0, 6, 8, 9, 12, 18):
            for amount in (0, 1, 999, 10**decimals + 7, 123_456_789_012_345):
                step = 10 ** max(decimals - 8, 0)
                expected = amount - amount % step
                assert denormalize_amount(normalize_amount(amount, decimals), decimals) == expected

    def test_normalize_overflow_raises_error(self):
        """Test that amounts beyond uint64 at wire precision are rejected."""
        with pytest.raises(ValidationError) as excinfo:
            normalize_amount((UINT64_MAX + 1) * 10**10, 18)
        assert excinfo.value.field == "amount"

    def test_negative_amount_raises_error(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            normalize_amount(-1, 18)

    def test_non_integer_amount_raises_error(self):
        """Test that floats are rejected."""
        with pytest.raises(ValidationError):
            normalize_amount(1.5, 18)  # type: ignore[arg-type]


class TestNonce:
    """Test nonce generation and validation."""

    def test_generate_nonce_in_range(self):
        """Test that nonces are uint32."""
        for _ in range(20):
            assert 0 <= generate_nonce() <= UINT32_MAX

    def test_validate_nonce_passthrough(self):
        """Test that explicit nonces are kept."""
        assert validate_nonce(42) == 42

    def test_validate_nonce_generates_when_missing(self):
        """Test that a missing nonce is generated."""
        assert 0 <= validate_nonce(None) <= UINT32_MAX

    def test_validate_nonce_out_of_range(self):
        """Test that nonces above uint32 are rejected."""
        with pytest.raises(ValidationError):
            validate_nonce(UINT32_MAX + 1)


class TestBytes:
    """Test byte coercion helpers."""

    def test_ensure_bytes_hex(self):
        """Test decoding prefixed and bare hex."""
        assert ensure_bytes("0x0102") == b"\x01\x02"
        assert ensure_bytes("0102") == b"\x01\x02"

    def test_ensure_bytes_invalid_hex(self):
        """Test that non-hex strings are rejected."""
        with pytest.raises(ValidationError):
            ensure_bytes("not-hex")

    def test_to_bytes32_pads_left(self):
        """Test left-padding to 32 bytes."""
        assert to_bytes32(b"\x01") == bytes(31) + b"\x01"

    def test_to_bytes32_too_long(self):
        """Test that values over 32 bytes are rejected."""
        with pytest.raises(ValidationError):
            to_bytes32(bytes(33))
