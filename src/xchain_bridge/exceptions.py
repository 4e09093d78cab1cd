"""Exception hierarchy for the cross-chain token bridge client."""

from typing import Any


class BridgeError(Exception):
    """Base exception for all bridge client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(BridgeError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class NetworkError(BridgeError):
    """Raised when network/connection issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class UnknownChainError(ValidationError):
    """Raised when a chain name or id is not part of the supported set."""

    def __init__(self, chain: Any, details: dict | None = None):
        super().__init__(f"Unknown chain: {chain!r}", field="chain", value=chain, details=details)
        self.chain = chain


class InvalidAddressError(ValidationError):
    """Raised when an address is malformed for the chain family it targets."""

    def __init__(
        self,
        message: str,
        chain: Any | None = None,
        address: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, field="address", value=address, details=details)
        self.chain = chain
        self.address = address


class MalformedAttestationError(BridgeError):
    """Raised when a signed VAA cannot be decoded."""

    def __init__(self, message: str, offset: int | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.offset = offset


class AssetMismatchError(BridgeError):
    """Raised when an unwrap is requested for a token other than the wrapped native asset."""

    def __init__(
        self,
        message: str,
        expected: str | None = None,
        actual: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.expected = expected
        self.actual = actual


class UnsupportedFamilyError(BridgeError):
    """Raised when no builder is registered for a chain family."""

    def __init__(self, family: Any, chain: Any | None = None):
        super().__init__(f"No bridge builder registered for chain family '{family}'")
        self.family = family
        self.chain = chain
