"""Protocol constants shared by the chain-family builders."""

from enum import IntEnum

# Amounts on the wire never carry more than eight decimals
MAX_VAA_DECIMALS = 8

UINT16_MAX = 2**16 - 1
UINT32_MAX = 2**32 - 1
UINT64_MAX = 2**64 - 1
UINT256_MAX = 2**256 - 1

ADDRESS_LENGTH = 32
EVM_ADDRESS_LENGTH = 20


class PayloadID(IntEnum):
    """Token bridge payload discriminators."""

    TRANSFER = 1
    ASSET_META = 2
    TRANSFER_WITH_PAYLOAD = 3


class TokenIdTag(IntEnum):
    """Leading byte of a CosmWasm token identity."""

    CONTRACT = 0
    NATIVE_DENOM = 1
