"""Cross-chain token bridge client - one interface for EVM, Solana and CosmWasm.

This library derives canonical token identities, decodes signed transfer
attestations (VAAs) and builds the unsigned chain-native operations that
attest, transfer and redeem tokens across chains.
"""

from .base import TokenBridgeBase
from .chains import (
    ChainFamily,
    ChainId,
    chain_family,
    chain_name,
    chains_in_family,
    coalesce_chain_id,
    is_native_denom,
    origin_chain_id,
)
from .client import BridgeClient
from .config import BridgeClientConfig, ChainConfig
from .cosmwasm.bridge import CosmWasmTokenBridge
from .cosmwasm.messages import CosmWasmOperation, ExecuteMsg
from .evm.bridge import EVMTokenBridge
from .evm.transactions import EVMCall
from .exceptions import (
    AssetMismatchError,
    BridgeError,
    InvalidAddressError,
    MalformedAttestationError,
    NetworkError,
    UnknownChainError,
    UnsupportedFamilyError,
    ValidationError,
)
from .identity import (
    build_cosmwasm_token_id,
    derive_token_identity,
    derive_wrapped_address,
    identity_to_native,
)
from .solana.bridge import SolanaTokenBridge
from .solana.transactions import SolanaOperation
from .types import TokenIdentity, TransferIntent, WrappedAssetMeta
from .utils import denormalize_amount, generate_nonce, normalize_amount, truncate_amount
from .vaa import (
    SignedVaa,
    TokenTransfer,
    parse_token_transfer_payload,
    parse_token_transfer_vaa,
    parse_vaa,
)

__version__ = "0.1.0"

__all__ = [
    # Client and builders
    "BridgeClient",
    "TokenBridgeBase",
    "EVMTokenBridge",
    "SolanaTokenBridge",
    "CosmWasmTokenBridge",
    # Configuration
    "BridgeClientConfig",
    "ChainConfig",
    # Chains
    "ChainFamily",
    "ChainId",
    "coalesce_chain_id",
    "chain_family",
    "chain_name",
    "chains_in_family",
    "is_native_denom",
    "origin_chain_id",
    # Types and operations
    "TokenIdentity",
    "TransferIntent",
    "WrappedAssetMeta",
    "EVMCall",
    "SolanaOperation",
    "CosmWasmOperation",
    "ExecuteMsg",
    "SignedVaa",
    "TokenTransfer",
    # Exceptions
    "BridgeError",
    "ValidationError",
    "NetworkError",
    "UnknownChainError",
    "InvalidAddressError",
    "MalformedAttestationError",
    "AssetMismatchError",
    "UnsupportedFamilyError",
    # Identity and decoding
    "derive_token_identity",
    "derive_wrapped_address",
    "build_cosmwasm_token_id",
    "identity_to_native",
    "parse_vaa",
    "parse_token_transfer_payload",
    "parse_token_transfer_vaa",
    # Utility functions
    "normalize_amount",
    "denormalize_amount",
    "truncate_amount",
    "generate_nonce",
]
