"""Function signatures of the EVM token bridge and ERC-20 contracts."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from web3 import Web3


@dataclass(frozen=True)
class AbiFunction:
    """A contract function identified by its canonical signature."""

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature)[:4])

    def encode(self, args: Sequence[Any] = ()) -> bytes:
        encoded = abi_encode(list(self.inputs), list(args)) if self.inputs else b""
        return self.selector + encoded

    def decode(self, data: bytes) -> tuple[Any, ...]:
        if not self.outputs:
            return tuple()
        return tuple(abi_decode(list(self.outputs), data))


# Token bridge writes
ATTEST_TOKEN = AbiFunction("attestToken", ("address", "uint32"), ("uint64",))
TRANSFER_TOKENS = AbiFunction(
    "transferTokens",
    ("address", "uint256", "uint16", "bytes32", "uint256", "uint32"),
    ("uint64",),
)
TRANSFER_TOKENS_WITH_PAYLOAD = AbiFunction(
    "transferTokensWithPayload",
    ("address", "uint256", "uint16", "bytes32", "uint32", "bytes"),
    ("uint64",),
)
WRAP_AND_TRANSFER_ETH = AbiFunction(
    "wrapAndTransferETH", ("uint16", "bytes32", "uint256", "uint32"), ("uint64",)
)
WRAP_AND_TRANSFER_ETH_WITH_PAYLOAD = AbiFunction(
    "wrapAndTransferETHWithPayload", ("uint16", "bytes32", "uint32", "bytes"), ("uint64",)
)
COMPLETE_TRANSFER = AbiFunction("completeTransfer", ("bytes",))
COMPLETE_TRANSFER_AND_UNWRAP_ETH = AbiFunction("completeTransferAndUnwrapETH", ("bytes",))

# Token bridge reads
IS_TRANSFER_COMPLETED = AbiFunction("isTransferCompleted", ("bytes32",), ("bool",))
WRAPPED_ASSET = AbiFunction("wrappedAsset", ("uint16", "bytes32"), ("address",))
IS_WRAPPED_ASSET = AbiFunction("isWrappedAsset", ("address",), ("bool",))
WETH = AbiFunction("WETH", (), ("address",))

# Token reads/writes
APPROVE = AbiFunction("approve", ("address", "uint256"), ("bool",))
ALLOWANCE = AbiFunction("allowance", ("address", "address"), ("uint256",))
DECIMALS = AbiFunction("decimals", (), ("uint8",))
TOKEN_CHAIN_ID = AbiFunction("chainId", (), ("uint16",))
NATIVE_CONTRACT = AbiFunction("nativeContract", (), ("bytes32",))
