"""Unsigned contract calls produced by the EVM token bridge builder."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from eth_typing import HexStr
from web3 import Web3
from web3.types import ChecksumAddress, TxParams, Wei

from ..exceptions import ValidationError
from .abi import AbiFunction


@dataclass(frozen=True)
class EVMCall:
    """One contract call; atomic through the chain's own transaction semantics."""

    to: ChecksumAddress
    function: str
    args: tuple[Any, ...]
    data: bytes
    value: int = 0

    @classmethod
    def build(
        cls,
        to: str,
        function: AbiFunction,
        args: Sequence[Any],
        *,
        value: int = 0,
    ) -> EVMCall:
        if value < 0:
            raise ValidationError("Call value cannot be negative", field="value", value=value)
        return cls(
            to=Web3.to_checksum_address(to),
            function=function.signature,
            args=tuple(args),
            data=function.encode(args),
            value=value,
        )

    def as_tx_params(self, sender: str) -> TxParams:
        """Return a web3 transaction dict for the caller's signer to complete."""

        if not Web3.is_address(sender):
            raise ValidationError("Invalid sender address", field="sender", value=sender)

        return {
            "from": Web3.to_checksum_address(sender),
            "to": self.to,
            "data": HexStr("0x" + self.data.hex()),
            "value": Wei(self.value),
        }
