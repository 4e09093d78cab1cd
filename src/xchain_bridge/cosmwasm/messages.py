"""Contract-execution messages produced by the CosmWasm token bridge builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

EXECUTE_CONTRACT_TYPE_URL = "/cosmwasm.wasm.v1.MsgExecuteContract"


@dataclass(frozen=True)
class Coin:
    denom: str
    amount: str

    def to_dict(self) -> dict[str, str]:
        return {"denom": self.denom, "amount": self.amount}


@dataclass(frozen=True)
class ExecuteMsg:
    """One ``MsgExecuteContract`` with its JSON message body."""

    sender: str
    contract: str
    msg: dict[str, Any]
    funds: tuple[Coin, ...] = ()

    @property
    def action(self) -> str:
        """Name of the contract entry point (the single top-level key)."""
        return next(iter(self.msg))

    def to_dict(self) -> dict[str, Any]:
        return {
            "typeUrl": EXECUTE_CONTRACT_TYPE_URL,
            "value": {
                "sender": self.sender,
                "contract": self.contract,
                "msg": self.msg,
                "funds": [coin.to_dict() for coin in self.funds],
            },
        }


@dataclass(frozen=True)
class CosmWasmOperation:
    """Ordered messages the caller must broadcast together, in order.

    The chain does not bundle them for us; an allowance or deposit message
    always precedes the transfer message that consumes it.
    """

    messages: tuple[ExecuteMsg, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.messages)

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(message.action for message in self.messages)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [message.to_dict() for message in self.messages]
