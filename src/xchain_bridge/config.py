"""Configuration containers for the cross-chain bridge client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .chains import ChainId, coalesce_chain_id
from .exceptions import ValidationError

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_SOLANA_COMMITMENT = "confirmed"


@dataclass(frozen=True)
class ChainConfig:
    """Contract addresses and endpoints for one chain.

    ``core_bridge_address`` is required for Solana only. ``rpc_url`` (EVM,
    Solana) and ``lcd_url`` (CosmWasm) are used when the client opens its own
    connections.
    """

    token_bridge_address: str
    core_bridge_address: str | None = None
    wrapped_native_address: str | None = None
    rpc_url: str | None = None
    lcd_url: str | None = None
    commitment: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ChainConfig:
        token_bridge = data.get("token_bridge_address") or data.get("token_bridge")
        if not token_bridge:
            raise ValidationError(
                "token_bridge_address is required", field="token_bridge_address"
            )
        return cls(
            token_bridge_address=str(token_bridge),
            core_bridge_address=data.get("core_bridge_address") or data.get("core_bridge"),
            wrapped_native_address=data.get("wrapped_native_address"),
            rpc_url=data.get("rpc_url"),
            lcd_url=data.get("lcd_url"),
            commitment=data.get("commitment"),
        )


@dataclass(frozen=True)
class BridgeClientConfig:
    """Aggregated configuration used to construct the bridge client."""

    chains: Mapping[ChainId, ChainConfig] = field(default_factory=dict)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def for_chain(self, chain: ChainId | int | str) -> ChainConfig:
        chain_id = coalesce_chain_id(chain)
        try:
            return self.chains[chain_id]
        except KeyError:
            raise ValidationError(
                f"No configuration for {chain_id.name}", field="chain", value=chain_id
            ) from None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BridgeClientConfig:
        """Build from a plain mapping, e.g. parsed JSON or TOML.

        Chain keys may be ids or names (``"ethereum"``, ``"2"``, ``2``).
        """
        chains: dict[ChainId, ChainConfig] = {}
        for key, value in (data.get("chains") or {}).items():
            if not isinstance(value, ChainConfig):
                value = ChainConfig.from_mapping(value)
            chains[coalesce_chain_id(key)] = value

        return cls(
            chains=chains,
            request_timeout=float(data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
        )
