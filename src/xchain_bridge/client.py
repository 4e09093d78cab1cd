"""Single entry point that dispatches bridge operations by chain family."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from solana.rpc.async_api import AsyncClient

from .base import TokenBridgeBase
from .chains import ChainFamily, ChainId, chain_family, coalesce_chain_id
from .config import DEFAULT_SOLANA_COMMITMENT, BridgeClientConfig
from .cosmwasm.bridge import CosmWasmTokenBridge
from .cosmwasm.client import LCDClient
from .evm.bridge import EVMTokenBridge
from .evm.connections import build_async_web3
from .exceptions import UnsupportedFamilyError, ValidationError
from .identity import derive_token_identity, derive_wrapped_address
from .solana.bridge import SolanaTokenBridge
from .solana.transactions import KeypairFactory
from .types import TokenIdentity, TransferIntent, WrappedAssetMeta

logger = logging.getLogger(__name__)

DEFAULT_BUILDERS: dict[ChainFamily, type[TokenBridgeBase]] = {
    ChainFamily.EVM: EVMTokenBridge,
    ChainFamily.SOLANA: SolanaTokenBridge,
    ChainFamily.COSMWASM: CosmWasmTokenBridge,
}


class BridgeClient:
    """Token bridge operations for every configured chain behind one surface.

    A builder is created for each call from the chain's configuration and
    connection handle; nothing is cached, retried or signed here.
    """

    def __init__(
        self,
        config: BridgeClientConfig,
        connections: Mapping[ChainId | int | str, Any] | None = None,
        *,
        builders: Mapping[ChainFamily, type[TokenBridgeBase]] | None = None,
        keypair_factory: KeypairFactory | None = None,
    ) -> None:
        self.config = config
        self._connections: dict[ChainId, Any] = {
            coalesce_chain_id(chain): handle for chain, handle in (connections or {}).items()
        }
        self._builders: dict[ChainFamily, type[TokenBridgeBase]] = dict(
            DEFAULT_BUILDERS if builders is None else builders
        )
        self._keypair_factory = keypair_factory

    @classmethod
    def from_config(
        cls,
        config: BridgeClientConfig,
        *,
        keypair_factory: KeypairFactory | None = None,
    ) -> BridgeClient:
        """Open a connection for every chain that declares an endpoint."""
        connections: dict[ChainId, Any] = {}
        for chain, chain_config in config.chains.items():
            family = chain_family(chain)
            if family is ChainFamily.EVM and chain_config.rpc_url:
                connections[chain] = build_async_web3(
                    chain_config.rpc_url, request_timeout=config.request_timeout
                )
            elif family is ChainFamily.SOLANA and chain_config.rpc_url:
                connections[chain] = AsyncClient(
                    chain_config.rpc_url,
                    commitment=chain_config.commitment or DEFAULT_SOLANA_COMMITMENT,
                    timeout=config.request_timeout,
                )
            elif family is ChainFamily.COSMWASM and chain_config.lcd_url:
                connections[chain] = LCDClient(
                    chain_config.lcd_url, request_timeout=config.request_timeout
                )
            else:
                logger.debug("No endpoint configured for %s", chain.name)

        return cls(config, connections, keypair_factory=keypair_factory)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def register_builder(self, family: ChainFamily, builder_cls: type[TokenBridgeBase]) -> None:
        """Install or replace the builder used for ``family``."""
        self._builders[ChainFamily(family)] = builder_cls

    def connection_for(self, chain: ChainId | int | str) -> Any:
        chain_id = coalesce_chain_id(chain)
        try:
            return self._connections[chain_id]
        except KeyError:
            raise ValidationError(
                f"No connection for {chain_id.name}", field="chain", value=chain_id
            ) from None

    def bridge_for(self, chain: ChainId | int | str) -> TokenBridgeBase:
        chain_id = coalesce_chain_id(chain)
        family = chain_family(chain_id)
        builder_cls = self._builders.get(family)
        if builder_cls is None:
            raise UnsupportedFamilyError(family.value, chain=chain_id)

        chain_config = self.config.for_chain(chain_id)
        connection = self.connection_for(chain_id)
        options: dict[str, Any] = {}
        if family is ChainFamily.SOLANA and self._keypair_factory is not None:
            options["keypair_factory"] = self._keypair_factory

        logger.debug("Dispatching %s to %s", chain_id.name, builder_cls.__name__)
        return builder_cls.from_config(chain_id, chain_config, connection, **options)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    async def attest(
        self,
        chain: ChainId | int | str,
        token_address: str,
        *,
        signer: str,
        nonce: int | None = None,
        **kwargs: Any,
    ) -> Any:
        return await self.bridge_for(chain).attest(
            token_address, signer=signer, nonce=nonce, **kwargs
        )

    async def transfer_native(
        self,
        chain: ChainId | int | str,
        intent: TransferIntent,
        *,
        signer: str,
        nonce: int | None = None,
    ) -> Any:
        return await self.bridge_for(chain).transfer_native(intent, signer=signer, nonce=nonce)

    async def transfer_token(
        self,
        chain: ChainId | int | str,
        token_address: str,
        intent: TransferIntent,
        *,
        signer: str,
        nonce: int | None = None,
        **kwargs: Any,
    ) -> Any:
        return await self.bridge_for(chain).transfer_token(
            token_address, intent, signer=signer, nonce=nonce, **kwargs
        )

    async def redeem(
        self, chain: ChainId | int | str, vaa: bytes | str, *, signer: str, **kwargs: Any
    ) -> Any:
        return await self.bridge_for(chain).redeem(vaa, signer=signer, **kwargs)

    async def redeem_and_unwrap(
        self, chain: ChainId | int | str, vaa: bytes | str, *, signer: str
    ) -> Any:
        return await self.bridge_for(chain).redeem_and_unwrap(vaa, signer=signer)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def is_redeemed(self, chain: ChainId | int | str, vaa: bytes | str) -> bool:
        return await self.bridge_for(chain).is_redeemed(vaa)

    async def get_foreign_asset(
        self,
        chain: ChainId | int | str,
        origin_chain: ChainId | int | str,
        origin_address: bytes,
    ) -> str | None:
        return await self.bridge_for(chain).get_foreign_asset(origin_chain, origin_address)

    async def get_original_asset(
        self, chain: ChainId | int | str, token_address: str
    ) -> WrappedAssetMeta:
        return await self.bridge_for(chain).get_original_asset(token_address)

    async def is_wrapped_asset(self, chain: ChainId | int | str, token_address: str) -> bool:
        return await self.bridge_for(chain).is_wrapped_asset(token_address)

    def derive_foreign_address(
        self,
        chain: ChainId | int | str,
        origin_chain: ChainId | int | str,
        origin_address: bytes,
        token_id: int | None = None,
    ) -> str | None:
        return self.bridge_for(chain).derive_foreign_address(origin_chain, origin_address, token_id)

    # ------------------------------------------------------------------
    # Pure helpers
    # ------------------------------------------------------------------
    def derive_token_identity(
        self, chain: ChainId | int | str, native_address: str
    ) -> TokenIdentity:
        return derive_token_identity(chain, native_address)

    def derive_wrapped_address(
        self,
        origin_chain: ChainId | int | str,
        origin_address: bytes | str,
        token_id: int | None = None,
    ) -> str:
        """Wrapped mint address on Solana, using the configured token bridge."""
        bridge = self.config.for_chain(ChainId.SOLANA).token_bridge_address
        return derive_wrapped_address(bridge, origin_chain, origin_address, token_id)

    async def disconnect(self) -> None:
        """Close connections that expose an async ``close``."""
        for chain, handle in self._connections.items():
            close = getattr(handle, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as exc:
                logger.warning("Failed to close connection for %s: %s", chain.name, exc)
