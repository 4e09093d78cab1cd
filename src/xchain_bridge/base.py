"""Operation set shared by every chain-family token bridge."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from .chains import ChainFamily, ChainId, chain_family, coalesce_chain_id
from .config import ChainConfig
from .exceptions import ValidationError
from .types import TransferIntent, WrappedAssetMeta
from .utils import truncate_amount

logger = logging.getLogger(__name__)


class TokenBridgeBase(ABC):
    """Token bridge builder and completion checker for one chain.

    Builders never sign: they return unsigned operations for the caller to
    sign and submit. Ephemeral keys generated while building (Solana) are
    the only keys that co-sign.
    """

    family: ClassVar[ChainFamily]

    def __init__(self, chain: ChainId | int | str) -> None:
        chain_id = coalesce_chain_id(chain)
        if chain_family(chain_id) is not self.family:
            raise ValidationError(
                f"{chain_id.name} is not a {self.family.value} chain",
                field="chain",
                value=chain_id,
            )
        self.chain = chain_id

    @classmethod
    @abstractmethod
    def from_config(
        cls, chain: ChainId | int | str, config: ChainConfig, connection: Any, **options: Any
    ) -> TokenBridgeBase:
        """Construct a builder from a chain configuration and a connection handle."""

    @abstractmethod
    async def attest(self, token_address: str, *, signer: str, nonce: int | None = None) -> Any:
        """Register a native token's metadata so it can be wrapped elsewhere."""

    @abstractmethod
    async def transfer_native(
        self, intent: TransferIntent, *, signer: str, nonce: int | None = None
    ) -> Any:
        """Escrow the chain's native asset and emit a transfer message."""

    @abstractmethod
    async def transfer_token(
        self,
        token_address: str,
        intent: TransferIntent,
        *,
        signer: str,
        nonce: int | None = None,
        **kwargs: Any,
    ) -> Any:
        """Lock a native token or burn a wrapped one and emit a transfer message."""

    @abstractmethod
    async def redeem(self, vaa: bytes | str, *, signer: str) -> Any:
        """Consume a transfer VAA to mint or unlock the destination asset."""

    @abstractmethod
    async def redeem_and_unwrap(self, vaa: bytes | str, *, signer: str) -> Any:
        """Redeem a transfer of the wrapped native asset and unwrap it atomically."""

    @abstractmethod
    async def is_redeemed(self, vaa: bytes | str) -> bool:
        """Return True if the VAA was already redeemed; False when unknown."""

    @abstractmethod
    async def get_foreign_asset(
        self, origin_chain: ChainId | int | str, origin_address: bytes
    ) -> str | None:
        """Return the local address of a wrapped foreign asset, or None."""

    @abstractmethod
    async def get_original_asset(self, token_address: str) -> WrappedAssetMeta:
        """Resolve the origin chain and address of a local token."""

    @abstractmethod
    async def is_wrapped_asset(self, token_address: str) -> bool:
        pass

    def derive_foreign_address(
        self,
        origin_chain: ChainId | int | str,
        origin_address: bytes,
        token_id: int | None = None,
    ) -> str | None:
        """Derive a wrapped-asset address without network access.

        Only families with deterministic wrapped addresses override this.
        """
        return None

    def _truncate_intent(self, intent: TransferIntent, decimals: int, asset: str) -> TransferIntent:
        """Drop the digits of ``intent`` that cannot travel on the wire."""
        amount = truncate_amount(intent.amount, decimals)
        fee = truncate_amount(intent.relayer_fee, decimals)
        if amount != intent.amount or fee != intent.relayer_fee:
            logger.warning(
                "Truncating transfer of %s on %s to 8 decimals (%s -> %s)",
                asset,
                self.chain.name,
                intent.amount,
                amount,
            )
        if amount == 0:
            raise ValidationError(
                "Amount is zero after truncation to 8 decimals",
                field="amount",
                value=intent.amount,
                details={"decimals": decimals},
            )
        return intent.with_amount(amount, relayer_fee=fee)
