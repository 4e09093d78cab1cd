"""Token bridge operations for EVM chains."""

from __future__ import annotations

import logging
from typing import Any

from web3 import AsyncWeb3, Web3

from ..base import TokenBridgeBase
from ..chains import ChainFamily, ChainId, origin_chain_id
from ..config import ChainConfig
from ..exceptions import AssetMismatchError, InvalidAddressError, ValidationError
from ..identity import native_address_to_bytes32
from ..types import TransferIntent, WrappedAssetMeta
from ..utils import to_bytes32, validate_nonce
from ..vaa import parse_token_transfer_vaa, parse_vaa
from . import abi
from .connections import ContractReader
from .transactions import EVMCall

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


def _checksum(address: str, field: str = "token_address") -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidAddressError(f"Invalid EVM {field}", chain="evm", address=address)
    return Web3.to_checksum_address(address)


class EVMTokenBridge(TokenBridgeBase):
    """Build single-call token bridge transactions for an EVM chain."""

    family = ChainFamily.EVM

    def __init__(
        self,
        chain: ChainId | int | str,
        token_bridge_address: str,
        web3: AsyncWeb3,
        *,
        wrapped_native_address: str | None = None,
        native_decimals: int = NATIVE_DECIMALS,
    ) -> None:
        super().__init__(chain)
        self.token_bridge_address = _checksum(token_bridge_address, "token bridge address")
        self._reader = ContractReader(web3)
        self._wrapped_native_address = (
            _checksum(wrapped_native_address, "wrapped native address")
            if wrapped_native_address
            else None
        )
        self._native_decimals = native_decimals

    @classmethod
    def from_config(
        cls, chain: ChainId | int | str, config: ChainConfig, connection: AsyncWeb3
    ) -> EVMTokenBridge:
        return cls(
            chain,
            config.token_bridge_address,
            connection,
            wrapped_native_address=config.wrapped_native_address,
        )

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    async def attest(
        self,
        token_address: str,
        *,
        signer: str,
        nonce: int | None = None,
        message_fee: int = 0,
    ) -> EVMCall:
        token = _checksum(token_address)
        call = EVMCall.build(
            self.token_bridge_address,
            abi.ATTEST_TOKEN,
            [token, validate_nonce(nonce)],
            value=message_fee,
        )
        logger.info("Built attest for %s on %s (signer=%s)", token, self.chain.name, signer)
        return call

    async def transfer_native(
        self, intent: TransferIntent, *, signer: str, nonce: int | None = None
    ) -> EVMCall:
        intent.validate()
        intent = self._truncate_intent(intent, self._native_decimals, "native")
        recipient_chain = int(intent.recipient_chain)

        if intent.payload is not None:
            call = EVMCall.build(
                self.token_bridge_address,
                abi.WRAP_AND_TRANSFER_ETH_WITH_PAYLOAD,
                [recipient_chain, intent.recipient_address, validate_nonce(nonce), intent.payload],
                value=intent.amount,
            )
        else:
            call = EVMCall.build(
                self.token_bridge_address,
                abi.WRAP_AND_TRANSFER_ETH,
                [
                    recipient_chain,
                    intent.recipient_address,
                    intent.relayer_fee,
                    validate_nonce(nonce),
                ],
                value=intent.amount,
            )

        logger.info(
            "Built native transfer on %s: amount=%s -> chain %s (signer=%s)",
            self.chain.name,
            intent.amount,
            recipient_chain,
            signer,
        )
        return call

    async def transfer_token(
        self,
        token_address: str,
        intent: TransferIntent,
        *,
        signer: str,
        nonce: int | None = None,
        **kwargs: Any,
    ) -> EVMCall:
        """Build ``transferTokens``; the bridge decides between lock and burn.

        The token allowance must already cover the amount (see ``approve_token``).
        """
        intent.validate()
        token = _checksum(token_address)
        (decimals,) = await self._reader.call(token, abi.DECIMALS)
        intent = self._truncate_intent(intent, int(decimals), token)
        recipient_chain = int(intent.recipient_chain)

        if intent.payload is not None:
            call = EVMCall.build(
                self.token_bridge_address,
                abi.TRANSFER_TOKENS_WITH_PAYLOAD,
                [
                    token,
                    intent.amount,
                    recipient_chain,
                    intent.recipient_address,
                    validate_nonce(nonce),
                    intent.payload,
                ],
            )
        else:
            call = EVMCall.build(
                self.token_bridge_address,
                abi.TRANSFER_TOKENS,
                [
                    token,
                    intent.amount,
                    recipient_chain,
                    intent.recipient_address,
                    intent.relayer_fee,
                    validate_nonce(nonce),
                ],
            )

        logger.info(
            "Built token transfer on %s: token=%s amount=%s -> chain %s (signer=%s)",
            self.chain.name,
            token,
            intent.amount,
            recipient_chain,
            signer,
        )
        return call

    async def redeem(self, vaa: bytes | str, *, signer: str) -> EVMCall:
        parsed = parse_token_transfer_vaa(vaa)
        self._ensure_destination(parsed.transfer.to_chain)
        return EVMCall.build(self.token_bridge_address, abi.COMPLETE_TRANSFER, [parsed.vaa.raw])

    async def redeem_and_unwrap(self, vaa: bytes | str, *, signer: str) -> EVMCall:
        parsed = parse_token_transfer_vaa(vaa)
        transfer = parsed.transfer
        self._ensure_destination(transfer.to_chain)

        wrapped_native = await self.wrapped_native_address()
        expected = native_address_to_bytes32(self.chain, wrapped_native)
        if transfer.token_chain != self.chain or transfer.token_address != expected:
            raise AssetMismatchError(
                "Transfer is not for the wrapped native asset",
                expected=expected.hex(),
                actual=transfer.token_address.hex(),
                details={"token_chain": transfer.token_chain},
            )

        return EVMCall.build(
            self.token_bridge_address, abi.COMPLETE_TRANSFER_AND_UNWRAP_ETH, [parsed.vaa.raw]
        )

    async def approve_token(self, token_address: str, amount: int) -> EVMCall:
        """Build the ERC-20 approval that lets the bridge pull ``amount``."""
        if amount < 0:
            raise ValidationError("Allowance cannot be negative", field="amount", value=amount)
        return EVMCall.build(
            _checksum(token_address), abi.APPROVE, [self.token_bridge_address, amount]
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def is_redeemed(self, vaa: bytes | str) -> bool:
        try:
            vaa_hash = parse_vaa(vaa).hash
            (completed,) = await self._reader.call(
                self.token_bridge_address, abi.IS_TRANSFER_COMPLETED, [vaa_hash]
            )
        except Exception as exc:
            logger.warning(
                "Redemption check failed on %s; assuming not redeemed: %s", self.chain.name, exc
            )
            return False
        return bool(completed)

    async def get_foreign_asset(
        self, origin_chain: ChainId | int | str, origin_address: bytes
    ) -> str | None:
        try:
            (address,) = await self._reader.call(
                self.token_bridge_address,
                abi.WRAPPED_ASSET,
                [int(origin_chain_id(origin_chain)), to_bytes32(origin_address)],
            )
        except Exception as exc:
            logger.debug("Foreign asset lookup failed on %s: %s", self.chain.name, exc)
            return None

        if int(address, 16) == 0:
            return None
        return Web3.to_checksum_address(address)

    async def is_wrapped_asset(self, token_address: str) -> bool:
        if not token_address:
            return False
        try:
            (wrapped,) = await self._reader.call(
                self.token_bridge_address, abi.IS_WRAPPED_ASSET, [_checksum(token_address)]
            )
        except Exception as exc:
            logger.debug("Wrapped asset lookup failed on %s: %s", self.chain.name, exc)
            return False
        return bool(wrapped)

    async def get_original_asset(self, token_address: str) -> WrappedAssetMeta:
        token = _checksum(token_address)
        if await self.is_wrapped_asset(token):
            (origin_chain,) = await self._reader.call(token, abi.TOKEN_CHAIN_ID)
            (origin_address,) = await self._reader.call(token, abi.NATIVE_CONTRACT)
            return WrappedAssetMeta(
                origin_chain=origin_chain_id(int(origin_chain)),
                origin_address=bytes(origin_address),
                is_wrapped=True,
            )

        return WrappedAssetMeta(
            origin_chain=self.chain,
            origin_address=native_address_to_bytes32(self.chain, token),
            is_wrapped=False,
        )

    async def get_allowance(self, token_address: str, owner: str) -> int:
        (allowance,) = await self._reader.call(
            _checksum(token_address),
            abi.ALLOWANCE,
            [_checksum(owner, "owner"), self.token_bridge_address],
        )
        return int(allowance)

    async def wrapped_native_address(self) -> str:
        """Return the wrapped native token (WETH-style) used by the bridge."""
        if self._wrapped_native_address is None:
            (weth,) = await self._reader.call(self.token_bridge_address, abi.WETH)
            return Web3.to_checksum_address(weth)
        return self._wrapped_native_address

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _ensure_destination(self, to_chain: int) -> None:
        if to_chain != self.chain:
            raise ValidationError(
                f"Transfer targets chain {to_chain}, not {self.chain.name}",
                field="to_chain",
                value=to_chain,
            )
