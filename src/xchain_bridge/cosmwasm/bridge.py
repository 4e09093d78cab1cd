"""Token bridge operations for CosmWasm chains."""

from __future__ import annotations

import base64
import logging
from typing import Any

from ..base import TokenBridgeBase
from ..chains import (
    ChainFamily,
    ChainId,
    cosmwasm_chain_info,
    is_native_denom,
    origin_chain_id,
)
from ..config import ChainConfig
from ..exceptions import AssetMismatchError, NetworkError, ValidationError
from ..identity import build_cosmwasm_token_id
from ..types import TransferIntent, WrappedAssetMeta
from ..utils import ensure_bytes, to_bytes32, validate_nonce
from ..vaa import parse_token_transfer_vaa
from .client import CosmWasmConnection
from .messages import Coin, CosmWasmOperation, ExecuteMsg

logger = logging.getLogger(__name__)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class CosmWasmTokenBridge(TokenBridgeBase):
    """Build ordered contract-execution messages for a CosmWasm chain.

    Queries go through ``connection.query_contract_smart``; see
    :class:`~xchain_bridge.cosmwasm.client.LCDClient`.
    """

    family = ChainFamily.COSMWASM

    def __init__(
        self,
        chain: ChainId | int | str,
        token_bridge_address: str,
        connection: CosmWasmConnection,
    ) -> None:
        super().__init__(chain)
        if not token_bridge_address:
            raise ValidationError("Token bridge address is required", field="token_bridge_address")
        self.token_bridge_address = token_bridge_address
        self.info = cosmwasm_chain_info(self.chain)
        self._connection = connection

    @classmethod
    def from_config(
        cls, chain: ChainId | int | str, config: ChainConfig, connection: CosmWasmConnection
    ) -> CosmWasmTokenBridge:
        return cls(chain, config.token_bridge_address, connection)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    async def attest(
        self, token_address: str, *, signer: str, nonce: int | None = None
    ) -> CosmWasmOperation:
        build_cosmwasm_token_id(self.chain, token_address)
        message = ExecuteMsg(
            sender=signer,
            contract=self.token_bridge_address,
            msg={
                "create_asset_meta": {
                    "asset_info": self._asset_info(token_address),
                    "nonce": validate_nonce(nonce),
                }
            },
        )
        logger.info("Built attest for %s on %s", token_address, self.chain.name)
        return CosmWasmOperation((message,))

    async def transfer_native(
        self, intent: TransferIntent, *, signer: str, nonce: int | None = None
    ) -> CosmWasmOperation:
        return await self.transfer_token(
            self.info.native_denom, intent, signer=signer, nonce=nonce
        )

    async def transfer_token(
        self,
        token_address: str,
        intent: TransferIntent,
        *,
        signer: str,
        nonce: int | None = None,
        **kwargs: Any,
    ) -> CosmWasmOperation:
        """Deposit a native denom or raise a CW20 allowance, then initiate the transfer."""
        intent.validate()
        build_cosmwasm_token_id(self.chain, token_address)
        decimals = await self.get_decimals(token_address)
        intent = self._truncate_intent(intent, decimals, token_address)
        amount = str(intent.amount)
        native = is_native_denom(self.chain, token_address)

        if native:
            logger.debug("Stage transfer_token [%s]: deposit_tokens", token_address)
            first = ExecuteMsg(
                sender=signer,
                contract=self.token_bridge_address,
                msg={"deposit_tokens": {}},
                funds=(Coin(denom=token_address, amount=amount),),
            )
        else:
            logger.debug("Stage transfer_token [%s]: increase_allowance", token_address)
            first = ExecuteMsg(
                sender=signer,
                contract=token_address,
                msg={
                    "increase_allowance": {
                        "spender": self.token_bridge_address,
                        "amount": amount,
                        "expires": {"never": {}},
                    }
                },
            )

        body: dict[str, Any] = {
            "asset": {"amount": amount, "info": self._asset_info(token_address)},
            "recipient_chain": int(intent.recipient_chain),
            "recipient": _b64(intent.recipient_address),
            "fee": str(intent.relayer_fee),
            "nonce": validate_nonce(nonce),
        }
        if intent.payload is not None:
            body["payload"] = _b64(intent.payload)
            action = "initiate_transfer_with_payload"
        else:
            action = "initiate_transfer"

        second = ExecuteMsg(sender=signer, contract=self.token_bridge_address, msg={action: body})
        logger.info(
            "Built %s on %s: token=%s amount=%s -> chain %s",
            action,
            self.chain.name,
            token_address,
            amount,
            int(intent.recipient_chain),
        )
        return CosmWasmOperation((first, second))

    async def redeem(self, vaa: bytes | str, *, signer: str) -> CosmWasmOperation:
        parsed = parse_token_transfer_vaa(vaa)
        self._ensure_destination(parsed.transfer.to_chain)
        return CosmWasmOperation((self._submit_vaa(parsed.vaa.raw, signer),))

    async def redeem_and_unwrap(self, vaa: bytes | str, *, signer: str) -> CosmWasmOperation:
        """Redeem a transfer of the chain's native denom.

        The bridge releases native denoms directly, so the message is the same
        ``submit_vaa``; only the asset check differs.
        """
        parsed = parse_token_transfer_vaa(vaa)
        transfer = parsed.transfer
        self._ensure_destination(transfer.to_chain)

        expected = build_cosmwasm_token_id(self.chain, self.info.native_denom)
        if transfer.token_chain != self.chain or transfer.token_address != expected:
            raise AssetMismatchError(
                f"Transfer is not for the native denom {self.info.native_denom}",
                expected=expected.hex(),
                actual=transfer.token_address.hex(),
                details={"token_chain": transfer.token_chain},
            )
        return CosmWasmOperation((self._submit_vaa(parsed.vaa.raw, signer),))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def is_redeemed(self, vaa: bytes | str) -> bool:
        try:
            result = await self._connection.query_contract_smart(
                self.token_bridge_address,
                {"is_vaa_redeemed": {"vaa": _b64(ensure_bytes(vaa))}},
            )
            return bool(result["is_redeemed"])
        except Exception as exc:
            logger.warning(
                "Redemption check failed on %s; assuming not redeemed: %s", self.chain.name, exc
            )
            return False

    async def get_foreign_asset(
        self, origin_chain: ChainId | int | str, origin_address: bytes
    ) -> str | None:
        try:
            result = await self._connection.query_contract_smart(
                self.token_bridge_address,
                {
                    "wrapped_registry": {
                        "chain": int(origin_chain_id(origin_chain)),
                        "address": _b64(to_bytes32(origin_address)),
                    }
                },
            )
            return result["address"] or None
        except Exception as exc:
            logger.debug("Foreign asset lookup failed on %s: %s", self.chain.name, exc)
            return None

    async def is_wrapped_asset(self, token_address: str) -> bool:
        if not token_address or is_native_denom(self.chain, token_address):
            return False
        return await self._wrapped_asset_info(token_address) is not None

    async def get_original_asset(self, token_address: str) -> WrappedAssetMeta:
        native_meta = WrappedAssetMeta(
            origin_chain=self.chain,
            origin_address=build_cosmwasm_token_id(self.chain, token_address),
            is_wrapped=False,
        )
        if is_native_denom(self.chain, token_address):
            return native_meta

        info = await self._wrapped_asset_info(token_address)
        if info is None:
            return native_meta
        return WrappedAssetMeta(
            origin_chain=origin_chain_id(int(info["asset_chain"])),
            origin_address=base64.b64decode(info["asset_address"]),
            is_wrapped=True,
        )

    async def get_decimals(self, token_address: str) -> int:
        """Decimals of a native denom (static) or a CW20 token (``token_info``)."""
        if is_native_denom(self.chain, token_address):
            return self.info.native_decimals

        try:
            result = await self._connection.query_contract_smart(token_address, {"token_info": {}})
            return int(result["decimals"])
        except NetworkError:
            raise
        except Exception as exc:
            raise NetworkError(
                "Failed to read CW20 decimals",
                endpoint=token_address,
                details={"error": str(exc)},
            ) from exc

    async def resolve_external_id(self, external_id: bytes | str) -> str | None:
        """Map a 32-byte token identity back to a native denom or contract address."""
        try:
            result = await self._connection.query_contract_smart(
                self.token_bridge_address,
                {"external_id": {"external_id": _b64(to_bytes32(ensure_bytes(external_id)))}},
            )
        except Exception as exc:
            logger.debug("External id lookup failed on %s: %s", self.chain.name, exc)
            return None
        return _find_native_id(result)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _asset_info(self, token_address: str) -> dict[str, Any]:
        if is_native_denom(self.chain, token_address):
            return {"native_token": {"denom": token_address}}
        return {"token": {"contract_addr": token_address}}

    def _submit_vaa(self, raw: bytes, signer: str) -> ExecuteMsg:
        return ExecuteMsg(
            sender=signer,
            contract=self.token_bridge_address,
            msg={"submit_vaa": {"data": _b64(raw)}},
        )

    async def _wrapped_asset_info(self, token_address: str) -> dict[str, Any] | None:
        try:
            result = await self._connection.query_contract_smart(
                token_address, {"wrapped_asset_info": {}}
            )
        except Exception as exc:
            logger.debug("wrapped_asset_info failed for %s: %s", token_address, exc)
            return None
        if not isinstance(result, dict) or "asset_chain" not in result:
            return None
        return result

    def _ensure_destination(self, to_chain: int) -> None:
        if to_chain != self.chain:
            raise ValidationError(
                f"Transfer targets chain {to_chain}, not {self.chain.name}",
                field="to_chain",
                value=to_chain,
            )


def _find_native_id(node: Any) -> str | None:
    # Responses nest the id as {"token_id": {"bank": {"denom": ...}}} or
    # {"token_id": {"contract": {"native_c_w20": {"contract_address": ...}}}}
    if isinstance(node, dict):
        for key in ("denom", "contract_address"):
            if isinstance(node.get(key), str):
                return node[key]
        for value in node.values():
            found = _find_native_id(value)
            if found is not None:
                return found
    return None
