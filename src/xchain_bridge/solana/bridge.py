"""Token bridge operations for Solana."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from solders.hash import Hash
from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account
from solders.system_program import TransferParams as SystemTransferParams
from solders.system_program import transfer as system_transfer
from spl.token.constants import ACCOUNT_LEN, TOKEN_PROGRAM_ID, WRAPPED_SOL_MINT
from spl.token.instructions import (
    ApproveParams,
    CloseAccountParams,
    InitializeAccountParams,
    TransferParams,
    approve,
    close_account,
    get_associated_token_address,
    initialize_account,
    transfer,
)

from ..base import TokenBridgeBase
from ..chains import ChainFamily, ChainId, origin_chain_id
from ..config import ChainConfig
from ..constants import PayloadID
from ..exceptions import AssetMismatchError, NetworkError, ValidationError
from ..types import TransferIntent, WrappedAssetMeta
from ..utils import denormalize_amount, to_bytes32, validate_nonce
from ..vaa import TokenTransferVaa, parse_token_transfer_vaa, parse_vaa
from .accounts import (
    WrappedMeta,
    derive_authority_signer_key,
    derive_claim_key,
    derive_core_bridge_data_key,
    derive_fee_collector_key,
    derive_wrapped_meta_key,
    derive_wrapped_mint_key,
    parse_bridge_fee,
    parse_mint_decimals,
    to_pubkey,
)
from .instructions import (
    create_attest_token_instruction,
    create_complete_transfer_native_instruction,
    create_complete_transfer_wrapped_instruction,
    create_transfer_native_instruction,
    create_transfer_wrapped_instruction,
)
from .transactions import KeypairFactory, SolanaOperation, assemble, random_keypair

logger = logging.getLogger(__name__)


class SolanaConnection(Protocol):
    """Subset of ``solana.rpc.async_api.AsyncClient`` used by the builder."""

    async def get_latest_blockhash(self, commitment: Any = None) -> Any: ...

    async def get_account_info(self, pubkey: Pubkey, commitment: Any = None) -> Any: ...

    async def get_minimum_balance_for_rent_exemption(
        self, usize: int, commitment: Any = None
    ) -> Any: ...


class SolanaTokenBridge(TokenBridgeBase):
    """Build atomic multi-instruction token bridge transactions for Solana.

    Ephemeral message and ancillary accounts come from ``keypair_factory`` so
    callers (and tests) control key generation.
    """

    family = ChainFamily.SOLANA

    def __init__(
        self,
        chain: ChainId | int | str,
        core_bridge_address: str,
        token_bridge_address: str,
        connection: SolanaConnection,
        *,
        keypair_factory: KeypairFactory | None = None,
        commitment: Any = None,
        native_mint: str | Pubkey = WRAPPED_SOL_MINT,
    ) -> None:
        super().__init__(chain)
        self.core_bridge = to_pubkey(core_bridge_address, field="core bridge address")
        self.token_bridge = to_pubkey(token_bridge_address, field="token bridge address")
        self.native_mint = to_pubkey(native_mint, field="native mint")
        self._connection = connection
        self._new_keypair = keypair_factory or random_keypair
        self._commitment = commitment

    @classmethod
    def from_config(
        cls,
        chain: ChainId | int | str,
        config: ChainConfig,
        connection: SolanaConnection,
        *,
        keypair_factory: KeypairFactory | None = None,
    ) -> SolanaTokenBridge:
        if not config.core_bridge_address:
            raise ValidationError(
                "core_bridge_address is required for Solana", field="core_bridge_address"
            )
        options: dict[str, Any] = {
            "keypair_factory": keypair_factory,
            "commitment": config.commitment,
        }
        if config.wrapped_native_address:
            options["native_mint"] = config.wrapped_native_address
        return cls(
            chain, config.core_bridge_address, config.token_bridge_address, connection, **options
        )

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    async def attest(
        self, token_address: str, *, signer: str, nonce: int | None = None
    ) -> SolanaOperation:
        payer = to_pubkey(signer, field="payer")
        mint = to_pubkey(token_address, field="mint")
        nonce = validate_nonce(nonce)

        bridge_data = await self._require_account(derive_core_bridge_data_key(self.core_bridge))
        fee = parse_bridge_fee(bridge_data)
        logger.debug("Stage attest [%s]: bridge fee=%s", mint, fee)

        message = self._new_keypair()
        steps = [
            ("bridge_fee", self._fee_transfer(payer, fee)),
            (
                "attest_token",
                create_attest_token_instruction(
                    self.token_bridge, self.core_bridge, payer, mint, message.pubkey(), nonce
                ),
            ),
        ]
        return assemble(steps, payer, await self._recent_blockhash(), [message])

    async def transfer_native(
        self, intent: TransferIntent, *, signer: str, nonce: int | None = None
    ) -> SolanaOperation:
        """Wrap lamports in an ephemeral token account and bridge them.

        create-account, fund, initialize, approve, bridge transfer and
        close-account always travel in this one transaction, so a failure
        cannot strand lamports in the ephemeral account.
        """
        intent.validate()
        payer = to_pubkey(signer, field="payer")
        nonce = validate_nonce(nonce)

        decimals = await self._mint_decimals(self.native_mint)
        intent = self._truncate_intent(intent, decimals, "native")
        rent = await self._rent_exempt_balance()

        ancillary = self._new_keypair()
        message = self._new_keypair()
        account = ancillary.pubkey()
        logger.debug(
            "Stage transfer_native: ancillary=%s message=%s amount=%s",
            account,
            message.pubkey(),
            intent.amount,
        )

        steps = [
            ("create_account", self._create_token_account(payer, account, rent)),
            (
                "fund_transfer",
                system_transfer(
                    SystemTransferParams(
                        from_pubkey=payer, to_pubkey=account, lamports=intent.amount
                    )
                ),
            ),
            ("initialize_account", self._initialize_native_account(account, payer)),
            ("approve", self._approve(account, payer, intent.amount)),
            (
                "bridge_transfer",
                create_transfer_native_instruction(
                    self.token_bridge,
                    self.core_bridge,
                    payer,
                    message.pubkey(),
                    account,
                    self.native_mint,
                    nonce,
                    intent.amount,
                    intent.relayer_fee,
                    intent.recipient_address,
                    int(intent.recipient_chain),
                    intent.payload,
                ),
            ),
            ("close_account", self._close_account(account, payer)),
        ]
        return assemble(steps, payer, await self._recent_blockhash(), [message, ancillary])

    async def transfer_token(
        self,
        token_address: str,
        intent: TransferIntent,
        *,
        signer: str,
        nonce: int | None = None,
        source_account: str | None = None,
        owner: str | None = None,
        origin_chain: ChainId | int | str | None = None,
        origin_address: bytes | None = None,
        **kwargs: Any,
    ) -> SolanaOperation:
        """Approve the bridge and lock (native mint) or burn (wrapped mint) tokens.

        ``source_account`` defaults to the owner's associated token account and
        the origin is read from the wrapped-meta account when not supplied.
        """
        intent.validate()
        payer = to_pubkey(signer, field="payer")
        mint = to_pubkey(token_address, field="mint")
        from_owner = to_pubkey(owner, field="owner") if owner else payer
        from_account = (
            to_pubkey(source_account, field="source account")
            if source_account
            else get_associated_token_address(from_owner, mint)
        )
        nonce = validate_nonce(nonce)

        token_chain, origin = await self._resolve_origin(mint, origin_chain, origin_address)
        decimals = await self._mint_decimals(mint)
        intent = self._truncate_intent(intent, decimals, str(mint))

        message = self._new_keypair()
        if token_chain is ChainId.SOLANA:
            logger.debug("Stage transfer_token [%s]: lock native token", mint)
            bridge_ix = create_transfer_native_instruction(
                self.token_bridge,
                self.core_bridge,
                payer,
                message.pubkey(),
                from_account,
                mint,
                nonce,
                intent.amount,
                intent.relayer_fee,
                intent.recipient_address,
                int(intent.recipient_chain),
                intent.payload,
            )
        else:
            logger.debug(
                "Stage transfer_token [%s]: burn wrapped token from chain %s", mint, token_chain
            )
            bridge_ix = create_transfer_wrapped_instruction(
                self.token_bridge,
                self.core_bridge,
                payer,
                message.pubkey(),
                from_account,
                from_owner,
                int(token_chain),
                origin,
                nonce,
                intent.amount,
                intent.relayer_fee,
                intent.recipient_address,
                int(intent.recipient_chain),
                intent.payload,
            )

        steps = [
            ("approve", self._approve(from_account, from_owner, intent.amount)),
            ("bridge_transfer", bridge_ix),
        ]
        return assemble(steps, payer, await self._recent_blockhash(), [message])

    async def redeem(
        self, vaa: bytes | str, *, signer: str, fee_recipient: str | None = None
    ) -> SolanaOperation:
        """Complete a transfer whose VAA was already posted to the core bridge."""
        payer = to_pubkey(signer, field="payer")
        parsed = self._parse_redeemable(vaa)
        fee_account = to_pubkey(fee_recipient, field="fee recipient") if fee_recipient else None

        if parsed.transfer.token_chain == ChainId.SOLANA:
            label = "complete_transfer_native"
            ix = create_complete_transfer_native_instruction(
                self.token_bridge, self.core_bridge, payer, parsed.vaa, parsed.transfer, fee_account
            )
        else:
            label = "complete_transfer_wrapped"
            ix = create_complete_transfer_wrapped_instruction(
                self.token_bridge, self.core_bridge, payer, parsed.vaa, parsed.transfer, fee_account
            )
        return assemble([(label, ix)], payer, await self._recent_blockhash())

    async def redeem_and_unwrap(self, vaa: bytes | str, *, signer: str) -> SolanaOperation:
        """Complete a wrapped-SOL transfer and unwrap it to lamports in one transaction."""
        payer = to_pubkey(signer, field="payer")
        parsed = self._parse_redeemable(vaa)
        transfer_payload = parsed.transfer

        if (
            transfer_payload.token_chain != ChainId.SOLANA
            or transfer_payload.token_address != bytes(self.native_mint)
        ):
            raise AssetMismatchError(
                "Transfer is not for the native mint",
                expected=str(self.native_mint),
                actual=transfer_payload.token_address.hex(),
                details={"token_chain": transfer_payload.token_chain},
            )

        decimals = await self._mint_decimals(self.native_mint)
        target_amount = denormalize_amount(transfer_payload.amount, decimals)
        rent = await self._rent_exempt_balance()
        target = Pubkey.from_bytes(transfer_payload.to)

        ancillary = self._new_keypair()
        account = ancillary.pubkey()
        logger.debug(
            "Stage redeem_and_unwrap: ancillary=%s wire_amount=%s native_amount=%s",
            account,
            transfer_payload.amount,
            target_amount,
        )

        steps = [
            (
                "complete_transfer_native",
                create_complete_transfer_native_instruction(
                    self.token_bridge, self.core_bridge, payer, parsed.vaa, transfer_payload
                ),
            ),
            ("create_account", self._create_token_account(payer, account, rent)),
            ("initialize_account", self._initialize_native_account(account, payer)),
            (
                "balance_transfer",
                transfer(
                    TransferParams(
                        program_id=TOKEN_PROGRAM_ID,
                        source=target,
                        dest=account,
                        owner=payer,
                        amount=target_amount,
                    )
                ),
            ),
            ("close_account", self._close_account(account, payer)),
        ]
        return assemble(steps, payer, await self._recent_blockhash(), [ancillary])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def is_redeemed(self, vaa: bytes | str) -> bool:
        """A claim account exists only after a successful redemption."""
        try:
            parsed = parse_vaa(vaa)
            claim = derive_claim_key(
                self.token_bridge, parsed.emitter_address, parsed.emitter_chain, parsed.sequence
            )
            response = await self._connection.get_account_info(claim, commitment=self._commitment)
        except Exception as exc:
            logger.warning("Redemption check failed on Solana; assuming not redeemed: %s", exc)
            return False
        return response.value is not None

    async def get_foreign_asset(
        self, origin_chain: ChainId | int | str, origin_address: bytes
    ) -> str | None:
        try:
            mint = derive_wrapped_mint_key(
                self.token_bridge, origin_chain_id(origin_chain), to_bytes32(origin_address)
            )
        except ValidationError as exc:
            logger.debug("Foreign asset lookup failed on Solana: %s", exc)
            return None

        meta = await self._wrapped_meta(mint)
        return str(mint) if meta is not None else None

    async def is_wrapped_asset(self, token_address: str) -> bool:
        if not token_address:
            return False
        try:
            mint = to_pubkey(token_address, field="mint")
        except ValidationError:
            return False
        return await self._wrapped_meta(mint) is not None

    async def get_original_asset(self, token_address: str) -> WrappedAssetMeta:
        try:
            mint = to_pubkey(token_address, field="mint")
        except ValidationError:
            return WrappedAssetMeta(
                origin_chain=ChainId.SOLANA, origin_address=bytes(32), is_wrapped=False
            )

        meta = await self._wrapped_meta(mint)
        if meta is None:
            return WrappedAssetMeta(
                origin_chain=ChainId.SOLANA, origin_address=bytes(mint), is_wrapped=False
            )
        return WrappedAssetMeta(
            origin_chain=origin_chain_id(meta.chain),
            origin_address=meta.token_address,
            is_wrapped=True,
        )

    def derive_foreign_address(
        self,
        origin_chain: ChainId | int | str,
        origin_address: bytes,
        token_id: int | None = None,
    ) -> str:
        mint = derive_wrapped_mint_key(
            self.token_bridge, origin_chain_id(origin_chain), to_bytes32(origin_address), token_id
        )
        return str(mint)

    # ------------------------------------------------------------------
    # Instruction helpers
    # ------------------------------------------------------------------
    def _create_token_account(self, payer: Pubkey, account: Pubkey, rent: int) -> Instruction:
        return create_account(
            CreateAccountParams(
                from_pubkey=payer,
                to_pubkey=account,
                lamports=rent,
                space=ACCOUNT_LEN,
                owner=TOKEN_PROGRAM_ID,
            )
        )

    def _initialize_native_account(self, account: Pubkey, owner: Pubkey) -> Instruction:
        return initialize_account(
            InitializeAccountParams(
                program_id=TOKEN_PROGRAM_ID, account=account, mint=self.native_mint, owner=owner
            )
        )

    def _approve(self, account: Pubkey, owner: Pubkey, amount: int) -> Instruction:
        return approve(
            ApproveParams(
                program_id=TOKEN_PROGRAM_ID,
                source=account,
                delegate=derive_authority_signer_key(self.token_bridge),
                owner=owner,
                amount=amount,
            )
        )

    def _close_account(self, account: Pubkey, owner: Pubkey) -> Instruction:
        # Residual lamports (rent and any dust) return to the owner
        return close_account(
            CloseAccountParams(
                program_id=TOKEN_PROGRAM_ID, account=account, dest=owner, owner=owner
            )
        )

    def _fee_transfer(self, payer: Pubkey, fee: int) -> Instruction:
        return system_transfer(
            SystemTransferParams(
                from_pubkey=payer,
                to_pubkey=derive_fee_collector_key(self.core_bridge),
                lamports=fee,
            )
        )

    # ------------------------------------------------------------------
    # Network helpers
    # ------------------------------------------------------------------
    def _parse_redeemable(self, vaa: bytes | str) -> TokenTransferVaa:
        parsed = parse_token_transfer_vaa(vaa)
        if parsed.transfer.to_chain != ChainId.SOLANA:
            raise ValidationError(
                f"Transfer targets chain {parsed.transfer.to_chain}, not SOLANA",
                field="to_chain",
                value=parsed.transfer.to_chain,
            )
        if parsed.transfer.payload_type is PayloadID.TRANSFER_WITH_PAYLOAD:
            raise ValidationError(
                "Transfers with payload must be redeemed by the recipient program",
                field="payload_type",
                value=int(parsed.transfer.payload_type),
            )
        return parsed

    async def _resolve_origin(
        self,
        mint: Pubkey,
        origin_chain: ChainId | int | str | None,
        origin_address: bytes | None,
    ) -> tuple[ChainId | int, bytes]:
        if origin_chain is not None:
            chain_id = origin_chain_id(origin_chain)
            if chain_id is ChainId.SOLANA:
                return chain_id, bytes(mint)
            if origin_address is None:
                raise ValidationError(
                    "origin_address is required when origin_chain is not Solana",
                    field="origin_address",
                )
            return chain_id, to_bytes32(origin_address, field="origin_address")

        meta = await self._wrapped_meta(mint)
        if meta is None:
            return ChainId.SOLANA, bytes(mint)
        return origin_chain_id(meta.chain), meta.token_address

    async def _wrapped_meta(self, mint: Pubkey) -> WrappedMeta | None:
        meta_key = derive_wrapped_meta_key(self.token_bridge, mint)
        try:
            response = await self._connection.get_account_info(
                meta_key, commitment=self._commitment
            )
            if response.value is None:
                return None
            return WrappedMeta.deserialize(bytes(response.value.data))
        except Exception as exc:
            logger.debug("Wrapped meta lookup for %s failed: %s", mint, exc)
            return None

    async def _require_account(self, address: Pubkey) -> bytes:
        try:
            response = await self._connection.get_account_info(address, commitment=self._commitment)
        except Exception as exc:
            raise NetworkError(
                "Failed to fetch Solana account", endpoint=str(address), details={"error": str(exc)}
            ) from exc

        if response.value is None:
            raise ValidationError(
                "Solana account does not exist", field="account", value=str(address)
            )
        return bytes(response.value.data)

    async def _mint_decimals(self, mint: Pubkey) -> int:
        return parse_mint_decimals(await self._require_account(mint))

    async def _rent_exempt_balance(self) -> int:
        try:
            response = await self._connection.get_minimum_balance_for_rent_exemption(
                ACCOUNT_LEN, commitment=self._commitment
            )
        except Exception as exc:
            raise NetworkError(
                "Failed to fetch rent-exempt balance", details={"error": str(exc)}
            ) from exc
        return int(response.value)

    async def _recent_blockhash(self) -> Hash:
        try:
            response = await self._connection.get_latest_blockhash(commitment=self._commitment)
        except Exception as exc:
            raise NetworkError(
                "Failed to fetch latest blockhash", details={"error": str(exc)}
            ) from exc
        return response.value.blockhash

