"""Instruction encoders for the Solana token bridge program.

Instruction data is Borsh: a one-byte instruction index followed by
little-endian fields.
"""

from __future__ import annotations

import struct
from enum import IntEnum

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID
from solders.sysvar import CLOCK, RENT
from spl.token.constants import TOKEN_PROGRAM_ID

from ..exceptions import ValidationError
from ..vaa import SignedVaa, TokenTransfer
from .accounts import (
    derive_authority_signer_key,
    derive_claim_key,
    derive_core_bridge_data_key,
    derive_custody_key,
    derive_custody_signer_key,
    derive_emitter_key,
    derive_endpoint_key,
    derive_fee_collector_key,
    derive_mint_authority_key,
    derive_posted_vaa_key,
    derive_sequence_key,
    derive_spl_metadata_key,
    derive_token_bridge_config_key,
    derive_wrapped_meta_key,
    derive_wrapped_mint_key,
)


class TokenBridgeInstruction(IntEnum):
    INITIALIZE = 0
    ATTEST_TOKEN = 1
    COMPLETE_NATIVE = 2
    COMPLETE_WRAPPED = 3
    TRANSFER_WRAPPED = 4
    TRANSFER_NATIVE = 5
    REGISTER_CHAIN = 6
    CREATE_WRAPPED = 7
    UPGRADE_CONTRACT = 8
    COMPLETE_NATIVE_WITH_PAYLOAD = 9
    COMPLETE_WRAPPED_WITH_PAYLOAD = 10
    TRANSFER_WRAPPED_WITH_PAYLOAD = 11
    TRANSFER_NATIVE_WITH_PAYLOAD = 12


def _meta(pubkey: Pubkey, *, signer: bool = False, writable: bool = False) -> AccountMeta:
    return AccountMeta(pubkey=pubkey, is_signer=signer, is_writable=writable)


def _target(target_address: bytes) -> bytes:
    if len(target_address) != 32:
        raise ValidationError(
            "Target address must be 32 bytes", field="target_address", value=target_address
        )
    return bytes(target_address)


def _transfer_data(
    index: TokenBridgeInstruction,
    nonce: int,
    amount: int,
    fee: int,
    target_address: bytes,
    target_chain: int,
) -> bytes:
    return (
        struct.pack("<BIQQ", index, nonce, amount, fee)
        + _target(target_address)
        + struct.pack("<H", target_chain)
    )


def _transfer_with_payload_data(
    index: TokenBridgeInstruction,
    nonce: int,
    amount: int,
    target_address: bytes,
    target_chain: int,
    payload: bytes,
) -> bytes:
    return (
        struct.pack("<BIQ", index, nonce, amount)
        + _target(target_address)
        + struct.pack("<HI", target_chain, len(payload))
        + bytes(payload)
        + b"\x00"  # cpi_program_id: None
    )


def _message_accounts(
    core_bridge: Pubkey, token_bridge: Pubkey, message: Pubkey
) -> list[AccountMeta]:
    emitter = derive_emitter_key(token_bridge)
    return [
        _meta(derive_core_bridge_data_key(core_bridge), writable=True),
        _meta(message, signer=True, writable=True),
        _meta(emitter),
        _meta(derive_sequence_key(core_bridge, emitter), writable=True),
        _meta(derive_fee_collector_key(core_bridge), writable=True),
        _meta(CLOCK),
    ]


def create_attest_token_instruction(
    token_bridge: Pubkey,
    core_bridge: Pubkey,
    payer: Pubkey,
    mint: Pubkey,
    message: Pubkey,
    nonce: int,
) -> Instruction:
    accounts = [
        _meta(payer, signer=True, writable=True),
        _meta(derive_token_bridge_config_key(token_bridge), writable=True),
        _meta(mint),
        _meta(derive_wrapped_meta_key(token_bridge, mint)),
        _meta(derive_spl_metadata_key(mint)),
        *_message_accounts(core_bridge, token_bridge, message),
        _meta(RENT),
        _meta(SYS_PROGRAM_ID),
        _meta(core_bridge),
    ]
    data = struct.pack("<BI", TokenBridgeInstruction.ATTEST_TOKEN, nonce)
    return Instruction(token_bridge, data, accounts)


def create_transfer_native_instruction(
    token_bridge: Pubkey,
    core_bridge: Pubkey,
    payer: Pubkey,
    message: Pubkey,
    from_account: Pubkey,
    mint: Pubkey,
    nonce: int,
    amount: int,
    fee: int,
    target_address: bytes,
    target_chain: int,
    payload: bytes | None = None,
) -> Instruction:
    """Lock a Solana-native token in custody and publish a transfer message."""
    accounts = [
        _meta(payer, signer=True, writable=True),
        _meta(derive_token_bridge_config_key(token_bridge)),
        _meta(from_account, writable=True),
        _meta(mint, writable=True),
        _meta(derive_custody_key(token_bridge, mint), writable=True),
        _meta(derive_authority_signer_key(token_bridge)),
        _meta(derive_custody_signer_key(token_bridge)),
        *_message_accounts(core_bridge, token_bridge, message),
    ]
    if payload is None:
        data = _transfer_data(
            TokenBridgeInstruction.TRANSFER_NATIVE, nonce, amount, fee, target_address, target_chain
        )
    else:
        accounts.append(_meta(payer, signer=True))
        data = _transfer_with_payload_data(
            TokenBridgeInstruction.TRANSFER_NATIVE_WITH_PAYLOAD,
            nonce,
            amount,
            target_address,
            target_chain,
            payload,
        )
    accounts += [_meta(RENT), _meta(SYS_PROGRAM_ID), _meta(core_bridge), _meta(TOKEN_PROGRAM_ID)]
    return Instruction(token_bridge, data, accounts)


def create_transfer_wrapped_instruction(
    token_bridge: Pubkey,
    core_bridge: Pubkey,
    payer: Pubkey,
    message: Pubkey,
    from_account: Pubkey,
    from_owner: Pubkey,
    origin_chain: int,
    origin_address: bytes,
    nonce: int,
    amount: int,
    fee: int,
    target_address: bytes,
    target_chain: int,
    payload: bytes | None = None,
) -> Instruction:
    """Burn a wrapped token and publish a transfer message."""
    mint = derive_wrapped_mint_key(token_bridge, origin_chain, origin_address)
    accounts = [
        _meta(payer, signer=True, writable=True),
        _meta(derive_token_bridge_config_key(token_bridge)),
        _meta(from_account, writable=True),
        _meta(from_owner),
        _meta(mint, writable=True),
        _meta(derive_wrapped_meta_key(token_bridge, mint)),
        _meta(derive_authority_signer_key(token_bridge)),
        *_message_accounts(core_bridge, token_bridge, message),
    ]
    if payload is None:
        data = _transfer_data(
            TokenBridgeInstruction.TRANSFER_WRAPPED,
            nonce,
            amount,
            fee,
            target_address,
            target_chain,
        )
    else:
        accounts.append(_meta(payer, signer=True))
        data = _transfer_with_payload_data(
            TokenBridgeInstruction.TRANSFER_WRAPPED_WITH_PAYLOAD,
            nonce,
            amount,
            target_address,
            target_chain,
            payload,
        )
    accounts += [_meta(RENT), _meta(SYS_PROGRAM_ID), _meta(core_bridge), _meta(TOKEN_PROGRAM_ID)]
    return Instruction(token_bridge, data, accounts)


def _complete_prefix(
    token_bridge: Pubkey,
    core_bridge: Pubkey,
    payer: Pubkey,
    vaa: SignedVaa,
    transfer: TokenTransfer,
    fee_recipient: Pubkey | None,
) -> list[AccountMeta]:
    to = Pubkey.from_bytes(transfer.to)
    return [
        _meta(payer, signer=True, writable=True),
        _meta(derive_token_bridge_config_key(token_bridge)),
        _meta(derive_posted_vaa_key(core_bridge, vaa.digest)),
        _meta(
            derive_claim_key(token_bridge, vaa.emitter_address, vaa.emitter_chain, vaa.sequence),
            writable=True,
        ),
        _meta(derive_endpoint_key(token_bridge, vaa.emitter_chain, vaa.emitter_address)),
        _meta(to, writable=True),
        _meta(fee_recipient or to, writable=True),
    ]


def create_complete_transfer_native_instruction(
    token_bridge: Pubkey,
    core_bridge: Pubkey,
    payer: Pubkey,
    vaa: SignedVaa,
    transfer: TokenTransfer,
    fee_recipient: Pubkey | None = None,
) -> Instruction:
    """Release a Solana-native token from custody against a posted VAA."""
    mint = Pubkey.from_bytes(transfer.token_address)
    accounts = _complete_prefix(token_bridge, core_bridge, payer, vaa, transfer, fee_recipient)
    accounts += [
        _meta(derive_custody_key(token_bridge, mint), writable=True),
        _meta(mint),
        _meta(derive_custody_signer_key(token_bridge)),
        _meta(RENT),
        _meta(SYS_PROGRAM_ID),
        _meta(TOKEN_PROGRAM_ID),
        _meta(core_bridge),
    ]
    data = bytes([TokenBridgeInstruction.COMPLETE_NATIVE])
    return Instruction(token_bridge, data, accounts)


def create_complete_transfer_wrapped_instruction(
    token_bridge: Pubkey,
    core_bridge: Pubkey,
    payer: Pubkey,
    vaa: SignedVaa,
    transfer: TokenTransfer,
    fee_recipient: Pubkey | None = None,
) -> Instruction:
    """Mint the wrapped representation of a foreign token against a posted VAA."""
    mint = derive_wrapped_mint_key(token_bridge, transfer.token_chain, transfer.token_address)
    accounts = _complete_prefix(token_bridge, core_bridge, payer, vaa, transfer, fee_recipient)
    accounts += [
        _meta(mint, writable=True),
        _meta(derive_wrapped_meta_key(token_bridge, mint)),
        _meta(derive_mint_authority_key(token_bridge)),
        _meta(RENT),
        _meta(SYS_PROGRAM_ID),
        _meta(TOKEN_PROGRAM_ID),
        _meta(core_bridge),
    ]
    data = bytes([TokenBridgeInstruction.COMPLETE_WRAPPED])
    return Instruction(token_bridge, data, accounts)
