from __future__ import annotations

from types import SimpleNamespace
from typing import Any, cast

import pytest
from eth_abi import encode as abi_encode
from web3 import AsyncWeb3, Web3

from xchain_bridge.chains import ChainId
from xchain_bridge.evm import abi
from xchain_bridge.evm.bridge import EVMTokenBridge
from xchain_bridge.exceptions import AssetMismatchError, NetworkError, ValidationError
from xchain_bridge.types import TransferIntent

TOKEN_BRIDGE = "0x3ee18b2214aff97000d974cf647e7c347e8fa585"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
SENDER = "0x00000000000000000000000000000000000000aa"
RECIPIENT = bytes(31) + b"\x09"


class FakeEth:
    """Answers ``eth_call`` by function selector."""

    def __init__(
        self, responses: dict[bytes, bytes] | None = None, error: Exception | None = None
    ) -> None:
        self.responses = responses or {}
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def call(self, tx: dict[str, Any]) -> bytes:
        self.calls.append(tx)
        if self.error is not None:
            raise self.error
        return self.responses[bytes(tx["data"])[:4]]


def _bridge(eth: FakeEth, **kwargs: Any) -> EVMTokenBridge:
    web3 = cast(AsyncWeb3, SimpleNamespace(eth=eth))
    return EVMTokenBridge(ChainId.ETHEREUM, TOKEN_BRIDGE, web3, **kwargs)


def _padded(address: str) -> bytes:
    return bytes(12) + bytes.fromhex(address[2:])


@pytest.mark.asyncio
async def test_attest_encodes_call() -> None:
    bridge = _bridge(FakeEth())

    call = await bridge.attest(TOKEN, signer=SENDER, nonce=5, message_fee=3)

    assert call.to == Web3.to_checksum_address(TOKEN_BRIDGE)
    assert call.function == "attestToken(address,uint32)"
    assert call.data == abi.ATTEST_TOKEN.selector + abi_encode(["address", "uint32"], [TOKEN, 5])
    assert call.value == 3


@pytest.mark.asyncio
async def test_attest_rejects_bad_address() -> None:
    bridge = _bridge(FakeEth())
    with pytest.raises(ValidationError):
        await bridge.attest("0x1234", signer=SENDER)


@pytest.mark.asyncio
async def test_transfer_native_truncates_value() -> None:
    bridge = _bridge(FakeEth())
    intent = TransferIntent.create(1_234_567_890_123_456_789, ChainId.SOLANA, RECIPIENT)

    call = await bridge.transfer_native(intent, signer=SENDER, nonce=1)

    assert call.function == "wrapAndTransferETH(uint16,bytes32,uint256,uint32)"
    assert call.value == 1_234_567_890_000_000_000
    assert call.args == (1, RECIPIENT, 0, 1)


@pytest.mark.asyncio
async def test_transfer_native_with_payload() -> None:
    bridge = _bridge(FakeEth())
    intent = TransferIntent.create(10**18, ChainId.BSC, RECIPIENT, payload=b"memo")

    call = await bridge.transfer_native(intent, signer=SENDER, nonce=1)

    assert call.function.startswith("wrapAndTransferETHWithPayload")
    assert call.args == (4, RECIPIENT, 1, b"memo")
    assert call.value == 10**18


@pytest.mark.asyncio
async def test_transfer_token_queries_decimals() -> None:
    eth = FakeEth({abi.DECIMALS.selector: abi_encode(["uint8"], [6])})
    bridge = _bridge(eth)
    intent = TransferIntent.create(1_500_000, ChainId.SOLANA, RECIPIENT, relayer_fee=1_000)

    call = await bridge.transfer_token(TOKEN, intent, signer=SENDER, nonce=9)

    assert call.function.startswith("transferTokens(")
    assert call.args == (Web3.to_checksum_address(TOKEN), 1_500_000, 1, RECIPIENT, 1_000, 9)
    assert call.value == 0
    assert len(eth.calls) == 1


@pytest.mark.asyncio
async def test_transfer_token_zero_after_truncation() -> None:
    eth = FakeEth({abi.DECIMALS.selector: abi_encode(["uint8"], [18])})
    bridge = _bridge(eth)
    intent = TransferIntent.create(9_999_999_999, ChainId.SOLANA, RECIPIENT)

    with pytest.raises(ValidationError) as excinfo:
        await bridge.transfer_token(TOKEN, intent, signer=SENDER)
    assert excinfo.value.field == "amount"


@pytest.mark.asyncio
async def test_transfer_token_network_error() -> None:
    bridge = _bridge(FakeEth(error=TimeoutError("rpc timed out")))
    intent = TransferIntent.create(100, ChainId.SOLANA, RECIPIENT)

    with pytest.raises(NetworkError):
        await bridge.transfer_token(TOKEN, intent, signer=SENDER)


@pytest.mark.asyncio
async def test_redeem(make_transfer_vaa) -> None:
    raw = make_transfer_vaa(to_chain=2)
    call = await _bridge(FakeEth()).redeem(raw, signer=SENDER)

    assert call.function == "completeTransfer(bytes)"
    assert call.args == (raw,)


@pytest.mark.asyncio
async def test_redeem_wrong_destination(make_transfer_vaa) -> None:
    with pytest.raises(ValidationError):
        await _bridge(FakeEth()).redeem(make_transfer_vaa(to_chain=1), signer=SENDER)


@pytest.mark.asyncio
async def test_redeem_and_unwrap(make_transfer_vaa) -> None:
    raw = make_transfer_vaa(token_address=_padded(WETH), token_chain=2, to_chain=2)
    bridge = _bridge(FakeEth(), wrapped_native_address=WETH)

    call = await bridge.redeem_and_unwrap(raw, signer=SENDER)

    assert call.function == "completeTransferAndUnwrapETH(bytes)"


@pytest.mark.asyncio
async def test_redeem_and_unwrap_queries_weth(make_transfer_vaa) -> None:
    eth = FakeEth({abi.WETH.selector: abi_encode(["address"], [WETH])})
    raw = make_transfer_vaa(token_address=_padded(WETH), token_chain=2, to_chain=2)

    call = await _bridge(eth).redeem_and_unwrap(raw, signer=SENDER)

    assert call.to == Web3.to_checksum_address(TOKEN_BRIDGE)
    assert len(eth.calls) == 1


@pytest.mark.asyncio
async def test_redeem_and_unwrap_mismatch(make_transfer_vaa) -> None:
    raw = make_transfer_vaa(token_address=_padded(TOKEN), token_chain=2, to_chain=2)
    bridge = _bridge(FakeEth(), wrapped_native_address=WETH)

    with pytest.raises(AssetMismatchError) as excinfo:
        await bridge.redeem_and_unwrap(raw, signer=SENDER)
    assert excinfo.value.actual == _padded(TOKEN).hex()


@pytest.mark.asyncio
async def test_is_redeemed(make_transfer_vaa) -> None:
    raw = make_transfer_vaa()
    eth = FakeEth({abi.IS_TRANSFER_COMPLETED.selector: abi_encode(["bool"], [True])})

    assert await _bridge(eth).is_redeemed(raw) is True
    assert await _bridge(eth).is_redeemed(raw) is True
    assert len(eth.calls) == 2


@pytest.mark.asyncio
async def test_is_redeemed_fails_open_on_timeout(make_transfer_vaa) -> None:
    bridge = _bridge(FakeEth(error=TimeoutError("rpc timed out")))
    assert await bridge.is_redeemed(make_transfer_vaa()) is False


@pytest.mark.asyncio
async def test_is_redeemed_fails_open_on_garbage() -> None:
    assert await _bridge(FakeEth()).is_redeemed(b"\x01\x02") is False


@pytest.mark.asyncio
async def test_get_foreign_asset() -> None:
    zero = FakeEth({abi.WRAPPED_ASSET.selector: abi_encode(["address"], ["0x" + "00" * 20])})
    found = FakeEth({abi.WRAPPED_ASSET.selector: abi_encode(["address"], [TOKEN])})

    assert await _bridge(zero).get_foreign_asset(ChainId.SOLANA, bytes(32)) is None
    assert await _bridge(found).get_foreign_asset("solana", bytes(32)) == (
        Web3.to_checksum_address(TOKEN)
    )
    assert await _bridge(FakeEth(error=OSError())).get_foreign_asset(1, bytes(32)) is None


@pytest.mark.asyncio
async def test_get_original_asset_wrapped() -> None:
    origin = b"\x05" * 32
    eth = FakeEth(
        {
            abi.IS_WRAPPED_ASSET.selector: abi_encode(["bool"], [True]),
            abi.TOKEN_CHAIN_ID.selector: abi_encode(["uint16"], [1]),
            abi.NATIVE_CONTRACT.selector: abi_encode(["bytes32"], [origin]),
        }
    )

    meta = await _bridge(eth).get_original_asset(TOKEN)

    assert meta.is_wrapped is True
    assert meta.origin_chain is ChainId.SOLANA
    assert meta.origin_address == origin


@pytest.mark.asyncio
async def test_get_original_asset_native() -> None:
    eth = FakeEth({abi.IS_WRAPPED_ASSET.selector: abi_encode(["bool"], [False])})

    meta = await _bridge(eth).get_original_asset(TOKEN)

    assert meta.is_wrapped is False
    assert meta.origin_chain is ChainId.ETHEREUM
    assert meta.origin_address == _padded(TOKEN)


@pytest.mark.asyncio
async def test_approve_and_tx_params() -> None:
    call = await _bridge(FakeEth()).approve_token(TOKEN, 500)
    params = call.as_tx_params(SENDER)

    assert call.to == Web3.to_checksum_address(TOKEN)
    assert call.args == (Web3.to_checksum_address(TOKEN_BRIDGE), 500)
    assert params["from"] == Web3.to_checksum_address(SENDER)
    assert params["data"] == "0x" + call.data.hex()


def test_rejects_non_evm_chain() -> None:
    web3 = cast(AsyncWeb3, SimpleNamespace(eth=FakeEth()))
    with pytest.raises(ValidationError):
        EVMTokenBridge(ChainId.SOLANA, TOKEN_BRIDGE, web3)


@pytest.mark.asyncio
async def test_get_allowance_reads_bridge_spender() -> None:
    eth = FakeEth({abi.ALLOWANCE.selector: abi_encode(["uint256"], [750])})

    assert await _bridge(eth).get_allowance(TOKEN, SENDER) == 750
    assert eth.calls[0]["to"] == Web3.to_checksum_address(TOKEN)


@pytest.mark.asyncio
async def test_get_original_asset_from_unlisted_chain() -> None:
    origin = b"\x11" * 32
    eth = FakeEth(
        {
            abi.IS_WRAPPED_ASSET.selector: abi_encode(["bool"], [True]),
            abi.TOKEN_CHAIN_ID.selector: abi_encode(["uint16"], [22]),
            abi.NATIVE_CONTRACT.selector: abi_encode(["bytes32"], [origin]),
            abi.WRAPPED_ASSET.selector: abi_encode(["address"], [TOKEN]),
        }
    )

    meta = await _bridge(eth).get_original_asset(TOKEN)

    assert meta.origin_chain == 22
    assert meta.origin_address == origin
    assert await _bridge(eth).get_foreign_asset(22, origin) == Web3.to_checksum_address(TOKEN)
    assert bytes(eth.calls[-1]["data"])[4:36] == abi_encode(["uint16"], [22])


@pytest.mark.asyncio
async def test_transfer_token_truncates_amount_and_fee() -> None:
    eth = FakeEth({abi.DECIMALS.selector: abi_encode(["uint8"], [18])})
    intent = TransferIntent.create(
        1_000_000_000_123, ChainId.SOLANA, RECIPIENT, relayer_fee=20_000_000_005
    )

    call = await _bridge(eth).transfer_token(TOKEN, intent, signer=SENDER, nonce=2)

    assert call.args[1] == 1_000_000_000_000
    assert call.args[4] == 20_000_000_000
