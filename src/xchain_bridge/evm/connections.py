"""Read-only contract calls over an async web3 provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from ..exceptions import NetworkError
from .abi import AbiFunction

logger = logging.getLogger(__name__)


def build_async_web3(rpc_url: str, *, request_timeout: float) -> AsyncWeb3:
    """Create an async web3 handle; no connectivity check is made here."""
    provider = AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout})
    return AsyncWeb3(provider)


class ContractReader:
    """Execute ``eth_call`` against view functions and decode the results."""

    def __init__(self, web3: AsyncWeb3) -> None:
        self._web3 = web3

    async def call(
        self,
        address: str,
        function: AbiFunction,
        args: Sequence[Any] = (),
    ) -> tuple[Any, ...]:
        destination = Web3.to_checksum_address(address)
        call_data = function.encode(args)

        try:
            result = await self._web3.eth.call({"to": destination, "data": call_data})
        except Exception as exc:
            raise NetworkError(
                f"Failed to call {function.signature}",
                endpoint=str(destination),
                details={"error": str(exc)},
            ) from exc

        try:
            decoded = function.decode(bytes(result))
        except Exception as exc:
            raise NetworkError(
                f"Failed to decode {function.signature} response",
                endpoint=str(destination),
                details={"error": str(exc)},
            ) from exc

        logger.debug("eth_call %s on %s -> %s", function.signature, destination, decoded)
        return decoded
