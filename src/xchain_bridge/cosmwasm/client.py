"""Smart-contract queries over a Cosmos LCD (REST) endpoint."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any, Protocol

import aiohttp

from ..exceptions import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 10.0


class CosmWasmConnection(Protocol):
    """Capability the CosmWasm builder needs: fetch a contract's smart state."""

    async def query_contract_smart(self, address: str, query: dict[str, Any]) -> Any: ...


def encode_query(query: dict[str, Any]) -> str:
    """Base64 form of a JSON query, as the LCD smart-query route expects."""
    payload = json.dumps(query, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(payload).decode("ascii")


class LCDClient:
    """Minimal async LCD client for ``/cosmwasm/wasm/v1`` smart queries.

    A session can be shared with the caller; otherwise one is opened per
    request and closed right after.
    """

    def __init__(
        self,
        lcd_url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.lcd_url = lcd_url.rstrip("/")
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)

    async def query_contract_smart(self, address: str, query: dict[str, Any]) -> Any:
        return await self.fetch_smart_contract_state(address, encode_query(query))

    async def fetch_smart_contract_state(self, address: str, query_b64: str) -> Any:
        url = f"{self.lcd_url}/cosmwasm/wasm/v1/contract/{address}/smart/{query_b64}"
        logger.debug("LCD smart query %s", url)

        try:
            if self._session is not None:
                data = await self._get_json(self._session, url)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._get_json(session, url)
        except NetworkError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise NetworkError(
                "LCD smart query failed", endpoint=url, details={"error": str(exc)}
            ) from exc

        if not isinstance(data, dict) or "data" not in data:
            raise NetworkError(
                "Unexpected LCD response format", endpoint=url, details={"body": data}
            )
        return data["data"]

    async def _get_json(self, session: aiohttp.ClientSession, url: str) -> Any:
        async with session.get(url, timeout=self._timeout) as response:
            if response.status != 200:
                body = await response.text()
                raise NetworkError(
                    f"LCD returned HTTP {response.status}",
                    endpoint=url,
                    status_code=response.status,
                    details={"body": body[:500]},
                )
            return await response.json(content_type=None)
