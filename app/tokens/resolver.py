from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict

import httpx

from app.chains import rpc_url
from app.config import settings
from app.tokens.abi import decode_abi_string

logger = logging.getLogger(__name__)

UNKNOWN_SYMBOL = "UNKNOWN"
SYMBOL_SELECTOR = "0x95d89b41"  # symbol()


class TokenSymbolResolver:
    """
    Resolves ERC-20 symbols via ``eth_call``.

    Answers, including ``UNKNOWN`` for tokens that revert or return garbage, are
    kept in a bounded LRU. Transport failures are not remembered, so the next
    lookup tries the RPC again.
    """

    def __init__(self, timeout: float | None = None, max_entries: int | None = None):
        self.timeout = timeout or settings.rpc_timeout
        self._max_entries = max_entries or settings.cache_max_entries
        self._cache: OrderedDict[tuple[str, int], str] = OrderedDict()
        self._pending: dict[tuple[str, int], asyncio.Task] = {}

    @staticmethod
    def _key(token_address: str, chain_id: int) -> tuple[str, int]:
        return token_address.lower(), chain_id

    def cached(self, token_address: str, chain_id: int) -> str | None:
        return self._cache.get(self._key(token_address, chain_id))

    def remember(self, token_address: str, chain_id: int, symbol: str) -> None:
        if symbol:
            self._store(self._key(token_address, chain_id), symbol)

    def _store(self, key: tuple[str, int], symbol: str) -> None:
        self._cache[key] = symbol
        self._cache.move_to_end(key)
        while len(self._cache) > self._max_entries:
            self._cache.popitem(last=False)

    async def resolve_symbol(self, token_address: str, chain_id: int) -> str:
        key = self._key(token_address, chain_id)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key))
            self._pending[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: tuple[str, int]) -> str:
        try:
            symbol = await self._fetch_symbol(*key)
        finally:
            self._pending.pop(key, None)
        if symbol is None:
            return UNKNOWN_SYMBOL
        self._store(key, symbol)
        return symbol

    async def _fetch_symbol(self, token_address: str, chain_id: int) -> str | None:
        """Symbol, ``UNKNOWN`` for a definitive failure, None for a transport error."""
        url = rpc_url(chain_id)
        if url is None:
            return UNKNOWN_SYMBOL

        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [{"to": token_address, "data": SYMBOL_SELECTOR}, "latest"],
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload)
            body = resp.json()
        except (httpx.TimeoutException, httpx.HTTPError) as exc:
            logger.debug("symbol() call failed for %s on chain %s: %s", token_address, chain_id, exc)
            return None
        except ValueError:
            logger.debug("symbol() response for %s is not JSON", token_address)
            return UNKNOWN_SYMBOL

        if not isinstance(body, dict) or body.get("error"):
            logger.debug("symbol() RPC error for %s: %s", token_address,
                         body.get("error") if isinstance(body, dict) else body)
            return UNKNOWN_SYMBOL

        symbol = decode_abi_string(body.get("result"))
        if symbol is None:
            logger.debug("symbol() for %s returned undecodable data: %s",
                         token_address, body.get("result"))
            return UNKNOWN_SYMBOL
        return symbol

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
