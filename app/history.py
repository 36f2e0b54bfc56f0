"""
Entry point for transaction history queries.

REST handlers and anything else that needs a wallet's history go through
``history_service.get_transactions``; nothing else talks to the cache or the
explorer directly.
"""

from __future__ import annotations

import logging

from app.cache.manager import HistoryCache, LoadResult
from app.fetchers.explorer import ExplorerClient
from app.merge.engine import merge_transactions
from app.models.transaction import TransactionRecord
from app.tokens.resolver import TokenSymbolResolver
from app.validation.input import validate_address, validate_chain_id, validate_paging

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


class TransactionHistoryService:
    def __init__(
        self,
        explorer: ExplorerClient | None = None,
        resolver: TokenSymbolResolver | None = None,
        cache: HistoryCache | None = None,
    ):
        self.explorer = explorer if explorer is not None else ExplorerClient()
        self.resolver = resolver if resolver is not None else TokenSymbolResolver()
        self.cache = cache if cache is not None else HistoryCache(self._load)

    async def _load(self, address: str, chain_id: int, window: int) -> LoadResult:
        batch = await self.explorer.fetch_all(address, chain_id, window)
        if batch.all_failed:
            return LoadResult(records=[], failed=True)
        for warning in batch.warnings:
            logger.warning("Partial history for %s on chain %s: %s", address, chain_id, warning)

        records = await merge_transactions(
            batch.external,
            batch.internal,
            batch.token_transfers,
            address,
            chain_id,
            self.resolver,
        )
        horizon = batch.horizon
        if horizon is not None:
            records = _trim_to_horizon(records, horizon)
        return LoadResult(records=records, complete=batch.complete)

    async def get_transactions(
        self,
        address: str,
        chain_id: int,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> list[TransactionRecord]:
        address = validate_address(address)
        chain_id = validate_chain_id(chain_id)
        limit, offset = validate_paging(limit, offset)

        records = await self.cache.get_page(address, chain_id, limit, offset)
        logger.info("Returning %d transactions for %s on chain %s (offset=%d)",
                    len(records), address, chain_id, offset)
        return records

    async def get_safe_transactions(
        self,
        address: str,
        chain_id: int,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> list[TransactionRecord]:
        return await self.get_transactions(address, chain_id, limit, offset)


def _trim_to_horizon(records: list[TransactionRecord], horizon: int) -> list[TransactionRecord]:
    # the horizon block itself may be split by the window, so it goes too
    kept = [r for r in records if r.timestamp > horizon]
    if not kept:
        # whole window inside one block; nothing older can be surfaced anyway
        kept = [r for r in records if r.timestamp >= horizon]
    if len(kept) < len(records):
        logger.info("Holding back %d records older than %d until a wider fetch",
                    len(records) - len(kept), horizon)
    return kept


history_service = TransactionHistoryService()
