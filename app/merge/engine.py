"""
Folds the three explorer feeds into one record per transaction hash.

External calls are folded first, then internal calls, then token transfers.
A hash seen in any earlier pass gets the new effect appended to its
``stateChanges``; an unseen hash creates a new record. Rows that touch neither
side of the tracked address are dropped.
"""

from __future__ import annotations

import asyncio
import logging

from app.chains import NATIVE_DECIMALS, NATIVE_TOKEN_ADDRESS, native_symbol
from app.models.explorer import ExternalCall, InternalCall, TokenTransfer
from app.models.transaction import (
    DataDecoded,
    DecodedParameter,
    StateChange,
    TokenInfo,
    TransactionRecord,
)
from app.tokens.resolver import UNKNOWN_SYMBOL, TokenSymbolResolver

logger = logging.getLogger(__name__)


def _native_change(row: ExternalCall | InternalCall, chain_id: int) -> StateChange:
    return StateChange(
        token_address=NATIVE_TOKEN_ADDRESS,
        token_symbol=native_symbol(chain_id),
        token_decimals=NATIVE_DECIMALS,
        from_=row.from_,
        to=row.to,
        value=row.value,
    )


def _token_change(row: TokenTransfer, symbol: str) -> StateChange:
    return StateChange(
        token_address=row.contract_address,
        token_symbol=symbol,
        token_decimals=row.decimals,
        from_=row.from_,
        to=row.to,
        value=row.value,
    )


def _native_record(
    row: ExternalCall | InternalCall, record_id: str, tracked: str, chain_id: int
) -> TransactionRecord:
    method = "Outgoing Transaction" if row.from_ == tracked else "Incoming Transaction"
    is_external = isinstance(row, ExternalCall)
    return TransactionRecord(
        id=record_id,
        tx_hash=row.hash,
        executed_tx_hash=row.hash,
        safe_tx_hash=row.hash,
        timestamp=row.timestamp,
        nonce=row.nonce if is_external else 0,
        to=row.to,
        from_=row.from_,
        data=row.input if is_external else "0x",
        value=row.value,
        method=method,
        data_decoded=DataDecoded(method=method),
        state_changes=[_native_change(row, chain_id)],
    )


def _token_record(row: TokenTransfer, symbol: str, tracked: str) -> TransactionRecord:
    method = "Token Outgoing" if row.from_ == tracked else "Token Incoming"
    return TransactionRecord(
        id=f"{row.hash}-token-{row.contract_address}",
        tx_hash=row.hash,
        executed_tx_hash=row.hash,
        safe_tx_hash=row.hash,
        timestamp=row.timestamp,
        to=row.to,
        from_=row.from_,
        value="0",
        method=method,
        data_decoded=DataDecoded(
            method=method,
            parameters=[
                DecodedParameter(name="tokenAddress", type="address", value=row.contract_address),
                DecodedParameter(name="tokenSymbol", type="string", value=symbol),
                DecodedParameter(name="tokenValue", type="uint256", value=row.value),
            ],
        ),
        token_info=TokenInfo(
            address=row.contract_address,
            symbol=symbol,
            decimals=row.decimals,
            name=row.token_name or "Unknown Token",
        ),
        state_changes=[_token_change(row, symbol)],
    )


def fold_transactions(
    external: list[ExternalCall],
    internal: list[InternalCall],
    transfers: list[TokenTransfer],
    tracked_address: str,
    chain_id: int,
    symbols: dict[str, str] | None = None,
) -> list[TransactionRecord]:
    """
    Merge already-fetched rows into deduplicated records (unsorted).

    ``symbols`` maps lower-case token contract to symbol for transfers the
    explorer returned without one.
    """
    tracked = tracked_address.lower()
    symbols = symbols or {}
    by_hash: dict[str, TransactionRecord] = {}

    for row in external:
        if not row.touches(tracked):
            continue
        record = by_hash.get(row.hash)
        if record is None:
            by_hash[row.hash] = _native_record(row, row.hash, tracked, chain_id)
        else:
            # same hash twice in one feed
            record.state_changes.append(_native_change(row, chain_id))

    for row in internal:
        if not row.touches(tracked):
            continue
        record = by_hash.get(row.hash)
        if record is None:
            by_hash[row.hash] = _native_record(row, f"{row.hash}-{row.trace_id}", tracked, chain_id)
        else:
            record.state_changes.append(_native_change(row, chain_id))

    for row in transfers:
        if not row.touches(tracked):
            continue
        symbol = row.token_symbol or symbols.get(row.contract_address, UNKNOWN_SYMBOL)
        record = by_hash.get(row.hash)
        if record is None:
            by_hash[row.hash] = _token_record(row, symbol, tracked)
        else:
            record.state_changes.append(_token_change(row, symbol))

    return list(by_hash.values())


async def resolve_missing_symbols(
    transfers: list[TokenTransfer],
    tracked_address: str,
    chain_id: int,
    resolver: TokenSymbolResolver,
) -> dict[str, str]:
    tracked = tracked_address.lower()
    missing: set[str] = set()
    for row in transfers:
        if not row.touches(tracked):
            continue
        if row.token_symbol:
            resolver.remember(row.contract_address, chain_id, row.token_symbol)
        else:
            missing.add(row.contract_address)

    if not missing:
        return {}

    tokens = sorted(missing)
    logger.info("Resolving %d token symbol(s) on chain %s", len(tokens), chain_id)
    resolved = await asyncio.gather(
        *(resolver.resolve_symbol(token, chain_id) for token in tokens)
    )
    return dict(zip(tokens, resolved))


async def merge_transactions(
    external: list[ExternalCall],
    internal: list[InternalCall],
    transfers: list[TokenTransfer],
    tracked_address: str,
    chain_id: int,
    resolver: TokenSymbolResolver,
) -> list[TransactionRecord]:
    symbols = await resolve_missing_symbols(transfers, tracked_address, chain_id, resolver)
    records = fold_transactions(external, internal, transfers, tracked_address, chain_id, symbols)
    logger.info(
        "Merged %d external, %d internal, %d token rows into %d records for %s",
        len(external), len(internal), len(transfers), len(records), tracked_address,
    )
    return records
