from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

import httpx
from pydantic import ValidationError

from app.chains import explorer_url
from app.config import settings
from app.models.explorer import (
    CATEGORY_MODELS,
    Category,
    ExternalCall,
    InternalCall,
    TokenTransfer,
)

logger = logging.getLogger(__name__)

CATEGORY_ACTIONS: dict[str, str] = {
    "external": "txlist",
    "internal": "txlistinternal",
    "token": "tokentx",
}


class ExplorerError(Exception):
    def __init__(self, category: str, message: str):
        super().__init__(f"{category}: {message}")
        self.category = category
        self.message = message


class RateLimitedError(ExplorerError):
    pass


@dataclass
class ExplorerBatch:
    external: list[ExternalCall] = field(default_factory=list)
    internal: list[InternalCall] = field(default_factory=list)
    token_transfers: list[TokenTransfer] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    complete: bool = False
    window: int = 0

    @property
    def all_failed(self) -> bool:
        return len(self.warnings) == len(CATEGORY_ACTIONS)

    @property
    def horizon(self) -> int | None:
        """
        Oldest timestamp the batch can vouch for, or None when nothing was cut.

        A category that filled the window stopped somewhere inside the history,
        so older rows from the other categories have no matching rows from it
        yet. The newest such cut-off wins.
        """
        if not self.window:
            return None
        cutoffs = [
            min(row.timestamp for row in rows)
            for rows in (self.external, self.internal, self.token_transfers)
            if len(rows) >= self.window
        ]
        return max(cutoffs) if cutoffs else None


def _is_rate_limit(text: str) -> bool:
    text = text.lower()
    return "rate limit" in text or "max calls per sec" in text


def _is_no_results(text: str) -> bool:
    # "No transactions found", "No token transfers found", ...
    text = text.lower()
    return text.startswith("no ") and text.endswith("found")


class ExplorerClient:
    """Paginated reads from an Etherscan-compatible account API."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
    ):
        self.api_key = settings.etherscan_api_key if api_key is None else api_key
        self.timeout = timeout or settings.explorer_timeout
        self.max_retries = settings.explorer_max_retries if max_retries is None else max_retries
        self.backoff_base = settings.explorer_backoff_base if backoff_base is None else backoff_base

    def _params(self, category: str, address: str, page: int, page_size: int) -> dict:
        return {
            "module": "account",
            "action": CATEGORY_ACTIONS[category],
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": page,
            "offset": page_size,
            "sort": "desc",
            "apikey": self.api_key,
        }

    async def fetch(
        self,
        category: Category,
        address: str,
        chain_id: int,
        page: int = 1,
        page_size: int = 100,
    ) -> list:
        url = explorer_url(chain_id)
        if url is None:
            raise ExplorerError(category, f"no explorer configured for chain {chain_id}")

        params = self._params(category, address, page, page_size)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params=params)
        except httpx.TimeoutException:
            raise ExplorerError(category, "request timed out")
        except httpx.HTTPError as exc:
            raise ExplorerError(category, f"request failed: {exc}")

        if resp.status_code == 429:
            raise RateLimitedError(category, "HTTP 429")
        if resp.status_code >= 300:
            raise ExplorerError(category, f"HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            raise ExplorerError(category, "response is not JSON")
        if not isinstance(body, dict):
            raise ExplorerError(category, "unexpected response shape")

        result = body.get("result")
        if str(body.get("status")) != "1":
            message = str(body.get("message") or "")
            detail = result if isinstance(result, str) else ""
            if _is_rate_limit(message) or _is_rate_limit(detail):
                raise RateLimitedError(category, detail or message)
            if _is_no_results(message) and not detail:
                return []
            raise ExplorerError(category, detail or message or "status 0")

        if not isinstance(result, list):
            raise ExplorerError(category, "result is not a list")

        return _parse_rows(category, result)

    async def fetch_category(
        self,
        category: Category,
        address: str,
        chain_id: int,
        page: int = 1,
        page_size: int = 100,
    ) -> tuple[list, str | None]:
        """Fetch one category, degrading any failure to ``([], warning)``."""
        attempt = 0
        while True:
            try:
                rows = await self.fetch(category, address, chain_id, page, page_size)
                return rows, None
            except RateLimitedError as exc:
                if attempt >= self.max_retries:
                    warning = f"{category} rate limited after {attempt + 1} attempts"
                    logger.warning("EXPLORER %s for %s on chain %s: %s",
                                   warning, address, chain_id, exc.message)
                    return [], warning
                delay = self.backoff_base * (2 ** attempt)
                attempt += 1
                logger.info("EXPLORER rate limited (%s), retry %d/%d in %.1fs",
                            category, attempt, self.max_retries, delay)
                await asyncio.sleep(delay)
            except ExplorerError as exc:
                logger.warning("EXPLORER %s fetch failed for %s on chain %s: %s",
                               category, address, chain_id, exc.message)
                return [], str(exc)

    async def fetch_all(self, address: str, chain_id: int, page_size: int) -> ExplorerBatch:
        (external, w1), (internal, w2), (tokens, w3) = await asyncio.gather(
            self.fetch_category("external", address, chain_id, 1, page_size),
            self.fetch_category("internal", address, chain_id, 1, page_size),
            self.fetch_category("token", address, chain_id, 1, page_size),
        )
        warnings = [w for w in (w1, w2, w3) if w]
        complete = not warnings and all(
            len(rows) < page_size for rows in (external, internal, tokens)
        )
        logger.info(
            "EXPLORER %s on chain %s: external=%d internal=%d token=%d window=%d complete=%s",
            address, chain_id, len(external), len(internal), len(tokens), page_size, complete,
        )
        return ExplorerBatch(
            external=external,
            internal=internal,
            token_transfers=tokens,
            warnings=warnings,
            complete=complete,
            window=page_size,
        )


def _parse_rows(category: str, rows: list) -> list:
    model = CATEGORY_MODELS[category]
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            logger.debug("Skipping malformed %s row %s: %s", category, row, exc)
    return parsed
