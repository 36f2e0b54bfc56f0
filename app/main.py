import logging

from fastapi import FastAPI, Query, Request

from app.chains import CHAINS
from app.history import DEFAULT_LIMIT, history_service
from app.models.transaction import TransactionRecord

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("app.main")

app = FastAPI(title="Safe Transaction History API", version="0.1.0")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("INCOMING REQUEST: %s %s?%s", request.method, request.url.path, request.url.query)
    response = await call_next(request)
    logger.info(
        "RESPONSE: %s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


def _serialize(records: list[TransactionRecord]) -> dict:
    return {"transactions": [r.model_dump(mode="json", by_alias=True) for r in records]}


@app.get("/transactions/blockchain")
async def blockchain_transactions(
    safe_address: str = Query(alias="safeAddress"),
    chain_id: int = Query(default=1, alias="chainId"),
    limit: int = Query(default=DEFAULT_LIMIT),
    offset: int = Query(default=0),
):
    logger.info("Fetching blockchain transactions for Safe %s on chain %s", safe_address, chain_id)
    records = await history_service.get_transactions(safe_address, chain_id, limit, offset)
    return _serialize(records)


@app.get("/transactions/safe")
async def safe_transactions(
    safe_address: str = Query(alias="safeAddress"),
    chain_id: int = Query(default=1, alias="chainId"),
    limit: int = Query(default=DEFAULT_LIMIT),
    offset: int = Query(default=0),
):
    logger.info("Fetching transactions for Safe %s on chain %s", safe_address, chain_id)
    records = await history_service.get_safe_transactions(safe_address, chain_id, limit, offset)
    return _serialize(records)


@app.get("/chains")
async def supported_chains():
    return {
        "chains": [
            {"chainId": chain.chain_id, "name": chain.name, "nativeSymbol": chain.native_symbol}
            for chain in sorted(CHAINS.values(), key=lambda c: c.chain_id)
        ]
    }
