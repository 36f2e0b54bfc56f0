import httpx
import pytest

from app.history import history_service
from app.models.explorer import ExternalCall, InternalCall, TokenTransfer


@pytest.fixture(autouse=True)
def clear_cache():
    history_service.cache.clear()
    history_service.resolver.clear()
    yield
    history_service.cache.clear()
    history_service.resolver.clear()


SAFE = "0x" + "5a" * 20
OTHER = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20
THIRD = "0x" + "33" * 20
TOKEN = "0x" + "7e" * 20
TOKEN_NO_SYMBOL = "0x" + "7f" * 20


def tx_hash(n: int) -> str:
    return f"0x{n:064x}"


def external_row(n: int, ts: int, frm: str = SAFE, to: str = RECIPIENT, value: str = "100") -> dict:
    return {
        "blockNumber": str(1000 + n),
        "timeStamp": str(ts),
        "hash": tx_hash(n),
        "nonce": str(n),
        "from": frm,
        "to": to,
        "value": value,
        "input": "0x6a761202",
        "isError": "0",
    }


def internal_row(n: int, ts: int, frm: str = SAFE, to: str = RECIPIENT, value: str = "5") -> dict:
    return {
        "blockNumber": str(1000 + n),
        "timeStamp": str(ts),
        "hash": tx_hash(n),
        "from": frm,
        "to": to,
        "value": value,
        "traceId": "0_1",
        "type": "call",
    }


def token_row(
    n: int,
    ts: int,
    frm: str = SAFE,
    to: str = RECIPIENT,
    value: str = "20",
    contract: str = TOKEN,
    symbol: str = "TKN",
) -> dict:
    return {
        "blockNumber": str(1000 + n),
        "timeStamp": str(ts),
        "hash": tx_hash(n),
        "from": frm,
        "to": to,
        "value": value,
        "contractAddress": contract,
        "tokenName": "Test Token" if symbol else "",
        "tokenSymbol": symbol,
        "tokenDecimal": "6",
    }


def ok_body(rows: list) -> dict:
    return {"status": "1", "message": "OK", "result": rows}


NO_RESULTS_BODY = {"status": "0", "message": "No transactions found", "result": []}
RATE_LIMIT_BODY = {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"}
INVALID_KEY_BODY = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}


def explorer_handler(bodies: dict[str, object], calls: list | None = None):
    """Route explorer GETs by ``action``; values are JSON bodies or httpx.Response."""

    def handler(request: httpx.Request) -> httpx.Response:
        action = request.url.params["action"]
        if calls is not None:
            calls.append(dict(request.url.params))
        body = bodies.get(action, NO_RESULTS_BODY)
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    return handler


def windowed_explorer_handler(rows: dict[str, list], calls: list | None = None):
    """Like ``explorer_handler`` but honours the ``offset`` page size, newest first."""

    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if calls is not None:
            calls.append(dict(params))
        page = rows.get(params["action"], [])[: int(params["offset"])]
        if not page:
            return httpx.Response(200, json=NO_RESULTS_BODY)
        return httpx.Response(200, json=ok_body(page))

    return handler


def parse_rows(external=(), internal=(), tokens=()):
    return (
        [ExternalCall.model_validate(r) for r in external],
        [InternalCall.model_validate(r) for r in internal],
        [TokenTransfer.model_validate(r) for r in tokens],
    )


def abi_string(text: str) -> str:
    payload = text.encode("utf-8")
    padded = payload + b"\x00" * (-len(payload) % 32)
    return (
        "0x"
        + (32).to_bytes(32, "big").hex()
        + len(payload).to_bytes(32, "big").hex()
        + padded.hex()
    )
