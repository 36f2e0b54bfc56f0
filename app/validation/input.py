import re

from fastapi import HTTPException

from app.chains import CHAINS
from app.config import settings

EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def validate_address(address: str | None) -> str:
    address = (address or "").strip()
    if not EVM_ADDRESS_RE.match(address):
        raise HTTPException(
            status_code=400,
            detail="Invalid address. Expected 42-char hex string starting with 0x.",
        )
    return address.lower()


def validate_chain_id(chain_id: int) -> int:
    if chain_id not in CHAINS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported chain ID {chain_id}. Supported: {', '.join(str(c) for c in sorted(CHAINS))}",
        )
    return chain_id


def validate_paging(limit: int, offset: int) -> tuple[int, int]:
    if limit < 1 or limit > settings.max_page_size:
        raise HTTPException(
            status_code=400,
            detail=f"limit must be between 1 and {settings.max_page_size}",
        )
    if offset < 0:
        raise HTTPException(status_code=400, detail="offset must be >= 0")
    return limit, offset
