"""
Typed rows returned by the explorer's account endpoints.

Explorer JSON encodes every number as a string; pydantic coerces them here so
the merge step only deals with ints and canonical lower-case hex.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Category = Literal["external", "internal", "token"]


class _ExplorerRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str
    timestamp: int = Field(alias="timeStamp")
    from_: str = Field(alias="from")
    to: str = ""
    value: str = "0"

    @field_validator("hash", "from_", "to", mode="before")
    @classmethod
    def _lower(cls, v):
        return (v or "").lower()

    def touches(self, address: str) -> bool:
        return self.from_ == address or self.to == address


class ExternalCall(_ExplorerRow):
    nonce: int = 0
    input: str = "0x"


class InternalCall(_ExplorerRow):
    trace_id: str = Field(default="0", alias="traceId")


class TokenTransfer(_ExplorerRow):
    contract_address: str = Field(alias="contractAddress")
    token_symbol: str = Field(default="", alias="tokenSymbol")
    token_name: str = Field(default="", alias="tokenName")
    token_decimal: str = Field(default="", alias="tokenDecimal")

    @field_validator("contract_address", mode="before")
    @classmethod
    def _lower_contract(cls, v):
        return (v or "").lower()

    @property
    def decimals(self) -> int:
        try:
            return int(self.token_decimal) or 18
        except ValueError:
            return 18


CATEGORY_MODELS: dict[str, type[_ExplorerRow]] = {
    "external": ExternalCall,
    "internal": InternalCall,
    "token": TokenTransfer,
}
