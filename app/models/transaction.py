from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Method = Literal[
    "Outgoing Transaction", "Incoming Transaction", "Token Outgoing", "Token Incoming"
]


class StateChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token_address: str = Field(alias="tokenAddress")
    token_symbol: str = Field(alias="tokenSymbol")
    token_decimals: int = Field(default=18, alias="tokenDecimals")
    from_: str = Field(alias="from")
    to: str
    value: str
    is_state_change: bool = Field(default=True, alias="isStateChange")


class TokenInfo(BaseModel):
    address: str
    symbol: str
    decimals: int = 18
    name: str = "Unknown Token"


class DecodedParameter(BaseModel):
    name: str
    type: str
    value: Any


class DataDecoded(BaseModel):
    method: Method
    parameters: list[DecodedParameter] | None = None


class TransactionRecord(BaseModel):
    """One transaction hash and every effect it had on the tracked wallet."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    tx_hash: str = Field(alias="txHash")
    executed_tx_hash: str = Field(alias="executedTxHash")
    safe_tx_hash: str = Field(alias="safeTxHash")
    timestamp: int
    nonce: int = 0
    to: str
    from_: str = Field(alias="from")
    data: str = "0x"
    operation: int = 0
    value: str
    is_executed: bool = Field(default=True, alias="isExecuted")
    method: Method
    data_decoded: DataDecoded = Field(alias="dataDecoded")
    token_info: TokenInfo | None = Field(default=None, alias="tokenInfo")
    state_changes: list[StateChange] = Field(default_factory=list, alias="stateChanges")
