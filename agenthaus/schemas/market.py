from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class OracleRate(BaseModel):
    """Native-asset price in terms of a stable asset, e.g. CELO/cUSD = 0.52."""

    model_config = ConfigDict(frozen=True)

    pair: str
    rate: float
    inverse: float
    num_reporters: int
    last_update: datetime
    is_expired: bool
    source: Literal["on-chain", "fallback"]


class SwapQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    sell_currency: str
    buy_currency: str
    sell_amount: str
    buy_amount: str
    rate: float
    slippage: float  # percent
    source: Literal["direct-exchange", "estimated"]


class GasInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_fee: str  # gwei
    suggested_tip: str  # gwei
    estimated_cost: str  # CELO for a plain 21000-gas transfer


class AddressBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    celo: str
    cUSD: str
    cEUR: str
    cREAL: str
