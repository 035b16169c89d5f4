from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class TransactionType(StrEnum):
    send = "send"
    swap = "swap"
    tip = "tip"


class TransactionStatus(StrEnum):
    pending = "pending"
    confirmed = "confirmed"
    failed = "failed"


class ActivityType(StrEnum):
    action = "action"
    error = "error"
    info = "info"
    warning = "warning"


class TransactionRecord(BaseModel):
    agent_id: str
    tx_hash: str
    type: TransactionType
    status: TransactionStatus = TransactionStatus.pending
    from_address: str | None = None
    to_address: str | None = None
    amount: float | None = None
    currency: str | None = None
    description: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ActivityRecord(BaseModel):
    agent_id: str
    type: ActivityType
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
