from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SkillCategory(StrEnum):
    transfer = "transfer"
    exchange = "exchange"
    oracle = "oracle"
    data = "data"
    defi = "defi"
    social = "social"
    forex = "forex"


class ErrorKind(StrEnum):
    validation_error = "validation_error"
    configuration_error = "configuration_error"
    safety_violation = "safety_violation"
    execution_error = "execution_error"
    internal = "internal"
    pending_confirmation = "pending_confirmation"


class SkillParam(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    required: bool = True
    example: str = ""


class SkillExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: str
    output: str


class SkillDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: SkillCategory
    command_tag: str = Field(..., description='Marker tag, e.g. "QUERY_RATE" -> [[QUERY_RATE|cUSD]]')
    params: tuple[SkillParam, ...] = ()
    examples: tuple[SkillExample, ...] = ()
    requires_wallet: bool = False
    mutates_state: bool = False

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.params if p.required)

    def param_index(self, name: str) -> int:
        for i, p in enumerate(self.params):
            if p.name == name:
                return i
        raise KeyError(f"{self.id} has no param named {name!r}")

    def usage(self) -> str:
        fields = [self.command_tag, *(p.name if p.required else f"{p.name}?" for p in self.params)]
        return "[[" + "|".join(fields) + "]]"


class PendingCommand(BaseModel):
    """A mutating command held until the agent owner confirms it."""

    model_config = ConfigDict(frozen=True)

    confirmation_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    agent_id: str
    skill_id: str
    command_tag: str
    params: tuple[str, ...]
    amount: float | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SkillResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    display: str
    data: dict[str, Any] | None = None
    error: ErrorKind | None = None
    error_message: str | None = None
    pending: PendingCommand | None = None

    @classmethod
    def ok(cls, display: str, data: dict[str, Any] | None = None) -> "SkillResult":
        return cls(success=True, display=display, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "SkillResult":
        return cls(success=False, display=message, error=kind, error_message=message)
