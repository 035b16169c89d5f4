from __future__ import annotations

from pydantic import BaseModel

from agenthaus.schemas.market import OracleRate, SwapQuote
from agenthaus.schemas.skill import SkillDefinition


class SkillListResponse(BaseModel):
    skills: list[SkillDefinition]
    count: int


class RatesResponse(BaseModel):
    rates: list[OracleRate]


class QuoteResponse(BaseModel):
    quote: SwapQuote
