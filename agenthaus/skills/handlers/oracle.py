from __future__ import annotations

from agenthaus.core.market_data import MarketDataResolver
from agenthaus.schemas.market import OracleRate
from agenthaus.schemas.skill import SkillCategory, SkillDefinition, SkillExample, SkillParam, SkillResult
from agenthaus.skills.base import ExecutionContext, SkillHandler


def render_rate(rate: OracleRate) -> str:
    stable = rate.pair.split("/", 1)[1]
    text = f"{rate.pair}: {rate.rate:.4f} (1 {stable} = {rate.inverse:.4f} CELO"
    if rate.source == "on-chain":
        text += f", {rate.num_reporters} reporters"
        if rate.is_expired:
            text += ", stale"
    else:
        text += ", fallback estimate"
    return text + ")"


class QueryRateHandler(SkillHandler):
    definition = SkillDefinition(
        id="query_rate",
        name="Query Oracle Rate",
        description="Read the SortedOracles median CELO price for a Mento stable token.",
        category=SkillCategory.oracle,
        command_tag="QUERY_RATE",
        params=(SkillParam(name="symbol", description="Stable token symbol", example="cUSD"),),
        examples=(
            SkillExample(input="What's the CELO price in dollars?", output="[[QUERY_RATE|cUSD]]"),
        ),
    )

    def __init__(self, resolver: MarketDataResolver) -> None:
        self._resolver = resolver

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        rate = await self._resolver.get_oracle_rate(params[0])
        return SkillResult.ok(render_rate(rate), data=rate.model_dump(mode="json"))


class QueryAllRatesHandler(SkillHandler):
    definition = SkillDefinition(
        id="query_all_rates",
        name="Query All Oracle Rates",
        description="Read CELO median prices for every Mento stable token at once.",
        category=SkillCategory.oracle,
        command_tag="QUERY_ALL_RATES",
        examples=(SkillExample(input="Show me all CELO rates", output="[[QUERY_ALL_RATES]]"),),
    )

    def __init__(self, resolver: MarketDataResolver) -> None:
        self._resolver = resolver

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        rates = await self._resolver.get_all_rates()
        return SkillResult.ok(
            "; ".join(render_rate(r) for r in rates),
            data={"rates": [r.model_dump(mode="json") for r in rates]},
        )
