from __future__ import annotations

import asyncio

from agenthaus.connectors.celo import NATIVE_SYMBOL
from agenthaus.core.errors import InvalidParamsError
from agenthaus.core.market_data import MarketDataResolver, canonical_symbol
from agenthaus.schemas.market import OracleRate
from agenthaus.schemas.skill import SkillCategory, SkillDefinition, SkillExample, SkillParam, SkillResult
from agenthaus.skills.base import ExecutionContext, SkillHandler


class ForexRateHandler(SkillHandler):
    """Cross rate between two currencies derived from their CELO oracle prices."""

    definition = SkillDefinition(
        id="forex_rate",
        name="Forex Cross Rate",
        description="Derive the exchange rate between two Mento currencies from oracle prices.",
        category=SkillCategory.forex,
        command_tag="FOREX_RATE",
        params=(
            SkillParam(name="base", description="Base currency", example="cEUR"),
            SkillParam(name="quote", description="Quote currency", example="cUSD"),
        ),
        examples=(SkillExample(input="What's EUR/USD on Mento?", output="[[FOREX_RATE|cEUR|cUSD]]"),),
    )

    def __init__(self, resolver: MarketDataResolver) -> None:
        self._resolver = resolver

    async def _celo_price(self, symbol: str) -> OracleRate | None:
        if symbol == NATIVE_SYMBOL:
            return None
        return await self._resolver.get_oracle_rate(symbol)

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        base = canonical_symbol(params[0])
        quote = canonical_symbol(params[1])
        if base == quote:
            raise InvalidParamsError(f"Base and quote are both {base}")

        base_rate, quote_rate = await asyncio.gather(self._celo_price(base), self._celo_price(quote))
        base_price = base_rate.rate if base_rate else 1.0
        quote_price = quote_rate.rate if quote_rate else 1.0
        if base_price == 0:
            raise InvalidParamsError(f"No usable price for {base}")

        cross = quote_price / base_price
        sources = {r.source for r in (base_rate, quote_rate) if r is not None}
        source = "on-chain" if sources == {"on-chain"} else "estimated"
        return SkillResult.ok(
            f"1 {base} = {cross:.4f} {quote} ({source})",
            data={"base": base, "quote": quote, "rate": cross, "source": source},
        )
