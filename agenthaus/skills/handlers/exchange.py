from __future__ import annotations

from decimal import Decimal

from agenthaus.connectors.celo import MENTO_EXCHANGES, NATIVE_SYMBOL, to_wei
from agenthaus.connectors.wallet import WalletClient
from agenthaus.core.errors import InvalidParamsError
from agenthaus.core.market_data import MarketDataResolver, canonical_symbol
from agenthaus.schemas.market import SwapQuote
from agenthaus.schemas.skill import SkillCategory, SkillDefinition, SkillExample, SkillParam, SkillResult
from agenthaus.skills.base import (
    ExecutionContext,
    SkillHandler,
    WalletSkillHandler,
    parse_amount,
    short_address,
    transaction_data,
)

_SWAP_PARAMS = (
    SkillParam(name="sell", description="Currency to sell", example="CELO"),
    SkillParam(name="buy", description="Currency to buy", example="cUSD"),
    SkillParam(name="amount", description="Amount of the sell currency", example="10"),
)


def render_quote(quote: SwapQuote) -> str:
    source = "Mento exchange" if quote.source == "direct-exchange" else "oracle estimate"
    return (
        f"{quote.sell_amount} {quote.sell_currency} -> {quote.buy_amount} {quote.buy_currency} "
        f"(rate {quote.rate:.4f}, ~{quote.slippage}% slippage, {source})"
    )


class GetQuoteHandler(SkillHandler):
    definition = SkillDefinition(
        id="get_quote",
        name="Get Swap Quote",
        description="Quote a Mento swap between CELO and a stable token, or between two stables.",
        category=SkillCategory.exchange,
        command_tag="GET_QUOTE",
        params=_SWAP_PARAMS,
        examples=(
            SkillExample(input="How much cUSD would I get for 10 CELO?", output="[[GET_QUOTE|CELO|cUSD|10]]"),
        ),
    )

    def __init__(self, resolver: MarketDataResolver) -> None:
        self._resolver = resolver

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        quote = await self._resolver.get_quote(params[0], params[1], params[2])
        return SkillResult.ok(render_quote(quote), data=quote.model_dump(mode="json"))


class SwapHandler(WalletSkillHandler):
    definition = SkillDefinition(
        id="swap",
        name="Swap via Mento",
        description="Swap CELO for a stable token (or back) through the Mento exchange.",
        category=SkillCategory.exchange,
        command_tag="SWAP",
        params=_SWAP_PARAMS,
        examples=(SkillExample(input="Swap 5 CELO to cUSD", output="[[SWAP|CELO|cUSD|5]]"),),
        requires_wallet=True,
        mutates_state=True,
    )
    amount_param = "amount"

    def __init__(
        self,
        resolver: MarketDataResolver,
        wallet: WalletClient | None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(wallet, timeout)
        self._resolver = resolver

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        sell = canonical_symbol(params[0])
        buy = canonical_symbol(params[1])
        if sell == NATIVE_SYMBOL and buy in MENTO_EXCHANGES:
            exchange, sell_gold = MENTO_EXCHANGES[buy], True
        elif buy == NATIVE_SYMBOL and sell in MENTO_EXCHANGES:
            exchange, sell_gold = MENTO_EXCHANGES[sell], False
        else:
            raise InvalidParamsError(f"No direct Mento exchange for {sell} -> {buy}; swap through CELO")
        amount = parse_amount(params[2])
        wallet, index = self._signer(context)

        quote = await self._resolver.get_quote(sell, buy, params[2])
        min_buy = Decimal(quote.buy_amount) * (1 - Decimal(str(quote.slippage)) / 100)
        tx_hash = await self._submit(
            wallet.exchange(index, exchange, to_wei(params[2]), to_wei(min_buy), sell_gold)
        )
        description = f"Swapped {quote.sell_amount} {sell} for ~{quote.buy_amount} {buy}"
        return SkillResult.ok(
            f"{description} (tx {short_address(tx_hash)})",
            data=transaction_data(
                tx_hash,
                "swap",
                amount,
                sell,
                description,
                quote=quote.model_dump(mode="json"),
            ),
        )
