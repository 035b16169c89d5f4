from __future__ import annotations

from agenthaus.core.market_data import MarketDataResolver
from agenthaus.schemas.market import AddressBalance
from agenthaus.schemas.skill import SkillCategory, SkillDefinition, SkillExample, SkillParam, SkillResult
from agenthaus.skills.base import ExecutionContext, SkillHandler, short_address


def render_balance(balance: AddressBalance) -> str:
    return (
        f"{short_address(balance.address)} holds {balance.celo} CELO, {balance.cUSD} cUSD, "
        f"{balance.cEUR} cEUR, {balance.cREAL} cREAL"
    )


class CheckBalanceHandler(SkillHandler):
    definition = SkillDefinition(
        id="check_balance",
        name="Check Balance",
        description="Look up CELO and stable token balances of any address.",
        category=SkillCategory.data,
        command_tag="CHECK_BALANCE",
        params=(
            SkillParam(
                name="address",
                description="Address to inspect",
                example="0x1234567890abcdef1234567890abcdef12345678",
            ),
        ),
        examples=(SkillExample(input="What does 0xabc... hold?", output="[[CHECK_BALANCE|0xabc...]]"),),
    )

    def __init__(self, resolver: MarketDataResolver) -> None:
        self._resolver = resolver

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        balance = await self._resolver.check_balance(params[0])
        return SkillResult.ok(render_balance(balance), data=balance.model_dump())


class MyBalanceHandler(SkillHandler):
    definition = SkillDefinition(
        id="my_balance",
        name="My Wallet Balance",
        description="Show the balances of the agent's own wallet.",
        category=SkillCategory.data,
        command_tag="MY_BALANCE",
        examples=(SkillExample(input="How much do you have?", output="[[MY_BALANCE]]"),),
        requires_wallet=True,
    )

    def __init__(self, resolver: MarketDataResolver) -> None:
        self._resolver = resolver

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        balance = await self._resolver.check_balance(context.wallet_address or "")
        return SkillResult.ok(render_balance(balance), data=balance.model_dump())


class GasPriceHandler(SkillHandler):
    definition = SkillDefinition(
        id="gas_price",
        name="Gas Price",
        description="Current Celo gas price and the cost of a simple transfer.",
        category=SkillCategory.data,
        command_tag="GAS_PRICE",
        examples=(SkillExample(input="Is gas expensive right now?", output="[[GAS_PRICE]]"),),
    )

    def __init__(self, resolver: MarketDataResolver) -> None:
        self._resolver = resolver

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        gas = await self._resolver.get_gas_price()
        return SkillResult.ok(
            f"Gas: {gas.base_fee} gwei (tip {gas.suggested_tip} gwei); a transfer costs ~{gas.estimated_cost} CELO",
            data=gas.model_dump(),
        )
