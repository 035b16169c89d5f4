from __future__ import annotations

from agenthaus.connectors.celo import NATIVE_SYMBOL, STABLE_TOKENS, is_address, to_wei
from agenthaus.core.errors import InvalidParamsError
from agenthaus.core.market_data import canonical_symbol
from agenthaus.schemas.skill import SkillCategory, SkillDefinition, SkillExample, SkillParam, SkillResult
from agenthaus.skills.base import (
    ExecutionContext,
    WalletSkillHandler,
    parse_amount,
    short_address,
    transaction_data,
)

_TO = SkillParam(
    name="to",
    description="Recipient wallet address (0x...)",
    example="0x1234567890abcdef1234567890abcdef12345678",
)
_AMOUNT = SkillParam(name="amount", description="Amount to send", example="1.5")


def require_recipient(value: str) -> str:
    value = value.strip()
    if not is_address(value):
        raise InvalidParamsError(f"Not a valid recipient address: {value}")
    return value


class SendCeloHandler(WalletSkillHandler):
    definition = SkillDefinition(
        id="send_celo",
        name="Send CELO",
        description="Send native CELO from the agent wallet to an address.",
        category=SkillCategory.transfer,
        command_tag="SEND_CELO",
        params=(_TO, _AMOUNT),
        examples=(
            SkillExample(
                input="Send 2 CELO to 0xabc...",
                output="[[SEND_CELO|0xabc...|2]]",
            ),
        ),
        requires_wallet=True,
        mutates_state=True,
    )
    amount_param = "amount"
    destination_params = ("to",)

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        to = require_recipient(params[0])
        amount = parse_amount(params[1])
        wallet, index = self._signer(context)

        tx_hash = await self._submit(wallet.send_native(index, to, to_wei(params[1])))
        description = f"Sent {params[1]} {NATIVE_SYMBOL} to {to}"
        return SkillResult.ok(
            f"Sent {params[1]} {NATIVE_SYMBOL} to {short_address(to)} (tx {short_address(tx_hash)})",
            data=transaction_data(tx_hash, "send", amount, NATIVE_SYMBOL, description, to=to),
        )


class SendTokenHandler(WalletSkillHandler):
    definition = SkillDefinition(
        id="send_token",
        name="Send Stable Token",
        description="Send a Mento stable token (cUSD, cEUR, cREAL, eXOF) to an address.",
        category=SkillCategory.transfer,
        command_tag="SEND_TOKEN",
        params=(
            SkillParam(name="token", description="Token symbol", example="cUSD"),
            _TO,
            _AMOUNT,
        ),
        examples=(
            SkillExample(
                input="Pay 10 cUSD to 0xabc...",
                output="[[SEND_TOKEN|cUSD|0xabc...|10]]",
            ),
        ),
        requires_wallet=True,
        mutates_state=True,
    )
    amount_param = "amount"
    destination_params = ("to",)

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        symbol = canonical_symbol(params[0])
        token = STABLE_TOKENS.get(symbol)
        if token is None:
            raise InvalidParamsError(
                f"Unsupported token {params[0]!r}; expected one of {', '.join(STABLE_TOKENS)}"
            )
        to = require_recipient(params[1])
        amount = parse_amount(params[2])
        wallet, index = self._signer(context)

        tx_hash = await self._submit(wallet.send_token(index, token, to, to_wei(params[2])))
        description = f"Sent {params[2]} {symbol} to {to}"
        return SkillResult.ok(
            f"Sent {params[2]} {symbol} to {short_address(to)} (tx {short_address(tx_hash)})",
            data=transaction_data(tx_hash, "send", amount, symbol, description, to=to),
        )
