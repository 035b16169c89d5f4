from __future__ import annotations

from agenthaus.connectors.celo import NATIVE_SYMBOL, to_wei
from agenthaus.schemas.skill import SkillCategory, SkillDefinition, SkillExample, SkillParam, SkillResult
from agenthaus.skills.base import (
    ExecutionContext,
    WalletSkillHandler,
    parse_amount,
    short_address,
    transaction_data,
)
from agenthaus.skills.handlers.transfer import require_recipient


class TipHandler(WalletSkillHandler):
    definition = SkillDefinition(
        id="tip",
        name="Tip",
        description="Send a small CELO tip with an optional note.",
        category=SkillCategory.social,
        command_tag="TIP",
        params=(
            SkillParam(
                name="to",
                description="Recipient wallet address",
                example="0x1234567890abcdef1234567890abcdef12345678",
            ),
            SkillParam(name="amount", description="CELO amount", example="0.1"),
            SkillParam(name="message", description="Note for the recipient", required=False, example="great post!"),
        ),
        examples=(
            SkillExample(input="Tip 0xabc... 0.1 CELO for the thread", output="[[TIP|0xabc...|0.1|thanks for the thread]]"),
        ),
        requires_wallet=True,
        mutates_state=True,
    )
    amount_param = "amount"
    destination_params = ("to",)

    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        to = require_recipient(params[0])
        amount = parse_amount(params[1])
        message = params[2] if len(params) > 2 else ""
        wallet, index = self._signer(context)

        tx_hash = await self._submit(wallet.send_native(index, to, to_wei(params[1])))
        description = f"Tipped {params[1]} {NATIVE_SYMBOL} to {to}"
        display = f"Tipped {params[1]} {NATIVE_SYMBOL} to {short_address(to)}"
        if message:
            display += f' ("{message}")'
        return SkillResult.ok(
            f"{display} (tx {short_address(tx_hash)})",
            data=transaction_data(tx_hash, "tip", amount, NATIVE_SYMBOL, description, to=to, message=message),
        )
