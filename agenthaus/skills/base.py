from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any

from agenthaus.config import settings
from agenthaus.connectors.wallet import WalletClient
from agenthaus.core.errors import ExecutionFailedError, InvalidParamsError, MissingConfigurationError
from agenthaus.schemas.skill import SkillDefinition, SkillResult


class SkillHandler(ABC):
    definition: SkillDefinition
    # Names of params the dispatcher treats as the spend amount / destinations
    amount_param: str | None = None
    destination_params: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.definition.id

    @abstractmethod
    async def execute(self, params: list[str], context: ExecutionContext) -> SkillResult:
        """Run the skill with positional params as written in the marker."""

    def amount(self, params: list[str]) -> float | None:
        """Return the numeric amount this command would spend, if any."""
        if self.amount_param is None:
            return None
        idx = self.definition.param_index(self.amount_param)
        raw = params[idx] if idx < len(params) else ""
        return parse_amount(raw, self.amount_param)

    def destinations(self, params: list[str]) -> list[str]:
        out = []
        for name in self.destination_params:
            idx = self.definition.param_index(name)
            if idx < len(params) and params[idx]:
                out.append(params[idx])
        return out


def parse_amount(raw: str, name: str = "amount") -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidParamsError(f"{name} must be a number, got {raw!r}") from None
    if not value > 0 or value == float("inf"):
        raise InvalidParamsError(f"{name} must be a positive number, got {raw!r}")
    return value


def short_address(value: str) -> str:
    return value if len(value) <= 14 else f"{value[:6]}...{value[-4:]}"


def transaction_data(
    tx_hash: str,
    tx_type: str,
    amount: float,
    currency: str,
    description: str,
    to: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Result payload for mutating skills; the dispatcher turns it into a TransactionRecord."""
    return {
        "tx_hash": tx_hash,
        "tx_type": tx_type,
        "amount": amount,
        "currency": currency,
        "to": to,
        "description": description,
        **extra,
    }


@dataclass
class SafetyPolicy:
    spending_limit: float
    spending_used: float = 0.0
    max_transaction_amount: float = float("inf")
    require_confirmation: bool = False
    blocked_addresses: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        self.blocked_addresses = frozenset(a.lower() for a in self.blocked_addresses)

    def is_blocked(self, address: str) -> bool:
        return address.strip().lower() in self.blocked_addresses


@dataclass
class ExecutionContext:
    """Runtime context passed to every skill execution within one turn."""

    agent_id: str
    policy: SafetyPolicy
    wallet_address: str | None = None
    wallet_derivation_index: int | None = None
    spend_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)


class WalletSkillHandler(SkillHandler):
    """Base for skills that submit signed transactions through a WalletClient."""

    def __init__(self, wallet: WalletClient | None, timeout: float | None = None) -> None:
        self._wallet = wallet
        self._timeout = timeout or settings.wallet_submit_timeout_seconds

    def _signer(self, context: ExecutionContext) -> tuple[WalletClient, int]:
        if self._wallet is None:
            raise MissingConfigurationError("No wallet signer is configured for this agent")
        if context.wallet_derivation_index is None:
            raise MissingConfigurationError("Agent wallet has no derivation index")
        return self._wallet, context.wallet_derivation_index

    async def _submit(self, call: Awaitable[str]) -> str:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError:
            raise ExecutionFailedError(
                "Transaction submission timed out; check the wallet before retrying"
            ) from None
