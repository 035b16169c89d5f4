from __future__ import annotations

from decimal import Decimal

import structlog

from agenthaus.connectors.sinks import LoggingSink, PersistenceSink
from agenthaus.core.errors import (
    InvalidParamsError,
    MissingConfigurationError,
    RegistryInconsistencyError,
    SafetyViolationError,
    SkillError,
)
from agenthaus.core.parser import ParsedCommand
from agenthaus.schemas.records import ActivityRecord, ActivityType, TransactionRecord
from agenthaus.schemas.skill import ErrorKind, PendingCommand, SkillDefinition, SkillResult
from agenthaus.skills.base import ExecutionContext, SkillHandler, short_address
from agenthaus.skills.registry import SkillRegistry

log = structlog.get_logger()


class Dispatcher:
    """Validates parsed commands, applies the safety policy and runs handlers.

    Every outcome is returned as a ``SkillResult``; nothing raises to the
    caller. Commands of one turn must be dispatched one at a time.
    """

    def __init__(self, registry: SkillRegistry, sink: PersistenceSink | None = None) -> None:
        self._registry = registry
        self._sink = sink or LoggingSink()

    async def dispatch(self, command: ParsedCommand, context: ExecutionContext) -> SkillResult:
        try:
            handler = self._registry.handler(command.skill_id)
        except RegistryInconsistencyError as exc:
            log.error("dispatcher.unknown_skill", skill_id=command.skill_id, tag=command.command_tag)
            return SkillResult.failure(exc.kind, exc.message)

        definition = handler.definition
        params = list(command.params)
        try:
            _validate_params(definition, params)
            _require_wallet(definition, context)
            if not definition.mutates_state:
                return await self._invoke(handler, params, context)

            async with context.spend_lock:
                amount = _check_safety(handler, params, context)
                if context.policy.require_confirmation:
                    return self._hold(definition, command, amount, context)
                return await self._run_mutating(handler, params, amount, context)
        except SkillError as exc:
            _log_rejection(definition, exc, context)
            return SkillResult.failure(exc.kind, exc.message)

    async def resume(self, pending: PendingCommand, context: ExecutionContext) -> SkillResult:
        """Execute a command previously held for confirmation.

        Limits are re-checked against the current running total; only the
        confirmation gate is skipped.
        """
        if pending.agent_id != context.agent_id:
            log.warning(
                "dispatcher.confirmation_agent_mismatch",
                confirmation_id=pending.confirmation_id,
                agent_id=context.agent_id,
            )
            return SkillResult.failure(
                ErrorKind.safety_violation, "Confirmation belongs to another agent"
            )

        try:
            handler = self._registry.handler(pending.skill_id)
        except RegistryInconsistencyError as exc:
            log.error("dispatcher.unknown_skill", skill_id=pending.skill_id)
            return SkillResult.failure(exc.kind, exc.message)

        definition = handler.definition
        params = list(pending.params)
        try:
            _validate_params(definition, params)
            _require_wallet(definition, context)
            async with context.spend_lock:
                amount = _check_safety(handler, params, context)
                log.info("dispatcher.confirmed", confirmation_id=pending.confirmation_id, skill=definition.id)
                return await self._run_mutating(handler, params, amount, context)
        except SkillError as exc:
            _log_rejection(definition, exc, context)
            return SkillResult.failure(exc.kind, exc.message)

    async def _invoke(
        self, handler: SkillHandler, params: list[str], context: ExecutionContext
    ) -> SkillResult:
        try:
            result = await handler.execute(params, context)
        except SkillError as exc:
            log.warning("dispatcher.skill_error", skill=handler.id, kind=exc.kind, error=exc.message)
            return SkillResult.failure(exc.kind, exc.message)
        except Exception as exc:
            log.exception("dispatcher.handler_exception", skill=handler.id)
            return SkillResult.failure(ErrorKind.execution_error, str(exc) or type(exc).__name__)

        log.info("dispatcher.ok", skill=handler.id, agent_id=context.agent_id)
        return result

    async def _run_mutating(
        self,
        handler: SkillHandler,
        params: list[str],
        amount: float,
        context: ExecutionContext,
    ) -> SkillResult:
        result = await self._invoke(handler, params, context)
        if result.success and amount:
            policy = context.policy
            policy.spending_used = float(Decimal(str(policy.spending_used)) + Decimal(str(amount)))
            log.info(
                "dispatcher.spend_committed",
                skill=handler.id,
                amount=amount,
                spending_used=policy.spending_used,
                spending_limit=policy.spending_limit,
            )
        await self._record(handler.definition, params, result, context)
        return result

    def _hold(
        self,
        definition: SkillDefinition,
        command: ParsedCommand,
        amount: float,
        context: ExecutionContext,
    ) -> SkillResult:
        pending = PendingCommand(
            agent_id=context.agent_id,
            skill_id=definition.id,
            command_tag=command.command_tag,
            params=command.params,
            amount=amount or None,
        )
        log.info(
            "dispatcher.pending_confirmation",
            skill=definition.id,
            confirmation_id=pending.confirmation_id,
            agent_id=context.agent_id,
        )
        message = f"owner approval required (ref {pending.confirmation_id[:8]})"
        return SkillResult(
            success=False,
            display=message,
            error=ErrorKind.pending_confirmation,
            error_message=message,
            pending=pending,
        )

    async def _record(
        self,
        definition: SkillDefinition,
        params: list[str],
        result: SkillResult,
        context: ExecutionContext,
    ) -> None:
        data = result.data or {}
        try:
            if result.success and data.get("tx_hash"):
                await self._sink.record_transaction(
                    TransactionRecord(
                        agent_id=context.agent_id,
                        tx_hash=data["tx_hash"],
                        type=data.get("tx_type", "send"),
                        from_address=context.wallet_address,
                        to_address=data.get("to"),
                        amount=data.get("amount"),
                        currency=data.get("currency"),
                        description=data.get("description") or result.display,
                    )
                )
            await self._sink.log_activity(
                ActivityRecord(
                    agent_id=context.agent_id,
                    type=ActivityType.action if result.success else ActivityType.error,
                    message=result.display if result.success else f"{definition.name} failed: {result.error_message}",
                    metadata={
                        "skill_id": definition.id,
                        "params": params,
                        "tx_hash": data.get("tx_hash"),
                        "error": result.error,
                    },
                )
            )
        except Exception:
            log.exception("dispatcher.sink_failed", skill=definition.id, agent_id=context.agent_id)


def _validate_params(definition: SkillDefinition, params: list[str]) -> None:
    missing = [
        p.name
        for i, p in enumerate(definition.params)
        if p.required and (i >= len(params) or not params[i])
    ]
    if missing:
        raise InvalidParamsError(
            f"Missing {', '.join(missing)}; usage {definition.usage()}"
        )


def _require_wallet(definition: SkillDefinition, context: ExecutionContext) -> None:
    if definition.requires_wallet and not context.wallet_address:
        raise MissingConfigurationError(f"{definition.name} needs an agent wallet, and none is set up")


def _check_safety(handler: SkillHandler, params: list[str], context: ExecutionContext) -> float:
    policy = context.policy
    for destination in handler.destinations(params):
        if policy.is_blocked(destination):
            raise SafetyViolationError(f"Destination {short_address(destination)} is blocked")

    amount = handler.amount(params)
    if amount is None:
        return 0.0
    if amount > policy.max_transaction_amount:
        raise SafetyViolationError(
            f"Amount {amount:g} exceeds the per-transaction limit of {policy.max_transaction_amount:g}"
        )
    if Decimal(str(policy.spending_used)) + Decimal(str(amount)) > Decimal(str(policy.spending_limit)):
        raise SafetyViolationError(
            f"Amount {amount:g} would exceed the spending limit "
            f"({policy.spending_used:g} of {policy.spending_limit:g} used)"
        )
    return amount


def _log_rejection(definition: SkillDefinition, exc: SkillError, context: ExecutionContext) -> None:
    log.warning(
        f"dispatcher.{exc.kind}",
        skill=definition.id,
        agent_id=context.agent_id,
        error=exc.message,
    )
