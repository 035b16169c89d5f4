"""One pass over one agent reply: parse, dispatch, splice."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator

import structlog

from agenthaus.core.dispatcher import Dispatcher
from agenthaus.core.parser import CommandParser, CommandSegment, ParsedCommand
from agenthaus.core.splicer import OutputSplicer
from agenthaus.schemas.skill import ErrorKind, PendingCommand, SkillResult
from agenthaus.skills.base import ExecutionContext
from agenthaus.skills.registry import SkillRegistry

log = structlog.get_logger()


class Turn:
    """State of a single reply being processed. Owned by one caller."""

    def __init__(
        self,
        parser: CommandParser,
        dispatcher: Dispatcher,
        splicer: OutputSplicer,
        context: ExecutionContext,
    ) -> None:
        self.context = context
        self.results: list[tuple[ParsedCommand, SkillResult]] = []
        self.aborted = False
        self.cancelled = False
        self._parser = parser
        self._dispatcher = dispatcher
        self._splicer = splicer
        self._in_flight: asyncio.Task[SkillResult] | None = None
        self._log = log.bind(agent_id=context.agent_id)

    @property
    def pending(self) -> list[PendingCommand]:
        return [r.pending for _, r in self.results if r.pending is not None]

    def cancel(self) -> None:
        """Stop dispatching; a command already running still completes."""
        self.cancelled = True

    async def run(self, fragments: AsyncIterable[str]) -> AsyncIterator[str]:
        async for fragment in fragments:
            for segment in self._parser.feed(fragment):
                if self.cancelled:
                    self._log.info("turn.cancelled", commands=len(self.results))
                    return
                if not isinstance(segment, CommandSegment):
                    yield self._splicer.render(segment)
                    continue

                result = await self._dispatch(segment.command)
                yield self._splicer.render(segment, result)
                if result.error is ErrorKind.internal:
                    self.aborted = True
                    self._log.error("turn.aborted", skill_id=segment.command.skill_id, error=result.error_message)
                    return

        if self.cancelled:
            self._log.info("turn.cancelled", commands=len(self.results))
            return
        for segment in self._parser.close():
            yield self._splicer.render(segment)

        self._log.info(
            "turn.completed",
            commands=len(self.results),
            failed=sum(1 for _, r in self.results if not r.success),
            spending_used=self.context.policy.spending_used,
        )

    async def drain(self) -> None:
        """Wait for a command still running after its consumer was cancelled."""
        if self._in_flight is not None:
            await asyncio.wait([self._in_flight])

    async def _dispatch(self, command: ParsedCommand) -> SkillResult:
        # Shielded so a caller cancelling mid-command cannot split check from
        # commit; the result is recorded by the task itself
        self._in_flight = asyncio.ensure_future(self._dispatch_and_record(command))
        return await asyncio.shield(self._in_flight)

    async def _dispatch_and_record(self, command: ParsedCommand) -> SkillResult:
        result = await self._dispatcher.dispatch(command, self.context)
        self.results.append((command, result))
        return result


class TurnProcessor:
    def __init__(
        self,
        registry: SkillRegistry,
        dispatcher: Dispatcher,
        splicer: OutputSplicer | None = None,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._splicer = splicer or OutputSplicer()

    def start(self, context: ExecutionContext) -> Turn:
        return Turn(CommandParser(self._registry), self._dispatcher, self._splicer, context)

    def stream(self, fragments: AsyncIterable[str], context: ExecutionContext) -> AsyncIterator[str]:
        return self.start(context).run(fragments)

    async def process_text(self, text: str, context: ExecutionContext) -> str:
        turn = self.start(context)
        return "".join([chunk async for chunk in turn.run(_single(text))])


async def _single(text: str) -> AsyncIterator[str]:
    yield text
