"""Composition root: builds the shared clients and wires the engine together."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

import structlog

from agenthaus.config import settings
from agenthaus.connectors.celo import CeloChainClient, MentoPriceClient
from agenthaus.connectors.llm import BaseLLMClient, ChatMessage
from agenthaus.connectors.sinks import PersistenceSink
from agenthaus.connectors.wallet import WalletClient
from agenthaus.core.dispatcher import Dispatcher
from agenthaus.core.market_data import ChainReader, MarketDataResolver, PriceReader
from agenthaus.core.prompt import build_skills_prompt
from agenthaus.core.turn import Turn, TurnProcessor
from agenthaus.skills.base import ExecutionContext, SkillHandler
from agenthaus.skills.handlers.data import CheckBalanceHandler, GasPriceHandler, MyBalanceHandler
from agenthaus.skills.handlers.exchange import GetQuoteHandler, SwapHandler
from agenthaus.skills.handlers.forex import ForexRateHandler
from agenthaus.skills.handlers.oracle import QueryAllRatesHandler, QueryRateHandler
from agenthaus.skills.handlers.social import TipHandler
from agenthaus.skills.handlers.transfer import SendCeloHandler, SendTokenHandler
from agenthaus.skills.registry import SkillRegistry
from agenthaus.skills.templates import TEMPLATE_SKILLS

log = structlog.get_logger()


def configure_logging(level: int | None = None) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level if level is not None else settings.log_level),
    )


def build_handlers(resolver: MarketDataResolver, wallet: WalletClient | None) -> list[SkillHandler]:
    return [
        SendCeloHandler(wallet),
        SendTokenHandler(wallet),
        QueryRateHandler(resolver),
        QueryAllRatesHandler(resolver),
        GetQuoteHandler(resolver),
        SwapHandler(resolver, wallet),
        CheckBalanceHandler(resolver),
        MyBalanceHandler(resolver),
        GasPriceHandler(resolver),
        TipHandler(wallet),
        ForexRateHandler(resolver),
    ]


@dataclass
class Engine:
    registry: SkillRegistry
    resolver: MarketDataResolver
    dispatcher: Dispatcher
    turns: TurnProcessor

    def system_prompt(self, template_id: str, base_prompt: str = "") -> str:
        skills_prompt = build_skills_prompt(self.registry.list_for_template(template_id))
        return "\n\n".join(p for p in (base_prompt.strip(), skills_prompt) if p)

    def reply(
        self,
        llm: BaseLLMClient,
        messages: list[ChatMessage],
        context: ExecutionContext,
    ) -> tuple[Turn, AsyncIterator[str]]:
        """Stream an LLM reply through a fresh turn."""
        turn = self.turns.start(context)
        return turn, turn.run(llm.stream(messages))


def build_engine(
    prices: PriceReader | None = None,
    chain: ChainReader | None = None,
    wallet: WalletClient | None = None,
    sink: PersistenceSink | None = None,
) -> Engine:
    """Construct the engine. Read clients are created once here and shared by all turns."""
    prices = prices or MentoPriceClient()
    chain = chain or CeloChainClient()
    resolver = MarketDataResolver(prices, chain)
    registry = SkillRegistry(build_handlers(resolver, wallet), TEMPLATE_SKILLS)
    dispatcher = Dispatcher(registry, sink)
    log.info("engine.built", skills=len(registry.list_all()), wallet=wallet is not None)
    return Engine(
        registry=registry,
        resolver=resolver,
        dispatcher=dispatcher,
        turns=TurnProcessor(registry, dispatcher),
    )
