from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from agenthaus.core.errors import InvalidParamsError
from agenthaus.dependencies import get_engine
from agenthaus.engine import Engine
from agenthaus.schemas.api import QuoteResponse, RatesResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/rates", response_model=RatesResponse)
async def oracle_rates(engine: Annotated[Engine, Depends(get_engine)]):
    """Median CELO prices for every oracle symbol; stale reads fall back per symbol."""
    return RatesResponse(rates=await engine.resolver.get_all_rates())


@router.get("/quote", response_model=QuoteResponse)
async def swap_quote(
    engine: Annotated[Engine, Depends(get_engine)],
    sell: str = Query(..., min_length=1),
    buy: str = Query(..., min_length=1),
    amount: str = Query(..., min_length=1),
):
    try:
        quote = await engine.resolver.get_quote(sell, buy, amount)
    except InvalidParamsError as e:
        log.info("market.quote.invalid", sell=sell, buy=buy, amount=amount, error=e.message)
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, e.message)
    return QuoteResponse(quote=quote)
