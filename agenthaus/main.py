from contextlib import asynccontextmanager

import sentry_sdk
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agenthaus.api import health, market, skills
from agenthaus.config import settings
from agenthaus.engine import build_engine, configure_logging

configure_logging()

if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn, traces_sample_rate=0.2)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log = structlog.get_logger()
    if getattr(app.state, "engine", None) is None:
        app.state.engine = build_engine()
    log.info(
        "Starting AgentHaus skill engine",
        oracle_rpc=settings.oracle_rpc_url,
        environment=settings.environment,
    )
    yield


app = FastAPI(
    title="AgentHaus Skill Engine",
    version="0.1.0",
    lifespan=lifespan,
)

origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()] if settings.allowed_origins else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(skills.router, prefix="/skills", tags=["skills"])
app.include_router(market.router, prefix="/market", tags=["market"])
