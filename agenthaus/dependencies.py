from __future__ import annotations

from fastapi import Request

from agenthaus.engine import Engine


def get_engine(request: Request) -> Engine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise RuntimeError("Engine is not initialised; app lifespan did not run")
    return engine
