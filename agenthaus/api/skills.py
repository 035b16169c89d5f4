from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query

from agenthaus.dependencies import get_engine
from agenthaus.engine import Engine
from agenthaus.schemas.api import SkillListResponse
from agenthaus.schemas.skill import SkillCategory

log = structlog.get_logger()

router = APIRouter()


@router.get("", response_model=SkillListResponse)
async def list_skills(
    engine: Annotated[Engine, Depends(get_engine)],
    template: str | None = Query(default=None, description='Template id, e.g. "forex"'),
    category: SkillCategory | None = Query(default=None),
):
    """List skills, optionally filtered by agent template or category (template wins)."""
    if template:
        skills = engine.registry.list_for_template(template)
    elif category:
        skills = engine.registry.list_by_category(category)
    else:
        skills = engine.registry.list_all()
    return SkillListResponse(skills=skills, count=len(skills))
