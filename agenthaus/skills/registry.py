from __future__ import annotations

from collections.abc import Iterable, Mapping

import structlog

from agenthaus.core.errors import RegistryInconsistencyError
from agenthaus.schemas.skill import SkillCategory, SkillDefinition
from agenthaus.skills.base import SkillHandler

log = structlog.get_logger()


class SkillRegistry:
    """Skill definitions and handlers, indexed by id and by command tag."""

    def __init__(
        self,
        handlers: Iterable[SkillHandler],
        templates: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self._handlers: dict[str, SkillHandler] = {}
        self._by_tag: dict[str, SkillDefinition] = {}

        for handler in handlers:
            definition = handler.definition
            tag = definition.command_tag.upper()
            if definition.id in self._handlers:
                raise ValueError(f"Duplicate skill id: {definition.id}")
            if tag in self._by_tag:
                raise ValueError(f"Duplicate command tag: {definition.command_tag}")
            self._handlers[definition.id] = handler
            self._by_tag[tag] = definition

        self._templates: dict[str, tuple[str, ...]] = {}
        for template_id, skill_ids in (templates or {}).items():
            ids = tuple(skill_ids)
            unknown = [s for s in ids if s not in self._handlers]
            if unknown:
                raise ValueError(f"Template {template_id!r} references unknown skills: {unknown}")
            self._templates[template_id] = ids

        log.debug("registry.built", skills=len(self._handlers), templates=list(self._templates))

    def get(self, skill_id: str) -> SkillDefinition | None:
        handler = self._handlers.get(skill_id)
        return handler.definition if handler else None

    def get_by_tag(self, tag: str) -> SkillDefinition | None:
        return self._by_tag.get(tag.strip().upper())

    def handler(self, skill_id: str) -> SkillHandler:
        handler = self._handlers.get(skill_id)
        if handler is None:
            raise RegistryInconsistencyError(f"Unknown skill id: {skill_id}")
        return handler

    def list_all(self) -> list[SkillDefinition]:
        return [h.definition for h in self._handlers.values()]

    def list_by_category(self, category: SkillCategory | str) -> list[SkillDefinition]:
        return [h.definition for h in self._handlers.values() if h.definition.category == category]

    def list_for_template(self, template_id: str) -> list[SkillDefinition]:
        return [self._handlers[s].definition for s in self._templates.get(template_id, ())]

    def templates(self) -> list[str]:
        return list(self._templates)
