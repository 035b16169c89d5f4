from __future__ import annotations

from collections.abc import Iterable

from agenthaus.core.parser import LiteralSegment, Segment
from agenthaus.schemas.skill import ErrorKind, SkillResult

FAILURE_TEMPLATES: dict[ErrorKind, str] = {
    ErrorKind.validation_error: "[{tag} not run: {detail}]",
    ErrorKind.configuration_error: "[{tag} unavailable: {detail}]",
    ErrorKind.safety_violation: "[{tag} blocked by safety policy: {detail}]",
    ErrorKind.execution_error: "[{tag} failed: {detail}]",
    ErrorKind.internal: "[{tag} failed: internal error]",
    ErrorKind.pending_confirmation: "[{tag} awaiting confirmation: {detail}]",
}


def render_result(tag: str, result: SkillResult) -> str:
    if result.success:
        return result.display
    template = FAILURE_TEMPLATES[result.error or ErrorKind.execution_error]
    return template.format(tag=tag.upper(), detail=result.error_message or result.display)


class OutputSplicer:
    """Turns segments back into output text, substituting marker spans only."""

    def render(self, segment: Segment, result: SkillResult | None = None) -> str:
        if isinstance(segment, LiteralSegment):
            return segment.text
        if result is None:
            raise ValueError(f"No result for command {segment.command.raw!r}")
        return render_result(segment.command.command_tag, result)

    def splice(self, items: Iterable[tuple[Segment, SkillResult | None]]) -> str:
        return "".join(self.render(segment, result) for segment, result in items)
