from __future__ import annotations

from agenthaus.schemas.skill import SkillDefinition

SKILLS_PROMPT_TEMPLATE = """\
## Skills
You can act on the Celo blockchain by writing command markers in your reply.
A marker looks like [[TAG|param1|param2]]. It is replaced by the result of the
action before your reply is shown, so write it exactly where the result
should appear.

Rules:
1. Use only the tags listed below; parameters go in the listed order.
2. Separate fields with "|". Do not put "|" inside a value.
3. Never invent addresses or amounts the user did not give you.
4. Commands that move funds are checked against your spending limits and may
   wait for the owner's approval.

{skills}
"""


def render_skill(skill: SkillDefinition) -> str:
    lines = [f"### {skill.name} {skill.usage()}", skill.description]
    for p in skill.params:
        optional = "" if p.required else " (optional)"
        lines.append(f"- {p.name}{optional}: {p.description}, e.g. {p.example}")
    if skill.mutates_state:
        lines.append("- Moves funds from your wallet.")
    for ex in skill.examples:
        lines.append(f'Example: "{ex.input}" -> {ex.output}')
    return "\n".join(lines)


def build_skills_prompt(skills: list[SkillDefinition]) -> str:
    if not skills:
        return ""
    return SKILLS_PROMPT_TEMPLATE.format(skills="\n\n".join(render_skill(s) for s in skills))
