import pytest

from agenthaus.core.errors import RegistryInconsistencyError
from agenthaus.core.prompt import build_skills_prompt
from agenthaus.schemas.skill import SkillCategory
from agenthaus.skills.handlers.oracle import QueryRateHandler
from agenthaus.skills.registry import SkillRegistry
from agenthaus.skills.templates import ALL_SKILLS, TEMPLATE_SKILLS


def test_all_skills_registered(engine):
    ids = [s.id for s in engine.registry.list_all()]
    assert sorted(ids) == sorted(ALL_SKILLS)
    assert len(ids) == 11


def test_lookup_by_tag_is_case_insensitive(engine):
    assert engine.registry.get_by_tag("query_rate").id == "query_rate"
    assert engine.registry.get_by_tag(" Send_Celo ").id == "send_celo"
    assert engine.registry.get_by_tag("NOT_A_SKILL") is None


def test_get_unknown_id(engine):
    assert engine.registry.get("nope") is None
    with pytest.raises(RegistryInconsistencyError):
        engine.registry.handler("nope")


def test_duplicate_id_rejected(resolver):
    with pytest.raises(ValueError, match="Duplicate skill id"):
        SkillRegistry([QueryRateHandler(resolver), QueryRateHandler(resolver)])


def test_template_with_unknown_skill_rejected(resolver):
    with pytest.raises(ValueError, match="unknown skills"):
        SkillRegistry([QueryRateHandler(resolver)], {"payment": ["query_rate", "send_celo"]})


def test_list_by_category(engine):
    oracle = engine.registry.list_by_category(SkillCategory.oracle)
    assert {s.id for s in oracle} == {"query_rate", "query_all_rates"}
    assert {s.id for s in engine.registry.list_by_category("transfer")} == {"send_celo", "send_token"}
    assert engine.registry.list_by_category(SkillCategory.defi) == []


def test_list_for_template_keeps_order(engine):
    forex = [s.id for s in engine.registry.list_for_template("forex")]
    assert forex == list(TEMPLATE_SKILLS["forex"])
    assert "forex_rate" in forex
    assert "send_celo" not in forex


def test_custom_template_has_everything(engine):
    assert len(engine.registry.list_for_template("custom")) == 11


def test_unknown_template_is_empty(engine):
    assert engine.registry.list_for_template("pirate") == []
    assert set(engine.registry.templates()) == {"payment", "trading", "forex", "social", "custom"}


def test_usage_marks_optional_params(engine):
    assert engine.registry.get("tip").usage() == "[[TIP|to|amount|message?]]"
    assert engine.registry.get("gas_price").usage() == "[[GAS_PRICE]]"
    assert engine.registry.get("send_token").required_count == 3


def test_skills_prompt_lists_template_skills(engine):
    prompt = build_skills_prompt(engine.registry.list_for_template("social"))
    assert "[[TIP|to|amount|message?]]" in prompt
    assert "[[SEND_CELO|to|amount]]" in prompt
    assert "[[SWAP" not in prompt
    assert "Moves funds from your wallet." in prompt


def test_skills_prompt_empty():
    assert build_skills_prompt([]) == ""


def test_system_prompt_joins_base(engine):
    prompt = engine.system_prompt("payment", "You are a helpful payment agent.")
    assert prompt.startswith("You are a helpful payment agent.\n\n## Skills")
    assert engine.system_prompt("pirate", "Base") == "Base"
