"""Tests for the HTTP surface."""

import pytest
from httpx import ASGITransport, AsyncClient

from agenthaus.connectors.celo import STABLE_TOKENS
from agenthaus.main import app


@pytest.fixture
def api(engine):
    app.state.engine = engine
    yield app
    del app.state.engine


def client(api):
    return AsyncClient(transport=ASGITransport(app=api), base_url="http://test")


@pytest.mark.asyncio
async def test_health(api):
    async with client(api) as c:
        resp = await c.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_list_all_skills(api):
    async with client(api) as c:
        resp = await c.get("/skills")
    body = resp.json()
    assert body["count"] == 11
    send = next(s for s in body["skills"] if s["id"] == "send_celo")
    assert send["command_tag"] == "SEND_CELO"
    assert send["mutates_state"] is True
    assert [p["name"] for p in send["params"]] == ["to", "amount"]


@pytest.mark.asyncio
async def test_skills_for_template(api):
    async with client(api) as c:
        resp = await c.get("/skills", params={"template": "forex", "category": "transfer"})
    body = resp.json()
    assert [s["id"] for s in body["skills"]] == [
        "query_rate",
        "query_all_rates",
        "forex_rate",
        "get_quote",
        "swap",
        "my_balance",
    ]


@pytest.mark.asyncio
async def test_skills_by_category(api):
    async with client(api) as c:
        resp = await c.get("/skills", params={"category": "oracle"})
        unknown = await c.get("/skills", params={"template": "pirate"})
        bad = await c.get("/skills", params={"category": "lottery"})
    assert {s["id"] for s in resp.json()["skills"]} == {"query_rate", "query_all_rates"}
    assert unknown.json() == {"skills": [], "count": 0}
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_rates(api, prices):
    prices.failing.add(STABLE_TOKENS["cEUR"])
    async with client(api) as c:
        resp = await c.get("/market/rates")
    rates = {r["pair"]: r for r in resp.json()["rates"]}
    assert len(rates) == 4
    assert rates["CELO/cEUR"]["source"] == "fallback"
    assert rates["CELO/cUSD"]["rate"] == pytest.approx(0.52)


@pytest.mark.asyncio
async def test_quote(api):
    async with client(api) as c:
        resp = await c.get("/market/quote", params={"sell": "CELO", "buy": "cUSD", "amount": "10"})
    quote = resp.json()["quote"]
    assert quote["buy_amount"] == "5"
    assert quote["source"] == "direct-exchange"


@pytest.mark.asyncio
async def test_quote_rejects_same_currency(api):
    async with client(api) as c:
        resp = await c.get("/market/quote", params={"sell": "cUSD", "buy": "CUSD", "amount": "1"})
    assert resp.status_code == 422
    assert "against itself" in resp.json()["detail"]
