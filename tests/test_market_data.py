"""Tests for oracle rates, swap quotes and the fallback chain."""

import asyncio
from datetime import UTC, datetime

import pytest

from agenthaus.connectors.celo import MENTO_EXCHANGES, STABLE_TOKENS
from agenthaus.core.errors import InvalidParamsError, MissingConfigurationError
from agenthaus.core.market_data import ORACLE_SYMBOLS, MarketDataResolver, canonical_symbol

from conftest import ALICE, WEI


def test_canonical_symbol():
    assert canonical_symbol(" cusd ") == "cUSD"
    assert canonical_symbol("CREAL") == "cREAL"
    assert canonical_symbol("celo") == "CELO"
    assert canonical_symbol("doge") == "DOGE"


@pytest.mark.asyncio
async def test_on_chain_rate(resolver):
    rate = await resolver.get_oracle_rate("cUSD")
    assert rate.pair == "CELO/cUSD"
    assert rate.rate == pytest.approx(0.52)
    assert rate.inverse == pytest.approx(1 / 0.52)
    assert rate.num_reporters == 7
    assert rate.last_update == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    assert rate.is_expired is False
    assert rate.source == "on-chain"


@pytest.mark.asyncio
async def test_symbol_is_case_insensitive(resolver):
    rate = await resolver.get_oracle_rate("ceur")
    assert rate.pair == "CELO/cEUR"
    assert rate.rate == pytest.approx(0.48)


@pytest.mark.asyncio
async def test_expired_report_flagged(resolver, prices):
    prices.expired.add(STABLE_TOKENS["cREAL"])
    rate = await resolver.get_oracle_rate("cREAL")
    assert rate.source == "on-chain"
    assert rate.is_expired is True


@pytest.mark.asyncio
async def test_read_failure_falls_back(resolver, prices):
    prices.failing.add(STABLE_TOKENS["cUSD"])
    rate = await resolver.get_oracle_rate("cUSD")
    assert rate.source == "fallback"
    assert rate.rate == 0.55
    assert rate.inverse == pytest.approx(1 / 0.55)
    assert rate.num_reporters == 0
    assert rate.is_expired is True


@pytest.mark.asyncio
async def test_slow_read_falls_back(prices, chain):
    async def slow(token):
        await asyncio.sleep(5)

    prices.median_rate = slow
    resolver = MarketDataResolver(prices, chain, timeout=0.01)
    rate = await resolver.get_oracle_rate("cEUR")
    assert rate.source == "fallback"
    assert rate.rate == 0.50


@pytest.mark.asyncio
async def test_unknown_symbol_uses_default_rate(resolver, prices):
    rate = await resolver.get_oracle_rate("DOGE")
    assert rate.pair == "CELO/DOGE"
    assert rate.rate == 1.0
    assert rate.source == "fallback"
    assert prices.calls == []


@pytest.mark.asyncio
async def test_zero_denominator(resolver, prices):
    prices.rates[STABLE_TOKENS["cUSD"]] = (0, 0)
    rate = await resolver.get_oracle_rate("cUSD")
    assert rate.rate == 0.0
    assert rate.inverse == 0.0
    assert rate.source == "on-chain"


@pytest.mark.asyncio
async def test_all_rates_fall_back_per_symbol(resolver, prices):
    prices.failing.add(STABLE_TOKENS["cEUR"])
    rates = await resolver.get_all_rates()
    assert [r.pair for r in rates] == [f"CELO/{s}" for s in ORACLE_SYMBOLS]
    sources = {r.pair: r.source for r in rates}
    assert sources["CELO/cEUR"] == "fallback"
    assert sources["CELO/cUSD"] == "on-chain"
    assert sources["CELO/eXOF"] == "on-chain"


@pytest.mark.asyncio
async def test_direct_exchange_quote(resolver, prices):
    prices.buy_amounts[MENTO_EXCHANGES["cUSD"]] = 5_215 * WEI // 1000
    quote = await resolver.get_quote("CELO", "cUSD", "10")
    assert quote.source == "direct-exchange"
    assert quote.buy_amount == "5.215"
    assert quote.rate == pytest.approx(0.5215)
    assert quote.slippage == 0.3


@pytest.mark.asyncio
async def test_direct_quote_selling_stable(resolver):
    quote = await resolver.get_quote("cusd", "celo", "4")
    assert (quote.sell_currency, quote.buy_currency) == ("cUSD", "CELO")
    assert quote.source == "direct-exchange"
    assert quote.buy_amount == "2"


@pytest.mark.asyncio
async def test_exchange_failure_estimates_from_oracle(resolver, prices):
    prices.exchange_fails = True
    quote = await resolver.get_quote("CELO", "cUSD", "10")
    assert quote.source == "estimated"
    assert quote.buy_amount == "5.200000"
    assert quote.slippage == 0.5

    back = await resolver.get_quote("cUSD", "CELO", "10")
    assert back.buy_amount == "19.230769"


@pytest.mark.asyncio
async def test_celo_pair_without_exchange_is_estimated(resolver):
    quote = await resolver.get_quote("CELO", "eXOF", "10")
    assert quote.source == "estimated"
    assert quote.buy_amount == "3150.000000"


@pytest.mark.asyncio
async def test_cross_stable_quote(resolver):
    quote = await resolver.get_quote("cUSD", "cEUR", "100")
    assert quote.source == "estimated"
    assert quote.slippage == 0.8
    assert quote.buy_amount == "92.307692"


@pytest.mark.asyncio
async def test_cross_stable_quote_on_fallback_rates(resolver, prices):
    prices.failing.update({STABLE_TOKENS["cUSD"], STABLE_TOKENS["cEUR"]})
    quote = await resolver.get_quote("cUSD", "cEUR", "100")
    assert quote.buy_amount == "90.909091"
    assert quote.slippage == 0.8
    assert quote.source == "estimated"


@pytest.mark.asyncio
@pytest.mark.parametrize("sell,buy,amount", [("cUSD", "cusd", "1"), ("CELO", "cUSD", "0"), ("CELO", "cUSD", "-2"), ("CELO", "cUSD", "ten")])
async def test_invalid_quote_requests(resolver, sell, buy, amount):
    with pytest.raises(InvalidParamsError):
        await resolver.get_quote(sell, buy, amount)


@pytest.mark.asyncio
async def test_gas_price(resolver):
    gas = await resolver.get_gas_price()
    assert gas.base_fee == "25"
    assert gas.suggested_tip == "0.5"
    assert gas.estimated_cost == "0.000525"


@pytest.mark.asyncio
async def test_gas_price_fallback(resolver, chain):
    chain.gas_fails = True
    gas = await resolver.get_gas_price()
    assert (gas.base_fee, gas.suggested_tip, gas.estimated_cost) == ("5", "0.5", "0.000105")


@pytest.mark.asyncio
async def test_check_balance(resolver, chain):
    chain.native[ALICE] = 15 * WEI // 10
    chain.tokens[(STABLE_TOKENS["cUSD"], ALICE)] = 1225 * WEI // 100
    balance = await resolver.check_balance(ALICE)
    assert balance.celo == "1.5"
    assert balance.cUSD == "12.25"
    assert balance.cEUR == "0"
    assert balance.cREAL == "0"


@pytest.mark.asyncio
async def test_token_balance_failure_reads_as_zero(resolver, chain):
    async def flaky(token, owner):
        if token == STABLE_TOKENS["cREAL"]:
            raise ConnectionError("rpc down")
        return 2 * WEI

    chain.balance_of = flaky
    balance = await resolver.check_balance(ALICE)
    assert balance.cUSD == "2"
    assert balance.cREAL == "0"


@pytest.mark.asyncio
async def test_check_balance_rejects_bad_address(resolver):
    with pytest.raises(InvalidParamsError):
        await resolver.check_balance("not-an-address")


@pytest.mark.asyncio
async def test_chain_data_needs_chain_client(prices):
    resolver = MarketDataResolver(prices)
    with pytest.raises(MissingConfigurationError):
        await resolver.get_gas_price()
    with pytest.raises(MissingConfigurationError):
        await resolver.check_balance(ALICE)


@pytest.mark.asyncio
async def test_out_of_range_timestamp_falls_back(resolver, prices):
    async def far_future(token):
        return 2**64

    prices.median_timestamp = far_future
    rate = await resolver.get_oracle_rate("cUSD")
    assert rate.source == "fallback"
    assert rate.rate == 0.55
    assert rate.is_expired is True


@pytest.mark.asyncio
async def test_bad_oracle_value_does_not_fail_other_symbols(resolver, prices):
    real = prices.median_timestamp

    async def broken_for_creal(token):
        if token == STABLE_TOKENS["cREAL"]:
            return 2**64
        return await real(token)

    prices.median_timestamp = broken_for_creal
    rates = {r.pair: r for r in await resolver.get_all_rates()}
    assert rates["CELO/cREAL"].source == "fallback"
    assert rates["CELO/cUSD"].source == "on-chain"
    assert rates["CELO/cEUR"].source == "on-chain"
