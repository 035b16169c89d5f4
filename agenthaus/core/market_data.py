"""Oracle rates and swap quotes with a layered fallback chain.

Every query is recomputed from scratch. The on-chain read is attempted
first; when it fails the resolver degrades to an oracle-based estimate and,
for oracle rates, to a fixed table of approximate prices. The fallback table
is the terminal step and never raises.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol, TypeVar

import structlog
from web3 import AsyncWeb3

from agenthaus.config import settings
from agenthaus.connectors.celo import (
    MENTO_EXCHANGES,
    NATIVE_SYMBOL,
    STABLE_TOKENS,
    from_wei,
    is_address,
    to_wei,
)
from agenthaus.core.errors import InvalidParamsError, MissingConfigurationError
from agenthaus.schemas.market import AddressBalance, GasInfo, OracleRate, SwapQuote
from agenthaus.skills.base import parse_amount

log = structlog.get_logger()

T = TypeVar("T")

ORACLE_SYMBOLS: tuple[str, ...] = tuple(STABLE_TOKENS)

# Approximate CELO price in each stable asset
FALLBACK_RATES: dict[str, float] = {
    "cUSD": 0.55,
    "cEUR": 0.50,
    "cREAL": 2.80,
    "eXOF": 330.0,
}
DEFAULT_FALLBACK_RATE = 1.0

DIRECT_EXCHANGE_SLIPPAGE = 0.3
ESTIMATE_SLIPPAGE = 0.5
CROSS_STABLE_SLIPPAGE = 0.8

TRANSFER_GAS = 21000
BALANCE_TOKENS = ("cUSD", "cEUR", "cREAL")

_CANONICAL = {s.upper(): s for s in (*STABLE_TOKENS, NATIVE_SYMBOL)}


class PriceReader(Protocol):
    async def median_rate(self, token: str) -> tuple[int, int]: ...
    async def num_rates(self, token: str) -> int: ...
    async def median_timestamp(self, token: str) -> int: ...
    async def is_oldest_report_expired(self, token: str) -> bool: ...
    async def get_buy_token_amount(self, exchange: str, sell_amount_wei: int, sell_gold: bool) -> int: ...


class ChainReader(Protocol):
    async def get_balance(self, address: str) -> int: ...
    async def balance_of(self, token: str, owner: str) -> int: ...
    async def gas_price(self) -> int: ...


def canonical_symbol(symbol: str) -> str:
    upper = symbol.strip().upper()
    return _CANONICAL.get(upper, upper)


def fallback_rate(symbol: str) -> OracleRate:
    rate = FALLBACK_RATES.get(symbol, DEFAULT_FALLBACK_RATE)
    return OracleRate(
        pair=f"{NATIVE_SYMBOL}/{symbol}",
        rate=rate,
        inverse=1 / rate if rate else 0.0,
        num_reporters=0,
        last_update=datetime.now(UTC),
        is_expired=True,
        source="fallback",
    )


def format_decimal(value: Decimal) -> str:
    text = format(value.normalize(), "f")
    return text if text != "-0" else "0"


class MarketDataResolver:
    def __init__(
        self,
        prices: PriceReader,
        chain: ChainReader | None = None,
        timeout: float | None = None,
    ) -> None:
        self._prices = prices
        self._chain = chain
        self._timeout = timeout or settings.chain_read_timeout_seconds

    async def _read(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self._timeout)

    # ── Oracle rates ─────────────────────────────────────────────────────

    async def get_oracle_rate(self, symbol: str) -> OracleRate:
        """CELO price in terms of ``symbol``. Never raises."""
        sym = canonical_symbol(symbol)
        token = STABLE_TOKENS.get(sym)
        if token is None:
            log.info("market.oracle_unknown_symbol", symbol=sym)
            return fallback_rate(sym)

        reads = await asyncio.gather(
            self._read(self._prices.median_rate(token)),
            self._read(self._prices.num_rates(token)),
            self._read(self._prices.median_timestamp(token)),
            self._read(self._prices.is_oldest_report_expired(token)),
            return_exceptions=True,
        )
        failures = [r for r in reads if isinstance(r, BaseException)]
        if failures:
            log.warning("market.oracle_fallback", symbol=sym, error=repr(failures[0]))
            return fallback_rate(sym)

        (numerator, denominator), num_rates, median_ts, expired = reads
        try:
            rate = numerator / denominator if denominator > 0 else 0.0
            return OracleRate(
                pair=f"{NATIVE_SYMBOL}/{sym}",
                rate=rate,
                inverse=1 / rate if rate > 0 else 0.0,
                num_reporters=num_rates,
                last_update=datetime.fromtimestamp(median_ts, UTC),
                is_expired=expired,
                source="on-chain",
            )
        except (ValueError, OverflowError, OSError) as exc:
            # Malformed oracle values (e.g. a timestamp out of datetime range)
            log.warning("market.oracle_fallback", symbol=sym, error=repr(exc))
            return fallback_rate(sym)

    async def get_all_rates(self) -> list[OracleRate]:
        return list(await asyncio.gather(*(self.get_oracle_rate(s) for s in ORACLE_SYMBOLS)))

    # ── Swap quotes ──────────────────────────────────────────────────────

    async def get_quote(self, sell_currency: str, buy_currency: str, sell_amount: str) -> SwapQuote:
        sell = canonical_symbol(sell_currency)
        buy = canonical_symbol(buy_currency)
        if sell == buy:
            raise InvalidParamsError(f"Cannot quote {sell} against itself")
        amount = parse_amount(sell_amount, "sell amount")
        sell_amount = sell_amount.strip()

        if sell == NATIVE_SYMBOL and buy in MENTO_EXCHANGES:
            exchange, sell_gold = MENTO_EXCHANGES[buy], True
        elif buy == NATIVE_SYMBOL and sell in MENTO_EXCHANGES:
            exchange, sell_gold = MENTO_EXCHANGES[sell], False
        elif NATIVE_SYMBOL in (sell, buy):
            return await self._estimated_quote(sell, buy, sell_amount, amount)
        else:
            return await self._cross_stable_quote(sell, buy, sell_amount, amount)

        try:
            buy_wei = await self._read(
                self._prices.get_buy_token_amount(exchange, to_wei(sell_amount), sell_gold)
            )
        except Exception as exc:
            log.warning("market.exchange_quote_failed", sell=sell, buy=buy, error=repr(exc))
            return await self._estimated_quote(sell, buy, sell_amount, amount)

        buy_amount = from_wei(buy_wei)
        return SwapQuote(
            sell_currency=sell,
            buy_currency=buy,
            sell_amount=sell_amount,
            buy_amount=format_decimal(buy_amount),
            rate=float(buy_amount) / amount,
            slippage=DIRECT_EXCHANGE_SLIPPAGE,
            source="direct-exchange",
        )

    async def _estimated_quote(self, sell: str, buy: str, sell_amount: str, amount: float) -> SwapQuote:
        selling_native = sell == NATIVE_SYMBOL
        oracle = await self.get_oracle_rate(buy if selling_native else sell)
        buy_amount = amount * oracle.rate if selling_native else amount * oracle.inverse
        return SwapQuote(
            sell_currency=sell,
            buy_currency=buy,
            sell_amount=sell_amount,
            buy_amount=f"{buy_amount:.6f}",
            rate=buy_amount / amount,
            slippage=ESTIMATE_SLIPPAGE,
            source="estimated",
        )

    async def _cross_stable_quote(self, sell: str, buy: str, sell_amount: str, amount: float) -> SwapQuote:
        # Approximation: a real sell -> CELO -> buy route pays two spreads
        sell_rate, buy_rate = await asyncio.gather(self.get_oracle_rate(sell), self.get_oracle_rate(buy))
        native_amount = amount * sell_rate.inverse
        buy_amount = native_amount * buy_rate.rate
        return SwapQuote(
            sell_currency=sell,
            buy_currency=buy,
            sell_amount=sell_amount,
            buy_amount=f"{buy_amount:.6f}",
            rate=buy_amount / amount,
            slippage=CROSS_STABLE_SLIPPAGE,
            source="estimated",
        )

    # ── Chain data ───────────────────────────────────────────────────────

    def _require_chain(self) -> ChainReader:
        if self._chain is None:
            raise MissingConfigurationError("No chain client configured")
        return self._chain

    async def get_gas_price(self) -> GasInfo:
        chain = self._require_chain()
        try:
            gas_price = await self._read(chain.gas_price())
        except Exception as exc:
            log.warning("market.gas_price_fallback", error=repr(exc))
            return GasInfo(base_fee="5", suggested_tip="0.5", estimated_cost="0.000105")

        return GasInfo(
            base_fee=format_decimal(Decimal(AsyncWeb3.from_wei(gas_price, "gwei"))),
            suggested_tip="0.5",
            estimated_cost=format_decimal(from_wei(gas_price * TRANSFER_GAS)),
        )

    async def check_balance(self, address: str) -> AddressBalance:
        chain = self._require_chain()
        address = address.strip()
        if not is_address(address):
            raise InvalidParamsError(f"Not a valid address: {address}")

        native = await self._read(chain.get_balance(address))
        tokens = await asyncio.gather(*(self._token_balance(chain, s, address) for s in BALANCE_TOKENS))
        return AddressBalance(
            address=address,
            celo=format_decimal(from_wei(native)),
            **dict(zip(BALANCE_TOKENS, tokens)),
        )

    async def _token_balance(self, chain: ChainReader, symbol: str, owner: str) -> str:
        try:
            balance = await self._read(chain.balance_of(STABLE_TOKENS[symbol], owner))
        except Exception as exc:
            log.warning("market.token_balance_failed", symbol=symbol, error=repr(exc))
            return "0"
        return format_decimal(from_wei(balance))
