from collections.abc import AsyncIterator

import pytest

from agenthaus.connectors.celo import STABLE_TOKENS
from agenthaus.core.market_data import MarketDataResolver
from agenthaus.core.parser import ParsedCommand
from agenthaus.engine import build_engine
from agenthaus.skills.base import ExecutionContext, SafetyPolicy

WALLET = "0x1111111111111111111111111111111111111111"
ALICE = "0x2222222222222222222222222222222222222222"
MALLORY = "0x3333333333333333333333333333333333333333"

WEI = 10**18


class FakePriceReader:
    """SortedOracles / exchange reads backed by dicts; failures are opt-in per token."""

    def __init__(self):
        self.rates: dict[str, tuple[int, int]] = {
            STABLE_TOKENS["cUSD"]: (52 * WEI, 100 * WEI),
            STABLE_TOKENS["cEUR"]: (48 * WEI, 100 * WEI),
            STABLE_TOKENS["cREAL"]: (260 * WEI, 100 * WEI),
            STABLE_TOKENS["eXOF"]: (31500 * WEI, 100 * WEI),
        }
        self.failing: set[str] = set()
        self.expired: set[str] = set()
        self.buy_amounts: dict[str, int] = {}
        self.exchange_fails = False
        self.calls: list[str] = []

    def _check(self, token: str) -> None:
        self.calls.append(token)
        if token in self.failing:
            raise ConnectionError(f"rpc down for {token}")

    async def median_rate(self, token):
        self._check(token)
        return self.rates[token]

    async def num_rates(self, token):
        self._check(token)
        return 7

    async def median_timestamp(self, token):
        self._check(token)
        return 1_700_000_000

    async def is_oldest_report_expired(self, token):
        self._check(token)
        return token in self.expired

    async def get_buy_token_amount(self, exchange, sell_amount_wei, sell_gold):
        if self.exchange_fails:
            raise TimeoutError("exchange read timed out")
        return self.buy_amounts.get(exchange, sell_amount_wei // 2)


class FakeChainReader:
    def __init__(self):
        self.native: dict[str, int] = {}
        self.tokens: dict[tuple[str, str], int] = {}
        self.gas_fails = False

    async def get_balance(self, address):
        return self.native.get(address.lower(), 0)

    async def balance_of(self, token, owner):
        return self.tokens.get((token, owner.lower()), 0)

    async def gas_price(self):
        if self.gas_fails:
            raise ConnectionError("rpc down")
        return 25 * 10**9


class FakeWallet:
    def __init__(self):
        self.sent: list[tuple] = []
        self.fail_with: Exception | None = None

    def _next_hash(self) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        return "0x" + f"{len(self.sent) + 1:064x}"

    async def send_native(self, derivation_index, to, amount_wei):
        tx = self._next_hash()
        self.sent.append(("native", derivation_index, to, amount_wei))
        return tx

    async def send_token(self, derivation_index, token, to, amount_wei):
        tx = self._next_hash()
        self.sent.append(("token", derivation_index, token, to, amount_wei))
        return tx

    async def exchange(self, derivation_index, exchange, sell_amount_wei, min_buy_amount_wei, sell_gold):
        tx = self._next_hash()
        self.sent.append(("exchange", derivation_index, exchange, sell_amount_wei, min_buy_amount_wei, sell_gold))
        return tx


class RecordingSink:
    def __init__(self):
        self.transactions = []
        self.activities = []

    async def record_transaction(self, record):
        self.transactions.append(record)

    async def log_activity(self, record):
        self.activities.append(record)


def command(skill_id: str, tag: str, *params: str) -> ParsedCommand:
    raw = "[[" + "|".join((tag, *params)) + "]]"
    return ParsedCommand(skill_id=skill_id, command_tag=tag, params=params, raw=raw, span=(0, len(raw)))


async def fragments(*parts: str) -> AsyncIterator[str]:
    for p in parts:
        yield p


@pytest.fixture
def prices():
    return FakePriceReader()


@pytest.fixture
def chain():
    return FakeChainReader()


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def resolver(prices, chain):
    return MarketDataResolver(prices, chain, timeout=1.0)


@pytest.fixture
def engine(prices, chain, wallet, sink):
    return build_engine(prices=prices, chain=chain, wallet=wallet, sink=sink)


@pytest.fixture
def policy():
    return SafetyPolicy(spending_limit=10.0, max_transaction_amount=8.0)


@pytest.fixture
def context(policy):
    return ExecutionContext(
        agent_id="agent-1",
        policy=policy,
        wallet_address=WALLET,
        wallet_derivation_index=3,
    )
