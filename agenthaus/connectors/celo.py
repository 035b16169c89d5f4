from __future__ import annotations

from decimal import Decimal
from typing import Any

from web3 import AsyncWeb3

from agenthaus.config import settings

NATIVE_SYMBOL = "CELO"

SORTED_ORACLES_ADDRESS = "0xefB84935239dAcdecF7c5bA76d8dE40b077B7b33"

# Stable token addresses on Celo mainnet; SortedOracles keys rates by these
STABLE_TOKENS: dict[str, str] = {
    "cUSD": "0x765DE816845861e75A25fCA122bb6898B8B1282a",
    "cEUR": "0xD8763CBa276a3738E6DE85b4b3bF5FDed6D6cA73",
    "cREAL": "0xe8537a3d056DA446677B9E9d6c5dB704EaAb4787",
    "eXOF": "0x73F93dcc49cB8A239e2032663e9475dd5ef29A08",
}

# Legacy Mento V1 exchanges, one per stable token
MENTO_EXCHANGES: dict[str, str] = {
    "cUSD": "0x67316300f17f063085Ca8bCa4bd3f7a5a3C66275",
    "cEUR": "0xE383394B913d7F22ceC5C811fa6822E6eF445F4A",
    "cREAL": "0x8f2cf9855C919AFAC8a4aC0A21A186bE5a1270ca",
}

SORTED_ORACLES_ABI: list[dict[str, Any]] = [
    {
        "name": "medianRate",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "token", "type": "address"}],
        "outputs": [
            {"name": "numerator", "type": "uint256"},
            {"name": "denominator", "type": "uint256"},
        ],
    },
    {
        "name": "numRates",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "token", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "medianTimestamp",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "token", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "isOldestReportExpired",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "token", "type": "address"}],
        "outputs": [
            {"name": "", "type": "bool"},
            {"name": "", "type": "address"},
        ],
    },
]

EXCHANGE_ABI: list[dict[str, Any]] = [
    {
        "name": "getBuyTokenAmount",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "sellAmount", "type": "uint256"},
            {"name": "sellGold", "type": "bool"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

ERC20_ABI: list[dict[str, Any]] = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "balance", "type": "uint256"}],
    },
]


def to_wei(amount: str | Decimal) -> int:
    return int(AsyncWeb3.to_wei(Decimal(amount), "ether"))


def from_wei(value: int) -> Decimal:
    return Decimal(AsyncWeb3.from_wei(value, "ether"))


def is_address(value: str) -> bool:
    return AsyncWeb3.is_address(value)


def _web3(rpc_url: str, timeout: float) -> AsyncWeb3:
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


class MentoPriceClient:
    """Read-only access to SortedOracles and the Mento exchanges.

    Holds no per-call state, so one instance is shared by every turn.
    """

    def __init__(self, rpc_url: str | None = None, timeout: float | None = None):
        self._timeout = timeout or settings.chain_read_timeout_seconds
        self._w3 = _web3(rpc_url or settings.oracle_rpc_url, self._timeout)
        self._oracles = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(SORTED_ORACLES_ADDRESS),
            abi=SORTED_ORACLES_ABI,
        )

    async def median_rate(self, token: str) -> tuple[int, int]:
        numerator, denominator = await self._oracles.functions.medianRate(_checksum(token)).call()
        return int(numerator), int(denominator)

    async def num_rates(self, token: str) -> int:
        return int(await self._oracles.functions.numRates(_checksum(token)).call())

    async def median_timestamp(self, token: str) -> int:
        return int(await self._oracles.functions.medianTimestamp(_checksum(token)).call())

    async def is_oldest_report_expired(self, token: str) -> bool:
        expired, _oldest = await self._oracles.functions.isOldestReportExpired(_checksum(token)).call()
        return bool(expired)

    async def get_buy_token_amount(self, exchange: str, sell_amount_wei: int, sell_gold: bool) -> int:
        contract = self._w3.eth.contract(address=_checksum(exchange), abi=EXCHANGE_ABI)
        return int(await contract.functions.getBuyTokenAmount(sell_amount_wei, sell_gold).call())


class CeloChainClient:
    """Read-only chain access for balances and gas."""

    def __init__(self, rpc_url: str | None = None, timeout: float | None = None):
        self._timeout = timeout or settings.chain_read_timeout_seconds
        self._w3 = _web3(rpc_url or settings.celo_rpc_url, self._timeout)

    async def get_balance(self, address: str) -> int:
        return int(await self._w3.eth.get_balance(_checksum(address)))

    async def balance_of(self, token: str, owner: str) -> int:
        contract = self._w3.eth.contract(address=_checksum(token), abi=ERC20_ABI)
        return int(await contract.functions.balanceOf(_checksum(owner)).call())

    async def gas_price(self) -> int:
        return int(await self._w3.eth.gas_price)


def _checksum(address: str) -> str:
    return AsyncWeb3.to_checksum_address(address)
