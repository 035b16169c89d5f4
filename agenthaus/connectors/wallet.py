from __future__ import annotations

from typing import Protocol


class WalletClient(Protocol):
    """Signs and submits transactions for an agent's derived wallet.

    Key derivation and signing live outside this package; implementations are
    injected by whoever hosts the engine. Each method returns the tx hash.
    """

    async def send_native(self, derivation_index: int, to: str, amount_wei: int) -> str: ...

    async def send_token(self, derivation_index: int, token: str, to: str, amount_wei: int) -> str: ...

    async def exchange(
        self,
        derivation_index: int,
        exchange: str,
        sell_amount_wei: int,
        min_buy_amount_wei: int,
        sell_gold: bool,
    ) -> str: ...
