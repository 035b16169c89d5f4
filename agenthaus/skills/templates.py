"""Skill sets enabled for each agent template."""

from __future__ import annotations

ALL_SKILLS: tuple[str, ...] = (
    "send_celo",
    "send_token",
    "query_rate",
    "query_all_rates",
    "get_quote",
    "swap",
    "check_balance",
    "my_balance",
    "gas_price",
    "tip",
    "forex_rate",
)

TEMPLATE_SKILLS: dict[str, tuple[str, ...]] = {
    "payment": ("send_celo", "send_token", "check_balance", "my_balance", "gas_price", "query_rate"),
    "trading": (
        "query_rate",
        "query_all_rates",
        "get_quote",
        "swap",
        "my_balance",
        "check_balance",
        "gas_price",
    ),
    "forex": ("query_rate", "query_all_rates", "forex_rate", "get_quote", "swap", "my_balance"),
    "social": ("tip", "send_celo", "my_balance", "query_rate"),
    "custom": ALL_SKILLS,
}
