from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Wallet-side chain (balances, gas, transfers)
    celo_rpc_url: str = "https://forno.celo.org"
    # Price reads always go to mainnet SortedOracles / Mento exchanges
    oracle_rpc_url: str = "https://forno.celo.org"
    chain_read_timeout_seconds: float = 8.0
    wallet_submit_timeout_seconds: float = 60.0

    @model_validator(mode="after")
    def normalize_rpc_urls(self) -> "Settings":
        self.celo_rpc_url = self.celo_rpc_url.rstrip("/")
        self.oracle_rpc_url = self.oracle_rpc_url.rstrip("/")
        return self

    llm_provider: str = "anthropic"  # "anthropic" or "openai"

    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 2048

    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    sentry_dsn: str = ""

    environment: str = "development"
    allowed_origins: str = ""
    log_level: int = 20


settings = Settings()
