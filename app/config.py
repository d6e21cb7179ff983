from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # storage
    database_url: str = "sqlite:///./forge.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_s: int = 30
    db_pool_recycle_s: int = 1800

    # logging
    log_level: str = "INFO"
    log_json: bool = False

    # conversational backend + images
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"  # safe default- override via env
    openai_assistant_id: str = ""
    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"

    # pinning
    pinata_api_key: str = ""
    pinata_api_secret: str = ""
    pinata_jwt: str = ""
    pinata_gateway_url: str = "https://gateway.pinata.cloud/ipfs"

    # chain
    chain_id: int = 11011  # Shape Sepolia
    rpc_urls: str = ""
    fallback_rpc_url: str = ""
    credits_proxy_url: str = ""
    private_key: str = ""
    nft_contract_address: str = "0x158d4964fa28f9e72ccccb9a6cd6699f2982be01"
    forge_payment_address: str = ""
    receipt_timeout_s: int = 120

    # orchestration timing (seconds per time unit)
    poll_interval_s: float = 1.0
    credit_backoff_unit_s: float = 1.0
    credit_max_attempts: int = 3
    credit_cache_ttl_s: float = 30.0

    # tracing
    langsmith_tracing: bool = False
    langsmith_api_key: str = ""
    langsmith_project: str = "forge-mint"
    langsmith_endpoint: str = "https://api.smith.langchain.com"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def DATABASE_URL(self) -> str:
        return self.database_url

    @property
    def OPENAI_MODEL(self) -> str:
        return self.openai_model

    @property
    def RPC_URLS(self) -> str:
        return self.rpc_urls

    @property
    def pinata_configured(self) -> bool:
        return bool(self.pinata_jwt or (self.pinata_api_key and self.pinata_api_secret))


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader (process-level).
    """
    return Settings()
