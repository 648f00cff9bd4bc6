from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="BATCHREPO_", extra="ignore"
    )

    # Repository server
    server_url: str = "http://localhost:9000"

    # HTTP transport
    http_timeout: float = 30.0
    http_max_retries: int = 2
    http_verify_ssl: bool = True  # set False behind corporate SSL-inspection proxies
    user_agent: str = "BatchRepoLoader/1.0"

    # Response cache
    load_strategy: Literal[
        "server_first", "cache_first", "server_only", "cache_only"
    ] = "server_first"

    # Logging
    log_level: str = "INFO"


settings = Settings()
