from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    database_url: str = "sqlite+aiosqlite:///./skinmarket.db"

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Public base URL of this service, used to build /image-proxy links
    app_url: str = "http://localhost:8000"

    # Steam Community inventory
    steam_inventory_url: str = "https://steamcommunity.com/inventory/{steam_id}/{app_id}/{context_id}"
    steam_app_id: int = 730
    steam_context_id: int = 2
    steam_inventory_language: str = "english"

    # Inventory sync policy
    inventory_page_size: int = 1000          # 5000 makes Steam answer 400
    inventory_request_timeout: float = 20.0
    inventory_page_delay: float = 4.0        # seconds between pages, Steam throttles below this
    inventory_max_pages: int = 50
    inventory_cache_minutes: int = 15
    inventory_transient_attempts: int = 1
    inventory_retry_delay: float = 5.0

    # Accounts kept warm by the background job, JSON list in .env: ["7656119..."]
    inventory_warm_steam_ids: List[str] = []
    inventory_warm_interval_minutes: int = 30

    image_proxy_timeout: float = 10.0


settings = Settings()
