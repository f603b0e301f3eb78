from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CatalogSync"
    debug: bool = False

    # Service-side credential; never handed to browser-facing callers
    database_url: str = "postgresql+asyncpg://localhost:5432/catalogsync"

    catalog_api_url: str = "https://api.pokemontcg.io/v2"
    pokemon_tcg_api_key: str = ""
    http_timeout: float = 30.0

    # Shared secret for the sync endpoint. Empty disables the check.
    sync_token: str = ""

    sets_page_size: int = 250
    cards_page_size: int = 250
    sync_job_name: str = "seed_cards"


settings = Settings()


# Upstream rejects larger pages
MAX_PAGE_SIZE = 250
