from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "TradeBinder"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/tradebinder"

    # External card catalog (Scryfall-compatible REST API)
    catalog_base_url: str = "https://api.scryfall.com"
    catalog_ttl_hours: int = 24
    catalog_timeout_seconds: float = 10.0
    catalog_user_agent: str = "TradeBinder/1.0"

    # Permission an authenticated caller needs for mutating routes
    editor_permission: str = "CARD_EDITOR"


settings = Settings()


# =============================================================================
# INPUT LIMITS
# =============================================================================

# Longest set code accepted on card routes (e.g. "khm", "plst", "pmei")
MAX_SET_CODE_LENGTH = 6

# Largest batch accepted by POST /cards/batch
MAX_BATCH_OPERATIONS = 500

# Largest owned quantity of one finish (fits a 32-bit INTEGER column)
MAX_QUANTITY = 2**31 - 1
