"""
core/config.py
Environment-based configuration using pydantic-settings.
Loads from .env file automatically.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # --- Database ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./settlement.db"

    # --- Oracle ---
    # Comma-separated base58 identities allowed to record prices and settle.
    # The platform admin always holds the oracle capability as well.
    ORACLE_AUTHORITIES: str = ""

    # --- Price feed ---
    PRICE_FEED_URL: str = "https://price.jup.ag/v6/price"
    PRICE_DECIMALS: int = 6
    PRICE_FEED_TIMEOUT_SECONDS: float = 10.0

    # --- Keeper (automatic price stamping + settlement) ---
    KEEPER_ENABLED: bool = False
    KEEPER_INTERVAL_SECONDS: int = 15
    KEEPER_IDENTITY: str = ""

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }

    @property
    def oracle_authorities(self) -> set[str]:
        """ORACLE_AUTHORITIES parsed into a set of identities."""
        return {a.strip() for a in self.ORACLE_AUTHORITIES.split(",") if a.strip()}


@lru_cache
def get_settings() -> Settings:
    """Singleton access to application settings."""
    return Settings()
