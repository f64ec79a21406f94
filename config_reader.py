# config_reader.py
import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

# Logging is configured before any module writes its first record
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Reads and validates every environment variable the cart needs.
    Strings from the environment are converted to the declared types.
    """
    # --- Catalog API ---
    catalog_api_url: str = "http://localhost:3333"
    catalog_timeout: float = 10.0 # seconds; a timed out call counts as a catalog failure

    # --- Cart storage ---
    cart_storage_key: str = "@RocketShoes:cart"
    cart_session_ttl_minutes: float = 20 # idle carts are dropped from memory, not from storage
    cart_storage_backend: str = "json" # "json" or "sql"
    cart_storage_dir: str = "data/carts"
    database_url: Optional[str] = None # e.g. sqlite+aiosqlite:///data/carts.db

    # --- Telegram bot ---
    bot_token: Optional[str] = None

    # --- Logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Single configuration instance imported by the other modules
try:
    config = Settings()
    logger.info("Configuration loaded.")
except Exception as e:
    logger.error(f"Failed to load configuration: {e}")
    raise SystemExit(1)
