from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env")

    database_url: str = "sqlite:///./pnlcard.db"

    log_level: str = "INFO"

    # Base URL the headless browser loads the card view from.
    # Empty means use the incoming request's base URL.
    public_base_url: str = ""

    # Image export
    render_timeout_seconds: float = 30.0
    render_scale: float = 2.0
    browser_args: list[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--no-first-run",
        "--no-zygote",
        "--disable-gpu",
    ]

    # Binance USDT-M futures stream endpoint for live mark prices
    price_feed_url: str = "wss://fstream.binance.com/ws"


@lru_cache
def get_settings() -> Settings:
    return Settings()
