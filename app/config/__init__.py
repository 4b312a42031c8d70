"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    FRONTEND_URL: str = "http://localhost:3000"

    # ======================
    # Portfolio
    # ======================
    PORTFOLIO_CONFIG_PATH: str = "config/portfolio.yml"

    # ======================
    # Market Data
    # ======================
    QUOTE_PROVIDER_TIMEOUT_SECONDS: float = 10.0
    FUNDAMENTALS_PROVIDER_TIMEOUT_SECONDS: float = 15.0
    FUNDAMENTALS_ENABLED: bool = True
    GOOGLE_FINANCE_BASE_URL: str = "https://www.google.com/finance/quote/"
    MAX_BULK_SYMBOLS: int = 50

    # ======================
    # Cache
    # ======================
    CACHE_ENABLED: bool = True
    CACHE_SWEEP_INTERVAL_SECONDS: int = 120
    CACHE_TTL_PORTFOLIO: int = 30
    CACHE_TTL_SECTORS: int = 30
    CACHE_TTL_STOCK_DETAIL: int = 60
    CACHE_TTL_PRICES: int = 15

    # ======================
    # Redis
    # ======================
    REDIS_ENABLED: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_PREFIX: str = "pf:"

    # ======================
    # Timezone
    # ======================
    TIMEZONE: str = "Asia/Kolkata"

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
