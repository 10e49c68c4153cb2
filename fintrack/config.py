"""Application configuration."""

from datetime import timedelta

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite:///./fintrack.db"

    # Currencies
    reference_currency: str = "EUR"
    default_account_currency: str = "EUR"
    default_account_name: str = "New Account"

    # Exchange rates
    rates_cache_hours: int = 24
    ecb_rates_url: str = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str = ""
    crypto_symbols: list[str] = ["BTC", "ETH"]
    use_yahoo_quotes: bool = True

    # HTTP transport
    http_timeout_seconds: float = 10.0
    http_max_retries: int = 3

    # Stats
    stats_freshness_seconds: int = 60

    # Application
    log_level: str = "INFO"
    debug: bool = False

    # CORS
    allowed_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @property
    def rates_cache_duration(self) -> timedelta:
        return timedelta(hours=self.rates_cache_hours)

    @property
    def stats_freshness(self) -> timedelta:
        return timedelta(seconds=self.stats_freshness_seconds)


settings = Settings()
