"""Crawler configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CrawlerSettings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLOVIS_", env_file=".env", extra="ignore"
    )

    # Upstream endpoints
    landing_url: str = "https://www.google.com/travel/flights?hl=en-US"
    rpc_url: str = (
        "https://www.google.com/_/FlightsFrontendUi/data/"
        "travel.frontend.flights.FlightsFrontendService/GetShoppingResults"
    )
    deep_link_base_url: str = "https://www.google.com/travel/flights"

    # Timeouts (seconds)
    token_timeout: float = 10.0
    rpc_timeout: float = 10.0
    one_way_rpc_timeout: float = 15.0

    # Locale identifiers sent with every RPC and deep link
    language: str = "en-US"
    region: str = "US"
    currency: str = "USD"

    # Date defaults when a caller omits them (days from today)
    default_depart_offset_days: int = 7
    default_return_offset_days: int = 14

    # Period searches: None keeps fan-out unbounded
    max_concurrency: int | None = None


settings = CrawlerSettings()
