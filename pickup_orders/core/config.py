"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Pickup Orders API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./pickup_orders.db")
    order_number_prefix: str = getenv("ORDER_NUMBER_PREFIX", "ZS")
    cron_secret: str = getenv("CRON_SECRET", "")
    log_level: str = getenv("LOG_LEVEL", "INFO")


settings: Settings = Settings()
