"""Configuration for the charging session payment core, loaded from the environment."""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DynamoDBSettings(BaseModel):
    table_name: str = Field(default="charging-payments", description="Single table holding sessions and profiles")
    region_name: str = Field(default="eu-west-1", description="AWS region")
    endpoint_url: str | None = Field(default=None, description="AWS endpoint (for LocalStack or moto)")


class StripeSettings(BaseModel):
    api_key: str = Field(default="", description="Stripe secret API key")
    max_network_retries: int = Field(default=2, description="Retries of idempotent Stripe requests")


class PaymentSettings(BaseModel):
    default_hold_amount_cents: int = Field(default=5000, gt=0, description="Hold placed when no amount is given")
    default_currency: str = Field(default="EUR", min_length=3, max_length=3, description="ISO 4217 currency code")
    session_lock_timeout_seconds: int | None = Field(
        default=30, description="Age after which a session lock is considered stale"
    )


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Render logs as JSON instead of console format")

    dynamodb: DynamoDBSettings = Field(default_factory=DynamoDBSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)
    payments: PaymentSettings = Field(default_factory=PaymentSettings)

    model_config = SettingsConfigDict(
        env_prefix="CHARGING_PAYMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
