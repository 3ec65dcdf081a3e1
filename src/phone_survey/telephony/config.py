"""
Telephony provider configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TelephonyConfig(BaseSettings):
    """Twilio configuration from environment (``TELEPHONY_`` prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="TELEPHONY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")
    twilio_from_number: str = Field(default="")

    # Base URL Twilio uses to reach the webhook endpoints
    webhook_base_url: str = Field(default="http://localhost:8000")

    # Seconds Twilio lets the phone ring before giving up
    call_timeout_seconds: int = Field(default=60, ge=10, le=600)

    def get_webhook_url(self, path: str) -> str:
        base = self.webhook_base_url.rstrip("/")
        return f"{base}{path}"


def get_telephony_config() -> TelephonyConfig:
    return TelephonyConfig()
