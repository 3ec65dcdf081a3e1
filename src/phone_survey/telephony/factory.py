"""
Telephony provider factory.

Configuration comes from TelephonyConfig (environment + .env) only.
"""

from functools import lru_cache

from phone_survey.shared.logging import get_logger
from phone_survey.telephony.config import TelephonyConfig, get_telephony_config
from phone_survey.telephony.interface import TelephonyProvider
from phone_survey.telephony.twilio_adapter import TwilioAdapter

logger = get_logger(__name__)


def _mask(s: str, keep: int = 6) -> str:
    if not s:
        return ""
    if len(s) <= keep:
        return "*" * len(s)
    return f"{s[:keep]}***"


@lru_cache(maxsize=1)
def get_cached_telephony_config() -> TelephonyConfig:
    return get_telephony_config()


@lru_cache(maxsize=1)
def get_telephony_provider() -> TelephonyProvider:
    """Create and cache the Twilio provider."""
    cfg = get_cached_telephony_config()

    logger.info(
        "Telephony config resolved",
        extra={
            "twilio_account_sid": _mask(cfg.twilio_account_sid),
            "twilio_from_number": cfg.twilio_from_number,
            "webhook_base_url": cfg.webhook_base_url,
            "call_timeout_seconds": cfg.call_timeout_seconds,
        },
    )
    return TwilioAdapter(cfg)
