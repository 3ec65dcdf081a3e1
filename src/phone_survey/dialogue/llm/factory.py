"""
Factory for creating LLM gateway instances.
"""

from phone_survey.config import get_settings
from phone_survey.dialogue.llm.gateway import LLMGateway
from phone_survey.dialogue.llm.models import LLMProvider, LLMProviderError
from phone_survey.dialogue.llm.openai_adapter import OpenAIAdapter
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)


def create_llm_gateway(
    provider: LLMProvider | str = LLMProvider.OPENAI,
    api_key: str | None = None,
    model: str | None = None,
    timeout_seconds: float | None = None,
) -> LLMGateway:
    """Create an LLM gateway instance for the specified provider.

    Args:
        provider: LLM provider name or LLMProvider enum.
        api_key: API key for the provider. Read from settings when omitted.
        model: Model to use. Read from settings when omitted.
        timeout_seconds: Request timeout in seconds.

    Returns:
        LLMGateway instance.

    Raises:
        LLMProviderError: If provider is not supported or API key is missing.
    """
    if isinstance(provider, str):
        try:
            provider = LLMProvider(provider.lower())
        except ValueError:
            raise LLMProviderError(
                f"Unsupported LLM provider: {provider}. "
                f"Supported providers: {[p.value for p in LLMProvider]}"
            )

    settings = get_settings()
    api_key = api_key or settings.openai_api_key
    if not api_key:
        raise LLMProviderError(
            f"API key required for {provider.value}. "
            "Set OPENAI_API_KEY or pass api_key."
        )

    model = model or settings.openai_model
    timeout_seconds = timeout_seconds or settings.llm_timeout_seconds

    logger.info(
        "Creating LLM gateway",
        extra={"provider": provider.value, "model": model, "timeout_seconds": timeout_seconds},
    )
    return OpenAIAdapter(api_key=api_key, default_model=model, timeout_seconds=timeout_seconds)


def get_optional_llm_gateway() -> LLMGateway | None:
    """Gateway from settings, or None when no API key is configured."""
    if not get_settings().openai_api_key:
        return None
    return create_llm_gateway()
