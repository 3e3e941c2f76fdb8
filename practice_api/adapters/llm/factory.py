"""Factory for the generative-language client."""

from practice_api.adapters.llm.base import AbstractLLMClient
from practice_api.adapters.llm.gemini_client import GeminiClient
from practice_api.core.config import GeminiSettings, settings


def create_llm_client(gemini_settings: GeminiSettings | None = None) -> AbstractLLMClient:
    """Instantiate the Gemini client from configuration.

    Args:
        gemini_settings: Optional override; defaults to ``settings.gemini``.

    Returns:
        AbstractLLMClient: Configured client instance.
    """
    cfg = gemini_settings or settings.gemini
    return GeminiClient(
        base_url=cfg.base_url,
        validation_model=cfg.validation_model,
        timeout_seconds=cfg.timeout_seconds,
    )
