"""Generative-language provider adapters."""

from practice_api.adapters.llm.base import AbstractLLMClient
from practice_api.adapters.llm.factory import create_llm_client
from practice_api.adapters.llm.gemini_client import GeminiClient

__all__ = [
    "AbstractLLMClient",
    "GeminiClient",
    "create_llm_client",
]
