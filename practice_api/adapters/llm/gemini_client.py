"""Gemini client adapter over the OpenAI-compatible endpoint."""

from __future__ import annotations

import logging
import re

import openai
from openai import AsyncOpenAI

from practice_api.adapters.llm.base import AbstractLLMClient
from practice_api.core.errors import LLMAppError
from practice_api.schemas.settings import GeminiModel

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"gemini-(\d+)(?:[.-](\d+))?")

# Models that cannot produce text completions.
_NON_GENERATIVE_MARKERS = ("embedding", "aqa", "imagen", "veo")


def _model_sort_key(name: str) -> tuple[int, int, str]:
    """Newest Gemini family first, then alphabetical."""
    match = _VERSION_RE.search(name)
    if not match:
        return (0, 0, name)
    major = int(match.group(1))
    minor = int(match.group(2)) if match.group(2) and len(match.group(2)) == 1 else 0
    return (-major, -minor, name)


def _display_name(name: str) -> str:
    return " ".join(part.capitalize() for part in name.split("-"))


class GeminiClient(AbstractLLMClient):
    """Calls Gemini through the official OpenAI Python SDK.

    A new ``AsyncOpenAI`` client is built per call because the API key
    belongs to the requesting user; it is closed when the call returns.
    """

    def __init__(
        self,
        *,
        base_url: str,
        validation_model: str,
        timeout_seconds: float = 20.0,
    ) -> None:
        self.base_url = base_url
        self.validation_model = validation_model
        self.timeout_seconds = timeout_seconds

    def _client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            max_retries=1,
        )

    async def validate_api_key(self, api_key: str) -> bool:
        try:
            async with self._client(api_key) as sdk:
                await sdk.chat.completions.create(
                    model=self.validation_model,
                    messages=[{"role": "user", "content": 'Say "OK"'}],
                    max_tokens=5,
                )
        except (
            openai.AuthenticationError,
            openai.PermissionDeniedError,
            openai.BadRequestError,
        ) as exc:
            logger.info(
                "gemini.key_rejected",
                extra={"status_code": getattr(exc, "status_code", None)},
            )
            return False
        except openai.APIError as exc:
            raise LLMAppError(
                code="gemini_unavailable",
                message="Could not reach Gemini to validate the API key",
                details={"hint": type(exc).__name__, "model": self.validation_model},
            ) from exc
        return True

    async def list_models(self, api_key: str) -> list[GeminiModel]:
        try:
            async with self._client(api_key) as sdk:
                page = await sdk.models.list()
        except openai.APIError as exc:
            raise LLMAppError(
                code="gemini_models_failed",
                message=f"Failed to fetch models: {type(exc).__name__}",
            ) from exc

        names = {
            model.id.removeprefix("models/")
            for model in page.data
        }
        generative = [
            name
            for name in names
            if name.startswith("gemini") and not any(m in name for m in _NON_GENERATIVE_MARKERS)
        ]
        return [
            GeminiModel(name=name, display_name=_display_name(name))
            for name in sorted(generative, key=_model_sort_key)
        ]
