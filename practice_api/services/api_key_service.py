"""User API key management: validate, encrypt, store, and hand back on use.

Plaintext keys exist only in request memory. Everything persisted goes
through :mod:`practice_api.core.crypto`.
"""

from __future__ import annotations

import logging

from practice_api.adapters.credentials.base import AbstractCredentialRepository, UserCredentials
from practice_api.adapters.llm.base import AbstractLLMClient
from practice_api.core.auth import hash_identifier
from practice_api.core.crypto import decrypt_api_key, encrypt_api_key
from practice_api.core.errors import DecryptionError, LLMAppError, ValidationAppError
from practice_api.schemas.settings import (
    ApiKeyStatusResponse,
    GeminiConfigUpdate,
    GeminiModel,
    GeminiModelsResponse,
    GeminiPreferences,
    ModelPreferences,
)

logger = logging.getLogger(__name__)

# Served when the provider cannot list models for the user's key.
FALLBACK_MODELS: tuple[GeminiModel, ...] = (
    GeminiModel(
        name="gemini-2.5-flash",
        display_name="Gemini 2.5 Flash",
        description="Fast, versatile model with thinking",
        input_token_limit=1_048_576,
        output_token_limit=65_536,
    ),
    GeminiModel(
        name="gemini-2.5-flash-lite",
        display_name="Gemini 2.5 Flash-Lite",
        description="Lowest latency 2.5 model",
        input_token_limit=1_048_576,
        output_token_limit=65_536,
    ),
    GeminiModel(
        name="gemini-2.5-pro",
        display_name="Gemini 2.5 Pro",
        description="Most capable model for complex tasks",
        input_token_limit=1_048_576,
        output_token_limit=65_536,
    ),
    GeminiModel(
        name="gemini-2.0-flash",
        display_name="Gemini 2.0 Flash",
        description="Previous generation flash model",
        input_token_limit=1_048_576,
        output_token_limit=8_192,
    ),
)


def _merge(current: ModelPreferences, update: ModelPreferences | None) -> ModelPreferences:
    if update is None:
        return current
    return current.model_copy(update=update.model_dump(exclude_unset=True))


def apply_preferences(current: GeminiPreferences, update: GeminiConfigUpdate) -> GeminiPreferences:
    """Overlay the fields present in ``update`` onto ``current``."""
    return GeminiPreferences(
        feedback=_merge(current.feedback, update.feedback),
        generation=_merge(current.generation, update.generation),
    )


class ApiKeyService:
    """Orchestrates the credential repository, the codec and the provider."""

    def __init__(
        self,
        *,
        repository: AbstractCredentialRepository,
        llm: AbstractLLMClient,
    ) -> None:
        self.repository = repository
        self.llm = llm

    def _load(self, user_id: str) -> UserCredentials:
        return self.repository.get(user_id) or UserCredentials(user_id=user_id)

    def status(self, user_id: str) -> ApiKeyStatusResponse:
        record = self._load(user_id)
        return ApiKeyStatusResponse(
            has_key=bool(record.encrypted_api_key),
            settings=record.preferences,
        )

    async def save_key(
        self,
        user_id: str,
        api_key: str,
        update: GeminiConfigUpdate | None = None,
    ) -> None:
        """Validate ``api_key`` with the provider, then store it encrypted.

        Raises:
            ValidationAppError: If the provider rejects the key.
            LLMAppError: If the provider cannot be reached.
            ConfigurationError: If the server encryption key is unusable.
        """
        api_key = api_key.strip()
        if not await self.llm.validate_api_key(api_key):
            raise ValidationAppError(
                code="invalid_gemini_api_key",
                message="Invalid Gemini API key. Please check and try again.",
            )

        record = self._load(user_id)
        record.encrypted_api_key = encrypt_api_key(api_key)
        if update is not None:
            record.preferences = apply_preferences(record.preferences, update)
        self.repository.save(record)

        logger.info("api_key.saved", extra={"user_hash": hash_identifier(user_id)})

    def update_config(self, user_id: str, update: GeminiConfigUpdate) -> GeminiPreferences:
        record = self._load(user_id)
        record.preferences = apply_preferences(record.preferences, update)
        self.repository.save(record)
        return record.preferences

    def remove_key(self, user_id: str) -> None:
        record = self.repository.get(user_id)
        if record is None or record.encrypted_api_key is None:
            return
        record.encrypted_api_key = None
        self.repository.save(record)
        logger.info("api_key.removed", extra={"user_hash": hash_identifier(user_id)})

    def get_api_key(self, user_id: str) -> str:
        """Return the user's plaintext key for an outbound provider call.

        Raises:
            ValidationAppError: If the user has not configured a key.
            DecryptionError: If the stored value is unusable (tampered or
                encrypted under a rotated server key); the user must re-enter it.
        """
        record = self.repository.get(user_id)
        if record is None or not record.encrypted_api_key:
            raise ValidationAppError(
                code="gemini_key_not_configured",
                message="Gemini API key not configured",
            )

        try:
            return decrypt_api_key(record.encrypted_api_key)
        except DecryptionError as exc:
            logger.warning(
                "api_key.unusable",
                extra={"user_hash": hash_identifier(user_id), "reason": exc.code},
            )
            raise DecryptionError(
                code="stored_api_key_unusable",
                message="Your saved Gemini API key can no longer be read. Please enter it again.",
            ) from exc

    async def list_models(self, user_id: str) -> GeminiModelsResponse:
        api_key = self.get_api_key(user_id)
        try:
            models = await self.llm.list_models(api_key)
        except LLMAppError as exc:
            logger.warning("gemini.models_fallback", extra={"error_code": exc.code})
            return GeminiModelsResponse(
                models=list(FALLBACK_MODELS),
                used_fallback=True,
                error=exc.message,
            )
        return GeminiModelsResponse(models=models)
