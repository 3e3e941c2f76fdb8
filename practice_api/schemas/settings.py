"""Pydantic schemas for the per-user generative-language settings."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

API_KEY_MIN_LENGTH = 20
API_KEY_MAX_LENGTH = 200


class ModelPreferences(BaseModel):
    """Sampling configuration for one purpose (feedback or generation)."""

    model: str | None = Field(default=None, description="Gemini model name.")
    temperature: float | None = Field(default=None, ge=0, le=2)
    top_p: float | None = Field(default=None, ge=0, le=1)
    top_k: int | None = Field(default=None, ge=1, le=100)
    max_tokens: int | None = Field(default=None, ge=512, le=8192)


class GeminiPreferences(BaseModel):
    """Both preference groups stored alongside the encrypted key."""

    feedback: ModelPreferences = Field(
        default_factory=ModelPreferences,
        description="Used when evaluating a user's translation.",
    )
    generation: ModelPreferences = Field(
        default_factory=ModelPreferences,
        description="Used when generating practice paragraphs.",
    )


class GeminiConfigUpdate(BaseModel):
    """Partial preference update; omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    feedback: ModelPreferences | None = None
    generation: ModelPreferences | None = None


class SaveApiKeyRequest(GeminiConfigUpdate):
    """Body of ``POST /v1/settings/gemini-key``.

    Surrounding whitespace is stripped before the length bounds apply.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    api_key: str = Field(
        ...,
        min_length=API_KEY_MIN_LENGTH,
        max_length=API_KEY_MAX_LENGTH,
        description="Gemini API key. Validated against the provider, then encrypted.",
    )


class ApiKeyStatusResponse(BaseModel):
    has_key: bool
    settings: GeminiPreferences


class OperationResponse(BaseModel):
    message: str
    success: bool = True


class GeminiModel(BaseModel):
    name: str
    display_name: str
    description: str | None = None
    input_token_limit: int | None = None
    output_token_limit: int | None = None


class GeminiModelsResponse(BaseModel):
    models: List[GeminiModel]
    used_fallback: bool = Field(
        default=False,
        description="True when the provider could not be reached and a static list is returned.",
    )
    error: str | None = None
