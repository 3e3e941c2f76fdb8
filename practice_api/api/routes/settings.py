from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from practice_api.core.auth import get_current_user_id, verify_api_key
from practice_api.core.rate_limit import enforce_rate_limit
from practice_api.schemas.settings import (
    ApiKeyStatusResponse,
    GeminiConfigUpdate,
    GeminiModelsResponse,
    GeminiPreferences,
    OperationResponse,
    SaveApiKeyRequest,
)
from practice_api.services.api_key_service import ApiKeyService

router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
    dependencies=[Depends(verify_api_key)],
)


def get_api_key_service(request: Request) -> ApiKeyService:
    return request.app.state.api_key_service


UserId = Annotated[str, Depends(get_current_user_id)]
Service = Annotated[ApiKeyService, Depends(get_api_key_service)]


@router.get("/gemini-key", response_model=ApiKeyStatusResponse)
async def get_gemini_key_status(user_id: UserId, service: Service) -> ApiKeyStatusResponse:
    """Report whether the user has a Gemini API key and their model settings.

    The key itself is never returned.
    """
    return service.status(user_id)


@router.post(
    "/gemini-key",
    response_model=OperationResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def save_gemini_key(
    body: SaveApiKeyRequest,
    user_id: UserId,
    service: Service,
) -> OperationResponse:
    """Validate a Gemini API key with the provider and store it encrypted.

    Optional ``feedback``/``generation`` preferences in the same body are
    applied after the key is accepted.

    Raises:
        ValidationAppError: 400 when the provider rejects the key.
        LLMAppError: 502 when the provider is unreachable.
    """
    update = GeminiConfigUpdate(feedback=body.feedback, generation=body.generation)
    await service.save_key(user_id, body.api_key, update)
    return OperationResponse(message="Gemini API key saved successfully")


@router.delete("/gemini-key", response_model=OperationResponse)
async def delete_gemini_key(user_id: UserId, service: Service) -> OperationResponse:
    service.remove_key(user_id)
    return OperationResponse(message="Gemini API key removed successfully")


@router.post("/gemini-config", response_model=GeminiPreferences)
async def update_gemini_config(
    body: GeminiConfigUpdate,
    user_id: UserId,
    service: Service,
) -> GeminiPreferences:
    """Update model preferences without touching the stored key."""
    return service.update_config(user_id, body)


@router.get(
    "/gemini-models",
    response_model=GeminiModelsResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def list_gemini_models(user_id: UserId, service: Service) -> GeminiModelsResponse:
    """List Gemini models usable with the user's stored key.

    Falls back to a static list (``used_fallback=true``) if the provider
    cannot be queried. A stored key that no longer decrypts yields 409.
    """
    return await service.list_models(user_id)
