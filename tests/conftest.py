"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any application import so the global
settings object is built from test values, and TESTING=true keeps the
.env.{APP_ENV} file from being loaded.
"""

import os

os.environ["TESTING"] = "true"

TEST_ENCRYPTION_KEY = "0123456789abcdef" * 4

os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("GEMINI_KEY_ENCRYPTION_SECRET", TEST_ENCRYPTION_KEY)
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from practice_api.adapters.credentials.in_memory import InMemoryCredentialRepository
from practice_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from practice_api.core.app_factory import create_app
from practice_api.core.config import settings
from tests.fakes import FakeLLMClient


@pytest.fixture
def encryption_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Pin the server encryption key for the duration of a test."""
    monkeypatch.setattr(settings.crypto, "key_encryption_secret", TEST_ENCRYPTION_KEY)
    return TEST_ENCRYPTION_KEY


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123", "X-User-ID": "user-1"}


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1_700_000_000.0)


@pytest.fixture
def rate_limiter(clock: Mock) -> InMemoryFixedWindowRateLimiter:
    """Limiter with a limit of 3 per hour on a controllable clock."""
    return InMemoryFixedWindowRateLimiter(window_seconds=3600, default_limit=3, clock=clock)


@pytest.fixture
def credential_repository() -> InMemoryCredentialRepository:
    return InMemoryCredentialRepository()


@pytest.fixture
def app(
    encryption_key: str,
    rate_limiter: InMemoryFixedWindowRateLimiter,
    credential_repository: InMemoryCredentialRepository,
    fake_llm: FakeLLMClient,
) -> FastAPI:
    return create_app(
        rate_limiter=rate_limiter,
        credential_repository=credential_repository,
        llm_client=fake_llm,
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
