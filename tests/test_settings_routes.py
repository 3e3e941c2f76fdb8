"""Tests for the /v1/settings routes.

The provider is replaced by ``FakeLLMClient`` and the limiter by one with a
limit of 3 and a mocked clock (see conftest.py).
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from practice_api.adapters.credentials.base import UserCredentials
from practice_api.adapters.credentials.in_memory import InMemoryCredentialRepository
from practice_api.core.config import settings
from practice_api.core.crypto import decrypt_api_key, encrypt_api_key
from practice_api.core.errors import LLMAppError
from tests.fakes import VALID_GEMINI_KEY, FakeLLMClient


class TestGeminiKeyStatus:
    def test_reports_missing_key(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get("/v1/settings/gemini-key", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["has_key"] is False
        assert body["settings"]["feedback"]["model"] is None

    def test_never_returns_the_key(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
    ) -> None:
        client.post("/v1/settings/gemini-key", json={"api_key": VALID_GEMINI_KEY}, headers=auth_headers)

        response = client.get("/v1/settings/gemini-key", headers=auth_headers)

        assert response.json()["has_key"] is True
        assert VALID_GEMINI_KEY not in response.text

    def test_requires_user_identity(self, client: TestClient) -> None:
        response = client.get("/v1/settings/gemini-key", headers={"X-API-Key": "test-api-key-123"})

        assert response.status_code == 401

    def test_requires_service_api_key(self, client: TestClient) -> None:
        response = client.get("/v1/settings/gemini-key", headers={"X-User-ID": "user-1"})

        assert response.status_code == 403


class TestSaveGeminiKey:
    def test_stores_encrypted_key(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        credential_repository: InMemoryCredentialRepository,
    ) -> None:
        response = client.post(
            "/v1/settings/gemini-key",
            json={"api_key": VALID_GEMINI_KEY},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Gemini API key saved successfully", "success": True}

        stored = credential_repository.get("user-1")
        assert stored is not None
        assert stored.encrypted_api_key is not None
        assert VALID_GEMINI_KEY not in stored.encrypted_api_key
        assert stored.encrypted_api_key.count(":") == 2
        assert decrypt_api_key(stored.encrypted_api_key) == VALID_GEMINI_KEY

    def test_applies_preferences(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
    ) -> None:
        client.post(
            "/v1/settings/gemini-key",
            json={
                "api_key": VALID_GEMINI_KEY,
                "feedback": {"model": "gemini-2.5-pro", "temperature": 0.7},
                "generation": {"max_tokens": 4096},
            },
            headers=auth_headers,
        )

        prefs = client.get("/v1/settings/gemini-key", headers=auth_headers).json()["settings"]
        assert prefs["feedback"]["model"] == "gemini-2.5-pro"
        assert prefs["feedback"]["temperature"] == 0.7
        assert prefs["generation"]["max_tokens"] == 4096

    def test_rejects_key_refused_by_provider(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        credential_repository: InMemoryCredentialRepository,
    ) -> None:
        response = client.post(
            "/v1/settings/gemini-key",
            json={"api_key": "AIzaSyD-revoked-key-111111111111"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_gemini_api_key"
        assert credential_repository.get("user-1") is None

    def test_rejects_short_key_without_calling_provider(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        fake_llm: FakeLLMClient,
    ) -> None:
        response = client.post("/v1/settings/gemini-key", json={"api_key": "short"}, headers=auth_headers)

        assert response.status_code == 422
        assert fake_llm.validated == []

    def test_length_bounds_apply_after_stripping(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        fake_llm: FakeLLMClient,
    ) -> None:
        response = client.post(
            "/v1/settings/gemini-key",
            json={"api_key": "   short-key   " + " " * 10},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert fake_llm.validated == []

    def test_stores_stripped_key(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        credential_repository: InMemoryCredentialRepository,
    ) -> None:
        response = client.post(
            "/v1/settings/gemini-key",
            json={"api_key": f"  {VALID_GEMINI_KEY}\n"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert decrypt_api_key(credential_repository.get("user-1").encrypted_api_key) == VALID_GEMINI_KEY

    def test_rejects_out_of_range_preferences(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.post(
            "/v1/settings/gemini-key",
            json={"api_key": VALID_GEMINI_KEY, "feedback": {"temperature": 5}},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_provider_outage_returns_502(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        fake_llm: FakeLLMClient,
    ) -> None:
        async def unreachable(api_key: str) -> bool:
            raise LLMAppError(code="gemini_unavailable", message="Could not reach Gemini")

        fake_llm.validate_api_key = unreachable  # type: ignore[method-assign]

        response = client.post("/v1/settings/gemini-key", json={"api_key": VALID_GEMINI_KEY}, headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "gemini_unavailable"

    def test_missing_encryption_key_returns_opaque_500(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        monkeypatch,
    ) -> None:
        monkeypatch.setattr(settings.crypto, "key_encryption_secret", None)

        response = client.post("/v1/settings/gemini-key", json={"api_key": VALID_GEMINI_KEY}, headers=auth_headers)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "encryption_key_missing"
        assert "GEMINI_KEY_ENCRYPTION_SECRET" not in error["message"]


class TestDeleteGeminiKey:
    def test_removes_key_but_keeps_preferences(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
    ) -> None:
        client.post(
            "/v1/settings/gemini-key",
            json={"api_key": VALID_GEMINI_KEY, "generation": {"model": "gemini-2.5-flash-lite"}},
            headers=auth_headers,
        )

        response = client.delete("/v1/settings/gemini-key", headers=auth_headers)

        assert response.status_code == 200
        status = client.get("/v1/settings/gemini-key", headers=auth_headers).json()
        assert status["has_key"] is False
        assert status["settings"]["generation"]["model"] == "gemini-2.5-flash-lite"

    def test_delete_without_key_succeeds(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.delete("/v1/settings/gemini-key", headers=auth_headers)

        assert response.status_code == 200


class TestGeminiConfig:
    def test_partial_update_keeps_other_fields(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        client.post(
            "/v1/settings/gemini-config",
            json={"feedback": {"model": "gemini-2.5-pro", "top_k": 40}},
            headers=auth_headers,
        )
        response = client.post(
            "/v1/settings/gemini-config",
            json={"feedback": {"top_k": 20}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["feedback"] == {
            "model": "gemini-2.5-pro",
            "temperature": None,
            "top_p": None,
            "top_k": 20,
            "max_tokens": None,
        }

    def test_explicit_null_clears_stored_value(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        client.post(
            "/v1/settings/gemini-config",
            json={"feedback": {"model": "gemini-2.5-pro", "temperature": 0.4}},
            headers=auth_headers,
        )

        response = client.post(
            "/v1/settings/gemini-config",
            json={"feedback": {"model": None}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["feedback"]["model"] is None
        assert response.json()["feedback"]["temperature"] == 0.4

    def test_rejects_unknown_fields(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.post(
            "/v1/settings/gemini-config",
            json={"api_key": VALID_GEMINI_KEY},
            headers=auth_headers,
        )

        assert response.status_code == 422


class TestGeminiModels:
    def test_lists_models_with_decrypted_key(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        fake_llm: FakeLLMClient,
    ) -> None:
        client.post("/v1/settings/gemini-key", json={"api_key": VALID_GEMINI_KEY}, headers=auth_headers)

        response = client.get("/v1/settings/gemini-models", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["used_fallback"] is False
        assert [m["name"] for m in body["models"]] == ["gemini-2.5-flash", "gemini-2.0-flash"]
        assert fake_llm.listed_with == [VALID_GEMINI_KEY]

    def test_requires_configured_key(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get("/v1/settings/gemini-models", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "gemini_key_not_configured"

    def test_falls_back_when_provider_fails(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        fake_llm: FakeLLMClient,
    ) -> None:
        client.post("/v1/settings/gemini-key", json={"api_key": VALID_GEMINI_KEY}, headers=auth_headers)
        fake_llm.models_error = LLMAppError(code="gemini_models_failed", message="Failed to fetch models")

        body = client.get("/v1/settings/gemini-models", headers=auth_headers).json()

        assert body["used_fallback"] is True
        assert body["error"] == "Failed to fetch models"
        assert body["models"]

    def test_tampered_stored_key_returns_409(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        credential_repository: InMemoryCredentialRepository,
    ) -> None:
        iv_hex, tag_hex, ciphertext_hex = encrypt_api_key(VALID_GEMINI_KEY).split(":")
        flipped = ("1" if ciphertext_hex[0] == "0" else "0") + ciphertext_hex[1:]
        credential_repository.save(
            UserCredentials(user_id="user-1", encrypted_api_key=f"{iv_hex}:{tag_hex}:{flipped}")
        )

        response = client.get("/v1/settings/gemini-models", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "stored_api_key_unusable"

    def test_key_from_rotated_secret_returns_409(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        monkeypatch,
    ) -> None:
        client.post("/v1/settings/gemini-key", json={"api_key": VALID_GEMINI_KEY}, headers=auth_headers)
        monkeypatch.setattr(settings.crypto, "key_encryption_secret", "cd" * 32)

        response = client.get("/v1/settings/gemini-models", headers=auth_headers)

        assert response.status_code == 409
