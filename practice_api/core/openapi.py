"""OpenAPI customization.

Adds the two header credentials (service ``X-API-Key`` and the forwarded
user id) as security schemes, applies them globally and exempts health
endpoints.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from practice_api.core.config import settings

TAGS_METADATA = [
    {
        "name": "Settings",
        "description": "Per-user Gemini API key (stored encrypted) and model preferences.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security schemes and tags."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        security_schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Service API key.",
            },
        )
        security_schemes.setdefault(
            "UserIdentity",
            {
                "type": "apiKey",
                "in": "header",
                "name": settings.app.user_id_header,
                "description": "Authenticated user id forwarded by the session layer.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": [], "UserIdentity": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in existing_tag_names)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
