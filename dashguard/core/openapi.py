"""OpenAPI customization.

Adds the ``X-API-Key`` security scheme, marks every operation as requiring it
by default, exempts the public endpoints and fills in tag descriptions.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from dashguard.core.auth import API_KEY_HEADER

# Operations callable without a session
PUBLIC_PATHS = ("/health", "/v1/join/verify")

TAGS_METADATA = [
    {"name": "Session", "description": "Session introspection, gated by role."},
    {"name": "Join", "description": "Join code verification with lockout."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the API key scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {}).setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": API_KEY_HEADER,
                "description": "API key identifying the caller's session.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        known = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in known)

        for path, methods in schema.get("paths", {}).items():
            if path in PUBLIC_PATHS:
                for operation in methods.values():
                    if isinstance(operation, dict):
                        operation["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
