"""CORS middleware configuration."""

import json

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from realm_sync.app.config import get_settings


def _parse_origins(raw: str) -> list[str]:
    """Parse CORS_ORIGINS from plain URL, comma-separated, or JSON array."""
    raw = raw.strip()
    if raw.startswith("["):
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


def setup_cors(app: FastAPI) -> None:
    """Allow the chart UI to call the sync endpoints."""
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_parse_origins(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
