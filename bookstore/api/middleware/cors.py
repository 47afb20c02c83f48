"""
Cross-origin settings.

The browser client calls the API with fetch and may authenticate with
either the Authorization header or the ``token`` cookie, so credentials
are allowed whenever origins are listed explicitly.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


LOCAL_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5000",
)


@dataclass
class CORSConfig:
    """Origins and preflight policy for one environment."""

    allowed_origins: List[str] = field(default_factory=list)

    # Wildcard origin; browsers then refuse credentialed requests
    allow_any_origin: bool = False

    methods: List[str] = field(default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"])
    headers: List[str] = field(default_factory=lambda: ["Accept", "Content-Type", "Authorization", "X-Request-ID"])
    max_age: int = 3600

    def extend(self, origins: str) -> "CORSConfig":
        """Return a copy with comma-separated ``origins`` appended."""
        extra = [o.strip() for o in origins.split(",") if o.strip()]
        return CORSConfig(
            allowed_origins=self.allowed_origins + extra,
            allow_any_origin=self.allow_any_origin,
            methods=list(self.methods),
            headers=list(self.headers),
            max_age=self.max_age,
        )


def get_cors_config(environment: Optional[str] = None) -> CORSConfig:
    """
    CORS policy for ``environment``.

    Development accepts any origin. Every other environment accepts only
    the origins listed in ``CORS_ALLOWED_ORIGINS``.
    """
    if environment is None:
        environment = os.getenv("BOOKSTORE_ENV", "development")

    if environment == "development":
        base = CORSConfig(allowed_origins=list(LOCAL_ORIGINS), allow_any_origin=True)
    else:
        base = CORSConfig(max_age=7200)

    return base.extend(os.getenv("CORS_ALLOWED_ORIGINS", ""))


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """Install ``CORSMiddleware`` on the app."""
    config = config or get_cors_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if config.allow_any_origin else config.allowed_origins,
        allow_credentials=not config.allow_any_origin,
        allow_methods=config.methods,
        allow_headers=config.headers,
        expose_headers=["X-Request-ID"],
        max_age=config.max_age,
    )
