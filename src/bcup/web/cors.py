"""CORS configuration utilities for bcup.

The browser UI calls the backup API from its own origin, so the API answers
preflight requests for GET and POST with JSON bodies.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from bcup.config import SecuritySettings


@dataclass
class CORSConfig:
    """Configuration for CORS middleware.

    Attributes:
        allow_origins: List of allowed origins or ["*"] for all
        allow_methods: List of allowed HTTP methods
        allow_headers: List of allowed request headers
        allow_credentials: Whether to allow credentials (cookies, auth headers)
        expose_headers: Headers to expose to the client
        max_age: Max age for preflight cache (seconds)
    """

    allow_origins: List[str] = field(default_factory=lambda: ["*"])
    allow_methods: List[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allow_headers: List[str] = field(default_factory=lambda: ["Content-Type", "Authorization"])
    allow_credentials: bool = True
    expose_headers: List[str] = field(default_factory=lambda: ["Content-Disposition"])
    max_age: int = 600

    @classmethod
    def from_settings(cls, security: SecuritySettings) -> "CORSConfig":
        """Create CORSConfig from loaded security settings"""
        return cls(allow_origins=list(security.cors_origins))

    @classmethod
    def permissive(cls) -> "CORSConfig":
        """Create permissive CORS config allowing all origins."""
        return cls(allow_origins=["*"])


def add_cors_middleware(app: Any, config: Optional[CORSConfig] = None) -> Any:
    """Register CORSMiddleware on a Starlette or FastAPI application.

    Returns:
        The same application, for chaining
    """
    from starlette.middleware.cors import CORSMiddleware

    if config is None:
        config = CORSConfig.permissive()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allow_origins,
        allow_credentials=config.allow_credentials,
        allow_methods=config.allow_methods,
        allow_headers=config.allow_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
    return app
