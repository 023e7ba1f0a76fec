"""Web layer for bcup.

HTTP action surface for backups, health checks, CORS and security
middleware.
"""

from bcup.web.app import create_app, create_backup_service
from bcup.web.cors import CORSConfig, add_cors_middleware
from bcup.web.health import (
    create_health_response,
    create_health_routes,
    create_ping_response,
)
from bcup.web.middleware import (
    OptionsMiddleware,
    RateLimiter,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from bcup.web.routes import API_PATH, backup_endpoint

__all__ = [
    # App factory
    "create_app",
    "create_backup_service",
    # Routes
    "API_PATH",
    "backup_endpoint",
    # CORS
    "CORSConfig",
    "add_cors_middleware",
    # Middleware
    "OptionsMiddleware",
    "RateLimiter",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    # Health checks
    "create_health_routes",
    "create_ping_response",
    "create_health_response",
]
