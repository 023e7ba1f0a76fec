"""Application factory for the bcup server.

Middleware, outermost first: CORS, security headers, request logging,
rate limit, OPTIONS responder.
"""

from typing import Any, Mapping, Optional

from fastapi import FastAPI

from bcup import __version__
from bcup.backup import BackupConfig, BackupService
from bcup.config import Settings, get_settings
from bcup.firestore import create_database
from bcup.logger import Logger, get_logger
from bcup.storage import FileBackupStore
from bcup.web.cors import CORSConfig, add_cors_middleware
from bcup.web.health import create_health_routes
from bcup.web.middleware import (
    OptionsMiddleware,
    RateLimiter,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from bcup.web.routes import API_PATH, backup_endpoint

SERVICE_NAME = "bcup"


def create_backup_service(
    settings: Settings,
    logger: Optional[Logger] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BackupService:
    """Build the backup service described by settings.

    Raises:
        ConfigurationError: If the Firestore backend is misconfigured
    """
    settings.storage.ensure_directories()
    return BackupService(
        store=FileBackupStore(settings.storage.backup_dir),
        database=create_database(settings.firestore),
        config=BackupConfig.from_env(settings.prefix, env),
        logger=logger,
    )


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[BackupService] = None,
    rate_limiter: Optional[RateLimiter] = None,
    logger: Optional[Logger] = None,
    debug: bool = False,
) -> Any:
    """Create the bcup FastAPI application.

    Args:
        settings: Loaded settings (default: ``get_settings()``)
        service: Prebuilt backup service (default: built from settings)
        rate_limiter: Request limiter (default: from security settings)
        logger: Request logger (default: "bcup-web")
        debug: Enable debug mode

    Example:
        import uvicorn
        from bcup.web import create_app

        uvicorn.run(create_app(), host="0.0.0.0", port=8000)
    """
    settings = settings or get_settings()
    logger = logger or get_logger("bcup-web")
    if service is None:
        service = create_backup_service(settings)

    if rate_limiter is None:
        rate_limiter = RateLimiter(
            limit=settings.security.rate_limit,
            window_seconds=settings.security.rate_window_seconds,
        )

    app = FastAPI(title="bcup", version=__version__, debug=debug)
    app.state.backup_service = service
    app.state.settings = settings

    app.add_api_route(
        API_PATH,
        backup_endpoint,
        methods=["GET", "POST"],
        include_in_schema=False,
    )
    app.router.routes.extend(
        create_health_routes(
            SERVICE_NAME,
            health_check=lambda: service.store.root.is_dir(),
            extra={"backend": settings.firestore.backend, "version": __version__},
        )
    )

    # add_middleware prepends, so register innermost first
    app.add_middleware(OptionsMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
    app.add_middleware(RequestLoggingMiddleware, logger=logger)
    app.add_middleware(SecurityHeadersMiddleware)
    add_cors_middleware(app, CORSConfig.from_settings(settings.security))

    logger.info(
        "Application created",
        backup_dir=str(service.store.root),
        backend=settings.firestore.backend,
    )
    return app
