"""Health check endpoints for the bcup server."""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional


def create_ping_response(service: str, status: str = "ok") -> Dict[str, Any]:
    """Create a standard ping response.

    Example:
        >>> create_ping_response("bcup")
        {"status": "ok", "timestamp": "2025-01-01T12:00:00", "service": "bcup"}
    """
    return {
        "status": status,
        "timestamp": datetime.now().isoformat(),
        "service": service,
    }


def create_health_response(
    service: str,
    healthy: bool = True,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Create a standard health check response.

    Example:
        >>> create_health_response("bcup", extra={"backend": "rest"})
        {"status": "healthy", "service": "bcup", "backend": "rest"}
    """
    response: Dict[str, Any] = {
        "status": "healthy" if healthy else "unhealthy",
        "service": service,
    }

    if extra:
        response.update(extra)

    return response


def create_health_routes(
    service: str,
    health_check: Optional[Callable[[], bool]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> List[Any]:
    """Create /ping and /health routes.

    Args:
        service: Service name for responses
        health_check: Optional callable that returns True if healthy
        extra: Additional fields for the health response
    """
    from starlette.responses import JSONResponse
    from starlette.routing import Route

    async def ping(request: Any) -> JSONResponse:
        return JSONResponse(create_ping_response(service))

    async def health(request: Any) -> JSONResponse:
        healthy = True
        if health_check is not None:
            try:
                healthy = health_check()
            except OSError:
                healthy = False

        response = create_health_response(service=service, healthy=healthy, extra=extra)
        return JSONResponse(response, status_code=200 if healthy else 503)

    return [
        Route("/ping", endpoint=ping, methods=["GET"]),
        Route("/health", endpoint=health, methods=["GET"]),
    ]
