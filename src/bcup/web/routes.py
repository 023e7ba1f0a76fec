"""Backup API: ``/api/v1/backup?action=...``

Actions:
    list      GET   ?project=<id>
    create    POST  {"collections": {...}, "project": {"name", "firebaseConfig": {"projectId"}}}
                    or {"collectionNames": [...], "project": ...} with a server database
    delete    POST  {"file": ..., "project": <id>}
    restore   POST  {"file": ..., "project": <id>, "collections": [...]?}
    download  GET   ?project=<id>&file=<name>

JSON responses have the shape ``{"success": bool, "data"?: ..., "error"?: str,
"code"?: str}``. ``download`` streams the gzip file as an attachment.
"""

import json
from typing import Any, Callable, Dict, Mapping, Optional

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import FileResponse, JSONResponse, Response

from bcup.backup import BackupService
from bcup.exceptions import (
    BcupError,
    ConfigurationError,
    ResourceNotFoundError,
    UpstreamFailureError,
    ValidationError,
)
from bcup.logger import get_logger

logger = get_logger("bcup-web")

API_PATH = "/api/v1/backup"

Body = Dict[str, Any]
Query = Mapping[str, str]


def success_response(data: Any = None, message: Optional[str] = None) -> JSONResponse:
    payload: Dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = data
    if message:
        payload["message"] = message
    return JSONResponse(payload)


def error_response(
    error: str,
    code: str = "BCUP_ERROR",
    status_code: int = 400,
    data: Any = None,
) -> JSONResponse:
    payload: Dict[str, Any] = {"success": False, "error": error, "code": code}
    if data is not None:
        payload["data"] = data
    return JSONResponse(payload, status_code=status_code)


def status_for(error: BcupError) -> int:
    """HTTP status for a bcup error"""
    if isinstance(error, ResourceNotFoundError):
        return 404
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, UpstreamFailureError):
        return 502
    if isinstance(error, ConfigurationError):
        return 503
    return 500


async def read_json_body(request: Request) -> Body:
    """Request body as a JSON object ({} when absent or not an object)"""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed JSON body", path=request.url.path)
        return {}
    return body if isinstance(body, dict) else {}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def project_from(query: Query, body: Body) -> Optional[str]:
    """Project id from the body, falling back to the query string"""
    return _text(body.get("project")) or query.get("project")


def create_project_id(query: Query, body: Body) -> Optional[str]:
    """Project id for create: ``project.firebaseConfig.projectId`` of the posted ProjectRef"""
    project = body.get("project")
    if isinstance(project, dict):
        config = project.get("firebaseConfig")
        if isinstance(config, dict) and _text(config.get("projectId")):
            return config["projectId"]
    return _text(project) or query.get("project")


# -- actions ------------------------------------------------------------------


def list_action(service: BackupService, query: Query, body: Body) -> Response:
    backups = service.list_backups(query.get("project") or _text(body.get("project")))
    return success_response([b.to_dict() for b in backups])


def create_action(service: BackupService, query: Query, body: Body) -> Response:
    project_ref = body.get("project")
    collection_names = body.get("collectionNames")
    if collection_names is not None and not isinstance(collection_names, list):
        collection_names = None

    result = service.create_backup(
        create_project_id(query, body),
        collections=body.get("collections"),
        collection_names=collection_names,
        project_ref=project_ref if isinstance(project_ref, dict) else None,
    )
    if result.file is None:
        return error_response(
            "Failed to create backup",
            code="UPSTREAM_FAILURE",
            status_code=502,
            data=result.to_dict(),
        )
    return success_response(result.to_dict())


def delete_action(service: BackupService, query: Query, body: Body) -> Response:
    file = _text(body.get("file")) or query.get("file")
    name = service.delete_backup(project_from(query, body), file)
    return success_response({"file": name}, message="Backup deleted")


def restore_action(service: BackupService, query: Query, body: Body) -> Response:
    project = project_from(query, body)
    file = _text(body.get("file")) or query.get("file")
    only = body.get("collections")
    only = [c for c in only if isinstance(c, str)] if isinstance(only, list) else None

    if service.has_database:
        report = service.restore_backup(project, file, collections=only)
        return success_response(report.to_dict())

    # Client-side SDK deployment: the browser writes the documents itself
    decoded = service.load_backup(project, file)
    canonical = decoded.to_canonical()
    collections = canonical.collections
    if only:
        collections = {k: v for k, v in collections.items() if k in only}
    return success_response(
        {
            "collections": collections,
            "project": canonical.project,
            "format": decoded.format.value,
        }
    )


def download_action(service: BackupService, query: Query, body: Body) -> Response:
    file = query.get("file") or _text(body.get("file"))
    path = service.backup_path(query.get("project") or _text(body.get("project")), file)
    return FileResponse(path, media_type="application/gzip", filename=path.name)


ACTIONS: Dict[str, Callable[[BackupService, Query, Body], Response]] = {
    "list": list_action,
    "create": create_action,
    "delete": delete_action,
    "restore": restore_action,
    "download": download_action,
}


async def backup_endpoint(request: Request) -> Response:
    """Dispatch ``?action=`` to its handler and map errors to JSON responses"""
    action = request.query_params.get("action")
    handler = ACTIONS.get(action or "")
    if handler is None:
        return error_response("Invalid action", code="INVALID_ACTION")

    service: BackupService = request.app.state.backup_service
    body = await read_json_body(request) if request.method == "POST" else {}

    try:
        return await run_in_threadpool(handler, service, request.query_params, body)
    except BcupError as e:
        status_code = status_for(e)
        log = logger.error if status_code >= 500 else logger.warning
        log("Backup action failed", action=action, code=e.code, error=e.message)
        return error_response(e.message, code=e.code, status_code=status_code)
