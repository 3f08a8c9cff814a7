"""API Index — name, version, and the list of documented endpoints.

Invariants:
    - Endpoint map comes from the OpenAPI document, so it lists exactly
      what /api/doc publishes ("METHOD /path" → summary)
"""

from fastapi import APIRouter, Request

from app.config import get_settings

router = APIRouter(tags=["meta"])

_HTTP_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")


@router.get("/", summary="API documentation")
async def api_index(request: Request):
    settings = get_settings()
    endpoints: dict[str, str] = {}
    for path, operations in request.app.openapi()["paths"].items():
        for method in _HTTP_METHODS:
            operation = operations.get(method)
            if operation is None:
                continue
            endpoints[f"{method.upper()} {path}"] = (
                operation.get("summary") or operation.get("operationId", "")
            )
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "endpoints": endpoints,
    }
