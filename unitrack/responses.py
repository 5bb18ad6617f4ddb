"""
Response envelope helpers.

Every body is {data?, error?, meta: {timestamp, version, requestId?}}; list
endpoints add meta.pagination.
"""
import math
import random
import string
import time
from typing import Any, List, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from unitrack.timeutils import isoformat_z, utcnow

DEFAULT_API_VERSION = "1.0"


def generate_request_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def build_meta(request_id: Optional[str] = None, version: str = DEFAULT_API_VERSION, **extra) -> dict:
    meta = {
        "timestamp": isoformat_z(utcnow()),
        "version": version,
    }
    if request_id:
        meta["requestId"] = request_id
    meta.update(extra)
    return meta


def success_response(data: Any, request_id: Optional[str] = None, version: str = DEFAULT_API_VERSION) -> dict:
    return {
        "data": jsonable_encoder(data),
        "meta": build_meta(request_id, version),
    }


def error_response(
    code: str,
    message: str,
    details: Optional[Any] = None,
    request_id: Optional[str] = None,
    version: str = DEFAULT_API_VERSION,
) -> dict:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = jsonable_encoder(details)
    return {
        "error": error,
        "meta": build_meta(request_id, version),
    }


def paginated_response(
    items: List[Any],
    page: int,
    limit: int,
    total: int,
    request_id: Optional[str] = None,
    version: str = DEFAULT_API_VERSION,
) -> dict:
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
    return {
        "data": jsonable_encoder(items),
        "meta": build_meta(request_id, version, pagination=pagination),
    }


def request_id_of(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def api_version_of(request: Request) -> str:
    settings = getattr(request.app.state, "settings", None)
    return settings.API_VERSION if settings else DEFAULT_API_VERSION


def respond(request: Request, data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=success_response(data, request_id_of(request), api_version_of(request)),
    )


def respond_paginated(request: Request, items: List[Any], page: int, limit: int, total: int) -> JSONResponse:
    return JSONResponse(
        content=paginated_response(items, page, limit, total, request_id_of(request), api_version_of(request)),
    )
