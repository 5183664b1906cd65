"""Response envelope helpers shared by every router."""

from __future__ import annotations

import math
from typing import Any

from fastapi.encoders import jsonable_encoder


def success_response(data: Any = None, message: str | None = None) -> dict:
    body: dict = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    return body


def error_response(error: str) -> dict:
    return {"success": False, "error": error}


def paginated_response(data: list, page: int, limit: int, total: int) -> dict:
    return {
        "success": True,
        "data": jsonable_encoder(data),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
            "hasMore": page * limit < total,
        },
    }
