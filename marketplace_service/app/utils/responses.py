"""JSON envelope helpers: `{"success": true, "data": ..., "message"?: ...}`."""

import math
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    pagination: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return body


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_items": total,
        "items_per_page": limit,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
