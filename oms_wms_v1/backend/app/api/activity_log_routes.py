from __future__ import annotations

import math

from flask import Blueprint, request

from app.api.errors import api_errors, error_response
from app.security.decorators import require_permissions
from app.services.activity_log_service import (
    MAX_PAGE_SIZE,
    activity_stats,
    build_activity_log_response,
    list_activity_logs,
    parse_boundary,
)

activity_log_bp = Blueprint("activity_logs", __name__)


@activity_log_bp.get("")
@require_permissions("audit.read")
@api_errors("Failed to fetch activity logs")
def get_activity_logs() -> tuple[dict[str, object], int]:
    args = request.args
    try:
        page = int(args.get("page", 1))
        limit = int(args.get("limit", 20))
    except ValueError:
        return error_response("page and limit must be integers", 400)
    if page < 1 or limit < 1:
        return error_response("page and limit must be positive", 400)
    limit = min(limit, MAX_PAGE_SIZE)

    sort_order = str(args.get("sortOrder", "desc")).strip().lower()
    if sort_order not in {"asc", "desc"}:
        return error_response("sortOrder must be asc or desc", 400)

    try:
        start = parse_boundary(args.get("startDate"))
        end = parse_boundary(args.get("endDate"), end_of_day=True)
    except ValueError:
        return error_response("startDate and endDate must be ISO date/time format", 400)

    rows, total = list_activity_logs(
        search=args.get("search") or None,
        action=args.get("action") or None,
        entity_id=args.get("entityId") or None,
        start=start,
        end=end,
        page=page,
        limit=limit,
        newest_first=sort_order == "desc",
    )
    return {
        "success": True,
        "data": [build_activity_log_response(row) for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    }, 200


@activity_log_bp.get("/stats")
@require_permissions("audit.read")
@api_errors("Failed to fetch activity log stats")
def get_activity_log_stats() -> tuple[dict[str, object], int]:
    return {"success": True, "data": activity_stats()}, 200
