from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, request
from flask_jwt_extended import get_jwt, verify_jwt_in_request


def _forbidden_response() -> tuple[dict[str, object], int]:
    return {"success": False, "error": "Forbidden"}, 403


def require_permissions(*required_permissions: str) -> Callable[..., Any]:
    required_set = set(required_permissions)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            verify_jwt_in_request()
            claims = get_jwt()
            permissions = set(claims.get("permissions", []))

            if not required_set.issubset(permissions):
                current_app.logger.warning(
                    "forbidden: %s requires %s", request.path, ",".join(sorted(required_set - permissions))
                )
                return _forbidden_response()

            return func(*args, **kwargs)

        return wrapper

    return decorator
