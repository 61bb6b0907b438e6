from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Flask, current_app, request
from werkzeug.exceptions import HTTPException


def error_response(message: str, status: int, **extra: object) -> tuple[dict[str, object], int]:
    body: dict[str, object] = {"success": False, "error": message}
    body.update(extra)
    return body, status


def api_errors(failure_message: str) -> Callable[..., Any]:
    """Answer 500 with ``failure_message`` when the wrapped handler raises unexpectedly."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as exc:
                current_app.logger.exception("%s: %s %s", failure_message, request.method, request.path)
                return error_response(failure_message, 500, detail=str(exc))

        return wrapper

    return decorator


def register_api_error_handlers(app: Flask) -> None:
    def _wants_json() -> bool:
        return request.path.startswith("/api/")

    @app.errorhandler(404)
    def _not_found(exc: HTTPException):
        if _wants_json():
            return error_response("Not Found", 404)
        return exc

    @app.errorhandler(405)
    def _method_not_allowed(exc: HTTPException):
        if _wants_json():
            body, status = error_response(f"Method {request.method} Not Allowed", 405)
            return body, status, {"Allow": ", ".join(exc.valid_methods or [])}
        return exc

    @app.errorhandler(500)
    def _internal_error(exc: HTTPException):
        app.logger.error("500 %s %s", request.method, request.path)
        if _wants_json():
            return error_response("Internal Server Error", 500)
        return exc
