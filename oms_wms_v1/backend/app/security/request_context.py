from __future__ import annotations

from flask import current_app, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError


def get_client_ip() -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote_addr


def optional_actor_id() -> int | None:
    """Identity of the bearer token if one was sent and is valid, else None."""
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as exc:
        current_app.logger.warning("ignoring unusable bearer token: %s", exc)
        return None
    raw_identity = get_jwt_identity()
    try:
        return int(raw_identity)
    except (TypeError, ValueError):
        return None
