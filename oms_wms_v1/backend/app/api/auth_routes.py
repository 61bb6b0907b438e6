from __future__ import annotations

import hmac

from flask import Blueprint, current_app, request
from flask_jwt_extended import create_access_token, create_refresh_token, get_jwt_identity, jwt_required
from sqlalchemy.exc import IntegrityError

from app.api.errors import api_errors, error_response
from app.models import User
from app.security.request_context import get_client_ip
from app.services.activity_log_service import (
    ACTION_AUTH_BOOTSTRAP,
    ACTION_AUTH_LOGIN,
    ACTION_AUTH_LOGIN_FAILED,
    ENTITY_USER,
    record_activity,
)
from app.services.auth_service import (
    any_users_exist,
    authenticate_user,
    build_auth_claims,
    create_user,
    ensure_default_roles,
    find_user_by_id,
)

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/bootstrap-admin")
@api_errors("Failed to create initial admin")
def bootstrap_admin() -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}
    expected_secret = current_app.config.get("ADMIN_SETUP_SECRET")
    if expected_secret:
        provided = str(payload.get("setupSecret", ""))
        if not hmac.compare_digest(provided.encode(), str(expected_secret).encode()):
            return error_response("Forbidden", 403)

    email = str(payload.get("email", "")).strip().lower()
    password = str(payload.get("password", ""))
    display_name = str(payload.get("displayName", "")).strip() or None
    if not email or not password:
        return error_response("email and password are required", 400)

    if any_users_exist():
        return error_response("bootstrap already completed", 409)

    roles = ensure_default_roles()
    try:
        user = create_user(email=email, password=password, roles=[roles["admin"]], display_name=display_name)
    except IntegrityError:
        return error_response("email already exists", 409)

    record_activity(
        action=ACTION_AUTH_BOOTSTRAP,
        entity_type=ENTITY_USER,
        entity_id=str(user.id),
        after={"email": user.email},
        actor_user_id=user.id,
        ip_address=get_client_ip(),
    )
    return {"success": True, "data": _build_token_response(user)}, 201


@auth_bp.post("/login")
@api_errors("Failed to log in")
def login() -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}
    email = str(payload.get("email", "")).strip().lower()
    password = str(payload.get("password", ""))
    if not email or not password:
        return error_response("email and password are required", 400)

    user = authenticate_user(email, password)
    if user is None:
        record_activity(
            action=ACTION_AUTH_LOGIN_FAILED,
            entity_type=ENTITY_USER,
            entity_id=email,
            ip_address=get_client_ip(),
        )
        return error_response("invalid credentials", 401)

    record_activity(
        action=ACTION_AUTH_LOGIN,
        entity_type=ENTITY_USER,
        entity_id=str(user.id),
        actor_user_id=user.id,
        ip_address=get_client_ip(),
    )
    return {"success": True, "data": _build_token_response(user)}, 200


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
def refresh() -> tuple[dict[str, object], int]:
    user = _current_user()
    if user is None or not user.is_active:
        return error_response("invalid token identity", 401)

    claims = build_auth_claims(user)
    return {
        "success": True,
        "data": {"accessToken": create_access_token(identity=str(user.id), additional_claims=claims)},
    }, 200


@auth_bp.get("/me")
@jwt_required()
def me() -> tuple[dict[str, object], int]:
    user = _current_user()
    if user is None:
        return error_response("invalid token identity", 401)
    return {"success": True, "data": _build_user_response(user)}, 200


def _current_user() -> User | None:
    try:
        user_id = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    return find_user_by_id(user_id)


def _build_user_response(user: User) -> dict[str, object]:
    claims = build_auth_claims(user)
    return {
        "id": user.id,
        "email": user.email,
        "displayName": user.display_name,
        "roles": claims["roles"],
        "permissions": claims["permissions"],
    }


def _build_token_response(user: User) -> dict[str, object]:
    claims = build_auth_claims(user)
    return {
        "accessToken": create_access_token(identity=str(user.id), additional_claims=claims),
        "refreshToken": create_refresh_token(identity=str(user.id)),
        "user": _build_user_response(user),
    }
