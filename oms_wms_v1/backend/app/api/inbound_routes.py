from __future__ import annotations

from flask import Blueprint, request

from app.api.errors import api_errors, error_response
from app.security.request_context import get_client_ip, optional_actor_id
from app.services.inbound_service import (
    ValidationError,
    build_status_response,
    change_inbound_status,
    remove_inbound_request,
    submit_inbound_request,
)
from app.services.inbound_store import InboundRequestNotFound, InvalidStatusTransition, get_inbound_store

inbound_requests_bp = Blueprint("inbound_requests", __name__)
inbound_status_bp = Blueprint("inbound_status", __name__)


@inbound_requests_bp.get("")
@api_errors("Failed to fetch inbound requests")
def list_inbound_requests() -> tuple[dict[str, object], int]:
    records = get_inbound_store().get_all()
    return {
        "success": True,
        "data": [record.to_dict() for record in records],
        "count": len(records),
    }, 200


@inbound_requests_bp.post("")
@api_errors("Failed to create inbound request")
def create_inbound_request() -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}

    try:
        record = submit_inbound_request(payload, actor_user_id=optional_actor_id(), ip_address=get_client_ip())
    except ValidationError as exc:
        return error_response(exc.message, 400)

    return {
        "success": True,
        "message": "Inbound request created successfully",
        "data": record.to_dict(),
    }, 201


@inbound_status_bp.get("/<request_id>")
@api_errors("Failed to fetch inbound status")
def get_inbound_status(request_id: str) -> tuple[dict[str, object], int]:
    record = get_inbound_store().get_by_id(request_id)
    if record is None:
        return error_response("Inbound request not found", 404)

    return {"success": True, "data": build_status_response(record, include_details=True)}, 200


@inbound_status_bp.patch("/<request_id>")
@api_errors("Failed to update inbound status")
def update_inbound_status(request_id: str) -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}

    try:
        updated = change_inbound_status(
            request_id, payload, actor_user_id=optional_actor_id(), ip_address=get_client_ip()
        )
    except ValidationError as exc:
        return error_response(exc.message, 400)
    except InboundRequestNotFound:
        return error_response("Inbound request not found", 404)
    except InvalidStatusTransition as exc:
        return error_response(
            str(exc), 409, currentStatus=exc.current.value, requestedStatus=exc.target.value
        )

    return {
        "success": True,
        "message": "Status updated successfully",
        "data": build_status_response(updated),
    }, 200


@inbound_status_bp.delete("/<request_id>")
@api_errors("Failed to delete inbound request")
def delete_inbound_request(request_id: str) -> tuple[dict[str, object], int]:
    try:
        remove_inbound_request(request_id, actor_user_id=optional_actor_id(), ip_address=get_client_ip())
    except InboundRequestNotFound:
        return error_response("Inbound request not found", 404)

    return {"success": True, "message": "Inbound request deleted successfully"}, 200
