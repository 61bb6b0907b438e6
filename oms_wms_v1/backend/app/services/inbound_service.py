from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date, datetime, timedelta, timezone
from functools import partial
from typing import Any, TypeVar

from flask import current_app
from sqlalchemy.exc import IntegrityError

from app.extensions import db
from app.services.activity_log_service import (
    ACTION_INBOUND_CREATE,
    ACTION_INBOUND_DELETE,
    ACTION_INBOUND_STATUS_UPDATE,
    ENTITY_INBOUND_REQUEST,
    record_activity,
)
from app.services.approval_status import STATUS_TOKENS, ApprovalStatus
from app.services.inbound_store import (
    InboundRequestAlreadyExists,
    InboundRequestNotFound,
    InboundRequestRecord,
    LineItem,
    NewInboundRequest,
    get_inbound_store,
)

DEFAULT_UNIT = "EA"
EXPECTED_DATE_OFFSET = timedelta(days=5)
CREATE_ATTEMPTS = 3

T = TypeVar("T")


class ValidationError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _non_empty_text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_date(value: object, field_name: str) -> tuple[date | None, str | None]:
    if value is None or value == "":
        return None, None
    if not isinstance(value, str):
        return None, f"{field_name} must be a YYYY-MM-DD string"
    try:
        return date.fromisoformat(value.strip()), None
    except ValueError:
        return None, f"{field_name} must be a YYYY-MM-DD string"


def _parse_line_items(raw_items: list[object]) -> tuple[list[LineItem], str | None]:
    items: list[LineItem] = []
    for idx, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            return [], f"item at index {idx} must be an object"

        sku_code = _non_empty_text(raw.get("skuCode"))
        product_name = _non_empty_text(raw.get("productName"))
        quantity = raw.get("quantity")
        unit = raw.get("unit", DEFAULT_UNIT)
        line_id = raw.get("id")

        if sku_code is None or product_name is None:
            return [], f"item at index {idx} requires skuCode and productName"
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return [], f"item at index {idx} quantity must be a positive integer"
        if unit is None or unit == "":
            unit = DEFAULT_UNIT
        if not isinstance(unit, str):
            return [], f"item at index {idx} unit must be a string"
        if line_id not in (None, "") and not _non_empty_text(line_id):
            return [], f"item at index {idx} id must be a non-empty string"

        items.append(
            LineItem(
                id=line_id.strip() if line_id else f"item-{idx + 1:03d}",
                sku_code=sku_code,
                product_name=product_name,
                quantity=quantity,
                unit=unit.strip() or DEFAULT_UNIT,
            )
        )
    return items, None


def parse_new_inbound_request(
    payload: object, *, today: date | None = None
) -> tuple[NewInboundRequest | None, str | None]:
    if not isinstance(payload, Mapping):
        return None, "request body must be a JSON object"

    po_number = _non_empty_text(payload.get("poNumber"))
    supplier_name = _non_empty_text(payload.get("supplierName"))
    raw_items = payload.get("items")

    missing: list[str] = []
    if po_number is None:
        missing.append("poNumber")
    if supplier_name is None:
        missing.append("supplierName")
    if not isinstance(raw_items, list) or not raw_items:
        missing.append("items")
    if missing:
        return None, "Missing required fields: " + ", ".join(missing)

    items, items_error = _parse_line_items(raw_items)
    if items_error:
        return None, items_error

    request_date, date_error = _parse_date(payload.get("requestDate"), "requestDate")
    if date_error:
        return None, date_error
    expected_date, date_error = _parse_date(payload.get("expectedDate"), "expectedDate")
    if date_error:
        return None, date_error

    memo = payload.get("memo") or ""
    if not isinstance(memo, str):
        return None, "memo must be a string"

    today = today or utc_today()
    return (
        NewInboundRequest(
            po_number=po_number,
            supplier_name=supplier_name,
            items=items,
            request_date=request_date or today,
            expected_date=expected_date or today + EXPECTED_DATE_OFFSET,
            memo=memo,
        ),
        None,
    )


def parse_status_change(payload: object) -> tuple[ApprovalStatus | None, str | None, str | None]:
    """Return (status, reason, error) for a status-change body."""
    if not isinstance(payload, Mapping):
        return None, None, "request body must be a JSON object"
    raw_status = payload.get("status")
    if raw_status is None or raw_status == "":
        return None, None, "Missing status field"

    status = ApprovalStatus.parse(raw_status)
    if status is None:
        return None, None, "Invalid status. Valid values: " + ", ".join(STATUS_TOKENS)

    reason = payload.get("reason")
    if reason is not None and not isinstance(reason, str):
        return None, None, "reason must be a string"
    return status, reason or None, None


def submit_inbound_request(
    payload: object, *, actor_user_id: int | None = None, ip_address: str | None = None
) -> InboundRequestRecord:
    new_request, error = parse_new_inbound_request(payload)
    if error:
        raise ValidationError(error)

    store = get_inbound_store()
    for attempt in range(1, CREATE_ATTEMPTS + 1):
        request_id = store.allocate_id()
        try:
            # the activity row is flushed first so a broken log table fails before the store changes
            entry = record_activity(
                action=ACTION_INBOUND_CREATE,
                entity_type=ENTITY_INBOUND_REQUEST,
                entity_id=request_id,
                actor_user_id=actor_user_id,
                ip_address=ip_address,
                commit=False,
            )
            record = store.create(new_request, request_id=request_id)
        except (InboundRequestAlreadyExists, IntegrityError):
            db.session.rollback()
            if attempt == CREATE_ATTEMPTS:
                raise
            current_app.logger.warning("inbound request id %s already taken, retrying", request_id)
            continue
        except Exception:
            db.session.rollback()
            raise
        break

    entry.after_json = record.to_dict()
    db.session.commit()
    current_app.logger.info("inbound request %s created for PO %s", record.id, record.po_number)
    return record


def change_inbound_status(
    request_id: str,
    payload: object,
    *,
    actor_user_id: int | None = None,
    ip_address: str | None = None,
) -> InboundRequestRecord:
    status, reason, error = parse_status_change(payload)
    if error:
        raise ValidationError(error)

    store = get_inbound_store()
    before = store.get_by_id(request_id)
    if before is None:
        raise InboundRequestNotFound(request_id)

    entry = _rollback_on_error(
        partial(
            record_activity,
            action=ACTION_INBOUND_STATUS_UPDATE,
            entity_type=ENTITY_INBOUND_REQUEST,
            entity_id=request_id,
            before=_status_snapshot(before),
            actor_user_id=actor_user_id,
            ip_address=ip_address,
            commit=False,
        )
    )
    updated = _rollback_on_error(lambda: store.update_status(request_id, status, reason))
    entry.after_json = _status_snapshot(updated)
    db.session.commit()
    current_app.logger.info(
        "inbound request %s status %s -> %s", request_id, before.approval_status.value, updated.approval_status.value
    )
    return updated


def remove_inbound_request(
    request_id: str, *, actor_user_id: int | None = None, ip_address: str | None = None
) -> None:
    store = get_inbound_store()
    before = store.get_by_id(request_id)
    if before is None:
        raise InboundRequestNotFound(request_id)

    _rollback_on_error(
        partial(
            record_activity,
            action=ACTION_INBOUND_DELETE,
            entity_type=ENTITY_INBOUND_REQUEST,
            entity_id=request_id,
            before=before.to_dict(),
            actor_user_id=actor_user_id,
            ip_address=ip_address,
            commit=False,
        )
    )
    _rollback_on_error(lambda: store.delete(request_id))
    db.session.commit()
    current_app.logger.info("inbound request %s deleted", request_id)


def _rollback_on_error(mutation: Callable[[], T]) -> T:
    try:
        return mutation()
    except Exception:
        db.session.rollback()
        raise


def build_status_response(record: InboundRequestRecord, *, include_details: bool = False) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": record.id,
        "status": record.approval_status.value,
        "updatedAt": record.to_dict()["updatedAt"],
        "reason": record.memo,
    }
    if include_details:
        body["requestDetails"] = record.to_dict()
        body["history"] = [change.to_dict() for change in record.status_history]
    return body


def _status_snapshot(record: InboundRequestRecord) -> dict[str, Any]:
    return {"approvalStatus": record.approval_status.value, "memo": record.memo}
