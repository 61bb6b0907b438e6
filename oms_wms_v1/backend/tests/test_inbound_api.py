from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from app.extensions import db
from app.models import ActivityLog
from app.services.inbound_store import InboundStoreError


def _create(client, payload):
    response = client.post("/api/inbound-requests", json=payload)
    assert response.status_code == 201
    return response.get_json()["data"]


def test_list_returns_seeded_requests(client):
    response = client.get("/api/inbound-requests")

    body = response.get_json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["count"] == 3
    assert [row["id"] for row in body["data"]] == ["PO-2024-001", "PO-2024-002", "PO-2024-003"]


def test_create_defaults_status_and_dates(client, make_payload):
    response = client.post("/api/inbound-requests", json=make_payload())

    body = response.get_json()
    today = datetime.now(timezone.utc).date()
    assert response.status_code == 201
    assert body["message"] == "Inbound request created successfully"
    assert body["data"]["approvalStatus"] == "PendingApproval"
    assert body["data"]["requestDate"] == today.isoformat()
    assert body["data"]["expectedDate"] == (today + timedelta(days=5)).isoformat()
    assert body["data"]["items"] == [
        {"id": "item-001", "skuCode": "S1", "productName": "Widget", "quantity": 5, "unit": "EA"}
    ]


def test_create_keeps_explicit_dates_and_memo(client, make_payload):
    data = _create(
        client, make_payload(requestDate="2026-10-01", expectedDate="2026-10-09", memo="Dock 3")
    )

    assert data["requestDate"] == "2026-10-01"
    assert data["expectedDate"] == "2026-10-09"
    assert data["memo"] == "Dock 3"


def test_created_ids_are_unique(client, make_payload):
    ids = {_create(client, make_payload(poNumber=f"PO-U{n}"))["id"] for n in range(5)}
    assert len(ids) == 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"items": []},
        {"poNumber": ""},
        {"supplierName": "   "},
        {"items": [{"skuCode": "S1", "productName": "Widget", "quantity": 0}]},
        {"items": [{"skuCode": "S1", "quantity": 1}]},
        {"requestDate": "19/10/2026"},
    ],
)
def test_create_rejects_invalid_payload_without_changing_store(client, store, make_payload, overrides):
    before = store.count()

    response = client.post("/api/inbound-requests", json=make_payload(**overrides))

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert store.count() == before


def test_create_reports_all_missing_fields(client):
    response = client.post("/api/inbound-requests", json={})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing required fields: poNumber, supplierName, items"


def test_round_trip_through_status_endpoint(client, make_payload):
    created = _create(client, make_payload())

    response = client.get(f"/api/inbound-status/{created['id']}")

    data = response.get_json()["data"]
    assert response.status_code == 200
    assert data["status"] == "PendingApproval"
    assert data["updatedAt"] == created["updatedAt"]
    assert data["requestDetails"]["poNumber"] == "PO-X1"
    assert data["requestDetails"]["supplierName"] == "Acme"
    assert data["requestDetails"]["items"] == created["items"]
    assert [event["status"] for event in data["history"]] == ["PendingApproval"]


def test_get_status_unknown_id(client):
    response = client.get("/api/inbound-status/PO-missing")

    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Inbound request not found"}


def test_patch_status_sets_reason_and_history(client, make_payload):
    created = _create(client, make_payload(memo="original"))

    response = client.patch(
        f"/api/inbound-status/{created['id']}", json={"status": "Rejected", "reason": "Wrong supplier"}
    )

    data = response.get_json()["data"]
    assert response.status_code == 200
    assert data["status"] == "Rejected"
    assert data["reason"] == "Wrong supplier"

    detail = client.get(f"/api/inbound-status/{created['id']}").get_json()["data"]
    assert detail["requestDetails"]["memo"] == "Wrong supplier"
    assert [(event["status"], event["reason"]) for event in detail["history"]] == [
        ("PendingApproval", None),
        ("Rejected", "Wrong supplier"),
    ]


@pytest.mark.parametrize("body", [{"status": "Shipped"}, {"status": "approved"}, {}])
def test_patch_rejects_invalid_status(client, store, body):
    response = client.patch("/api/inbound-status/PO-2024-002", json=body)

    assert response.status_code == 400
    assert store.get_by_id("PO-2024-002").approval_status.value == "PendingApproval"


def test_patch_unknown_id(client):
    response = client.patch("/api/inbound-status/PO-missing", json={"status": "Approved"})
    assert response.status_code == 404


def test_patch_forbidden_transition_conflicts(client):
    response = client.patch("/api/inbound-status/PO-2024-003", json={"status": "PendingApproval"})

    body = response.get_json()
    assert response.status_code == 409
    assert body["currentStatus"] == "Received"
    assert body["requestedStatus"] == "PendingApproval"


def test_patch_any_transition_when_enforcement_disabled(app, client):
    app.extensions["inbound_store"].enforce_transitions = False

    response = client.patch("/api/inbound-status/PO-2024-003", json={"status": "PendingApproval"})

    assert response.status_code == 200
    assert response.get_json()["data"]["status"] == "PendingApproval"


def test_delete_twice(client, store):
    first = client.delete("/api/inbound-status/PO-2024-002")
    second = client.delete("/api/inbound-status/PO-2024-002")

    assert first.status_code == 200
    assert second.status_code == 404
    assert store.get_by_id("PO-2024-002") is None


def test_unsupported_method_returns_json_405(client):
    response = client.put("/api/inbound-status/PO-2024-001", json={})

    assert response.status_code == 405
    assert response.get_json()["success"] is False
    assert "PATCH" in response.headers["Allow"]


def test_unknown_api_route_returns_json_404(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_unexpected_store_error_surfaces_detail(app, client, monkeypatch):
    def _broken():
        raise InboundStoreError("store corrupted")

    monkeypatch.setattr(app.extensions["inbound_store"], "get_all", _broken)

    response = client.get("/api/inbound-requests")

    body = response.get_json()
    assert response.status_code == 500
    assert body["error"] == "Failed to fetch inbound requests"
    assert body["detail"] == "store corrupted"


def test_mutations_are_recorded_in_activity_log(app, client, make_payload):
    created = _create(client, make_payload())
    client.patch(f"/api/inbound-status/{created['id']}", json={"status": "Approved"})
    client.delete(f"/api/inbound-status/{created['id']}")

    rows = db.session.execute(
        select(ActivityLog).where(ActivityLog.entity_id == created["id"]).order_by(ActivityLog.id)
    ).scalars().all()
    assert [row.action for row in rows] == [
        "INBOUND_CREATE",
        "INBOUND_STATUS_UPDATE",
        "INBOUND_DELETE",
    ]
    assert rows[1].before_json == {"approvalStatus": "PendingApproval", "memo": ""}
    assert rows[1].after_json == {"approvalStatus": "Approved", "memo": ""}


def _drop_activity_log_table():
    db.session.commit()
    ActivityLog.__table__.drop(db.engine)


def test_failed_activity_write_leaves_store_unchanged_on_create(client, store, make_payload):
    _drop_activity_log_table()
    before = store.count()

    response = client.post("/api/inbound-requests", json=make_payload())

    assert response.status_code == 500
    assert response.get_json()["error"] == "Failed to create inbound request"
    assert store.count() == before


def test_failed_activity_write_leaves_store_unchanged_on_status_and_delete(client, store):
    _drop_activity_log_table()

    patched = client.patch("/api/inbound-status/PO-2024-002", json={"status": "Approved"})
    deleted = client.delete("/api/inbound-status/PO-2024-002")

    assert patched.status_code == 500
    assert deleted.status_code == 500
    record = store.get_by_id("PO-2024-002")
    assert record is not None
    assert record.approval_status.value == "PendingApproval"
    assert len(record.status_history) == 1


def test_activity_log_error_aborts_create(client, store, make_payload, monkeypatch):
    def _fail(**kwargs):
        raise RuntimeError("activity log unavailable")

    monkeypatch.setattr("app.services.inbound_service.record_activity", _fail)
    before = store.count()

    response = client.post("/api/inbound-requests", json=make_payload())

    assert response.status_code == 500
    assert response.get_json()["detail"] == "activity log unavailable"
    assert store.count() == before


def test_create_retries_when_allocated_id_is_taken(client, store, make_payload, monkeypatch):
    candidates = iter(["PO-2024-001", "PO-9000000000001"])
    monkeypatch.setattr(store, "allocate_id", lambda: next(candidates))
    before = store.count()

    data = _create(client, make_payload())

    assert data["id"] == "PO-9000000000001"
    assert store.count() == before + 1
    rows = db.session.execute(select(ActivityLog).where(ActivityLog.action == "INBOUND_CREATE")).scalars().all()
    assert [row.entity_id for row in rows] == ["PO-9000000000001"]


def test_sql_backend_round_trip(sql_app, make_payload):
    client = sql_app.test_client()
    assert client.get("/api/inbound-requests").get_json()["count"] == 0

    created = _create(client, make_payload())
    second = _create(client, make_payload(poNumber="PO-X2"))
    listed = client.get("/api/inbound-requests").get_json()["data"]
    assert [row["id"] for row in listed] == [created["id"], second["id"]]

    approved = client.patch(
        f"/api/inbound-status/{created['id']}", json={"status": "Approved", "reason": "ok"}
    )
    conflict = client.patch(f"/api/inbound-status/{created['id']}", json={"status": "Rejected"})
    detail = client.get(f"/api/inbound-status/{created['id']}").get_json()["data"]

    assert approved.status_code == 200
    assert conflict.status_code == 409
    assert detail["requestDetails"]["items"] == created["items"]
    assert [event["status"] for event in detail["history"]] == ["PendingApproval", "Approved"]
    assert detail["reason"] == "ok"

    assert client.delete(f"/api/inbound-status/{created['id']}").status_code == 200
    assert client.delete(f"/api/inbound-status/{created['id']}").status_code == 404
    assert client.get("/api/inbound-requests").get_json()["count"] == 1
