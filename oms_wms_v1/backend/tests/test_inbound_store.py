from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from app.services.approval_status import ApprovalStatus
from app.services.inbound_store import (
    InboundRequestAlreadyExists,
    InboundRequestNotFound,
    InMemoryInboundRequestStore,
    InvalidStatusTransition,
    LineItem,
    NewInboundRequest,
    RequestIdAllocator,
    create_inbound_store,
    seed_sample_requests,
)


def _new_request(po_number: str = "PO-T1") -> NewInboundRequest:
    return NewInboundRequest(
        po_number=po_number,
        supplier_name="Acme",
        items=[LineItem("item-001", "S1", "Widget", 5, "EA")],
        request_date=date(2026, 10, 19),
        expected_date=date(2026, 10, 24),
    )


@pytest.fixture(params=["memory", "sql"])
def backend_store(request):
    app = request.getfixturevalue("app" if request.param == "memory" else "sql_app")
    store = app.extensions["inbound_store"]
    seed_sample_requests(store)
    return store


def test_samples_are_seeded_in_insertion_order(backend_store):
    records = backend_store.get_all()
    assert [record.id for record in records] == ["PO-2024-001", "PO-2024-002", "PO-2024-003"]
    assert [record.approval_status for record in records] == [
        ApprovalStatus.APPROVED,
        ApprovalStatus.PENDING_APPROVAL,
        ApprovalStatus.RECEIVED,
    ]
    assert records[2].memo == "Received in full"


def test_seeding_twice_adds_nothing(backend_store):
    assert seed_sample_requests(backend_store) == 0
    assert backend_store.count() == 3


def test_create_assigns_unique_ids_and_pending_status(backend_store):
    first = backend_store.create(_new_request("PO-A"))
    second = backend_store.create(_new_request("PO-B"))

    assert first.id != second.id
    assert first.id.startswith("PO-")
    assert first.approval_status == ApprovalStatus.PENDING_APPROVAL
    assert [change.status for change in first.status_history] == [ApprovalStatus.PENDING_APPROVAL]
    assert [record.id for record in backend_store.get_all()][-2:] == [first.id, second.id]


def test_create_with_taken_id_is_rejected(backend_store):
    with pytest.raises(InboundRequestAlreadyExists):
        backend_store.create(_new_request(), request_id="PO-2024-001")


def test_get_by_id_returns_none_for_unknown(backend_store):
    assert backend_store.get_by_id("PO-missing") is None


def test_update_status_overwrites_memo_and_appends_history(backend_store):
    updated = backend_store.update_status("PO-2024-002", ApprovalStatus.REJECTED, "Damaged pallets")

    assert updated.approval_status == ApprovalStatus.REJECTED
    assert updated.memo == "Damaged pallets"
    assert [(change.status, change.reason) for change in updated.status_history] == [
        (ApprovalStatus.PENDING_APPROVAL, None),
        (ApprovalStatus.REJECTED, "Damaged pallets"),
    ]
    assert backend_store.get_by_id("PO-2024-002").memo == "Damaged pallets"


def test_update_status_without_reason_keeps_memo(backend_store):
    updated = backend_store.update_status("PO-2024-001", ApprovalStatus.RECEIVED)
    assert updated.memo == "Priority handling requested"


def test_update_status_rejects_forbidden_transition(backend_store):
    with pytest.raises(InvalidStatusTransition):
        backend_store.update_status("PO-2024-003", ApprovalStatus.PENDING_APPROVAL)

    assert backend_store.get_by_id("PO-2024-003").approval_status == ApprovalStatus.RECEIVED


def test_update_status_unknown_id(backend_store):
    with pytest.raises(InboundRequestNotFound):
        backend_store.update_status("PO-missing", ApprovalStatus.APPROVED)


def test_delete_is_not_idempotent(backend_store):
    backend_store.delete("PO-2024-002")
    assert backend_store.get_by_id("PO-2024-002") is None

    with pytest.raises(InboundRequestNotFound):
        backend_store.delete("PO-2024-002")
    assert backend_store.count() == 2


def test_returned_records_are_copies():
    store = InMemoryInboundRequestStore()
    record = store.create(_new_request())
    record.items.append(LineItem("item-x", "X", "Extra", 1, "EA"))
    record.memo = "tampered"

    stored = store.get_by_id(record.id)
    assert len(stored.items) == 1
    assert stored.memo == ""


def test_updated_at_tracks_mutations_only():
    moments = iter(datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc) + timedelta(minutes=n) for n in range(10))
    store = InMemoryInboundRequestStore(clock=lambda: next(moments))

    created = store.create(_new_request())
    assert store.get_by_id(created.id).updated_at == created.updated_at

    approved = store.update_status(created.id, ApprovalStatus.APPROVED)
    assert approved.updated_at > created.updated_at
    assert store.get_by_id(created.id).updated_at == approved.updated_at


def test_disabled_enforcement_allows_any_transition():
    store = InMemoryInboundRequestStore(enforce_transitions=False)
    record = store.create(_new_request())
    store.update_status(record.id, ApprovalStatus.RECEIVED)

    reopened = store.update_status(record.id, ApprovalStatus.PENDING_APPROVAL)
    assert reopened.approval_status == ApprovalStatus.PENDING_APPROVAL


def test_id_allocator_never_repeats_within_same_millisecond():
    frozen = datetime(2026, 10, 19, tzinfo=timezone.utc)
    allocator = RequestIdAllocator(clock=lambda: frozen)

    ids = {allocator.next_id(lambda candidate: False) for _ in range(5)}
    assert len(ids) == 5


def test_id_allocator_skips_taken_ids():
    frozen = datetime(2026, 10, 19, tzinfo=timezone.utc)
    allocator = RequestIdAllocator(clock=lambda: frozen)
    millis = int(frozen.timestamp() * 1000)
    taken = {f"PO-{millis}", f"PO-{millis + 1}"}

    assert allocator.next_id(lambda candidate: candidate in taken) == f"PO-{millis + 2}"


def test_create_inbound_store_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_inbound_store({"INBOUND_STORE_BACKEND": "redis"})
