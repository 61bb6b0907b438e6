"""Repository for inbound (purchase-order receiving) requests.

Two interchangeable backends implement :class:`InboundRequestStore`:

* :class:`InMemoryInboundRequestStore` keeps records in an insertion-ordered
  dict behind a lock. State lives as long as the process does.
* :class:`SqlAlchemyInboundRequestStore` persists through the ORM models in
  :mod:`app.models.inbound_request`.

One store is built per application in ``create_app`` and handlers reach it
through :func:`get_inbound_store`.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Protocol

from flask import current_app
from sqlalchemy import func, select

from app.extensions import db
from app.models import InboundRequest, InboundRequestItem, InboundStatusEvent
from app.services.approval_status import ApprovalStatus, can_transition


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


@dataclass
class LineItem:
    id: str
    sku_code: str
    product_name: str
    quantity: int
    unit: str

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "skuCode": self.sku_code,
            "productName": self.product_name,
            "quantity": self.quantity,
            "unit": self.unit,
        }


@dataclass
class StatusChange:
    status: ApprovalStatus
    reason: str | None
    changed_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "reason": self.reason,
            "changedAt": _isoformat(self.changed_at),
        }


@dataclass
class NewInboundRequest:
    po_number: str
    supplier_name: str
    items: list[LineItem]
    request_date: date
    expected_date: date
    memo: str = ""


@dataclass
class InboundRequestRecord:
    id: str
    po_number: str
    supplier_name: str
    items: list[LineItem]
    request_date: date
    expected_date: date
    approval_status: ApprovalStatus
    memo: str
    created_at: datetime
    updated_at: datetime
    status_history: list[StatusChange] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "poNumber": self.po_number,
            "supplierName": self.supplier_name,
            "items": [item.to_dict() for item in self.items],
            "requestDate": self.request_date.isoformat(),
            "expectedDate": self.expected_date.isoformat(),
            "approvalStatus": self.approval_status.value,
            "memo": self.memo,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }


class InboundStoreError(Exception):
    pass


class InboundRequestNotFound(InboundStoreError):
    def __init__(self, request_id: str) -> None:
        super().__init__(f"inbound request {request_id} not found")
        self.request_id = request_id


class InboundRequestAlreadyExists(InboundStoreError):
    def __init__(self, request_id: str) -> None:
        super().__init__(f"inbound request {request_id} already exists")
        self.request_id = request_id


class InvalidStatusTransition(InboundStoreError):
    def __init__(self, current: ApprovalStatus, target: ApprovalStatus) -> None:
        super().__init__(f"cannot change status from {current.value} to {target.value}")
        self.current = current
        self.target = target


class InboundRequestStore(Protocol):
    enforce_transitions: bool

    def allocate_id(self) -> str: ...

    def create(self, new_request: NewInboundRequest, *, request_id: str | None = None) -> InboundRequestRecord: ...

    def get_all(self) -> list[InboundRequestRecord]: ...

    def get_by_id(self, request_id: str) -> InboundRequestRecord | None: ...

    def update_status(
        self, request_id: str, status: ApprovalStatus, reason: str | None = None
    ) -> InboundRequestRecord: ...

    def delete(self, request_id: str) -> None: ...

    def count(self) -> int: ...


class RequestIdAllocator:
    """Hands out ``PO-<epoch-ms>`` ids that never repeat within a process."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = 0

    def next_id(self, is_taken: Callable[[str], bool]) -> str:
        with self._lock:
            millis = max(int(self._clock().timestamp() * 1000), self._last_ms + 1)
            while is_taken(f"PO-{millis}"):
                millis += 1
            self._last_ms = millis
            return f"PO-{millis}"


def _check_transition(enforce: bool, current: ApprovalStatus, target: ApprovalStatus) -> None:
    if enforce and not can_transition(current, target):
        raise InvalidStatusTransition(current, target)


class InMemoryInboundRequestStore:
    def __init__(self, *, enforce_transitions: bool = True, clock: Callable[[], datetime] = utcnow) -> None:
        self.enforce_transitions = enforce_transitions
        self._clock = clock
        self._ids = RequestIdAllocator(clock)
        self._lock = threading.Lock()
        self._records: dict[str, InboundRequestRecord] = {}

    def allocate_id(self) -> str:
        with self._lock:
            return self._ids.next_id(lambda candidate: candidate in self._records)

    def create(self, new_request: NewInboundRequest, *, request_id: str | None = None) -> InboundRequestRecord:
        with self._lock:
            if request_id is None:
                request_id = self._ids.next_id(lambda candidate: candidate in self._records)
            elif request_id in self._records:
                raise InboundRequestAlreadyExists(request_id)

            now = self._clock()
            record = InboundRequestRecord(
                id=request_id,
                po_number=new_request.po_number,
                supplier_name=new_request.supplier_name,
                items=copy.deepcopy(new_request.items),
                request_date=new_request.request_date,
                expected_date=new_request.expected_date,
                approval_status=ApprovalStatus.PENDING_APPROVAL,
                memo=new_request.memo,
                created_at=now,
                updated_at=now,
                status_history=[StatusChange(ApprovalStatus.PENDING_APPROVAL, None, now)],
            )
            self._records[request_id] = record
            return copy.deepcopy(record)

    def get_all(self) -> list[InboundRequestRecord]:
        with self._lock:
            return [copy.deepcopy(record) for record in self._records.values()]

    def get_by_id(self, request_id: str) -> InboundRequestRecord | None:
        with self._lock:
            record = self._records.get(request_id)
            return copy.deepcopy(record) if record is not None else None

    def update_status(
        self, request_id: str, status: ApprovalStatus, reason: str | None = None
    ) -> InboundRequestRecord:
        with self._lock:
            record = self._records.get(request_id)
            if record is None:
                raise InboundRequestNotFound(request_id)
            _check_transition(self.enforce_transitions, record.approval_status, status)

            now = self._clock()
            record.approval_status = status
            if reason:
                record.memo = reason
            record.status_history.append(StatusChange(status, reason or None, now))
            record.updated_at = now
            return copy.deepcopy(record)

    def delete(self, request_id: str) -> None:
        with self._lock:
            if self._records.pop(request_id, None) is None:
                raise InboundRequestNotFound(request_id)

    def count(self) -> int:
        with self._lock:
            return len(self._records)


class SqlAlchemyInboundRequestStore:
    """Same contract as the in-memory store, backed by the request's db session."""

    def __init__(self, *, enforce_transitions: bool = True, clock: Callable[[], datetime] = utcnow) -> None:
        self.enforce_transitions = enforce_transitions
        self._clock = clock
        self._ids = RequestIdAllocator(clock)

    def allocate_id(self) -> str:
        return self._ids.next_id(lambda candidate: _find_row(candidate) is not None)

    def create(self, new_request: NewInboundRequest, *, request_id: str | None = None) -> InboundRequestRecord:
        if request_id is None:
            request_id = self.allocate_id()
        elif _find_row(request_id) is not None:
            raise InboundRequestAlreadyExists(request_id)

        now = self._clock()
        row = InboundRequest(
            id=request_id,
            po_number=new_request.po_number,
            supplier_name=new_request.supplier_name,
            request_date=new_request.request_date,
            expected_date=new_request.expected_date,
            approval_status=ApprovalStatus.PENDING_APPROVAL.value,
            memo=new_request.memo,
            created_at=now,
            updated_at=now,
        )
        row.items = [
            InboundRequestItem(
                position=index,
                line_id=item.id,
                sku_code=item.sku_code,
                product_name=item.product_name,
                quantity=item.quantity,
                unit=item.unit,
            )
            for index, item in enumerate(new_request.items)
        ]
        row.status_events = [
            InboundStatusEvent(status=ApprovalStatus.PENDING_APPROVAL.value, reason=None, changed_at=now)
        ]
        db.session.add(row)
        db.session.commit()
        db.session.refresh(row)
        return _record_from_row(row)

    def get_all(self) -> list[InboundRequestRecord]:
        rows = db.session.execute(select(InboundRequest).order_by(InboundRequest.row_id)).scalars().all()
        return [_record_from_row(row) for row in rows]

    def get_by_id(self, request_id: str) -> InboundRequestRecord | None:
        row = _find_row(request_id)
        return _record_from_row(row) if row is not None else None

    def update_status(
        self, request_id: str, status: ApprovalStatus, reason: str | None = None
    ) -> InboundRequestRecord:
        row = _find_row(request_id)
        if row is None:
            raise InboundRequestNotFound(request_id)
        _check_transition(self.enforce_transitions, ApprovalStatus(row.approval_status), status)

        now = self._clock()
        row.approval_status = status.value
        if reason:
            row.memo = reason
        row.status_events.append(InboundStatusEvent(status=status.value, reason=reason or None, changed_at=now))
        row.updated_at = now
        db.session.commit()
        db.session.refresh(row)
        return _record_from_row(row)

    def delete(self, request_id: str) -> None:
        row = _find_row(request_id)
        if row is None:
            raise InboundRequestNotFound(request_id)
        db.session.delete(row)
        db.session.commit()

    def count(self) -> int:
        return db.session.scalar(select(func.count()).select_from(InboundRequest)) or 0


def _find_row(request_id: str) -> InboundRequest | None:
    return db.session.execute(select(InboundRequest).where(InboundRequest.id == request_id)).scalar_one_or_none()


def _record_from_row(row: InboundRequest) -> InboundRequestRecord:
    return InboundRequestRecord(
        id=row.id,
        po_number=row.po_number,
        supplier_name=row.supplier_name,
        items=[
            LineItem(
                id=item.line_id,
                sku_code=item.sku_code,
                product_name=item.product_name,
                quantity=item.quantity,
                unit=item.unit,
            )
            for item in row.items
        ],
        request_date=row.request_date,
        expected_date=row.expected_date,
        approval_status=ApprovalStatus(row.approval_status),
        memo=row.memo or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
        status_history=[
            StatusChange(ApprovalStatus(event.status), event.reason, event.changed_at)
            for event in row.status_events
        ],
    )


def create_inbound_store(config: Mapping[str, Any]) -> InboundRequestStore:
    backend = str(config.get("INBOUND_STORE_BACKEND", "memory")).strip().lower()
    enforce_transitions = bool(config.get("INBOUND_ENFORCE_TRANSITIONS", True))
    if backend == "memory":
        return InMemoryInboundRequestStore(enforce_transitions=enforce_transitions)
    if backend == "sql":
        return SqlAlchemyInboundRequestStore(enforce_transitions=enforce_transitions)
    raise ValueError(f"unknown INBOUND_STORE_BACKEND {backend!r}; expected 'memory' or 'sql'")


def get_inbound_store() -> InboundRequestStore:
    return current_app.extensions["inbound_store"]


SAMPLE_INBOUND_REQUESTS: list[dict[str, Any]] = [
    {
        "id": "PO-2024-001",
        "request": NewInboundRequest(
            po_number="PO-2024-001",
            supplier_name="ABC Supplier Co.",
            items=[
                LineItem("item-001", "SKU-001", "Product A", 100, "EA"),
                LineItem("item-002", "SKU-002", "Product B", 50, "BOX"),
            ],
            request_date=date(2024, 10, 20),
            expected_date=date(2024, 10, 25),
            memo="Priority handling requested",
        ),
        "transitions": [(ApprovalStatus.APPROVED, None)],
    },
    {
        "id": "PO-2024-002",
        "request": NewInboundRequest(
            po_number="PO-2024-002",
            supplier_name="XYZ Trading Ltd.",
            items=[LineItem("item-003", "SKU-003", "Product C", 200, "EA")],
            request_date=date(2024, 10, 22),
            expected_date=date(2024, 10, 27),
        ),
        "transitions": [],
    },
    {
        "id": "PO-2024-003",
        "request": NewInboundRequest(
            po_number="PO-2024-003",
            supplier_name="Global Supply Inc.",
            items=[
                LineItem("item-004", "SKU-004", "Product D", 75, "EA"),
                LineItem("item-005", "SKU-005", "Product E", 30, "SET"),
            ],
            request_date=date(2024, 10, 19),
            expected_date=date(2024, 10, 24),
        ),
        "transitions": [(ApprovalStatus.APPROVED, None), (ApprovalStatus.RECEIVED, "Received in full")],
    },
]


def seed_sample_requests(store: InboundRequestStore) -> int:
    """Insert the sample requests that are missing; return how many were added."""
    created = 0
    for sample in SAMPLE_INBOUND_REQUESTS:
        if store.get_by_id(sample["id"]) is not None:
            continue
        store.create(sample["request"], request_id=sample["id"])
        for status, reason in sample["transitions"]:
            store.update_status(sample["id"], status, reason)
        created += 1
    return created
