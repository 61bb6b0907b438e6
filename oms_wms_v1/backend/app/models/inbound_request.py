from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.extensions import db


class InboundRequest(db.Model):
    __tablename__ = "inbound_requests"

    # row_id orders requests by insertion; id is the public request id
    row_id: Mapped[int] = mapped_column(primary_key=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    po_number: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    supplier_name: Mapped[str] = mapped_column(String(255), nullable=False)
    request_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_date: Mapped[date] = mapped_column(Date, nullable=False)
    approval_status: Mapped[str] = mapped_column(String(32), nullable=False, default="PendingApproval")
    memo: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    items: Mapped[list["InboundRequestItem"]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="InboundRequestItem.position",
        lazy="selectin",
    )
    status_events: Mapped[list["InboundStatusEvent"]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="InboundStatusEvent.id",
        lazy="selectin",
    )


class InboundRequestItem(db.Model):
    __tablename__ = "inbound_request_items"

    row_id: Mapped[int] = mapped_column(primary_key=True)
    request_id: Mapped[str] = mapped_column(
        ForeignKey("inbound_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(nullable=False)
    line_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sku_code: Mapped[str] = mapped_column(String(128), nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)

    request: Mapped[InboundRequest] = relationship(back_populates="items")


class InboundStatusEvent(db.Model):
    __tablename__ = "inbound_status_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    request_id: Mapped[str] = mapped_column(
        ForeignKey("inbound_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    request: Mapped[InboundRequest] = relationship(back_populates="status_events")
