from __future__ import annotations
from datetime import date as dt_date, datetime, timezone
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import Date, DateTime, Enum, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


def utcnow() -> datetime:
    # храним naive UTC, как и остальные DateTime-колонки
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Shift(str, PyEnum):
    AM = "AM"
    PM = "PM"


class OrderSlot(db.Model):
    """Заказ клиента на конкретную дату и смену. Ключ (customer_id, date, shift) уникален."""
    __tablename__ = "order_slots"

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[dt_date] = mapped_column(Date, nullable=False)
    shift: Mapped[Shift] = mapped_column(Enum(Shift, name="order_shift"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("customer_id", "date", "shift", name="uq_order_slot_customer_date_shift"),
        Index("ix_order_slot_customer_date", "customer_id", "date"),
    )

    def to_dict(self) -> dict:
        return {
            "orderId": self.id,
            "customerId": self.customer_id,
            "date": self.date.isoformat(),
            "shift": self.shift.value,
            "quantity": self.quantity,
            "totalAmount": f"{Decimal(self.total_amount):.2f}",
            "createdAt": self.created_at.isoformat(timespec="seconds") + "Z",
            "updatedAt": self.updated_at.isoformat(timespec="seconds") + "Z",
        }

    def __repr__(self):
        return f"<OrderSlot {self.customer_id} {self.date} {self.shift.value}>"
