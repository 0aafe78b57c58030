from __future__ import annotations
from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db
from .order_slot import utcnow

CENT = Decimal("0.01")
# потолок BIGINT: больше никакой долг не хранится
MAX_CENTS = 2**63 - 1
PAYMENT_METHODS = ("cash", "online")


def to_cents(amount: Decimal) -> int:
    return int((amount / CENT).to_integral_value())


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * CENT).quantize(CENT)


MAX_AMOUNT = from_cents(MAX_CENTS)


class CustomerBalance(db.Model):
    """Текущий долг клиента. Меняется только через CashLedger.apply()."""
    __tablename__ = "customer_balances"

    customer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # в копейках/пайсах: сравнение и вычитание в UPDATE должны быть точными
    amount_due_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("amount_due_cents >= 0", name="ck_customer_balance_non_negative"),
    )

    @property
    def amount_due(self) -> Decimal:
        return from_cents(self.amount_due_cents)


class CollectionTransaction(db.Model):
    """Запись журнала инкассации. Только добавляется."""
    __tablename__ = "collection_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    resulting_due_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(16), nullable=False, default="cash", server_default="cash")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_collection_tx_customer_created", "customer_id", "created_at"),
    )

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)

    @property
    def resulting_due(self) -> Decimal:
        return from_cents(self.resulting_due_cents)

    def to_dict(self) -> dict:
        return {
            "transactionId": self.id,
            "customerId": self.customer_id,
            "amount": f"{self.amount:.2f}",
            "resultingDue": f"{self.resulting_due:.2f}",
            "paymentMethod": self.payment_method,
            "timestamp": self.created_at.isoformat(timespec="seconds") + "Z",
        }
