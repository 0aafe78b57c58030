# blueprints/cash/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from sqlalchemy import select

from errors import ExceedsDue, InvalidAmount, InvalidPaymentMethod
from extensions import db
from models import MAX_AMOUNT, PAYMENT_METHODS, CollectionTransaction
from . import ledger

log = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_TRANSACTIONS = 500


@dataclass
class CollectionResult:
    customer_id: str
    collected: Decimal
    previous_due: Decimal
    updated_amount_due: Decimal

    def to_dict(self) -> dict:
        return {
            "customerId": self.customer_id,
            "collected": f"{self.collected:.2f}",
            "previousAmountDue": f"{self.previous_due:.2f}",
            "updatedAmountDue": f"{self.updated_amount_due:.2f}",
            "message": "Cash collected successfully!",
        }


def parse_amount(raw: Any) -> Decimal:
    """Сумма из ввода администратора: число или строка, >= 0, не больше двух знаков после точки."""
    if raw is None or isinstance(raw, bool):
        raise InvalidAmount("Please enter a valid cash amount.")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount("Please enter a valid cash amount.")
    if not amount.is_finite() or amount < 0:
        raise InvalidAmount("Please enter a valid cash amount.")
    if amount.as_tuple().exponent < -2:
        raise InvalidAmount("amount has more than 2 decimal places")
    if amount > MAX_AMOUNT:
        # quantize упрётся в точность контекста; apply() ответит ExceedsDue
        return amount
    try:
        return amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmount("Please enter a valid cash amount.")


def parse_payment_method(raw: Any) -> str:
    if raw is None:
        return "cash"
    if isinstance(raw, str) and raw.strip().lower() in PAYMENT_METHODS:
        return raw.strip().lower()
    raise InvalidPaymentMethod(raw)


def amount_due(customer_id: str) -> Decimal:
    return ledger.get_due(customer_id)


def collect_cash(customer_id: str, amount: Any, payment_method: Any = None) -> CollectionResult:
    """Инкассация: проверка суммы, списание с долга. Без повторов."""
    collected = parse_amount(amount)
    method = parse_payment_method(payment_method)
    try:
        new_due = ledger.apply(customer_id, collected, method)
    except ExceedsDue as e:
        log.warning("collection rejected", extra={
            "event": "collection_rejected", "customer_id": customer_id,
            "amount": str(collected), "amount_due": f"{e.due:.2f}",
        })
        raise

    log.info("cash collected", extra={
        "event": "collection_applied", "customer_id": customer_id,
        "amount": f"{collected:.2f}", "amount_due": f"{new_due:.2f}",
    })
    # долг до списания берём из того же UPDATE, а не отдельным чтением
    return CollectionResult(customer_id, collected, new_due + collected, new_due)


def list_transactions(customer_id: Optional[str] = None, on_date: Optional[date] = None,
                      limit: int = 100, payment_method: Optional[str] = None) -> List[CollectionTransaction]:
    stmt = select(CollectionTransaction)
    if customer_id:
        stmt = stmt.where(CollectionTransaction.customer_id == customer_id)
    if payment_method:
        stmt = stmt.where(CollectionTransaction.payment_method == parse_payment_method(payment_method))
    if on_date:
        start = datetime.combine(on_date, time.min)
        stmt = stmt.where(CollectionTransaction.created_at >= start,
                          CollectionTransaction.created_at < start + timedelta(days=1))
    limit = max(1, min(limit, MAX_TRANSACTIONS))
    stmt = stmt.order_by(CollectionTransaction.created_at.desc(), CollectionTransaction.id.desc()).limit(limit)
    return list(db.session.execute(stmt).scalars())
