# blueprints/cash/ledger.py
"""Баланс долга клиента и журнал инкассации.

apply() единственная уменьшает долг. Проверка «сумма <= долг» делается условным UPDATE
(compare-and-swap) в БД; новый долг и запись журнала фиксируются одной транзакцией.
"""
from __future__ import annotations
import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import CustomerExists, CustomerNotFound, ExceedsDue, InvalidAmount, InvalidPaymentMethod
from extensions import db
from models import (
    MAX_AMOUNT, PAYMENT_METHODS, CollectionTransaction, CustomerBalance, from_cents, to_cents, utcnow,
)

log = logging.getLogger(__name__)


def open_balance(customer_id: str, amount_due: Decimal = Decimal("0")) -> Decimal:
    if amount_due < 0:
        raise InvalidAmount("amount_due must be non-negative")
    if amount_due > MAX_AMOUNT:
        raise InvalidAmount("amount_due is too large")
    if db.session.get(CustomerBalance, customer_id) is not None:
        raise CustomerExists(customer_id)
    try:
        db.session.add(CustomerBalance(customer_id=customer_id, amount_due_cents=to_cents(amount_due)))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise CustomerExists(customer_id)
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return from_cents(to_cents(amount_due))


def get_due(customer_id: str) -> Decimal:
    cents = db.session.execute(
        select(CustomerBalance.amount_due_cents).where(CustomerBalance.customer_id == customer_id)
    ).scalar_one_or_none()
    if cents is None:
        raise CustomerNotFound(customer_id)
    return from_cents(cents)


def apply(customer_id: str, collected: Decimal, payment_method: str = "cash") -> Decimal:
    """Списать collected с долга клиента. Возвращает новый долг."""
    if collected < 0:
        raise InvalidAmount("amount must be non-negative")
    if payment_method not in PAYMENT_METHODS:
        raise InvalidPaymentMethod(payment_method)
    if collected > MAX_AMOUNT:
        # больше любого хранимого долга, в BIGINT не влезает
        raise ExceedsDue(get_due(customer_id))
    cents = to_cents(collected)

    try:
        res = db.session.execute(
            update(CustomerBalance)
            .where(CustomerBalance.customer_id == customer_id,
                   CustomerBalance.amount_due_cents >= cents)
            .values(amount_due_cents=CustomerBalance.amount_due_cents - cents, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            db.session.rollback()
            current = get_due(customer_id)  # CustomerNotFound, если записи нет
            raise ExceedsDue(current)

        new_cents = db.session.execute(
            select(CustomerBalance.amount_due_cents).where(CustomerBalance.customer_id == customer_id)
        ).scalar_one()
        db.session.add(CollectionTransaction(
            customer_id=customer_id,
            amount_cents=cents,
            resulting_due_cents=new_cents,
            payment_method=payment_method,
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    return from_cents(new_cents)
