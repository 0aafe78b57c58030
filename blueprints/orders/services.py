# blueprints/orders/services.py
from __future__ import annotations
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, Optional, Tuple

from flask import current_app
from sqlalchemy import case, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import InvalidOrder, SlotNotFound, WindowClosed
from extensions import db
from models import OrderSlot, Shift, utcnow
from .clock import business_tz, get_clock
from .policy import describe_window, is_allowed, parse_shift

log = logging.getLogger(__name__)

CENT = Decimal("0.01")
ANCHOR_WALL_CLOCK = "wall_clock"
ANCHOR_BUSINESS_DATE = "business_date"


def _validate_order(quantity: Any, total_amount: Any) -> Tuple[int, Decimal]:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise InvalidOrder("quantity must be a non-negative integer")
    try:
        amount = Decimal(str(total_amount))
    except (InvalidOperation, ValueError):
        raise InvalidOrder("total_amount must be numeric")
    if not amount.is_finite() or amount < 0:
        raise InvalidOrder("total_amount must be a non-negative number")
    if amount.as_tuple().exponent < -2:
        raise InvalidOrder("total_amount has more than 2 decimal places")
    return quantity, amount.quantize(CENT)


def check_window(shift: Shift, business_date: date, now: datetime) -> None:
    """Бросает WindowClosed, если заказ на (дата, смена) сейчас нельзя создать/изменить."""
    # окно и «сегодня» считаются по часовому поясу точки
    if now.tzinfo is not None:
        now = now.astimezone(business_tz())
    if not is_allowed(shift, now):
        log.warning("shift window closed", extra={"event": "window_closed", "shift": shift.value})
        raise WindowClosed(describe_window(shift))

    today = now.date()
    anchor = current_app.config.get("ORDER_WINDOW_ANCHOR", ANCHOR_WALL_CLOCK)
    if anchor == ANCHOR_BUSINESS_DATE:
        if business_date != today:
            raise WindowClosed(f"{shift.value} order for {business_date.isoformat()} can only be changed on that day")
        return

    allow_past = bool(current_app.config.get("ORDER_ALLOW_PAST_DATES", False))
    if business_date < today and not allow_past:
        raise WindowClosed("Cannot place orders for past dates.")


def _locked_slot(customer_id: str, business_date: date, shift: Shift) -> Optional[OrderSlot]:
    # FOR UPDATE сериализует правки одного ключа (на SQLite игнорируется)
    stmt = (select(OrderSlot)
            .filter_by(customer_id=customer_id, date=business_date, shift=shift)
            .with_for_update())
    return db.session.execute(stmt).scalar_one_or_none()


def _write_slot(customer_id: str, business_date: date, shift: Shift,
                quantity: int, amount: Decimal) -> Tuple[OrderSlot, bool]:
    slot = _locked_slot(customer_id, business_date, shift)
    created = slot is None
    if created:
        slot = OrderSlot(customer_id=customer_id, date=business_date, shift=shift,
                         quantity=quantity, total_amount=amount)
        db.session.add(slot)
    else:
        slot.quantity = quantity
        slot.total_amount = amount
        slot.updated_at = utcnow()
    db.session.commit()
    return slot, created


def get_slot(customer_id: str, business_date: date, shift: Any) -> Optional[OrderSlot]:
    """Существующий заказ на (клиент, дата, смена) или None. Ничего не создаёт."""
    s = parse_shift(shift)
    return OrderSlot.query.filter_by(customer_id=customer_id, date=business_date, shift=s).first()


def upsert_slot(customer_id: str, business_date: date, shift: Any, quantity: Any, total_amount: Any,
                *, now: Optional[datetime] = None) -> Tuple[OrderSlot, bool]:
    """Создать заказ на смену или перезаписать существующий. Возвращает (slot, created)."""
    s = parse_shift(shift)
    qty, amount = _validate_order(quantity, total_amount)
    check_window(s, business_date, now or get_clock().now())

    try:
        try:
            slot, created = _write_slot(customer_id, business_date, s, qty, amount)
        except IntegrityError:
            # параллельная вставка того же ключа: строка уже есть, пишем поверх неё
            db.session.rollback()
            slot, created = _write_slot(customer_id, business_date, s, qty, amount)
    except SQLAlchemyError:
        db.session.rollback()
        raise

    log.info("order slot %s", "created" if created else "updated",
             extra={"event": "order_upsert", "customer_id": customer_id, "shift": s.value})
    return slot, created


def update_slot(customer_id: str, business_date: date, shift: Any, quantity: Any, total_amount: Any,
                *, now: Optional[datetime] = None) -> OrderSlot:
    """Изменить уже размещённый заказ. Окно проверяется раньше наличия заказа."""
    s = parse_shift(shift)
    qty, amount = _validate_order(quantity, total_amount)
    check_window(s, business_date, now or get_clock().now())

    try:
        slot = _locked_slot(customer_id, business_date, s)
        if slot is None:
            db.session.rollback()
            raise SlotNotFound(f"no {s.value} order for {customer_id} on {business_date.isoformat()}")
        slot.quantity = qty
        slot.total_amount = amount
        slot.updated_at = utcnow()
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    log.info("order slot updated", extra={"event": "order_update", "customer_id": customer_id, "shift": s.value})
    return slot


class SlotRange:
    """Ленивая, перезапускаемая выборка заказов клиента за период.

    Каждый проход делает новый запрос; порядок: дата по возрастанию, внутри даты AM раньше PM.
    """

    def __init__(self, customer_id: str, date_from: date, date_to: date, batch_size: int = 100):
        if date_to < date_from:
            date_from, date_to = date_to, date_from
        self.customer_id = customer_id
        self.date_from = date_from
        self.date_to = date_to
        self.batch_size = batch_size

    def _stmt(self):
        shift_order = case((OrderSlot.shift == Shift.AM, 0), else_=1)
        return (select(OrderSlot)
                .where(OrderSlot.customer_id == self.customer_id,
                       OrderSlot.date >= self.date_from,
                       OrderSlot.date <= self.date_to)
                .order_by(OrderSlot.date.asc(), shift_order.asc())
                .execution_options(yield_per=self.batch_size))

    def __iter__(self) -> Iterator[OrderSlot]:
        yield from db.session.execute(self._stmt()).scalars()


def list_by_date_range(customer_id: str, date_from: date, date_to: date) -> SlotRange:
    return SlotRange(customer_id, date_from, date_to)
