from __future__ import annotations
import threading
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import IntegrityError

from app import create_app
from errors import InvalidOrder, InvalidShift, SlotNotFound, WindowClosed
from extensions import db
from models import OrderSlot, Shift
from blueprints.orders import services as svc
from blueprints.orders.clock import FixedClock

TZ = ZoneInfo("Asia/Kolkata")
TODAY = date(2024, 1, 10)


def _at(h, m=0, day=TODAY):
    return datetime(day.year, day.month, day.day, h, m, tzinfo=TZ)


@pytest.fixture()
def app_ctx(tmp_path):
    app = create_app("test", {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'slots.db'}",
        "CLOCK": FixedClock(_at(9, 30)),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def _set_time(app, h, m=0):
    app.config["CLOCK"].set(_at(h, m))


def test_upsert_creates_then_overwrites(app_ctx):
    slot, created = svc.upsert_slot("C1", TODAY, "AM", 5, "250.00")
    assert created is True
    first_id, first_updated = slot.id, slot.updated_at

    slot2, created2 = svc.upsert_slot("C1", TODAY, Shift.AM, 7, Decimal("350.50"))
    assert created2 is False
    assert slot2.id == first_id
    assert slot2.updated_at >= first_updated

    rows = OrderSlot.query.filter_by(customer_id="C1").all()
    assert len(rows) == 1
    assert rows[0].quantity == 7
    assert rows[0].total_amount == Decimal("350.50")


def test_repeated_upserts_leave_exactly_one_slot(app_ctx):
    for qty in (1, 2, 3, 4):
        svc.upsert_slot("C1", TODAY, "AM", qty, qty * 10)
    rows = OrderSlot.query.filter_by(customer_id="C1", date=TODAY, shift=Shift.AM).all()
    assert len(rows) == 1
    assert rows[0].quantity == 4
    assert rows[0].total_amount == Decimal("40.00")


def test_am_and_pm_are_independent_slots(app_ctx):
    svc.upsert_slot("C1", TODAY, "AM", 1, 10)
    _set_time(app_ctx, 13)
    svc.upsert_slot("C1", TODAY, "PM", 2, 20)
    assert OrderSlot.query.filter_by(customer_id="C1", date=TODAY).count() == 2


def test_window_is_revalidated_inside_upsert(app_ctx):
    _set_time(app_ctx, 13)
    with pytest.raises(WindowClosed) as ei:
        svc.upsert_slot("C1", TODAY, "AM", 5, 100)
    assert "6:00 AM and 12:00 PM" in ei.value.message
    assert OrderSlot.query.count() == 0


def test_explicit_now_overrides_clock(app_ctx):
    with pytest.raises(WindowClosed):
        svc.upsert_slot("C1", TODAY, "AM", 5, 100, now=_at(16, 0))
    slot, created = svc.upsert_slot("C1", TODAY, "PM", 5, 100, now=_at(15, 59))
    assert created and slot.shift is Shift.PM


def test_past_business_date_is_rejected(app_ctx):
    with pytest.raises(WindowClosed):
        svc.upsert_slot("C1", TODAY - timedelta(days=1), "AM", 5, 100)


def test_past_business_date_allowed_when_configured(app_ctx):
    app_ctx.config["ORDER_ALLOW_PAST_DATES"] = True
    _, created = svc.upsert_slot("C1", TODAY - timedelta(days=1), "AM", 5, 100)
    assert created


def test_future_date_uses_todays_window_by_default(app_ctx):
    _, created = svc.upsert_slot("C1", TODAY + timedelta(days=3), "AM", 5, 100)
    assert created


def test_business_date_anchor_requires_same_day(app_ctx):
    app_ctx.config["ORDER_WINDOW_ANCHOR"] = "business_date"
    with pytest.raises(WindowClosed):
        svc.upsert_slot("C1", TODAY + timedelta(days=1), "AM", 5, 100)
    _, created = svc.upsert_slot("C1", TODAY, "AM", 5, 100)
    assert created


def test_update_missing_slot_is_slot_not_found(app_ctx):
    with pytest.raises(SlotNotFound):
        svc.update_slot("C1", TODAY, "AM", 1, 10)


def test_update_with_closed_window_is_window_closed_not_slot_not_found(app_ctx):
    _set_time(app_ctx, 12, 30)
    with pytest.raises(WindowClosed):
        svc.update_slot("C1", TODAY, "AM", 1, 10)


def test_update_existing_slot(app_ctx):
    svc.upsert_slot("C1", TODAY, "AM", 1, 10)
    slot = svc.update_slot("C1", TODAY, "AM", 9, "90.00")
    assert slot.quantity == 9
    assert svc.get_slot("C1", TODAY, "AM").total_amount == Decimal("90.00")


def test_get_slot_never_creates(app_ctx):
    assert svc.get_slot("C1", TODAY, "PM") is None
    assert OrderSlot.query.count() == 0


@pytest.mark.parametrize("qty, amount", [
    (-1, 10), (True, 10), (1.5, 10), ("3", 10),
    (1, -5), (1, "abc"), (1, "NaN"), (1, "1.005"),
])
def test_invalid_order_values(app_ctx, qty, amount):
    with pytest.raises(InvalidOrder):
        svc.upsert_slot("C1", TODAY, "AM", qty, amount)


def test_invalid_shift(app_ctx):
    with pytest.raises(InvalidShift):
        svc.upsert_slot("C1", TODAY, "NOON", 1, 10)


def test_unique_key_is_structural(app_ctx):
    db.session.add(OrderSlot(customer_id="C1", date=TODAY, shift=Shift.AM, quantity=1, total_amount=1))
    db.session.commit()
    db.session.add(OrderSlot(customer_id="C1", date=TODAY, shift=Shift.AM, quantity=2, total_amount=2))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_concurrent_upserts_same_key_do_not_duplicate(app_ctx):
    barrier = threading.Barrier(4)
    errors = []

    def worker(qty):
        with app_ctx.app_context():
            try:
                barrier.wait()
                svc.upsert_slot("C1", TODAY, "AM", qty, qty)
            except Exception as e:  # pragma: no cover - попадёт в assert ниже
                errors.append(e)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(q,)) for q in (1, 2, 3, 4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []
    rows = OrderSlot.query.filter_by(customer_id="C1").all()
    assert len(rows) == 1
    assert rows[0].quantity in (1, 2, 3, 4)


def test_list_by_date_range_order_and_restart(app_ctx):
    d1, d2 = TODAY, TODAY + timedelta(days=1)
    _set_time(app_ctx, 13)
    svc.upsert_slot("C1", d2, "PM", 4, 40)
    svc.upsert_slot("C1", d1, "PM", 2, 20)
    _set_time(app_ctx, 9)
    svc.upsert_slot("C1", d2, "AM", 3, 30)
    svc.upsert_slot("C1", d1, "AM", 1, 10)
    svc.upsert_slot("C2", d1, "AM", 99, 990)

    rng = svc.list_by_date_range("C1", d1, d2)
    first = [(s.date, s.shift) for s in rng]
    assert first == [(d1, Shift.AM), (d1, Shift.PM), (d2, Shift.AM), (d2, Shift.PM)]
    # повторный проход даёт ту же последовательность
    assert [(s.date, s.shift) for s in rng] == first


def test_list_by_date_range_swaps_reversed_bounds(app_ctx):
    svc.upsert_slot("C1", TODAY, "AM", 1, 10)
    rng = svc.list_by_date_range("C1", TODAY + timedelta(days=5), TODAY)
    assert rng.date_from == TODAY
    assert [s.quantity for s in rng] == [1]


def test_utc_now_is_converted_to_business_timezone(app_ctx):
    # 03:00 UTC == 08:30 в Калькутте, окно AM открыто
    slot, created = svc.upsert_slot("C1", TODAY, "AM", 5, 100, now=datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc))
    assert created and slot.shift is Shift.AM


def test_today_is_the_business_date_not_utc_date(app_ctx):
    app_ctx.config["SHIFT_TIMEZONE"] = "Pacific/Auckland"
    # 2024-01-09 18:00 UTC == 2024-01-10 07:00 в Окленде
    now = datetime(2024, 1, 9, 18, 0, tzinfo=timezone.utc)
    with pytest.raises(WindowClosed) as ei:
        svc.upsert_slot("C1", date(2024, 1, 9), "AM", 1, 10, now=now)
    assert ei.value.message == "Cannot place orders for past dates."

    _, created = svc.upsert_slot("C1", date(2024, 1, 10), "AM", 1, 10, now=now)
    assert created


def test_utc_clock_drives_window_check(app_ctx):
    app_ctx.config["CLOCK"].set(datetime(2024, 1, 10, 7, 0, tzinfo=timezone.utc))  # 12:30 IST
    with pytest.raises(WindowClosed):
        svc.upsert_slot("C1", TODAY, "AM", 1, 10)
    _, created = svc.upsert_slot("C1", TODAY, "PM", 1, 10)
    assert created
