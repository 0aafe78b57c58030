from __future__ import annotations
from datetime import date, datetime, timezone

import pytest

import seed
from app import create_app
from extensions import db
from models import CustomerBalance, OrderSlot
from blueprints.orders.clock import FixedClock


@pytest.fixture()
def app_ctx(tmp_path):
    app = create_app("test", {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'seed.db'}",
        "SHIFT_TIMEZONE": "Pacific/Auckland",
        # 2024-01-09 18:00 UTC == 2024-01-10 07:00 в Окленде
        "CLOCK": FixedClock(datetime(2024, 1, 9, 18, 0, tzinfo=timezone.utc)),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def test_demo_orders_are_dated_by_business_today(app_ctx):
    assert seed.seed_orders() == len(seed.DEMO_ORDERS)
    db.session.commit()
    dates = {s.date for s in OrderSlot.query.all()}
    assert max(dates) == date(2024, 1, 10)
    assert min(dates) == date(2024, 1, 8)


def test_seed_is_idempotent(app_ctx):
    assert seed.seed_balances() == len(seed.DEMO_BALANCES)
    seed.seed_orders()
    db.session.commit()
    assert seed.seed_balances() == 0
    assert seed.seed_orders() == 0
    assert CustomerBalance.query.count() == len(seed.DEMO_BALANCES)
