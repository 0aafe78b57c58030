"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset   # дропнуть и пересоздать БД + демо-данные
  python seed.py           # мягкое наполнение недостающих данных (idempotent)
"""
from datetime import date, timedelta
from decimal import Decimal
import argparse
from typing import Optional

from app import create_app
from blueprints.orders.clock import business_now
from extensions import db
from models import CustomerBalance, OrderSlot, Shift, to_cents

DEMO_BALANCES = {
    "CUST-001": Decimal("500.00"),
    "CUST-002": Decimal("1250.50"),
    "CUST-003": Decimal("0.00"),
}

# (клиент, сдвиг от сегодня в днях, смена, количество, сумма)
DEMO_ORDERS = [
    ("CUST-001", -2, Shift.AM, 5, Decimal("250.00")),
    ("CUST-001", -2, Shift.PM, 3, Decimal("150.00")),
    ("CUST-001", -1, Shift.AM, 4, Decimal("200.00")),
    ("CUST-002", -1, Shift.PM, 0, Decimal("0.00")),
    ("CUST-002", 0, Shift.AM, 12, Decimal("610.50")),
]


def seed_balances() -> int:
    created = 0
    for customer_id, due in DEMO_BALANCES.items():
        if db.session.get(CustomerBalance, customer_id):
            continue
        db.session.add(CustomerBalance(customer_id=customer_id, amount_due_cents=to_cents(due)))
        created += 1
    return created


def seed_orders(today: Optional[date] = None) -> int:
    """Исторические заказы пишем напрямую: окно смен проверяется только для живых запросов."""
    today = today or business_now().date()
    created = 0
    for customer_id, offset, shift, qty, amount in DEMO_ORDERS:
        d = today + timedelta(days=offset)
        if OrderSlot.query.filter_by(customer_id=customer_id, date=d, shift=shift).first():
            continue
        db.session.add(OrderSlot(customer_id=customer_id, date=d, shift=shift,
                                 quantity=qty, total_amount=amount))
        created += 1
    return created


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop & create all tables before seeding")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        balances = seed_balances()
        orders = seed_orders()
        db.session.commit()
        print(f"seeded: balances={balances} orders={orders}")


if __name__ == "__main__":
    main()
