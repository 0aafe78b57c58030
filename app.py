from __future__ import annotations
import os
from decimal import Decimal
from typing import Any, Mapping, Optional

from flask import Flask
from sqlalchemy import inspect

from config import config_map
from extensions import db, migrate


def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # таблицы может ещё не быть (alembic upgrade не выполнен и т.п.)
        if not inspect(db.engine).has_table("customer_balances"):
            return

        from models import CustomerBalance, to_cents  # локальный импорт, чтобы избежать циклов
        created = 0
        for b in app.config.get("DEFAULT_BALANCES", []):
            if db.session.get(CustomerBalance, b["customer_id"]):
                continue
            db.session.add(CustomerBalance(
                customer_id=b["customer_id"],
                amount_due_cents=to_cents(Decimal(str(b.get("amount_due", "0")))),
            ))
            created += 1
        if created:
            db.session.commit()
            app.logger.info("seeded balances", extra={"event": "seed", "amount": created})


def register_blueprints(app: Flask) -> None:
    from blueprints.core import bp as core_bp
    from blueprints.orders.routes import api_bp as orders_api_bp
    from blueprints.cash.routes import api_bp as cash_api_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(orders_api_bp, url_prefix="/api/v1")
    app.register_blueprint(cash_api_bp, url_prefix="/api/v1")


def create_app(config_name: str | None = None, overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # до init_app: движок БД создаётся из конфига в момент инициализации
    if overrides:
        app.config.update(overrides)

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    register_blueprints(app)
    _seed_from_config(app)
    return app
