from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # окна смен считаются в локальном времени точки продаж
    SHIFT_TIMEZONE = os.getenv("SHIFT_TIMEZONE", "Asia/Kolkata")
    # "wall_clock": окно проверяется только по текущему времени (как в мобильном приложении)
    # "business_date": дополнительно требуется, чтобы дата заказа была сегодняшней
    ORDER_WINDOW_ANCHOR = os.getenv("ORDER_WINDOW_ANCHOR", "wall_clock")
    ORDER_ALLOW_PAST_DATES = False
    # ClockSource; None -> SystemClock(SHIFT_TIMEZONE)
    CLOCK = None

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    DEFAULT_BALANCES = [
        {"customer_id": "CUST-001", "amount_due": "500.00"},
        {"customer_id": "CUST-002", "amount_due": "0.00"},
    ]

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_TEST_DATA = False
    DEFAULT_BALANCES = []

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_TEST_DATA = False
    DEFAULT_BALANCES = []

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
