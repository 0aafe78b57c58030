# blueprints/orders/clock.py
from __future__ import annotations
from datetime import datetime, timezone, tzinfo
from typing import Protocol

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from flask import current_app

DEFAULT_TZ = "Asia/Kolkata"


class ClockSource(Protocol):
    def now(self) -> datetime:
        ...


def business_tz(name: str | None = None) -> tzinfo:
    name = name or current_app.config.get("SHIFT_TIMEZONE", DEFAULT_TZ)
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        try:
            import tzdata  # noqa
            return ZoneInfo(name)
        except Exception:
            return timezone.utc


class SystemClock:
    """Реальное время в часовом поясе точки."""

    def __init__(self, tz: tzinfo):
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Замороженное время для тестов."""

    def __init__(self, at: datetime):
        self.at = at

    def now(self) -> datetime:
        return self.at

    def set(self, at: datetime) -> None:
        self.at = at


def get_clock() -> ClockSource:
    clock = current_app.config.get("CLOCK")
    if clock is not None:
        return clock
    return SystemClock(business_tz())


def business_now() -> datetime:
    """Текущее время часов приложения в часовом поясе точки."""
    now = get_clock().now()
    if now.tzinfo is not None:
        now = now.astimezone(business_tz())
    return now
