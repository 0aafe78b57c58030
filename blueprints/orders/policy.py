# blueprints/orders/policy.py
"""Окна приёма заказов. AM = [06:00, 12:00), PM = [12:00, 16:00) по местному времени.

Результат не кэшируется: вызывается заново при каждом создании и изменении заказа.
"""
from __future__ import annotations
from datetime import datetime, time, tzinfo
from typing import Any, Dict, Optional, Tuple

from errors import InvalidShift
from models import Shift

SHIFT_WINDOWS: Dict[Shift, Tuple[time, time]] = {
    Shift.AM: (time(6, 0), time(12, 0)),
    Shift.PM: (time(12, 0), time(16, 0)),
}


def parse_shift(value: Any) -> Shift:
    if isinstance(value, Shift):
        return value
    if isinstance(value, str):
        try:
            return Shift(value.strip().upper())
        except ValueError:
            pass
    raise InvalidShift(value)


def window_for(shift: Any) -> Tuple[time, time]:
    return SHIFT_WINDOWS[parse_shift(shift)]


def is_allowed(shift: Any, now: datetime, tz: Optional[tzinfo] = None) -> bool:
    # начало включительно, конец нет
    start, end = window_for(shift)
    if tz is not None and now.tzinfo is not None:
        now = now.astimezone(tz)
    return start <= now.time() < end


def _fmt_12h(t: time) -> str:
    hour = t.hour % 12 or 12
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{hour}:{t.minute:02d} {suffix}"


def describe_window(shift: Any) -> str:
    s = parse_shift(shift)
    start, end = SHIFT_WINDOWS[s]
    return f"{s.value} orders can only be placed between {_fmt_12h(start)} and {_fmt_12h(end)}."
