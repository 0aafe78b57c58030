# blueprints/orders/history.py
"""Календарное представление истории заказов: дата -> {AM, PM} и бейджи с количеством."""
from __future__ import annotations
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, Mapping, Optional

from models import OrderSlot, Shift

DayView = Dict[str, Optional[dict]]
SHIFTS = (Shift.AM.value, Shift.PM.value)


def _empty_day() -> DayView:
    return {s: None for s in SHIFTS}


def aggregate(slots: Iterable[OrderSlot]) -> Dict[str, DayView]:
    view: Dict[str, DayView] = {}
    for slot in slots:
        day = view.setdefault(slot.date.isoformat(), _empty_day())
        day[slot.shift.value] = slot.to_dict()
    return view


def aggregate_epoch_feed(feed: Mapping[Any, Mapping[str, Any]], tz: tzinfo) -> Dict[str, DayView]:
    """Сырой фид вида {epoch_seconds: {"AM": {...}|None, "PM": ...}} -> тот же вид, что у aggregate()."""
    view: Dict[str, DayView] = {}
    for epoch in sorted(feed, key=lambda e: int(e)):
        key = datetime.fromtimestamp(int(epoch), tz).date().isoformat()
        day = view.setdefault(key, _empty_day())
        orders = feed[epoch] or {}
        for s in SHIFTS:
            order = orders.get(s)
            if order is not None:
                day[s] = dict(order)
    return view


def _quantity(order: Optional[Mapping[str, Any]]) -> int:
    if not order:
        return 0
    return int(order.get("quantity") or 0)


def quantity_badges(view: Mapping[str, Mapping[str, Any]]) -> Dict[str, str]:
    badges: Dict[str, str] = {}
    for day in sorted(view):
        total = sum(_quantity(view[day].get(s)) for s in SHIFTS)
        if total > 0:
            badges[day] = str(total)
    return badges
