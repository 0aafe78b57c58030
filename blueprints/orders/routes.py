# blueprints/orders/routes.py
from __future__ import annotations
from datetime import date as dt_date, timedelta
from decimal import Decimal

from flask import Blueprint, jsonify, request
from pydantic import BaseModel, Field, ValidationError, field_validator

from . import services as svc
from .clock import business_now
from .history import aggregate, quantity_badges
from .policy import describe_window, is_allowed, parse_shift

api_bp = Blueprint("orders_api", __name__)

HISTORY_DAYS_BACK = 30
HISTORY_DAYS_AHEAD = 7


class OrderEditIn(BaseModel):
    quantity: int = Field(ge=0)
    total_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class OrderIn(OrderEditIn):
    customer_id: str = Field(min_length=1, max_length=64)
    date: dt_date
    # смену проверяет policy, чтобы вернуть invalid_shift, а не validation_error
    shift: str

    @field_validator("customer_id")
    @classmethod
    def _strip(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("customer_id_required")
        return v


def _json_err(code: str, http: int = 400, detail=None):
    body = {"error": code}
    if detail:
        body["detail"] = detail
    return jsonify(body), http


@api_bp.get("/orders/allowed-shift")
def api_allowed_shift():
    shift = parse_shift(request.args.get("shift"))
    allowed = is_allowed(shift, business_now())
    return jsonify({
        "shift": shift.value,
        "allowed": allowed,
        "message": None if allowed else describe_window(shift),
    })


@api_bp.post("/orders")
def api_order_upsert():
    payload = request.get_json(silent=True) or {}
    try:
        data = OrderIn.model_validate(payload)
    except ValidationError as ve:
        return _json_err("validation_error", 422, ve.errors(include_url=False, include_context=False))

    slot, created = svc.upsert_slot(
        data.customer_id, data.date, data.shift, data.quantity, data.total_amount,
    )
    body = {"orderId": slot.id, "status": "created" if created else "updated", "order": slot.to_dict()}
    return jsonify(body), (201 if created else 200)


@api_bp.put("/orders/<customer_id>/<day>/<shift>")
def api_order_edit(customer_id: str, day: str, shift: str):
    try:
        business_date = dt_date.fromisoformat(day)
    except ValueError:
        return _json_err("invalid_date", 400, day)
    payload = request.get_json(silent=True) or {}
    try:
        data = OrderEditIn.model_validate(payload)
    except ValidationError as ve:
        return _json_err("validation_error", 422, ve.errors(include_url=False, include_context=False))

    slot = svc.update_slot(customer_id, business_date, shift, data.quantity, data.total_amount)
    return jsonify({"orderId": slot.id, "status": "updated", "order": slot.to_dict()})


@api_bp.get("/orders/<customer_id>/history")
def api_order_history(customer_id: str):
    today = business_now().date()
    try:
        raw_from = request.args.get("date_from")
        raw_to = request.args.get("date_to")
        d_from = dt_date.fromisoformat(raw_from) if raw_from else today - timedelta(days=HISTORY_DAYS_BACK)
        d_to = dt_date.fromisoformat(raw_to) if raw_to else today + timedelta(days=HISTORY_DAYS_AHEAD)
    except ValueError:
        return _json_err("invalid_date", 400)

    slots = svc.list_by_date_range(customer_id, d_from, d_to)
    days = aggregate(slots)
    return jsonify({
        "customerId": customer_id,
        "period": {"start": slots.date_from.isoformat(), "end": slots.date_to.isoformat()},
        "days": days,
        "badges": quantity_badges(days),
    })
