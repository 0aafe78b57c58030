# blueprints/cash/routes.py
from __future__ import annotations
from datetime import date

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from . import ledger
from . import services as svc
from .schemas import BalanceIn, BalanceOut

api_bp = Blueprint("cash_api", __name__)


def _json_err(code: str, http: int = 400, detail=None):
    body = {"error": code}
    if detail:
        body["detail"] = detail
    return jsonify(body), http


def _balance(customer_id: str, due) -> dict:
    return BalanceOut(customerId=customer_id, amountDue=f"{due:.2f}").model_dump()


@api_bp.post("/cash/balances")
def api_open_balance():
    payload = request.get_json(silent=True) or {}
    try:
        data = BalanceIn.model_validate(payload)
    except ValidationError as ve:
        return _json_err("validation_error", 422, ve.errors(include_url=False, include_context=False))
    due = ledger.open_balance(data.customer_id.strip(), data.amount_due)
    return jsonify(_balance(data.customer_id.strip(), due)), 201


@api_bp.get("/cash/<customer_id>/due")
def api_amount_due(customer_id: str):
    return jsonify(_balance(customer_id, svc.amount_due(customer_id)))


@api_bp.post("/cash/<customer_id>/collect")
def api_collect_cash(customer_id: str):
    payload = request.get_json(silent=True) or {}
    # старые клиенты присылают {"cash": ...}
    raw = payload.get("amount", payload.get("cash"))
    result = svc.collect_cash(customer_id, raw, payload.get("payment_method"))
    return jsonify(result.to_dict())


@api_bp.get("/cash/transactions")
def api_transactions():
    customer_id = (request.args.get("customer_id") or "").strip() or None
    raw_date = request.args.get("date")
    try:
        on_date = date.fromisoformat(raw_date) if raw_date else None
    except ValueError:
        return _json_err("invalid_date", 400, raw_date)
    raw_limit = request.args.get("limit", "100")
    limit = int(raw_limit) if raw_limit.isdigit() else 100
    method = (request.args.get("payment_method") or "").strip()
    if method.lower() == "all":
        method = ""
    items = svc.list_transactions(customer_id=customer_id, on_date=on_date, limit=limit,
                                  payment_method=method or None)
    return jsonify({"transactions": [t.to_dict() for t in items]})
