"""Ошибки предметной области. Ловятся на границе API и превращаются в JSON."""
from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict


class ServiceError(Exception):
    code = "service_error"
    status = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.code
        super().__init__(self.message)

    def extra(self) -> Dict[str, Any]:
        return {}


class InvalidShift(ServiceError):
    code = "invalid_shift"
    status = 400

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"unknown shift: {value!r}")

    def extra(self):
        return {"shift": str(self.value)}


class WindowClosed(ServiceError):
    code = "window_closed"
    status = 403


class SlotNotFound(ServiceError):
    code = "slot_not_found"
    status = 404


class InvalidOrder(ServiceError):
    code = "invalid_order"
    status = 422


class InvalidAmount(ServiceError):
    code = "invalid_amount"
    status = 400


class ExceedsDue(ServiceError):
    code = "exceeds_due"
    status = 400

    def __init__(self, due: Decimal):
        self.due = due
        super().__init__(f"cannot collect more than amount due: {due:.2f}")

    def extra(self):
        return {"amountDue": f"{self.due:.2f}"}


class CustomerNotFound(ServiceError):
    code = "customer_not_found"
    status = 404

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"no balance for customer {customer_id}")


class CustomerExists(ServiceError):
    code = "customer_exists"
    status = 409

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"balance already opened for customer {customer_id}")


class InvalidPaymentMethod(ServiceError):
    code = "invalid_payment_method"
    status = 400

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"unknown payment method: {value!r}")
