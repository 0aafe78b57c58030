from extensions import db
from .order_slot import OrderSlot, Shift, utcnow
from .balance import (
    MAX_AMOUNT, PAYMENT_METHODS, CollectionTransaction, CustomerBalance, from_cents, to_cents,
)

__all__ = [
    "db",
    "Shift", "OrderSlot", "utcnow",
    "CustomerBalance", "CollectionTransaction", "to_cents", "from_cents",
    "MAX_AMOUNT", "PAYMENT_METHODS",
]
