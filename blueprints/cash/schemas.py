from __future__ import annotations
from decimal import Decimal
from pydantic import BaseModel, Field


class BalanceIn(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)
    amount_due: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)


class BalanceOut(BaseModel):
    customerId: str
    amountDue: str
