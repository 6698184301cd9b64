"""Receivable and receivable payment domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ReceivableStatus(str, Enum):
    """Settlement status, always derived from the paid amount."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


def status_for(paid_amount: Decimal, total_amount: Decimal) -> ReceivableStatus:
    """
    Status implied by a balance.

    paid == total is checked first so a zero-total receivable is paid,
    never pending.
    """
    if paid_amount == total_amount:
        return ReceivableStatus.PAID
    if paid_amount == 0:
        return ReceivableStatus.PENDING
    return ReceivableStatus.PARTIAL


class Receivable(BaseModel):
    """Outstanding balance owed after a deposit sale."""

    id: UUID
    customer_id: UUID | None
    income_entry_id: UUID | None
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    status: ReceivableStatus
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReceivablePaymentCreate(BaseModel):
    """
    Data required to apply a payment.

    amount is taken raw: parsing, sign and precision are business rules
    checked by ReceivableService.apply_payment, which reports every bad
    amount as InvalidAmountError.
    """

    amount: str | int | float
    description: str | None = Field(None, max_length=2000)
    receipt_url: str | None = Field(None, max_length=2000)


class ReceivablePayment(BaseModel):
    """One payment against a receivable. Append-only."""

    id: UUID
    receivable_id: UUID
    amount: Decimal
    description: str | None
    receipt_url: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
