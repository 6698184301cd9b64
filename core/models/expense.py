"""Expense entry domain models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class ExpenseCreate(BaseModel):
    """Data required to record an expense."""

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reason: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)


class ExpenseUpdate(BaseModel):
    """Data that can be updated on an expense. All fields optional."""

    amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    reason: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)


class Expense(BaseModel):
    """Full expense entry as stored."""

    id: UUID
    amount: Decimal
    reason: str
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
