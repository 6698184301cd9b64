"""Income entry (sale) domain models.

Amounts are two-place Decimals. A deposit sale collects `amount` now out of
`total_amount`; the difference becomes a receivable.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class IncomeType(str, Enum):
    """Kind of sale."""

    PRINTS = "prints"
    SUBSCRIPTION = "subscription"
    DEPOSIT = "deposit"


class IncomeEntryCreate(BaseModel):
    """Data required to record a sale."""

    customer_id: UUID | None = None
    type: IncomeType
    print_type: str | None = Field(None, max_length=255)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    is_deposit: bool = False
    total_amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    receipt_url: str | None = Field(None, max_length=2000)
    description: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_deposit_and_print_type(self) -> "IncomeEntryCreate":
        """Deposits need a total covering the collected amount; print_type is for prints only."""
        if self.is_deposit:
            if self.total_amount is None:
                raise ValueError("total_amount is required for a deposit")
            if self.total_amount < self.amount:
                raise ValueError("total_amount must be greater than or equal to amount")
        if self.print_type is not None and self.type != IncomeType.PRINTS:
            raise ValueError("print_type is only allowed for prints income")
        return self


class IncomeEntryUpdate(BaseModel):
    """
    Data that can be corrected on a recorded sale. All fields optional.

    type, is_deposit and total_amount are fixed once recorded; the deposit
    balance lives on the receivable.
    """

    customer_id: UUID | None = None
    print_type: str | None = Field(None, max_length=255)
    amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    receipt_url: str | None = Field(None, max_length=2000)
    description: str | None = Field(None, max_length=2000)


class IncomeEntry(BaseModel):
    """Full income entry as stored."""

    id: UUID
    customer_id: UUID | None
    type: IncomeType
    print_type: str | None
    amount: Decimal
    is_deposit: bool
    total_amount: Decimal | None
    receipt_url: str | None
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @property
    def outstanding_amount(self) -> Decimal:
        """Part of the price not collected at sale time (zero for non-deposits)."""
        if not self.is_deposit or self.total_amount is None:
            return Decimal("0.00")
        return self.total_amount - self.amount
