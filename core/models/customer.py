"""Customer (subscriber) domain models.

From the receivable workflow's point of view a customer is only a
reference: a sale or receivable may point at one, nothing more.
"""

import calendar
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class SubscriptionType(str, Enum):
    """Subscription term sold to a customer."""

    ANNUAL = "annual"
    SEMI_ANNUAL = "semi-annual"
    QUARTERLY = "quarterly"

    @property
    def months(self) -> int:
        return {"annual": 12, "semi-annual": 6, "quarterly": 3}[self.value]


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class CustomerCreate(BaseModel):
    """Data required to create a customer."""

    name: str = Field(..., min_length=1, max_length=255)
    menu_url: str | None = Field(None, max_length=2000)
    join_date: date
    subscription_type: SubscriptionType
    expiry_date: date | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def default_expiry_from_term(self) -> "CustomerCreate":
        """Derive expiry from the subscription term when not given."""
        if self.expiry_date is None:
            self.expiry_date = add_months(self.join_date, self.subscription_type.months)
        if self.expiry_date < self.join_date:
            raise ValueError("expiry_date cannot be before join_date")
        return self


class CustomerUpdate(BaseModel):
    """Data that can be updated on a customer. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    menu_url: str | None = Field(None, max_length=2000)
    join_date: date | None = None
    subscription_type: SubscriptionType | None = None
    expiry_date: date | None = None
    is_active: bool | None = None


class Customer(BaseModel):
    """Full customer entity as stored."""

    id: UUID
    name: str
    menu_url: str | None
    join_date: date
    subscription_type: SubscriptionType
    expiry_date: date
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    def is_expired(self, today: date) -> bool:
        """Whether an active subscription has lapsed as of today."""
        return self.is_active and self.expiry_date < today
