"""Activity (audit note) domain models."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ActivityType(str, Enum):
    """Kinds of state-changing events recorded in the activity feed."""

    CUSTOMER_ADDED = "customer_added"
    CUSTOMER_UPDATED = "customer_updated"
    CUSTOMER_DELETED = "customer_deleted"
    SUBSCRIPTION_RENEWED = "subscription_renewed"
    INCOME_ADDED = "income_added"
    INCOME_UPDATED = "income_updated"
    INCOME_DELETED = "income_deleted"
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    RECEIVABLE_ADDED = "receivable_added"
    PAYMENT_RECEIVED = "payment_received"
    RECEIVABLE_DELETED = "receivable_deleted"


class Activity(BaseModel):
    """Append-only audit note."""

    id: UUID
    type: ActivityType
    description: str
    related_id: UUID | None
    actor_id: UUID | None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = {"from_attributes": True}
