"""
Activity feed for state-changing ledger events.

Every sale, payment, and receivable change leaves one activity row. The
feed is:
- Append-only (entries never modified or deleted)
- Written inside the same transaction as the change it describes
- Actor-attributed when a caller is known, null for system writes
- Structured: `details` carries amounts and ids as JSON next to the
  human-readable description, so the feed can be queried without parsing text
"""

import logging
from typing import Any
from uuid import UUID, uuid4

from core.models import Activity, ActivityType
from core.storage import ACTIVITIES, LedgerStore, StoreTransaction
from utils.timezone import now_utc
from utils.user_context import get_current_user_id

logger = logging.getLogger(__name__)


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity (JSON-mode dump)
        new: New state of entity (JSON-mode dump)
        exclude_fields: Fields to ignore (defaults to {"updated_at"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at"}
    return {
        key: {"old": old.get(key), "new": new.get(key)}
        for key in sorted(set(old) | set(new))
        if key not in exclude and old.get(key) != new.get(key)
    }


class ActivityLogger:
    """
    Writer and reader for the activity feed.

    Usage:
        activity = ActivityLogger(store)

        with store.transaction() as tx:
            ...  # the change itself
            activity.record(
                tx,
                ActivityType.PAYMENT_RECEIVED,
                "Payment of 500.00 received, 1500.00 remaining",
                related_id=receivable.id,
                details={"amount": "500.00", "remaining_amount": "1500.00"},
            )

        recent = activity.get_recent(10)
    """

    def __init__(self, store: LedgerStore, default_limit: int = 10):
        self.store = store
        self.default_limit = default_limit

    def record(
        self,
        tx: StoreTransaction,
        activity_type: ActivityType,
        description: str,
        related_id: UUID | None = None,
        details: dict[str, Any] | None = None,
        actor_id: UUID | None = None,
    ) -> Activity:
        """
        Append an activity inside an open transaction.

        Args:
            tx: Transaction of the change being described
            activity_type: Event kind
            description: Operator-facing text
            related_id: Entity that triggered the event
            details: JSON-serializable structured fields (amounts as strings)
            actor_id: Who made the change (defaults to current context)

        Returns:
            The stored activity (visible once the transaction commits)
        """
        if actor_id is None:
            actor_id = get_current_user_id()

        row = tx.insert(ACTIVITIES, {
            "id": uuid4(),
            "type": activity_type.value,
            "description": description,
            "related_id": related_id,
            "actor_id": actor_id,
            "details": details or {},
            "created_at": now_utc(),
        })
        return Activity.model_validate(row)

    def get_recent(self, limit: int | None = None) -> list[Activity]:
        """
        Most recent activities, newest first.

        Args:
            limit: Maximum entries (defaults to the configured feed size)
        """
        rows = self.store.list(ACTIVITIES, limit=limit or self.default_limit)
        return [Activity.model_validate(row) for row in rows]

    def get_for_entity(self, related_id: UUID) -> list[Activity]:
        """All activities pointing at one entity, newest first."""
        rows = self.store.list(ACTIVITIES, filters={"related_id": related_id})
        return [Activity.model_validate(row) for row in rows]
