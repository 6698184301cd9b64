"""Expense service: money going out."""

import logging
from datetime import datetime
from uuid import UUID, uuid4

from core.activity import ActivityLogger, compute_changes
from core.exceptions import NotFoundError
from core.models import ActivityType, Expense, ExpenseCreate, ExpenseUpdate
from core.money import format_money
from core.storage import EXPENSE_ENTRIES, LedgerStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for expense entry operations."""

    def __init__(self, store: LedgerStore, activity: ActivityLogger):
        self.store = store
        self.activity = activity

    def record(self, data: ExpenseCreate) -> Expense:
        """Record an expense and note it in the activity feed."""
        with self.store.transaction() as tx:
            row = tx.insert(EXPENSE_ENTRIES, {
                "id": uuid4(),
                "amount": data.amount,
                "reason": data.reason,
                "description": data.description,
                "created_at": now_utc(),
            })
            expense = Expense.model_validate(row)

            self.activity.record(
                tx,
                ActivityType.EXPENSE_ADDED,
                f"Expense of {format_money(expense.amount)} recorded: {expense.reason}",
                related_id=expense.id,
                details={"amount": format_money(expense.amount), "reason": expense.reason},
            )

        logger.info(f"Expense {expense.id} of {expense.amount} recorded")
        return expense

    def update(self, expense_id: UUID, data: ExpenseUpdate) -> Expense:
        """
        Update expense fields (only non-None fields are changed).

        Raises:
            NotFoundError: If the expense does not exist
        """
        updates = data.model_dump(exclude_none=True)

        with self.store.transaction() as tx:
            row = tx.get(EXPENSE_ENTRIES, expense_id, for_update=True)
            if row is None:
                raise NotFoundError("expense", expense_id)
            current = Expense.model_validate(row)
            if not updates:
                return current

            updated = Expense.model_validate(tx.update(EXPENSE_ENTRIES, expense_id, updates))

            changes = compute_changes(
                current.model_dump(mode="json"),
                updated.model_dump(mode="json"),
            )
            if changes:
                self.activity.record(
                    tx,
                    ActivityType.EXPENSE_UPDATED,
                    f"Expense updated: {updated.reason} ({format_money(updated.amount)})",
                    related_id=expense_id,
                    details={"changes": changes},
                )

        logger.info(f"Expense {expense_id} updated")
        return updated

    def delete(self, expense_id: UUID) -> bool:
        """
        Hard-delete an expense.

        Returns:
            True if deleted, False if not found
        """
        with self.store.transaction() as tx:
            row = tx.get(EXPENSE_ENTRIES, expense_id, for_update=True)
            if row is None:
                return False
            current = Expense.model_validate(row)

            tx.delete(EXPENSE_ENTRIES, expense_id)

            self.activity.record(
                tx,
                ActivityType.EXPENSE_DELETED,
                f"Expense deleted: {current.reason} ({format_money(current.amount)})",
                related_id=expense_id,
                details={"deleted": current.model_dump(mode="json")},
            )

        logger.info(f"Expense {expense_id} deleted")
        return True

    def list(self, start: datetime | None = None, end: datetime | None = None) -> list[Expense]:
        """Expenses newest first, optionally within an inclusive creation window."""
        rows = self.store.list(EXPENSE_ENTRIES, created_from=start, created_to=end)
        return [Expense.model_validate(row) for row in rows]
