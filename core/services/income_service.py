"""
Income service: recording sales.

A deposit sale opens a receivable in the same transaction as the income
entry, so there is never a deposit without its receivable or the reverse.
A sale with an open receivable cannot be deleted and its collected amount
cannot be corrected: the receivable owns that balance.
"""

import logging
from datetime import datetime
from uuid import UUID, uuid4

from core.activity import ActivityLogger, compute_changes
from core.exceptions import EntityInUseError, InvalidDepositError, NotFoundError
from core.models import ActivityType, IncomeEntry, IncomeEntryCreate, IncomeEntryUpdate, IncomeType
from core.money import format_money
from core.services.receivable_service import ReceivableService
from core.storage import CUSTOMERS, INCOME_ENTRIES, RECEIVABLES, LedgerStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class IncomeService:
    """Service for income entry operations."""

    def __init__(self, store: LedgerStore, activity: ActivityLogger, receivables: ReceivableService):
        self.store = store
        self.activity = activity
        self.receivables = receivables

    def record(self, data: IncomeEntryCreate) -> IncomeEntry:
        """
        Record a sale.

        Args:
            data: Validated sale data

        Returns:
            Created income entry

        Raises:
            NotFoundError: If customer_id does not reference a customer
            InvalidDepositError: If the deposit amounts are inconsistent
        """
        with self.store.transaction() as tx:
            if data.customer_id is not None and tx.get(CUSTOMERS, data.customer_id) is None:
                raise NotFoundError("customer", data.customer_id)

            row = tx.insert(INCOME_ENTRIES, {
                "id": uuid4(),
                "customer_id": data.customer_id,
                "type": data.type.value,
                "print_type": data.print_type,
                "amount": data.amount,
                "is_deposit": data.is_deposit,
                "total_amount": data.total_amount,
                "receipt_url": data.receipt_url,
                "description": data.description,
                "created_at": now_utc(),
            })
            entry = IncomeEntry.model_validate(row)

            if entry.is_deposit:
                self.receivables.create_from_deposit(entry, tx=tx)

            self.activity.record(
                tx,
                ActivityType.INCOME_ADDED,
                f"{entry.type.value.capitalize()} income of {format_money(entry.amount)} recorded",
                related_id=entry.id,
                details={
                    "type": entry.type.value,
                    "amount": format_money(entry.amount),
                    "is_deposit": entry.is_deposit,
                },
            )

        logger.info(f"Income entry {entry.id} recorded ({entry.type.value}, {entry.amount})")
        return entry

    def update(self, entry_id: UUID, data: IncomeEntryUpdate) -> IncomeEntry:
        """
        Correct a recorded sale.

        Moving a deposit sale to another customer moves its receivable too.

        Args:
            entry_id: Income entry UUID
            data: Fields to update (only non-None fields are changed)

        Returns:
            Updated income entry

        Raises:
            NotFoundError: If the entry or the new customer does not exist
            InvalidDepositError: If the collected amount of a deposit sale changes
            ValueError: If print_type is set on a non-prints sale
        """
        updates = data.model_dump(exclude_none=True)

        with self.store.transaction() as tx:
            row = tx.get(INCOME_ENTRIES, entry_id, for_update=True)
            if row is None:
                raise NotFoundError("income entry", entry_id)
            current = IncomeEntry.model_validate(row)
            if not updates:
                return current

            if current.is_deposit and "amount" in updates and updates["amount"] != current.amount:
                raise InvalidDepositError(
                    f"Collected amount of deposit sale {entry_id} is fixed; apply a payment instead"
                )
            if "print_type" in updates and current.type != IncomeType.PRINTS:
                raise ValueError("print_type is only allowed for prints income")

            new_customer = updates.get("customer_id")
            if new_customer is not None and new_customer != current.customer_id:
                if tx.get(CUSTOMERS, new_customer) is None:
                    raise NotFoundError("customer", new_customer)
                if current.is_deposit:
                    self.receivables.reassign_customer(tx, entry_id, new_customer)

            updated = IncomeEntry.model_validate(tx.update(INCOME_ENTRIES, entry_id, updates))

            changes = compute_changes(
                current.model_dump(mode="json"),
                updated.model_dump(mode="json"),
            )
            if changes:
                self.activity.record(
                    tx,
                    ActivityType.INCOME_UPDATED,
                    f"Income entry of {format_money(updated.amount)} updated",
                    related_id=entry_id,
                    details={"changes": changes},
                )

        logger.info(f"Income entry {entry_id} updated ({', '.join(changes) or 'no changes'})")
        return updated

    def delete(self, entry_id: UUID) -> bool:
        """
        Hard-delete a sale.

        Returns:
            True if deleted, False if not found

        Raises:
            EntityInUseError: If the sale opened a receivable (delete that first)
        """
        with self.store.transaction() as tx:
            row = tx.get(INCOME_ENTRIES, entry_id, for_update=True)
            if row is None:
                return False
            current = IncomeEntry.model_validate(row)

            if tx.exists_where(RECEIVABLES, "income_entry_id", entry_id):
                raise EntityInUseError("income entry", entry_id, "a receivable")

            tx.delete(INCOME_ENTRIES, entry_id)

            self.activity.record(
                tx,
                ActivityType.INCOME_DELETED,
                f"Income entry of {format_money(current.amount)} deleted",
                related_id=entry_id,
                details={"deleted": current.model_dump(mode="json")},
            )

        logger.info(f"Income entry {entry_id} deleted")
        return True

    def get_by_id(self, entry_id: UUID) -> IncomeEntry | None:
        """Get income entry by ID, None if missing."""
        row = self.store.get(INCOME_ENTRIES, entry_id)
        if row is None:
            return None
        return IncomeEntry.model_validate(row)

    def list(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        income_type: IncomeType | None = None,
    ) -> list[IncomeEntry]:
        """
        List income entries, newest first.

        Args:
            start: Inclusive lower bound on creation time
            end: Inclusive upper bound on creation time
            income_type: Only entries of this kind (e.g. prints)
        """
        filters = {"type": income_type.value} if income_type is not None else None
        rows = self.store.list(INCOME_ENTRIES, filters=filters, created_from=start, created_to=end)
        return [IncomeEntry.model_validate(row) for row in rows]
