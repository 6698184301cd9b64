"""
Customer service.

Handles the subscriber lifecycle: create, read, update, renew, delete. The
receivable workflow only ever references customers.
"""

import logging
from datetime import timedelta
from uuid import UUID, uuid4

from core.activity import ActivityLogger, compute_changes
from core.exceptions import EntityInUseError, NotFoundError
from core.models import ActivityType, Customer, CustomerCreate, CustomerUpdate
from core.models.customer import add_months
from core.storage import CUSTOMERS, INCOME_ENTRIES, RECEIVABLES, LedgerStore
from utils.timezone import now_utc, today_utc

logger = logging.getLogger(__name__)

# Renewal always extends by a year, whatever the original term.
RENEWAL_MONTHS = 12


class CustomerService:
    """Service for customer operations."""

    def __init__(self, store: LedgerStore, activity: ActivityLogger):
        self.store = store
        self.activity = activity

    def create(self, data: CustomerCreate) -> Customer:
        """
        Create a new customer.

        Args:
            data: Customer creation data

        Returns:
            Created customer
        """
        now = now_utc()

        with self.store.transaction() as tx:
            row = tx.insert(CUSTOMERS, {
                "id": uuid4(),
                "name": data.name,
                "menu_url": data.menu_url,
                "join_date": data.join_date,
                "subscription_type": data.subscription_type.value,
                "expiry_date": data.expiry_date,
                "is_active": data.is_active,
                "created_at": now,
                "updated_at": now,
            })
            customer = Customer.model_validate(row)

            self.activity.record(
                tx,
                ActivityType.CUSTOMER_ADDED,
                f"New customer added: {customer.name}",
                related_id=customer.id,
                details={"created": data.model_dump(mode="json")},
            )

        logger.info(f"Customer {customer.id} created")
        return customer

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        """Get customer by ID, None if missing."""
        row = self.store.get(CUSTOMERS, customer_id)
        if row is None:
            return None
        return Customer.model_validate(row)

    def update(self, customer_id: UUID, data: CustomerUpdate) -> Customer:
        """
        Update customer fields.

        Args:
            customer_id: Customer UUID
            data: Fields to update (only non-None fields are changed)

        Returns:
            Updated customer

        Raises:
            NotFoundError: If customer not found
            ValueError: If the update would put expiry_date before join_date
        """
        updates = data.model_dump(exclude_none=True)
        if "subscription_type" in updates:
            updates["subscription_type"] = updates["subscription_type"].value

        with self.store.transaction() as tx:
            row = tx.get(CUSTOMERS, customer_id, for_update=True)
            if row is None:
                raise NotFoundError("customer", customer_id)
            current = Customer.model_validate(row)
            if not updates:
                return current

            join_date = updates.get("join_date", current.join_date)
            expiry_date = updates.get("expiry_date", current.expiry_date)
            if expiry_date < join_date:
                raise ValueError("expiry_date cannot be before join_date")

            updated = Customer.model_validate(
                tx.update(CUSTOMERS, customer_id, {**updates, "updated_at": now_utc()})
            )

            changes = compute_changes(
                current.model_dump(mode="json"),
                updated.model_dump(mode="json"),
            )
            if changes:
                self.activity.record(
                    tx,
                    ActivityType.CUSTOMER_UPDATED,
                    f"Customer updated: {updated.name}",
                    related_id=customer_id,
                    details={"changes": changes},
                )

        logger.info(f"Customer {customer_id} updated ({', '.join(changes) or 'no changes'})")
        return updated

    def renew(self, customer_id: UUID) -> Customer:
        """
        Extend a subscription by one year from its current expiry date and
        reactivate the customer.

        Raises:
            NotFoundError: If customer not found
        """
        with self.store.transaction() as tx:
            row = tx.get(CUSTOMERS, customer_id, for_update=True)
            if row is None:
                raise NotFoundError("customer", customer_id)
            current = Customer.model_validate(row)

            new_expiry = add_months(current.expiry_date, RENEWAL_MONTHS)
            renewed = Customer.model_validate(tx.update(CUSTOMERS, customer_id, {
                "expiry_date": new_expiry,
                "is_active": True,
                "updated_at": now_utc(),
            }))

            self.activity.record(
                tx,
                ActivityType.SUBSCRIPTION_RENEWED,
                f"Subscription renewed for {renewed.name} until {new_expiry.isoformat()}",
                related_id=customer_id,
                details={
                    "expiry_date": {
                        "old": current.expiry_date.isoformat(),
                        "new": new_expiry.isoformat(),
                    },
                    "was_active": current.is_active,
                },
            )

        logger.info(f"Customer {customer_id} renewed until {new_expiry}")
        return renewed

    def delete(self, customer_id: UUID) -> bool:
        """
        Hard-delete a customer with no sales or receivables.

        Returns:
            True if deleted, False if not found

        Raises:
            EntityInUseError: If an income entry or receivable references the customer
        """
        with self.store.transaction() as tx:
            row = tx.get(CUSTOMERS, customer_id, for_update=True)
            if row is None:
                return False
            current = Customer.model_validate(row)

            if tx.exists_where(INCOME_ENTRIES, "customer_id", customer_id):
                raise EntityInUseError("customer", customer_id, "income entries")
            if tx.exists_where(RECEIVABLES, "customer_id", customer_id):
                raise EntityInUseError("customer", customer_id, "receivables")

            tx.delete(CUSTOMERS, customer_id)

            self.activity.record(
                tx,
                ActivityType.CUSTOMER_DELETED,
                f"Customer deleted: {current.name}",
                related_id=customer_id,
                details={"deleted": current.model_dump(mode="json")},
            )

        logger.info(f"Customer {customer_id} deleted")
        return True

    def list_all(self) -> list[Customer]:
        """All customers, newest first."""
        return [Customer.model_validate(row) for row in self.store.list(CUSTOMERS)]

    def list_expiring(self, days: int) -> list[Customer]:
        """
        Active customers whose subscription expires within the next `days` days.

        Already-expired subscriptions are not included.

        Returns:
            Customers ordered by expiry date, soonest first
        """
        today = today_utc()
        horizon = today + timedelta(days=days)

        expiring = [
            customer for customer in self.list_all()
            if customer.is_active and today <= customer.expiry_date <= horizon
        ]
        return sorted(expiring, key=lambda c: c.expiry_date)
