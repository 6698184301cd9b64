"""
Receivable service: deposits and their settlement.

A deposit sale collects part of the price now; the rest becomes a
receivable paid down by later payments. This service is the only writer of
a receivable's paid_amount, remaining_amount and status. Each operation runs
in one store transaction, so the balance update, the payment row and the
activity row land together or not at all.

Balance invariants after every write:
    paid_amount + remaining_amount == total_amount
    0 <= paid_amount <= total_amount
    status == status_for(paid_amount, total_amount)
"""

import logging
from decimal import Decimal
from uuid import UUID, uuid4

from core.activity import ActivityLogger
from core.exceptions import (
    InvalidAmountError,
    InvalidDepositError,
    NotFoundError,
    OverpaymentRejectedError,
)
from core.models import (
    ActivityType,
    IncomeEntry,
    Receivable,
    ReceivablePayment,
    ReceivableStatus,
    status_for,
)
from core.money import format_money, to_money
from core.storage import RECEIVABLE_PAYMENTS, RECEIVABLES, LedgerStore, StoreTransaction
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class ReceivableService:
    """Service for receivable operations."""

    def __init__(self, store: LedgerStore, activity: ActivityLogger):
        self.store = store
        self.activity = activity

    def create_from_deposit(self, sale: IncomeEntry, tx: StoreTransaction | None = None) -> Receivable:
        """
        Open a receivable for the unpaid part of a deposit sale.

        Args:
            sale: Recorded income entry with is_deposit set
            tx: Transaction to join (the sale-recording flow passes its own
                so the sale and its receivable commit together). A new one
                is opened when omitted.

        Returns:
            Created receivable (PAID when the deposit covers the total,
            PENDING when nothing was collected, PARTIAL otherwise)

        Raises:
            InvalidDepositError: If the sale is not a deposit, has no total,
                collected more than the total, or already has a receivable
        """
        paid, total = self._validate_deposit(sale)

        if tx is None:
            with self.store.transaction() as own_tx:
                return self._create(own_tx, sale, paid, total)
        return self._create(tx, sale, paid, total)

    def _validate_deposit(self, sale: IncomeEntry) -> tuple[Decimal, Decimal]:
        if not sale.is_deposit:
            raise InvalidDepositError(f"Income entry {sale.id} is not a deposit")
        if sale.total_amount is None:
            raise InvalidDepositError("A deposit requires a total amount")

        try:
            paid = to_money(sale.amount)
            total = to_money(sale.total_amount)
        except InvalidAmountError as e:
            raise InvalidDepositError(str(e)) from e

        if paid < 0:
            raise InvalidDepositError(f"Deposit amount {paid} is negative")
        if total <= 0:
            raise InvalidDepositError(f"Deposit total {total} must be positive")
        if total < paid:
            raise InvalidDepositError(
                f"Deposit amount {paid} exceeds total amount {total}"
            )
        return paid, total

    def _create(self, tx: StoreTransaction, sale: IncomeEntry, paid: Decimal, total: Decimal) -> Receivable:
        # One receivable per sale; the UNIQUE column backs this up in Postgres.
        if tx.exists_where(RECEIVABLES, "income_entry_id", sale.id):
            logger.warning(f"Second receivable refused for sale {sale.id}")
            raise InvalidDepositError(f"Income entry {sale.id} already has a receivable")

        remaining = total - paid
        status = status_for(paid, total)
        now = now_utc()

        row = tx.insert(RECEIVABLES, {
            "id": uuid4(),
            "customer_id": sale.customer_id,
            "income_entry_id": sale.id,
            "total_amount": total,
            "paid_amount": paid,
            "remaining_amount": remaining,
            "status": status.value,
            "description": sale.description,
            "created_at": now,
            "updated_at": now,
        })
        receivable = Receivable.model_validate(row)

        self.activity.record(
            tx,
            ActivityType.RECEIVABLE_ADDED,
            f"New receivable of {format_money(total)}: "
            f"paid {format_money(paid)}, remaining {format_money(remaining)}",
            related_id=receivable.id,
            details={
                "income_entry_id": str(sale.id),
                "total_amount": format_money(total),
                "paid_amount": format_money(paid),
                "remaining_amount": format_money(remaining),
                "status": status.value,
            },
        )

        logger.info(
            f"Receivable {receivable.id} created from sale {sale.id} "
            f"(total={total}, paid={paid}, status={status.value})"
        )
        return receivable

    def apply_payment(
        self,
        receivable_id: UUID,
        amount,
        description: str | None = None,
        receipt_url: str | None = None,
    ) -> ReceivablePayment:
        """
        Apply a payment against a receivable's remaining balance.

        The receivable row is locked for the duration, so concurrent
        payments on the same receivable apply one after the other against
        the balance the previous one left.

        Args:
            receivable_id: Receivable UUID
            amount: Payment amount (Decimal, int or numeric string, > 0)
            description: Optional note
            receipt_url: Optional receipt reference

        Returns:
            The recorded payment

        Raises:
            InvalidAmountError: If amount is zero, negative, or malformed
            NotFoundError: If the receivable does not exist
            OverpaymentRejectedError: If amount exceeds the remaining balance
                (always the case once the receivable is PAID)
        """
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(f"Payment amount must be positive, got {amount}")

        with self.store.transaction() as tx:
            row = tx.get(RECEIVABLES, receivable_id, for_update=True)
            if row is None:
                raise NotFoundError("receivable", receivable_id)
            current = Receivable.model_validate(row)

            if amount > current.remaining_amount:
                logger.warning(
                    f"Overpayment rejected on receivable {receivable_id}: "
                    f"amount={amount}, remaining={current.remaining_amount}"
                )
                raise OverpaymentRejectedError(receivable_id, amount, current.remaining_amount)

            new_paid = current.paid_amount + amount
            new_remaining = current.remaining_amount - amount
            new_status = status_for(new_paid, current.total_amount)
            now = now_utc()

            payment_row = tx.insert(RECEIVABLE_PAYMENTS, {
                "id": uuid4(),
                "receivable_id": current.id,
                "amount": amount,
                "description": description,
                "receipt_url": receipt_url,
                "created_at": now,
            })
            payment = ReceivablePayment.model_validate(payment_row)

            tx.update(RECEIVABLES, current.id, {
                "paid_amount": new_paid,
                "remaining_amount": new_remaining,
                "status": new_status.value,
                "updated_at": now,
            })

            self.activity.record(
                tx,
                ActivityType.PAYMENT_RECEIVED,
                f"Payment of {format_money(amount)} received, "
                f"remaining {format_money(new_remaining)}",
                related_id=current.id,
                details={
                    "payment_id": str(payment.id),
                    "amount": format_money(amount),
                    "paid_amount": format_money(new_paid),
                    "remaining_amount": format_money(new_remaining),
                    "status": {"old": current.status.value, "new": new_status.value},
                },
            )

        logger.info(
            f"Payment {payment.id} of {amount} applied to receivable {receivable_id} "
            f"(remaining={new_remaining}, status={new_status.value})"
        )
        return payment

    def get_by_id(self, receivable_id: UUID) -> Receivable | None:
        """
        Get receivable by ID.

        Returns:
            Receivable if found, None otherwise.
        """
        row = self.store.get(RECEIVABLES, receivable_id)
        if row is None:
            return None
        return Receivable.model_validate(row)

    def get_for_income_entry(self, income_entry_id: UUID) -> Receivable | None:
        """Receivable opened by a deposit sale, None if the sale opened none."""
        rows = self.store.list(RECEIVABLES, filters={"income_entry_id": income_entry_id}, limit=1)
        return Receivable.model_validate(rows[0]) if rows else None

    def reassign_customer(
        self, tx: StoreTransaction, income_entry_id: UUID, customer_id: UUID
    ) -> Receivable | None:
        """
        Point a sale's receivable at a new customer inside the caller's transaction.

        Balances are untouched. Returns None when the sale has no receivable.
        """
        receivable = self.get_for_income_entry(income_entry_id)
        if receivable is None:
            return None
        row = tx.update(RECEIVABLES, receivable.id, {"customer_id": customer_id, "updated_at": now_utc()})
        return Receivable.model_validate(row)

    def list_all(
        self,
        status: ReceivableStatus | None = None,
        customer_id: UUID | None = None,
        limit: int | None = None,
    ) -> list[Receivable]:
        """
        List receivables, newest first.

        Args:
            status: Only receivables in this status
            customer_id: Only receivables of this customer
            limit: Maximum results
        """
        filters = {}
        if status is not None:
            filters["status"] = status.value
        if customer_id is not None:
            filters["customer_id"] = customer_id

        rows = self.store.list(RECEIVABLES, filters=filters, limit=limit)
        return [Receivable.model_validate(row) for row in rows]

    def list_payments(self, receivable_id: UUID) -> list[ReceivablePayment]:
        """
        Payments applied to a receivable, oldest first.

        Raises:
            NotFoundError: If the receivable does not exist
        """
        if self.store.get(RECEIVABLES, receivable_id) is None:
            raise NotFoundError("receivable", receivable_id)

        rows = self.store.list(
            RECEIVABLE_PAYMENTS,
            filters={"receivable_id": receivable_id},
            newest_first=False,
        )
        return [ReceivablePayment.model_validate(row) for row in rows]

    def delete(self, receivable_id: UUID) -> bool:
        """
        Hard-delete a receivable together with its payment rows.

        Administrative operation; authorization is the caller's concern.
        The originating income entry is left untouched.

        Returns:
            True if deleted, False if not found
        """
        with self.store.transaction() as tx:
            row = tx.get(RECEIVABLES, receivable_id, for_update=True)
            if row is None:
                return False
            current = Receivable.model_validate(row)

            payments_removed = tx.delete_where(RECEIVABLE_PAYMENTS, "receivable_id", current.id)
            tx.delete(RECEIVABLES, current.id)

            self.activity.record(
                tx,
                ActivityType.RECEIVABLE_DELETED,
                f"Receivable deleted (total {format_money(current.total_amount)}, "
                f"remaining {format_money(current.remaining_amount)})",
                related_id=current.id,
                details={
                    "deleted": current.model_dump(mode="json"),
                    "payments_removed": payments_removed,
                },
            )

        logger.info(f"Receivable {receivable_id} deleted ({payments_removed} payments removed)")
        return True
