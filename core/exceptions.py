"""Typed exceptions for ledger operations.

Validation kinds subclass ValueError so callers that only care about
"bad input" can catch that. PersistenceError is a RuntimeError: the input
was fine, the store was not.
"""

from uuid import UUID


class LedgerError(Exception):
    """Base class for all ledger errors."""


class InvalidDepositError(LedgerError, ValueError):
    """A deposit sale lacks a total amount, or the total is below the collected amount."""


class InvalidAmountError(LedgerError, ValueError):
    """A monetary amount is zero, negative, or malformed."""


class NotFoundError(LedgerError, ValueError):
    """Operation references an entity that does not exist."""

    def __init__(self, entity_type: str, entity_id: UUID | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")


class OverpaymentRejectedError(LedgerError, ValueError):
    """A payment would drive the remaining balance below zero."""

    def __init__(self, receivable_id: UUID, amount, remaining):
        self.receivable_id = receivable_id
        self.amount = amount
        self.remaining = remaining
        super().__init__(
            f"Payment of {amount} exceeds remaining balance {remaining} "
            f"on receivable {receivable_id}"
        )


class EntityInUseError(LedgerError, ValueError):
    """A delete would leave other ledger rows pointing at nothing."""

    def __init__(self, entity_type: str, entity_id: UUID | str, referenced_by: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.referenced_by = referenced_by
        super().__init__(
            f"{entity_type.capitalize()} {entity_id} is still referenced by {referenced_by}"
        )


class PersistenceError(LedgerError, RuntimeError):
    """
    The store could not complete the transaction.

    Never retried by the services; every write in the operation has been
    rolled back by the time this propagates.
    """
