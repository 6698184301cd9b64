"""POST /api/actions - unified mutation endpoint."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from api.middleware import request_id_of
from auth.exceptions import AuthorizationError
from core.exceptions import NotFoundError
from core.models import (
    CustomerCreate,
    CustomerUpdate,
    ExpenseCreate,
    ExpenseUpdate,
    IncomeEntryCreate,
    IncomeEntryUpdate,
    ReceivablePaymentCreate,
)
from utils.user_context import get_current_actor


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "customer": CustomerHandler(services["customer"]),
        "income": IncomeHandler(services["income"]),
        "expense": ExpenseHandler(services["expense"]),
        "receivable": ReceivableHandler(services["receivable"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        actor = get_current_actor()
        if not actor.can_write:
            raise AuthorizationError(f"Role '{actor.role.value}' cannot modify the ledger")
        if body.action in handler.ADMIN_ACTIONS and not actor.is_admin:
            raise AuthorizationError(f"Action '{body.action}' on '{body.domain}' requires the admin role")

        method = getattr(handler, f"_handle_{body.action}")
        result = method(body.data)
        return success_response(result, request_id_of(request)).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class CustomerHandler:
    ALLOWED_ACTIONS = {"create", "update", "renew", "delete"}
    ADMIN_ACTIONS = {"delete"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        customer = self.service.create(CustomerCreate(**data))
        return customer.model_dump(mode="json")

    def _handle_update(self, data: dict):
        customer_id = UUID(data.pop("id"))
        customer = self.service.update(customer_id, CustomerUpdate(**data))
        return customer.model_dump(mode="json")

    def _handle_renew(self, data: dict):
        customer = self.service.renew(UUID(data["id"]))
        return customer.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        customer_id = UUID(data["id"])
        if not self.service.delete(customer_id):
            raise NotFoundError("customer", customer_id)
        return {"deleted": True}


class IncomeHandler:
    ALLOWED_ACTIONS = {"record", "update", "delete"}
    ADMIN_ACTIONS = {"delete"}

    def __init__(self, service):
        self.service = service

    def _handle_record(self, data: dict):
        entry = self.service.record(IncomeEntryCreate(**data))
        return entry.model_dump(mode="json")

    def _handle_update(self, data: dict):
        entry_id = UUID(data.pop("id"))
        entry = self.service.update(entry_id, IncomeEntryUpdate(**data))
        return entry.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        entry_id = UUID(data["id"])
        if not self.service.delete(entry_id):
            raise NotFoundError("income entry", entry_id)
        return {"deleted": True}


class ExpenseHandler:
    ALLOWED_ACTIONS = {"record", "update", "delete"}
    ADMIN_ACTIONS = {"delete"}

    def __init__(self, service):
        self.service = service

    def _handle_record(self, data: dict):
        expense = self.service.record(ExpenseCreate(**data))
        return expense.model_dump(mode="json")

    def _handle_update(self, data: dict):
        expense_id = UUID(data.pop("id"))
        expense = self.service.update(expense_id, ExpenseUpdate(**data))
        return expense.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        expense_id = UUID(data["id"])
        if not self.service.delete(expense_id):
            raise NotFoundError("expense", expense_id)
        return {"deleted": True}


class ReceivableHandler:
    ALLOWED_ACTIONS = {"apply_payment", "delete"}
    ADMIN_ACTIONS = {"delete"}

    def __init__(self, service):
        self.service = service

    def _handle_apply_payment(self, data: dict):
        receivable_id = UUID(data.pop("id"))
        payment = ReceivablePaymentCreate(**data)
        result = self.service.apply_payment(
            receivable_id,
            payment.amount,
            description=payment.description,
            receipt_url=payment.receipt_url,
        )
        return result.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        receivable_id = UUID(data["id"])
        deleted = self.service.delete(receivable_id)
        if not deleted:
            raise NotFoundError("receivable", receivable_id)
        return {"deleted": True}
