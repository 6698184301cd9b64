"""GET /api/data - unified read endpoint."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from api.middleware import request_id_of
from core.exceptions import NotFoundError
from core.models import IncomeType, ReceivableStatus, ReportType
from utils.timezone import parse_iso


VALID_TYPES = {
    "receivables", "payments", "income", "expenses", "customers", "activities", "dashboard", "report",
}


def create_data_router(services: dict, expiring_window_days: int = 30) -> APIRouter:
    router = APIRouter()

    receivable_svc = services["receivable"]
    income_svc = services["income"]
    expense_svc = services["expense"]
    customer_svc = services["customer"]
    activity = services["activity"]
    report_svc = services["report"]

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        receivable_id: str | None = Query(None),
        customer_id: str | None = Query(None),
        status: str | None = Query(None),
        filter: str | None = Query(None),
        include: str | None = Query(None),
        start: str | None = Query(None),
        end: str | None = Query(None),
        days: int | None = Query(None, ge=1, le=365),
        limit: int | None = Query(None, ge=1, le=500),
        report_type: str | None = Query(None),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        includes = set(include.split(",")) if include else set()

        if type == "receivables":
            data = _handle_receivables(receivable_svc, id, customer_id, status, includes, limit)
        elif type == "payments":
            if receivable_id is None:
                raise ValueError("'payments' type requires 'receivable_id' parameter")
            data = [p.model_dump(mode="json") for p in receivable_svc.list_payments(UUID(receivable_id))]
        elif type == "income":
            data = _handle_income(income_svc, receivable_svc, id, filter, start, end, includes)
        elif type == "expenses":
            expenses = expense_svc.list(_parse_bound(start), _parse_bound(end))
            data = [e.model_dump(mode="json") for e in expenses]
        elif type == "customers":
            data = _handle_customers(customer_svc, id, filter, days or expiring_window_days)
        elif type == "activities":
            if id is not None:
                entries = activity.get_for_entity(UUID(id))
            else:
                entries = activity.get_recent(limit)
            data = [a.model_dump(mode="json") for a in entries]
        elif type == "report":
            data = _handle_report(report_svc, report_type, start, end)
        else:
            data = {
                "stats": report_svc.dashboard_stats().model_dump(mode="json"),
                "receivables": report_svc.receivables_summary().model_dump(mode="json"),
            }

        return success_response(data, request_id_of(request)).model_dump(mode="json")

    return router


def _parse_bound(value: str | None):
    return parse_iso(value) if value else None


def _handle_receivables(receivable_svc, id, customer_id, status, includes, limit):
    if id:
        receivable = receivable_svc.get_by_id(UUID(id))
        if receivable is None:
            raise NotFoundError("receivable", id)

        data = receivable.model_dump(mode="json")
        if "payments" in includes:
            payments = receivable_svc.list_payments(receivable.id)
            data["payments"] = [p.model_dump(mode="json") for p in payments]
        return data

    receivables = receivable_svc.list_all(
        status=ReceivableStatus(status) if status else None,
        customer_id=UUID(customer_id) if customer_id else None,
        limit=limit,
    )
    return [r.model_dump(mode="json") for r in receivables]


def _handle_income(income_svc, receivable_svc, id, filter, start, end, includes):
    if id:
        entry = income_svc.get_by_id(UUID(id))
        if entry is None:
            raise NotFoundError("income entry", id)

        data = entry.model_dump(mode="json")
        if "receivable" in includes:
            receivable = receivable_svc.get_for_income_entry(entry.id)
            data["receivable"] = receivable.model_dump(mode="json") if receivable else None
        return data

    if filter == "prints":
        income_type = IncomeType.PRINTS
    elif filter is None:
        income_type = None
    else:
        raise ValueError(f"Unknown income filter '{filter}'. Valid filters: prints")

    entries = income_svc.list(_parse_bound(start), _parse_bound(end), income_type=income_type)
    return [e.model_dump(mode="json") for e in entries]


def _handle_report(report_svc, report_type, start, end):
    if not start or not end:
        raise ValueError("'report' type requires 'start' and 'end' parameters")

    report = report_svc.generate(
        parse_iso(start),
        parse_iso(end),
        ReportType(report_type) if report_type else ReportType.FINANCIAL,
    )
    return report.model_dump(mode="json")


def _handle_customers(customer_svc, id, filter, days):
    if id:
        customer = customer_svc.get_by_id(UUID(id))
        if customer is None:
            raise NotFoundError("customer", id)
        return customer.model_dump(mode="json")

    if filter == "expiring":
        customers = customer_svc.list_expiring(days)
    elif filter is None:
        customers = customer_svc.list_all()
    else:
        raise ValueError(f"Unknown customers filter '{filter}'. Valid filters: expiring")

    return [c.model_dump(mode="json") for c in customers]
