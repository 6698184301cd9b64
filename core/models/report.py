"""Read-only aggregate projections for the dashboard and period reports."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel

from core.models.expense import Expense
from core.models.income import IncomeEntry
from core.models.receivable import ReceivableStatus


class DashboardStats(BaseModel):
    """Headline numbers for the dashboard."""

    total_customers: int
    monthly_income: Decimal
    expired_subscriptions: int
    current_balance: Decimal


class ReceivablesSummary(BaseModel):
    """
    Totals across all receivables.

    total_collected + total_outstanding == total_billed always holds.
    """

    count_by_status: dict[ReceivableStatus, int]
    total_billed: Decimal
    total_collected: Decimal
    total_outstanding: Decimal


class ReportType(str, Enum):
    """Sections a period report covers. COMPREHENSIVE includes all of them."""

    FINANCIAL = "financial"
    PRINTS = "prints"
    CUSTOMERS = "customers"
    COMPREHENSIVE = "comprehensive"

    def includes(self, section: "ReportType") -> bool:
        return self in (section, ReportType.COMPREHENSIVE)


class FinancialSection(BaseModel):
    """Money in and out over the period. net_profit == total_income - total_expenses."""

    income: list[IncomeEntry]
    expenses: list[Expense]
    total_income: Decimal
    total_expenses: Decimal
    net_profit: Decimal


class PrintsSection(BaseModel):
    """Print sales over the period."""

    entries: list[IncomeEntry]
    total_print_income: Decimal


class CustomersSection(BaseModel):
    """Subscriber counts as of the report date (not windowed)."""

    total_customers: int
    active_customers: int
    expired_customers: int
    expiring_soon: int


class PeriodReport(BaseModel):
    """Report over an inclusive [start, end] creation-time window."""

    report_type: ReportType
    start: datetime
    end: datetime
    generated_at: datetime
    financial: FinancialSection | None = None
    prints: PrintsSection | None = None
    customers: CustomersSection | None = None
    summary: DashboardStats
