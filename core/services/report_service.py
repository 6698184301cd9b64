"""
Read-only aggregates for the dashboard and period reports.

Sums are computed here in Decimal over the rows the store returns, so the
durable and in-memory stores produce identical figures.
"""

import logging
from datetime import datetime, timedelta

from core.models import (
    Customer,
    CustomersSection,
    DashboardStats,
    Expense,
    FinancialSection,
    IncomeEntry,
    IncomeType,
    PeriodReport,
    PrintsSection,
    Receivable,
    ReceivablesSummary,
    ReceivableStatus,
    ReportType,
)
from core.money import ZERO
from core.storage import CUSTOMERS, EXPENSE_ENTRIES, INCOME_ENTRIES, RECEIVABLES, LedgerStore
from utils.timezone import month_bounds, now_utc

logger = logging.getLogger(__name__)


class ReportService:
    """Service for dashboard and report projections."""

    def __init__(self, store: LedgerStore, expiring_window_days: int = 30):
        self.store = store
        self.expiring_window_days = expiring_window_days

    def dashboard_stats(self) -> DashboardStats:
        """
        Headline figures.

        - total_customers: active customers
        - monthly_income: income recorded in the current UTC month
        - expired_subscriptions: active customers past their expiry date
        - current_balance: all income minus all expenses
        """
        now = now_utc()
        month_start, month_end = month_bounds(now)
        today = now.date()

        customers = self._customers()
        income = [IncomeEntry.model_validate(r) for r in self.store.list(INCOME_ENTRIES)]
        expenses = [Expense.model_validate(r) for r in self.store.list(EXPENSE_ENTRIES)]

        total_income = sum((e.amount for e in income), ZERO)
        total_expenses = sum((e.amount for e in expenses), ZERO)
        monthly_income = sum(
            (e.amount for e in income if month_start <= e.created_at < month_end),
            ZERO,
        )

        return DashboardStats(
            total_customers=sum(1 for c in customers if c.is_active),
            monthly_income=monthly_income,
            expired_subscriptions=sum(1 for c in customers if c.is_expired(today)),
            current_balance=total_income - total_expenses,
        )

    def receivables_summary(self) -> ReceivablesSummary:
        """Counts per status and billed/collected/outstanding totals."""
        receivables = [Receivable.model_validate(r) for r in self.store.list(RECEIVABLES)]

        count_by_status = {status: 0 for status in ReceivableStatus}
        for receivable in receivables:
            count_by_status[receivable.status] += 1

        return ReceivablesSummary(
            count_by_status=count_by_status,
            total_billed=sum((r.total_amount for r in receivables), ZERO),
            total_collected=sum((r.paid_amount for r in receivables), ZERO),
            total_outstanding=sum((r.remaining_amount for r in receivables), ZERO),
        )

    def generate(self, start: datetime, end: datetime, report_type: ReportType) -> PeriodReport:
        """
        Build a report over the inclusive creation-time window [start, end].

        Args:
            start: Window start (timezone-aware)
            end: Window end (timezone-aware)
            report_type: Sections to include; COMPREHENSIVE includes all

        Returns:
            Report with the requested sections filled and the others None.
            The dashboard summary is always attached.

        Raises:
            ValueError: If start is after end
        """
        if start > end:
            raise ValueError(f"Report start {start.isoformat()} is after end {end.isoformat()}")

        report = PeriodReport(
            report_type=report_type,
            start=start,
            end=end,
            generated_at=now_utc(),
            summary=self.dashboard_stats(),
        )

        income = None
        if report_type.includes(ReportType.FINANCIAL) or report_type.includes(ReportType.PRINTS):
            income = [
                IncomeEntry.model_validate(r)
                for r in self.store.list(INCOME_ENTRIES, created_from=start, created_to=end)
            ]

        if report_type.includes(ReportType.FINANCIAL):
            expenses = [
                Expense.model_validate(r)
                for r in self.store.list(EXPENSE_ENTRIES, created_from=start, created_to=end)
            ]
            total_income = sum((e.amount for e in income), ZERO)
            total_expenses = sum((e.amount for e in expenses), ZERO)
            report.financial = FinancialSection(
                income=income,
                expenses=expenses,
                total_income=total_income,
                total_expenses=total_expenses,
                net_profit=total_income - total_expenses,
            )

        if report_type.includes(ReportType.PRINTS):
            prints = [e for e in income if e.type == IncomeType.PRINTS]
            report.prints = PrintsSection(
                entries=prints,
                total_print_income=sum((e.amount for e in prints), ZERO),
            )

        if report_type.includes(ReportType.CUSTOMERS):
            report.customers = self._customers_section()

        logger.info(f"{report_type.value.capitalize()} report generated for {start.isoformat()} to {end.isoformat()}")
        return report

    def _customers(self) -> list[Customer]:
        return [Customer.model_validate(r) for r in self.store.list(CUSTOMERS)]

    def _customers_section(self) -> CustomersSection:
        today = now_utc().date()
        horizon = today + timedelta(days=self.expiring_window_days)
        customers = self._customers()

        return CustomersSection(
            total_customers=len(customers),
            active_customers=sum(1 for c in customers if c.is_active and c.expiry_date >= today),
            expired_customers=sum(1 for c in customers if c.expiry_date < today),
            expiring_soon=sum(1 for c in customers if c.is_active and today <= c.expiry_date <= horizon),
        )
