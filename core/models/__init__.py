"""Core domain models."""

from core.models.customer import Customer, CustomerCreate, CustomerUpdate, SubscriptionType
from core.models.income import IncomeEntry, IncomeEntryCreate, IncomeEntryUpdate, IncomeType
from core.models.receivable import (
    Receivable,
    ReceivablePayment,
    ReceivablePaymentCreate,
    ReceivableStatus,
    status_for,
)
from core.models.expense import Expense, ExpenseCreate, ExpenseUpdate
from core.models.activity import Activity, ActivityType
from core.models.report import (
    CustomersSection,
    DashboardStats,
    FinancialSection,
    PeriodReport,
    PrintsSection,
    ReceivablesSummary,
    ReportType,
)

__all__ = [
    # Customer
    "Customer", "CustomerCreate", "CustomerUpdate", "SubscriptionType",
    # Income
    "IncomeEntry", "IncomeEntryCreate", "IncomeEntryUpdate", "IncomeType",
    # Receivable
    "Receivable", "ReceivablePayment", "ReceivablePaymentCreate", "ReceivableStatus", "status_for",
    # Expense
    "Expense", "ExpenseCreate", "ExpenseUpdate",
    # Activity
    "Activity", "ActivityType",
    # Reports
    "CustomersSection", "DashboardStats", "FinancialSection", "PeriodReport",
    "PrintsSection", "ReceivablesSummary", "ReportType",
]
