"""Table layout shared by every store implementation."""

CUSTOMERS = "customers"
INCOME_ENTRIES = "income_entries"
RECEIVABLES = "receivables"
RECEIVABLE_PAYMENTS = "receivable_payments"
EXPENSE_ENTRIES = "expense_entries"
ACTIVITIES = "activities"

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    CUSTOMERS: (
        "id", "name", "menu_url", "join_date", "subscription_type",
        "expiry_date", "is_active", "created_at", "updated_at",
    ),
    INCOME_ENTRIES: (
        "id", "customer_id", "type", "print_type", "amount", "is_deposit",
        "total_amount", "receipt_url", "description", "created_at",
    ),
    RECEIVABLES: (
        "id", "customer_id", "income_entry_id", "total_amount", "paid_amount",
        "remaining_amount", "status", "description", "created_at", "updated_at",
    ),
    RECEIVABLE_PAYMENTS: (
        "id", "receivable_id", "amount", "description", "receipt_url", "created_at",
    ),
    EXPENSE_ENTRIES: (
        "id", "amount", "reason", "description", "created_at",
    ),
    ACTIVITIES: (
        "id", "type", "description", "related_id", "actor_id", "details", "created_at",
    ),
}


def check_columns(table: str, columns) -> None:
    """Raise ValueError for an unknown table or column."""
    if table not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table '{table}'")
    unknown = set(columns) - set(TABLE_COLUMNS[table])
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}")


# PostgreSQL DDL. The CHECK constraints restate the balance invariants so a
# buggy writer fails at the database instead of corrupting a receivable.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS customers (
    id UUID PRIMARY KEY,
    name TEXT NOT NULL,
    menu_url TEXT,
    join_date DATE NOT NULL,
    subscription_type VARCHAR(20) NOT NULL,
    expiry_date DATE NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS income_entries (
    id UUID PRIMARY KEY,
    customer_id UUID REFERENCES customers(id),
    type VARCHAR(20) NOT NULL,
    print_type TEXT,
    amount NUMERIC(12, 2) NOT NULL CHECK (amount >= 0),
    is_deposit BOOLEAN NOT NULL DEFAULT FALSE,
    total_amount NUMERIC(12, 2),
    receipt_url TEXT,
    description TEXT,
    created_at TIMESTAMPTZ NOT NULL,
    CHECK (NOT is_deposit OR (total_amount IS NOT NULL AND total_amount >= amount))
);

CREATE TABLE IF NOT EXISTS receivables (
    id UUID PRIMARY KEY,
    customer_id UUID REFERENCES customers(id),
    income_entry_id UUID UNIQUE REFERENCES income_entries(id),
    total_amount NUMERIC(12, 2) NOT NULL,
    paid_amount NUMERIC(12, 2) NOT NULL,
    remaining_amount NUMERIC(12, 2) NOT NULL,
    status VARCHAR(10) NOT NULL CHECK (status IN ('pending', 'partial', 'paid')),
    description TEXT,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL,
    CHECK (paid_amount >= 0 AND paid_amount <= total_amount),
    CHECK (paid_amount + remaining_amount = total_amount)
);

CREATE TABLE IF NOT EXISTS receivable_payments (
    id UUID PRIMARY KEY,
    receivable_id UUID NOT NULL REFERENCES receivables(id),
    amount NUMERIC(12, 2) NOT NULL CHECK (amount > 0),
    description TEXT,
    receipt_url TEXT,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS expense_entries (
    id UUID PRIMARY KEY,
    amount NUMERIC(12, 2) NOT NULL CHECK (amount > 0),
    reason TEXT NOT NULL,
    description TEXT,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS activities (
    id UUID PRIMARY KEY,
    type VARCHAR(50) NOT NULL,
    description TEXT NOT NULL,
    related_id UUID,
    actor_id UUID,
    details JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_income_entries_created_at ON income_entries (created_at);
CREATE INDEX IF NOT EXISTS idx_receivables_created_at ON receivables (created_at);
CREATE INDEX IF NOT EXISTS idx_receivable_payments_receivable ON receivable_payments (receivable_id, created_at);
CREATE INDEX IF NOT EXISTS idx_expense_entries_created_at ON expense_entries (created_at);
CREATE INDEX IF NOT EXISTS idx_activities_created_at ON activities (created_at);
CREATE INDEX IF NOT EXISTS idx_activities_related ON activities (related_id);
"""
