"""Database schema management."""

from __future__ import annotations

from leasing_app.repositories.db_pool import ThreadLocalConnection


def initialize_schema(pool: ThreadLocalConnection) -> None:
    """Create required tables and indexes if they do not exist."""
    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS agreements (
            id TEXT PRIMARY KEY,
            employee_id TEXT NOT NULL,
            item_id TEXT NOT NULL,
            company_id TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            status TEXT NOT NULL,
            price TEXT NOT NULL,
            currency TEXT NOT NULL,
            metadata_encrypted BLOB,
            created_at TEXT,
            updated_at TEXT
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS payment_schedules (
            id TEXT PRIMARY KEY,
            agreement_id TEXT NOT NULL,
            seq INTEGER NOT NULL,
            due_date TEXT NOT NULL,
            amount TEXT NOT NULL,
            status TEXT NOT NULL,
            attempt_count INTEGER NOT NULL DEFAULT 0,
            payment_id TEXT,
            last_attempt_date TEXT,
            FOREIGN KEY (agreement_id) REFERENCES agreements(id) ON DELETE CASCADE
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            action TEXT NOT NULL,
            entity TEXT NOT NULL,
            entity_id TEXT,
            detail TEXT,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    pool.execute("CREATE INDEX IF NOT EXISTS idx_agreements_employee ON agreements(employee_id)")
    pool.execute(
        "CREATE INDEX IF NOT EXISTS idx_payment_schedules_agreement "
        "ON payment_schedules(agreement_id, seq)"
    )
    pool.execute("CREATE INDEX IF NOT EXISTS idx_audit_logs_created_at ON audit_logs(created_at)")
