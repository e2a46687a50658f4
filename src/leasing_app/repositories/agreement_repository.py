"""SQLite-backed agreement repository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from leasing_app.core.crypto import MetadataCipher
from leasing_app.models.agreement import (
    AgreementStatus,
    Currency,
    LeasingAgreement,
    PaymentSchedule,
    PaymentStatus,
)
from leasing_app.repositories.db_pool import ThreadLocalConnection

AGREEMENT_COLUMNS = """
    id, employee_id, item_id, company_id, start_date, end_date,
    status, price, currency, metadata_encrypted, created_at, updated_at
"""


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SqliteAgreementRepository:
    """Persists agreements and their schedules; metadata is stored encrypted."""

    def __init__(self, pool: ThreadLocalConnection, cipher: MetadataCipher):
        self._pool = pool
        self._cipher = cipher

    def save(self, agreement: LeasingAgreement) -> LeasingAgreement:
        """Upsert the agreement row and replace its schedule rows atomically."""
        with self._pool.transaction() as cursor:
            cursor.execute(
                f"""
                INSERT INTO agreements ({AGREEMENT_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    status = excluded.status,
                    price = excluded.price,
                    metadata_encrypted = excluded.metadata_encrypted,
                    updated_at = excluded.updated_at
                """,
                (
                    agreement.id,
                    agreement.employee_id,
                    agreement.item_id,
                    agreement.company_id,
                    agreement.start_date.isoformat(),
                    agreement.end_date.isoformat(),
                    agreement.status.value,
                    str(agreement.price),
                    agreement.currency.value,
                    self._cipher.encrypt(dict(agreement.metadata), agreement.id),
                    _iso(agreement.created_at),
                    _iso(agreement.updated_at),
                ),
            )
            cursor.execute("DELETE FROM payment_schedules WHERE agreement_id = ?", (agreement.id,))
            cursor.executemany(
                """
                INSERT INTO payment_schedules (
                    id, agreement_id, seq, due_date, amount, status,
                    attempt_count, payment_id, last_attempt_date
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        payment.id,
                        agreement.id,
                        seq,
                        payment.due_date.isoformat(),
                        str(payment.amount),
                        payment.status.value,
                        payment.attempt_count,
                        payment.payment_id,
                        _iso(payment.last_attempt_date),
                    )
                    for seq, payment in enumerate(agreement.payment_schedule, start=1)
                ],
            )
        return agreement

    def find_by_id(self, agreement_id: str) -> LeasingAgreement | None:
        row = self._pool.fetchone(
            f"SELECT {AGREEMENT_COLUMNS} FROM agreements WHERE id = ?",
            (agreement_id,),
        )
        return self._to_agreement(dict(row)) if row else None

    def find_by_employee_id(self, employee_id: str) -> list[LeasingAgreement]:
        rows = self._pool.fetchall(
            f"SELECT {AGREEMENT_COLUMNS} FROM agreements WHERE employee_id = ? ORDER BY created_at",
            (employee_id,),
        )
        return [self._to_agreement(dict(row)) for row in rows]

    def _load_schedule(self, agreement_id: str) -> tuple[PaymentSchedule, ...]:
        rows = self._pool.fetchall(
            """
            SELECT id, due_date, amount, status, attempt_count, payment_id, last_attempt_date
            FROM payment_schedules
            WHERE agreement_id = ?
            ORDER BY seq
            """,
            (agreement_id,),
        )
        return tuple(
            PaymentSchedule(
                id=row["id"],
                due_date=datetime.fromisoformat(row["due_date"]),
                amount=Decimal(row["amount"]),
                status=PaymentStatus(row["status"]),
                attempt_count=int(row["attempt_count"]),
                payment_id=row["payment_id"],
                last_attempt_date=_from_iso(row["last_attempt_date"]),
            )
            for row in rows
        )

    def _to_agreement(self, row: dict[str, Any]) -> LeasingAgreement:
        encrypted = row["metadata_encrypted"]
        return LeasingAgreement(
            id=row["id"],
            employee_id=row["employee_id"],
            item_id=row["item_id"],
            company_id=row["company_id"],
            start_date=datetime.fromisoformat(row["start_date"]),
            end_date=datetime.fromisoformat(row["end_date"]),
            status=AgreementStatus(row["status"]),
            price=Decimal(row["price"]),
            currency=Currency(row["currency"]),
            payment_schedule=self._load_schedule(row["id"]),
            metadata=self._cipher.decrypt(bytes(encrypted), row["id"]) if encrypted else {},
            created_at=_from_iso(row["created_at"]),
            updated_at=_from_iso(row["updated_at"]),
        )
