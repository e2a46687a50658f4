"""Leasing agreement domain models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class AgreementStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PaymentFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"

    @property
    def interval_months(self) -> int:
        return {"MONTHLY": 1, "QUARTERLY": 3, "ANNUALLY": 12}[self.value]


class EmployeeTier(str, Enum):
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"
    VIP = "VIP"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"


def _first(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass
class CreateAgreementRequest:
    """Input model for agreement creation, before validation.

    Values stay as received (strings for dates, any type for price) so the
    validator can report precise codes.
    """

    employee_id: str
    item_id: str
    company_id: str
    start_date: str
    end_date: str
    price: Any
    currency: str
    payment_frequency: str
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CreateAgreementRequest":
        """Accept both snake_case and camelCase request bodies."""
        return cls(
            employee_id=_first(data, "employee_id", "employeeId", default=""),
            item_id=_first(data, "item_id", "itemId", default=""),
            company_id=_first(data, "company_id", "companyId", default=""),
            start_date=_first(data, "start_date", "startDate", default=""),
            end_date=_first(data, "end_date", "endDate", default=""),
            price=_first(data, "price"),
            currency=_first(data, "currency", default=""),
            payment_frequency=_first(data, "payment_frequency", "paymentFrequency", default=""),
            metadata=_first(data, "metadata"),
        )


@dataclass(frozen=True)
class PaymentSchedule:
    """One installment of an agreement's payment plan."""

    id: str
    due_date: datetime
    amount: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    attempt_count: int = 0
    payment_id: str | None = None
    last_attempt_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "due_date": self.due_date.isoformat(),
            "amount": str(self.amount),
            "status": self.status.value,
            "attempt_count": self.attempt_count,
            "payment_id": self.payment_id,
            "last_attempt_date": (
                self.last_attempt_date.isoformat() if self.last_attempt_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaymentSchedule":
        last_attempt = data.get("last_attempt_date")
        return cls(
            id=data["id"],
            due_date=datetime.fromisoformat(data["due_date"]),
            amount=Decimal(str(data["amount"])),
            status=PaymentStatus(data.get("status", "PENDING")),
            attempt_count=int(data.get("attempt_count", 0)),
            payment_id=data.get("payment_id"),
            last_attempt_date=datetime.fromisoformat(last_attempt) if last_attempt else None,
        )


@dataclass(frozen=True)
class LeasingAgreement:
    """A leasing agreement; new states are produced with :meth:`with_status`."""

    id: str
    employee_id: str
    item_id: str
    company_id: str
    start_date: datetime
    end_date: datetime
    status: AgreementStatus
    price: Decimal
    currency: Currency
    payment_schedule: tuple[PaymentSchedule, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def with_status(
        self, status: AgreementStatus, updated_at: datetime | None = None
    ) -> "LeasingAgreement":
        return replace(self, status=status, updated_at=updated_at or self.updated_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "item_id": self.item_id,
            "company_id": self.company_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status.value,
            "price": str(self.price),
            "currency": self.currency.value,
            "payment_schedule": [payment.to_dict() for payment in self.payment_schedule],
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LeasingAgreement":
        created_at = data.get("created_at")
        updated_at = data.get("updated_at")
        return cls(
            id=data["id"],
            employee_id=data["employee_id"],
            item_id=data["item_id"],
            company_id=data["company_id"],
            start_date=datetime.fromisoformat(data["start_date"]),
            end_date=datetime.fromisoformat(data["end_date"]),
            status=AgreementStatus(data["status"]),
            price=Decimal(str(data["price"])),
            currency=Currency(data["currency"]),
            payment_schedule=tuple(
                PaymentSchedule.from_dict(item) for item in data.get("payment_schedule", [])
            ),
            metadata=dict(data.get("metadata") or {}),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )


@dataclass
class PaymentScheduleView:
    id: str
    due_date: str
    amount: str
    status: str


@dataclass
class AgreementView:
    """Output model returned to the request-handling layer."""

    id: str
    status: str
    total_cost: str
    payment_schedule: list[PaymentScheduleView]
    created_at: str

    @classmethod
    def from_agreement(cls, agreement: LeasingAgreement) -> "AgreementView":
        return cls(
            id=agreement.id,
            status=agreement.status.value,
            total_cost=str(agreement.price),
            payment_schedule=[
                PaymentScheduleView(
                    id=payment.id,
                    due_date=payment.due_date.isoformat(),
                    amount=str(payment.amount),
                    status=payment.status.value,
                )
                for payment in agreement.payment_schedule
            ],
            created_at=agreement.created_at.isoformat() if agreement.created_at else "",
        )
