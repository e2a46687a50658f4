"""Collaborator interfaces consumed by the agreement factory and transaction."""

from __future__ import annotations

from typing import Protocol

from leasing_app.models.agreement import (
    AgreementStatus,
    EmployeeTier,
    LeasingAgreement,
    PaymentSchedule,
)


class AgreementRepository(Protocol):
    def save(self, agreement: LeasingAgreement) -> LeasingAgreement: ...

    def find_by_id(self, agreement_id: str) -> LeasingAgreement | None: ...

    def find_by_employee_id(self, employee_id: str) -> list[LeasingAgreement]: ...


class InventoryService(Protocol):
    def reserve_item(self, item_id: str) -> bool: ...

    def release_item(self, item_id: str) -> None: ...

    def check_availability(self, item_id: str) -> bool: ...


class BillingService(Protocol):
    def create_billing_record(self, agreement: LeasingAgreement) -> str: ...

    def update_billing_record(self, agreement_id: str, status: AgreementStatus) -> None: ...


class NotificationService(Protocol):
    def send_agreement_created(self, employee_id: str, agreement_id: str) -> None: ...

    def send_payment_due(self, employee_id: str, payment: PaymentSchedule) -> None: ...


class EmployeeDirectory(Protocol):
    def get_employee_tier(self, employee_id: str) -> EmployeeTier | str: ...

    def validate_employee(self, employee_id: str, company_id: str) -> bool: ...
