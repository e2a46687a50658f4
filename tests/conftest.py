"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from leasing_app.core.config import EmployeeRecord, LeasingConfig
from leasing_app.integrations.billing import InMemoryBilling
from leasing_app.integrations.employee import StaticEmployeeDirectory
from leasing_app.integrations.inventory import InMemoryInventory
from leasing_app.integrations.notification import RecordingNotificationService
from leasing_app.models.agreement import CreateAgreementRequest
from leasing_app.repositories.audit_repository import InMemoryAuditLog
from leasing_app.repositories.memory_repository import InMemoryAgreementRepository
from leasing_app.services.agreement_factory import AgreementFactory
from leasing_app.services.leasing_service import LeasingAgreementService
from leasing_app.services.pricing import PricingEngine
from leasing_app.services.schedule import PaymentScheduleGenerator
from leasing_app.services.transaction import AgreementTransaction

NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    """Fixed 'now' so date rules never depend on the wall clock."""
    return lambda: NOW


@pytest.fixture
def leasing_config() -> LeasingConfig:
    return LeasingConfig()


@pytest.fixture
def employees() -> StaticEmployeeDirectory:
    return StaticEmployeeDirectory(
        [
            EmployeeRecord("emp1", "comp1", "STANDARD"),
            EmployeeRecord("emp2", "comp1", "PREMIUM"),
            EmployeeRecord("emp3", "comp2", "VIP"),
        ]
    )


@pytest.fixture
def inventory() -> InMemoryInventory:
    return InMemoryInventory(["item1", "item2", "item3"])


@pytest.fixture
def billing() -> InMemoryBilling:
    return InMemoryBilling()


@pytest.fixture
def notifications() -> RecordingNotificationService:
    return RecordingNotificationService()


@pytest.fixture
def repository() -> InMemoryAgreementRepository:
    return InMemoryAgreementRepository()


@pytest.fixture
def make_request():
    """Build a valid creation request, overriding any field."""

    def _make(**overrides) -> CreateAgreementRequest:
        values = {
            "employee_id": "emp1",
            "item_id": "item1",
            "company_id": "comp1",
            "start_date": "2025-07-01T00:00:00.000Z",
            "end_date": "2025-12-01T00:00:00.000Z",
            "price": 1000,
            "currency": "USD",
            "payment_frequency": "MONTHLY",
            "metadata": None,
        }
        values.update(overrides)
        return CreateAgreementRequest(**values)

    return _make


@pytest.fixture
def factory(employees, leasing_config, clock) -> AgreementFactory:
    return AgreementFactory(
        employees, PricingEngine(leasing_config), PaymentScheduleGenerator(), clock=clock
    )


@pytest.fixture
def build_service(repository, inventory, billing, notifications, employees, leasing_config, clock):
    """Wire a LeasingAgreementService; keyword overrides replace collaborators."""

    def _build(**overrides):
        parts = {
            "repository": repository,
            "inventory": inventory,
            "billing": billing,
            "notifications": notifications,
            "employees": employees,
            "config": leasing_config,
        }
        parts.update(overrides)
        pricing = PricingEngine(parts["config"])
        schedule_generator = PaymentScheduleGenerator()
        transaction = AgreementTransaction(
            parts["repository"],
            parts["inventory"],
            parts["billing"],
            parts["notifications"],
            parts["employees"],
            parts["config"],
            clock=clock,
        )
        return LeasingAgreementService(
            config=parts["config"],
            repository=parts["repository"],
            notifications=parts["notifications"],
            factory=AgreementFactory(
                parts["employees"], pricing, schedule_generator, clock=clock
            ),
            transaction=transaction,
            pricing=pricing,
            schedule_generator=schedule_generator,
            audit_log=parts.get("audit_log", InMemoryAuditLog()),
            clock=clock,
        )

    return _build
