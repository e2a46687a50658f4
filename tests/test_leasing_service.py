"""Integration-like tests for the leasing agreement service."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from leasing_app.core.config import LeasingConfig
from leasing_app.core.errors import AgreementNotFoundError, BusinessRuleError, ValidationError
from leasing_app.models.agreement import AgreementStatus, AgreementView
from leasing_app.repositories.audit_repository import InMemoryAuditLog


def test_creates_active_agreement(build_service, make_request, notifications, billing) -> None:
    audit_log = InMemoryAuditLog()
    service = build_service(audit_log=audit_log)

    agreement = service.process_agreement(make_request())

    assert agreement.employee_id == "emp1"
    assert agreement.status is AgreementStatus.ACTIVE
    assert agreement.price == Decimal("1000.00")
    assert len(agreement.payment_schedule) == 5
    assert len(notifications.sent) == 1
    assert len(billing.records) == 1
    assert audit_log.entries[0]["action"] == "CREATE"
    assert audit_log.entries[0]["entity_id"] == agreement.id


def test_rejects_invalid_employee_id(build_service, make_request) -> None:
    service = build_service()
    with pytest.raises(ValidationError) as excinfo:
        service.process_agreement(make_request(employee_id=""))
    assert excinfo.value.code == "REQUIRED"


def test_rejects_unavailable_item(build_service, make_request) -> None:
    service = build_service()
    with pytest.raises(BusinessRuleError) as excinfo:
        service.process_agreement(make_request(item_id="unavailable-item"))
    assert excinfo.value.code == "ITEM_UNAVAILABLE"


def test_rejects_employee_company_mismatch(build_service, make_request) -> None:
    service = build_service()
    with pytest.raises(BusinessRuleError) as excinfo:
        service.process_agreement(make_request(company_id="wrong-company"))
    assert excinfo.value.rule == "EMPLOYEE_VALIDATION"


def test_price_ceiling_applies_to_requested_price(build_service, make_request) -> None:
    service = build_service(config=LeasingConfig(max_price=Decimal("5000")))
    request = make_request(employee_id="emp2", price=6000, end_date="2026-12-01T00:00:00Z")

    with pytest.raises(BusinessRuleError) as excinfo:
        service.process_agreement(request)
    assert excinfo.value.code == "PRICE_EXCEEDED"


def test_validation_runs_before_side_effects(build_service, make_request, inventory, repository) -> None:
    service = build_service()
    with pytest.raises(ValidationError):
        service.process_agreement(make_request(currency="JPY"))
    assert inventory.check_availability("item1")
    assert repository.find_by_employee_id("emp1") == []


def test_same_item_cannot_be_leased_twice(build_service, make_request) -> None:
    service = build_service()
    service.process_agreement(make_request())
    with pytest.raises(BusinessRuleError):
        service.process_agreement(make_request(employee_id="emp2"))


def test_get_and_list_agreements(build_service, make_request) -> None:
    service = build_service()
    first = service.process_agreement(make_request())
    second = service.process_agreement(make_request(item_id="item2"))

    assert service.get_agreement(first.id) == first
    assert {a.id for a in service.list_employee_agreements("emp1")} == {first.id, second.id}
    assert service.list_employee_agreements("emp3") == []
    with pytest.raises(AgreementNotFoundError):
        service.get_agreement("LA-missing")


def test_calculate_cost_accepts_iso_strings(build_service) -> None:
    service = build_service()
    cost = service.calculate_cost(Decimal("1000"), "2025-07-01", "2026-12-01", "PREMIUM")
    assert cost == Decimal("720.00")


def test_generate_payment_schedule_passthrough(build_service, make_request) -> None:
    service = build_service()
    agreement = service.process_agreement(make_request())
    schedule = service.generate_payment_schedule(agreement, "QUARTERLY")
    assert [payment.amount for payment in schedule] == [Decimal("500.00"), Decimal("500.00")]


def test_payment_reminders_cover_window(build_service, make_request, notifications) -> None:
    service = build_service()
    agreement = service.process_agreement(make_request())
    notifications.sent.clear()

    sent = service.send_payment_reminders(
        ["emp1"], as_of=datetime(2025, 6, 28, tzinfo=timezone.utc), within_days=7
    )

    assert sent == 1
    assert notifications.sent[0].kind == "PAYMENT_DUE"
    assert notifications.sent[0].reference_id == f"{agreement.id}-payment-1"


def test_payment_reminder_failures_are_skipped(build_service, make_request) -> None:
    class FlakyNotifications:
        def send_agreement_created(self, employee_id, agreement_id):
            return None

        def send_payment_due(self, employee_id, payment):
            raise TimeoutError("queue full")

    service = build_service(notifications=FlakyNotifications())
    service.process_agreement(make_request())

    sent = service.send_payment_reminders(
        ["emp1"], as_of=datetime(2025, 6, 28, tzinfo=timezone.utc)
    )
    assert sent == 0


def test_agreement_view(build_service, make_request) -> None:
    agreement = build_service().process_agreement(make_request(price=100))
    view = AgreementView.from_agreement(agreement)

    assert view.status == "ACTIVE"
    assert view.total_cost == "100.00"
    assert [row.amount for row in view.payment_schedule] == ["20.00"] * 5


def test_list_metadata_is_rejected_before_side_effects(build_service, make_request, inventory) -> None:
    service = build_service()
    with pytest.raises(ValidationError) as excinfo:
        service.process_agreement(make_request(metadata=["note"]))
    assert excinfo.value.code == "INVALID_TYPE"
    assert inventory.check_availability("item1")


def test_payment_reminders_accept_naive_as_of(build_service, make_request) -> None:
    service = build_service()
    service.process_agreement(make_request())

    assert service.send_payment_reminders(["emp1"], as_of=datetime(2025, 6, 28)) == 1
    assert service.send_payment_reminders(["emp1"], as_of="2025-06-28") == 1
