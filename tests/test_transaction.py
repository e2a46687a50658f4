"""Tests for the agreement creation transaction and its rollback."""

from decimal import Decimal

import pytest

from leasing_app.core.config import LeasingConfig
from leasing_app.core.errors import BusinessRuleError
from leasing_app.models.agreement import AgreementStatus
from leasing_app.services.transaction import AgreementTransaction, CompensationLog


class FailingBilling:
    def __init__(self, error: Exception):
        self.error = error
        self.updates = []

    def create_billing_record(self, agreement):
        raise self.error

    def update_billing_record(self, agreement_id, status):
        self.updates.append((agreement_id, status))


class FailingNotifications:
    def send_agreement_created(self, employee_id, agreement_id):
        raise ConnectionError("smtp unavailable")

    def send_payment_due(self, employee_id, payment):
        raise ConnectionError("smtp unavailable")


class RefusingInventory:
    def __init__(self):
        self.released = []

    def check_availability(self, item_id):
        return True

    def reserve_item(self, item_id):
        return False

    def release_item(self, item_id):
        self.released.append(item_id)


class ActivationFailingRepository:
    """Saves everything except the ACTIVE transition."""

    def __init__(self, calls):
        self.calls = calls
        self.saved = {}

    def save(self, agreement):
        if agreement.status is AgreementStatus.ACTIVE:
            raise OSError("disk full")
        self.calls.append(f"save {agreement.status.value}")
        self.saved[agreement.id] = agreement
        return agreement

    def find_by_id(self, agreement_id):
        return self.saved.get(agreement_id)

    def find_by_employee_id(self, employee_id):
        return [a for a in self.saved.values() if a.employee_id == employee_id]


def build_transaction(repository, inventory, billing, notifications, employees, clock, config=None):
    return AgreementTransaction(
        repository, inventory, billing, notifications, employees, config or LeasingConfig(), clock=clock
    )


def test_successful_run_activates_agreement(
    factory, make_request, repository, inventory, billing, notifications, employees, clock
) -> None:
    transaction = build_transaction(repository, inventory, billing, notifications, employees, clock)
    draft = factory.from_request(make_request())

    active = transaction.execute(draft)

    assert active.status is AgreementStatus.ACTIVE
    assert repository.find_by_id(draft.id).status is AgreementStatus.ACTIVE
    assert not inventory.check_availability("item1")
    assert billing.records[draft.id].billing_id == f"bill-{draft.id}"
    assert [n.reference_id for n in notifications.sent] == [draft.id]


def test_billing_failure_releases_item_and_reraises(
    factory, make_request, repository, inventory, notifications, employees, clock
) -> None:
    error = RuntimeError("billing service down")
    transaction = build_transaction(
        repository, inventory, FailingBilling(error), notifications, employees, clock
    )
    draft = factory.from_request(make_request())

    with pytest.raises(RuntimeError, match="billing service down") as excinfo:
        transaction.execute(draft)

    assert excinfo.value is error
    assert inventory.check_availability("item1")
    assert repository.find_by_id(draft.id).status is AgreementStatus.CANCELLED
    assert notifications.sent == []


def test_notification_failure_is_not_fatal(
    factory, make_request, repository, inventory, billing, employees, clock, caplog
) -> None:
    transaction = build_transaction(
        repository, inventory, billing, FailingNotifications(), employees, clock
    )
    draft = factory.from_request(make_request())

    with caplog.at_level("WARNING"):
        active = transaction.execute(draft)

    assert active.status is AgreementStatus.ACTIVE
    assert not inventory.check_availability("item1")
    assert "Notification failed but agreement created" in caplog.text


def test_refused_reservation_aborts_without_side_effects(
    factory, make_request, repository, billing, notifications, employees, clock
) -> None:
    inventory = RefusingInventory()
    transaction = build_transaction(repository, inventory, billing, notifications, employees, clock)
    draft = factory.from_request(make_request())

    with pytest.raises(BusinessRuleError) as excinfo:
        transaction.execute(draft)

    assert excinfo.value.code == "RESERVATION_FAILED"
    assert inventory.released == []
    assert repository.find_by_id(draft.id) is None
    assert billing.records == {}


def test_activation_failure_unwinds_in_reverse_order(
    factory, make_request, inventory, billing, notifications, employees, clock
) -> None:
    calls = []
    repository = ActivationFailingRepository(calls)
    release = inventory.release_item

    def tracking_release(item_id):
        calls.append(f"release {item_id}")
        release(item_id)

    inventory.release_item = tracking_release
    transaction = build_transaction(repository, inventory, billing, notifications, employees, clock)
    draft = factory.from_request(make_request())

    with pytest.raises(OSError, match="disk full"):
        transaction.execute(draft)

    assert calls == ["save PENDING", "save CANCELLED", "release item1"]
    assert billing.records[draft.id].status is AgreementStatus.CANCELLED
    assert inventory.check_availability("item1")


def test_compensation_failure_does_not_mask_original_error(
    factory, make_request, repository, inventory, notifications, employees, clock, caplog
) -> None:
    def broken_release(item_id):
        raise ValueError("inventory offline")

    inventory.release_item = broken_release
    error = RuntimeError("billing rejected")
    billing = FailingBilling(error)
    transaction = build_transaction(repository, inventory, billing, notifications, employees, clock)
    draft = factory.from_request(make_request())

    with pytest.raises(RuntimeError) as excinfo:
        transaction.execute(draft)

    assert excinfo.value is error
    assert repository.find_by_id(draft.id).status is AgreementStatus.CANCELLED
    assert "Rollback failed" in caplog.text


@pytest.mark.parametrize(
    ("employee_id", "company_id", "item_id", "price", "code"),
    [
        ("emp1", "comp2", "item1", Decimal("10"), "INVALID_EMPLOYEE"),
        ("ghost", "comp1", "item1", Decimal("10"), "INVALID_EMPLOYEE"),
        ("emp1", "comp1", "item9", Decimal("10"), "ITEM_UNAVAILABLE"),
        ("emp1", "comp1", "item1", Decimal("5000.01"), "PRICE_EXCEEDED"),
    ],
)
def test_business_rules(
    repository, inventory, billing, notifications, employees, clock,
    employee_id, company_id, item_id, price, code,
) -> None:
    transaction = build_transaction(
        repository, inventory, billing, notifications, employees, clock,
        config=LeasingConfig(max_price=Decimal("5000")),
    )
    with pytest.raises(BusinessRuleError) as excinfo:
        transaction.verify_business_rules(employee_id, company_id, item_id, price)
    assert excinfo.value.code == code


def test_business_rule_failure_needs_no_compensation(
    factory, make_request, repository, inventory, billing, notifications, employees, clock
) -> None:
    transaction = build_transaction(repository, inventory, billing, notifications, employees, clock)
    inventory.reserve_item("item1")
    draft = factory.from_request(make_request())

    with pytest.raises(BusinessRuleError) as excinfo:
        transaction.execute(draft)

    assert excinfo.value.code == "ITEM_UNAVAILABLE"
    assert repository.find_by_id(draft.id) is None
    assert not inventory.check_availability("item1")


def test_compensation_log_runs_lifo_and_drains() -> None:
    order = []
    log = CompensationLog("corr-1")
    log.register("first", lambda: order.append("first"))
    log.register("second", lambda: order.append("second"))
    log.register("third", lambda: order.append("third"))

    assert log.names == ["first", "second", "third"]
    assert log.compensate() == []
    assert order == ["third", "second", "first"]
    assert len(log) == 0


def test_compensation_log_continues_past_failures() -> None:
    order = []

    def explode():
        raise RuntimeError("boom")

    log = CompensationLog()
    log.register("first", lambda: order.append("first"))
    log.register("broken", explode)
    log.register("third", lambda: order.append("third"))

    assert log.compensate() == ["broken"]
    assert order == ["third", "first"]
