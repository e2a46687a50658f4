"""Agreement creation transaction with compensating rollback.

The transaction performs its side effects in a fixed order. Each step that
leaves something behind registers a compensator; when a later step fails the
registered compensators run newest first and the original exception is
re-raised unchanged.

    1. business rules            (nothing to undo)
    2. reserve inventory item    -> release item
    3. persist as PENDING        -> re-persist as CANCELLED
    4. create billing record     -> mark billing record CANCELLED
    5. notify employee           (failure logged, never fatal)
    6. persist as ACTIVE
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from functools import partial
from typing import Any, Callable

from leasing_app.core.config import LeasingConfig
from leasing_app.core.dates import utc_now
from leasing_app.core.errors import BusinessRuleError
from leasing_app.core.logging import get_logger, log_context
from leasing_app.models.agreement import AgreementStatus, LeasingAgreement
from leasing_app.services.ports import (
    AgreementRepository,
    BillingService,
    EmployeeDirectory,
    InventoryService,
    NotificationService,
)

logger = get_logger(__name__)


def new_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Compensation:
    """A named undo action bound to the resource it releases."""

    name: str
    action: Callable[[], Any]


class CompensationLog:
    """Ordered undo actions for a single transaction run; never shared."""

    def __init__(self, correlation_id: str | None = None):
        self._correlation_id = correlation_id
        self._entries: list[Compensation] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def register(self, name: str, action: Callable[[], Any]) -> None:
        self._entries.append(Compensation(name=name, action=action))

    def compensate(self) -> list[str]:
        """Run and drain compensators in LIFO order; return the names that failed."""
        failed: list[str] = []
        while self._entries:
            entry = self._entries.pop()
            try:
                entry.action()
            except Exception:  # pylint: disable=broad-except
                # Keep unwinding; the triggering error is re-raised by the caller.
                failed.append(entry.name)
                logger.exception(
                    "Rollback failed",
                    extra=log_context(correlation_id=self._correlation_id, compensation=entry.name),
                )
            else:
                logger.info(
                    "Rollback step completed",
                    extra=log_context(correlation_id=self._correlation_id, compensation=entry.name),
                )
        return failed


class AgreementTransaction:
    """Owns agreement status transitions while an agreement is being created."""

    def __init__(
        self,
        repository: AgreementRepository,
        inventory: InventoryService,
        billing: BillingService,
        notifications: NotificationService,
        employee_directory: EmployeeDirectory,
        config: LeasingConfig,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repository = repository
        self._inventory = inventory
        self._billing = billing
        self._notifications = notifications
        self._employee_directory = employee_directory
        self._config = config
        self._clock = clock

    def verify_business_rules(
        self, employee_id: str, company_id: str, item_id: str, price: Decimal
    ) -> None:
        """Raise BusinessRuleError for employee, availability or price-ceiling violations."""
        if not self._employee_directory.validate_employee(employee_id, company_id):
            raise BusinessRuleError(
                "Employee does not exist or does not belong to specified company",
                "EMPLOYEE_VALIDATION",
                "INVALID_EMPLOYEE",
            )
        if not self._inventory.check_availability(item_id):
            raise BusinessRuleError(
                "Requested item is not available for leasing",
                "ITEM_AVAILABILITY",
                "ITEM_UNAVAILABLE",
            )
        if Decimal(str(price)) > self._config.max_price:
            raise BusinessRuleError(
                f"Price exceeds maximum allowed amount of {self._config.max_price}",
                "PRICE_LIMIT",
                "PRICE_EXCEEDED",
            )

    def execute(
        self, draft: LeasingAgreement, correlation_id: str | None = None
    ) -> LeasingAgreement:
        """Run the creation steps and return the ACTIVE agreement."""
        correlation_id = correlation_id or new_correlation_id()
        self.verify_business_rules(draft.employee_id, draft.company_id, draft.item_id, draft.price)

        compensations = CompensationLog(correlation_id)
        try:
            if not self._inventory.reserve_item(draft.item_id):
                raise BusinessRuleError(
                    "Requested item could not be reserved",
                    "ITEM_AVAILABILITY",
                    "RESERVATION_FAILED",
                )
            compensations.register("release item", partial(self._inventory.release_item, draft.item_id))

            pending = self._repository.save(draft.with_status(AgreementStatus.PENDING))
            compensations.register("cancel agreement", partial(self._cancel_agreement, pending))

            billing_id = self._billing.create_billing_record(pending)
            compensations.register(
                "cancel billing record",
                partial(self._billing.update_billing_record, pending.id, AgreementStatus.CANCELLED),
            )
            logger.info(
                "Billing record created",
                extra=log_context(
                    correlation_id=correlation_id, agreement_id=pending.id, billing_id=billing_id
                ),
            )

            self._notify_created(pending, correlation_id)

            active = self._repository.save(
                pending.with_status(AgreementStatus.ACTIVE, self._clock())
            )
        except Exception as error:
            logger.error(
                "Agreement transaction failed, rolling back",
                extra=log_context(
                    correlation_id=correlation_id,
                    agreement_id=draft.id,
                    error=str(error),
                    pending_compensations=compensations.names,
                ),
            )
            compensations.compensate()
            raise

        logger.info(
            "Agreement processed successfully",
            extra=log_context(correlation_id=correlation_id, agreement_id=active.id),
        )
        return active

    def _cancel_agreement(self, agreement: LeasingAgreement) -> None:
        self._repository.save(agreement.with_status(AgreementStatus.CANCELLED, self._clock()))

    def _notify_created(self, agreement: LeasingAgreement, correlation_id: str) -> None:
        try:
            self._notifications.send_agreement_created(agreement.employee_id, agreement.id)
        except Exception as error:  # pylint: disable=broad-except
            # Notification is best-effort; the agreement is still created.
            logger.warning(
                "Notification failed but agreement created",
                extra=log_context(
                    correlation_id=correlation_id, agreement_id=agreement.id, error=str(error)
                ),
            )
