"""Leasing agreement use cases."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Protocol

from leasing_app.core.config import LeasingConfig
from leasing_app.core.dates import parse_iso_datetime, utc_now
from leasing_app.core.errors import AgreementNotFoundError
from leasing_app.core.logging import get_logger, log_context
from leasing_app.core.validation import validate_create_request
from leasing_app.models.agreement import (
    AgreementStatus,
    CreateAgreementRequest,
    EmployeeTier,
    LeasingAgreement,
    PaymentFrequency,
    PaymentSchedule,
    PaymentStatus,
)
from leasing_app.services.agreement_factory import AgreementFactory
from leasing_app.services.ports import AgreementRepository, NotificationService
from leasing_app.services.pricing import PricingEngine
from leasing_app.services.schedule import PaymentScheduleGenerator
from leasing_app.services.transaction import AgreementTransaction, new_correlation_id

logger = get_logger(__name__)


class AuditLog(Protocol):
    def add_log(self, action: str, entity: str, entity_id: str | None, detail: str) -> None: ...


class LeasingAgreementService:
    """Coordinates validation, construction and the creation transaction."""

    def __init__(
        self,
        config: LeasingConfig,
        repository: AgreementRepository,
        notifications: NotificationService,
        factory: AgreementFactory,
        transaction: AgreementTransaction,
        pricing: PricingEngine,
        schedule_generator: PaymentScheduleGenerator,
        audit_log: AuditLog,
        clock=utc_now,
    ):
        self._config = config
        self._repository = repository
        self._notifications = notifications
        self._factory = factory
        self._transaction = transaction
        self._pricing = pricing
        self._schedule_generator = schedule_generator
        self._audit_log = audit_log
        self._clock = clock

    def process_agreement(self, request: CreateAgreementRequest) -> LeasingAgreement:
        """Validate, price, schedule and create one agreement."""
        correlation_id = new_correlation_id()
        context = log_context(
            correlation_id=correlation_id, employee_id=request.employee_id, item_id=request.item_id
        )
        logger.info("Processing leasing agreement", extra=context)

        try:
            validate_create_request(request, self._config, today=self._clock().date())
            self._transaction.verify_business_rules(
                request.employee_id,
                request.company_id,
                request.item_id,
                Decimal(str(request.price)),
            )
            draft = self._factory.from_request(request)
            agreement = self._transaction.execute(draft, correlation_id)
        except Exception as error:
            logger.error(
                "Failed to process leasing agreement",
                extra=log_context(
                    correlation_id=correlation_id,
                    employee_id=request.employee_id,
                    error_type=type(error).__name__,
                    error=str(error),
                ),
            )
            raise

        self._audit_log.add_log(
            "CREATE",
            "agreement",
            agreement.id,
            json.dumps(
                {
                    "event": "agreement created",
                    "correlation_id": correlation_id,
                    "price": str(agreement.price),
                    "payments": len(agreement.payment_schedule),
                }
            ),
        )
        return agreement

    def calculate_cost(
        self,
        base_price: Decimal,
        start_date: datetime | str,
        end_date: datetime | str,
        employee_tier: EmployeeTier | str,
    ) -> Decimal:
        return self._pricing.calculate_cost(
            base_price, parse_iso_datetime(start_date), parse_iso_datetime(end_date), employee_tier
        )

    def generate_payment_schedule(
        self, agreement: LeasingAgreement, frequency: PaymentFrequency | str
    ) -> list[PaymentSchedule]:
        return self._schedule_generator.generate(agreement, PaymentFrequency(frequency))

    def get_agreement(self, agreement_id: str) -> LeasingAgreement:
        agreement = self._repository.find_by_id(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(f"Agreement not found: {agreement_id}")
        return agreement

    def list_employee_agreements(self, employee_id: str) -> list[LeasingAgreement]:
        return self._repository.find_by_employee_id(employee_id)

    def send_payment_reminders(
        self,
        employee_ids: list[str],
        as_of: datetime | str | None = None,
        within_days: int = 7,
    ) -> int:
        """Notify employees about PENDING installments of ACTIVE agreements due soon.

        Naive ``as_of`` values are taken as UTC. Returns the number of reminders
        sent; delivery failures are logged and skipped.
        """
        window_start = parse_iso_datetime(as_of) if as_of is not None else self._clock()
        window_end = window_start + timedelta(days=within_days)
        sent = 0
        for employee_id in employee_ids:
            for agreement in self._repository.find_by_employee_id(employee_id):
                if agreement.status is not AgreementStatus.ACTIVE:
                    continue
                for payment in agreement.payment_schedule:
                    if payment.status is not PaymentStatus.PENDING:
                        continue
                    if not window_start <= payment.due_date <= window_end:
                        continue
                    try:
                        self._notifications.send_payment_due(employee_id, payment)
                    except Exception as error:  # pylint: disable=broad-except
                        # Reminders are best-effort per installment.
                        logger.warning(
                            "Payment reminder failed",
                            extra=log_context(payment_id=payment.id, error=str(error)),
                        )
                        continue
                    sent += 1
        return sent
