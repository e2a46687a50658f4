"""Builds draft agreements from validated creation requests."""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable

from leasing_app.core.dates import parse_iso_datetime, utc_now
from leasing_app.models.agreement import (
    AgreementStatus,
    CreateAgreementRequest,
    Currency,
    LeasingAgreement,
    PaymentFrequency,
)
from leasing_app.services.ports import EmployeeDirectory
from leasing_app.services.pricing import PricingEngine
from leasing_app.services.schedule import PaymentScheduleGenerator

ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_agreement_id() -> str:
    """Return ``LA-<epoch millis>-<9 base36 chars>``."""
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(9))
    return f"LA-{time.time_ns() // 1_000_000}-{suffix}"


class AgreementFactory:
    """Pure construction of DRAFT agreements; performs no side effects."""

    def __init__(
        self,
        employee_directory: EmployeeDirectory,
        pricing: PricingEngine,
        schedule_generator: PaymentScheduleGenerator,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = generate_agreement_id,
    ):
        self._employee_directory = employee_directory
        self._pricing = pricing
        self._schedule_generator = schedule_generator
        self._clock = clock
        self._id_factory = id_factory

    def from_request(self, request: CreateAgreementRequest) -> LeasingAgreement:
        """Price the request and attach its payment schedule."""
        start_date = parse_iso_datetime(request.start_date)
        end_date = parse_iso_datetime(request.end_date)
        tier = self._employee_directory.get_employee_tier(request.employee_id)
        total_cost = self._pricing.calculate_cost(
            Decimal(str(request.price)), start_date, end_date, tier
        )

        now = self._clock()
        draft = LeasingAgreement(
            id=self._id_factory(),
            employee_id=request.employee_id,
            item_id=request.item_id,
            company_id=request.company_id,
            start_date=start_date,
            end_date=end_date,
            status=AgreementStatus.DRAFT,
            price=total_cost,
            currency=Currency(request.currency),
            metadata=dict(request.metadata or {}),
            created_at=now,
            updated_at=now,
        )
        schedule = self._schedule_generator.generate(
            draft, PaymentFrequency(request.payment_frequency)
        )
        return replace(draft, payment_schedule=tuple(schedule))
