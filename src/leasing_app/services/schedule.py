"""Payment schedule generation."""

from __future__ import annotations

import math
from decimal import Decimal

from leasing_app.core.dates import add_months, duration_in_months
from leasing_app.core.logging import get_logger, log_context
from leasing_app.models.agreement import (
    LeasingAgreement,
    PaymentFrequency,
    PaymentSchedule,
    PaymentStatus,
)
from leasing_app.services.pricing import round_currency

logger = get_logger(__name__)


def count_payments(agreement: LeasingAgreement, frequency: PaymentFrequency) -> int:
    """Installments needed to cover the lease; never fewer than one."""
    months = duration_in_months(agreement.start_date, agreement.end_date)
    return max(1, math.ceil(months / frequency.interval_months))


class PaymentScheduleGenerator:
    """Splits an agreement price into dated installments."""

    def generate(
        self, agreement: LeasingAgreement, frequency: PaymentFrequency
    ) -> list[PaymentSchedule]:
        """Return installments whose amounts sum exactly to ``agreement.price``.

        Every installment but the last gets the rounded even share; the last
        one absorbs the rounding remainder. Due dates step ``interval_months``
        from the start date, each computed from the start date rather than the
        previous entry.
        """
        frequency = PaymentFrequency(frequency)
        total_amount = Decimal(agreement.price)
        total_payments = count_payments(agreement, frequency)
        base_amount = round_currency(total_amount / total_payments)
        last_amount = total_amount - base_amount * (total_payments - 1)

        schedule = [
            PaymentSchedule(
                id=f"{agreement.id}-payment-{index + 1}",
                due_date=add_months(agreement.start_date, index * frequency.interval_months),
                amount=last_amount if index == total_payments - 1 else base_amount,
                status=PaymentStatus.PENDING,
                attempt_count=0,
            )
            for index in range(total_payments)
        ]

        logger.info(
            "Payment schedule generated",
            extra=log_context(
                agreement_id=agreement.id,
                total_payments=total_payments,
                frequency=frequency.value,
                total_amount=str(total_amount),
            ),
        )
        return schedule
