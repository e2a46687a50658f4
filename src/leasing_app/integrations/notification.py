"""Notification backend that records and logs outgoing messages."""

from __future__ import annotations

from dataclasses import dataclass

from leasing_app.core.logging import get_logger, log_context
from leasing_app.models.agreement import PaymentSchedule

logger = get_logger(__name__)


@dataclass
class SentNotification:
    kind: str
    employee_id: str
    reference_id: str


class RecordingNotificationService:
    def __init__(self):
        self.sent: list[SentNotification] = []

    def send_agreement_created(self, employee_id: str, agreement_id: str) -> None:
        self.sent.append(SentNotification("AGREEMENT_CREATED", employee_id, agreement_id))
        logger.info(
            "Agreement created notification sent",
            extra=log_context(employee_id=employee_id, agreement_id=agreement_id),
        )

    def send_payment_due(self, employee_id: str, payment: PaymentSchedule) -> None:
        self.sent.append(SentNotification("PAYMENT_DUE", employee_id, payment.id))
        logger.info(
            "Payment due notification sent",
            extra=log_context(
                employee_id=employee_id,
                payment_id=payment.id,
                due_date=payment.due_date.date().isoformat(),
                amount=str(payment.amount),
            ),
        )
