"""In-memory billing backend."""

from __future__ import annotations

from dataclasses import dataclass

from leasing_app.models.agreement import AgreementStatus, LeasingAgreement


@dataclass
class BillingRecord:
    billing_id: str
    agreement_id: str
    amount: str
    currency: str
    status: AgreementStatus


class InMemoryBilling:
    """Keeps one billing record per agreement."""

    def __init__(self):
        self.records: dict[str, BillingRecord] = {}

    def create_billing_record(self, agreement: LeasingAgreement) -> str:
        billing_id = f"bill-{agreement.id}"
        self.records[agreement.id] = BillingRecord(
            billing_id=billing_id,
            agreement_id=agreement.id,
            amount=str(agreement.price),
            currency=agreement.currency.value,
            status=agreement.status,
        )
        return billing_id

    def update_billing_record(self, agreement_id: str, status: AgreementStatus) -> None:
        record = self.records.get(agreement_id)
        if record is None:
            raise KeyError(f"No billing record for agreement {agreement_id}")
        record.status = status
