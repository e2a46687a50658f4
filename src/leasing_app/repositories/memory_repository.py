"""Dict-backed agreement repository."""

from __future__ import annotations

import threading

from leasing_app.models.agreement import LeasingAgreement


class InMemoryAgreementRepository:
    """Stores immutable agreement values keyed by id; save replaces."""

    def __init__(self):
        self._agreements: dict[str, LeasingAgreement] = {}
        self._lock = threading.Lock()

    def save(self, agreement: LeasingAgreement) -> LeasingAgreement:
        with self._lock:
            self._agreements[agreement.id] = agreement
        return agreement

    def find_by_id(self, agreement_id: str) -> LeasingAgreement | None:
        return self._agreements.get(agreement_id)

    def find_by_employee_id(self, employee_id: str) -> list[LeasingAgreement]:
        with self._lock:
            agreements = list(self._agreements.values())
        return [agreement for agreement in agreements if agreement.employee_id == employee_id]
