"""Employee directory backed by configured employee records."""

from __future__ import annotations

from collections.abc import Iterable

from leasing_app.core.config import EmployeeRecord
from leasing_app.models.agreement import EmployeeTier


class StaticEmployeeDirectory:
    """Unknown employees fail validation and price at the STANDARD tier."""

    def __init__(self, employees: Iterable[EmployeeRecord] = ()):
        self._employees = {record.employee_id: record for record in employees}

    def add_employee(self, record: EmployeeRecord) -> None:
        self._employees[record.employee_id] = record

    def get_employee_tier(self, employee_id: str) -> EmployeeTier | str:
        record = self._employees.get(employee_id)
        if record is None:
            return EmployeeTier.STANDARD
        if record.tier in EmployeeTier.__members__:
            return EmployeeTier(record.tier)
        return record.tier

    def validate_employee(self, employee_id: str, company_id: str) -> bool:
        record = self._employees.get(employee_id)
        return record is not None and record.company_id == company_id
