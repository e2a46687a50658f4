"""Leasing cost calculation with long-term and employee-tier discounts."""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from leasing_app.core.config import LeasingConfig
from leasing_app.core.dates import duration_in_months
from leasing_app.core.logging import get_logger, log_context
from leasing_app.models.agreement import EmployeeTier

logger = get_logger(__name__)

CENT = Decimal("0.01")
NO_DISCOUNT = Decimal("1.0")


def round_currency(amount: Decimal) -> Decimal:
    """Round half-up at the cent boundary."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class PricingEngine:
    """Applies the configured discount multipliers to a base price."""

    def __init__(self, config: LeasingConfig):
        self._config = config

    def long_term_multiplier(self, duration_months: int) -> Decimal:
        if duration_months >= self._config.long_term_threshold:
            return self._config.long_term_discount
        return NO_DISCOUNT

    def employee_multiplier(self, tier: EmployeeTier | str) -> Decimal:
        key = tier.value if isinstance(tier, EmployeeTier) else str(tier).upper()
        return self._config.employee_discounts.get(key, NO_DISCOUNT)

    def calculate_cost(
        self,
        base_price: Decimal,
        start_date: datetime,
        end_date: datetime,
        employee_tier: EmployeeTier | str,
    ) -> Decimal:
        """Return the discounted total cost rounded to cents."""
        months = duration_in_months(start_date, end_date)
        long_term = self.long_term_multiplier(months)
        employee = self.employee_multiplier(employee_tier)
        total = round_currency(Decimal(str(base_price)) * long_term * employee)

        logger.debug(
            "Cost calculation completed",
            extra=log_context(
                base_price=str(base_price),
                duration_months=months,
                long_term_multiplier=str(long_term),
                employee_multiplier=str(employee),
                total_cost=str(total),
            ),
        )
        return total
