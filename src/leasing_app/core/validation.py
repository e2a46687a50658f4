"""Input validation rules for agreement creation requests."""

from __future__ import annotations

import json
import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from leasing_app.core.config import LeasingConfig
from leasing_app.core.dates import add_months, parse_iso_datetime, utc_now
from leasing_app.core.errors import ValidationError
from leasing_app.models.agreement import CreateAgreementRequest, Currency, PaymentFrequency

ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
ID_MIN_LENGTH = 3
ID_MAX_LENGTH = 50
MAX_REQUEST_PRICE = Decimal("1000000")
CENT = Decimal("0.01")
METADATA_MAX_CHARS = 10_000
PROHIBITED_MARKERS = ("<script", "javascript:")


def validate_required_text(value: Any, field_name: str) -> str:
    """Validate a non-empty text field and return it stripped."""
    normalized = value.strip() if isinstance(value, str) else ""
    if not normalized:
        raise ValidationError(f"{field_name} is required", field_name, "REQUIRED")
    return normalized


def validate_date(value: Any, field_name: str) -> datetime:
    """Parse an ISO date string, raising REQUIRED or INVALID_FORMAT."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required", field_name, "REQUIRED")
    if not isinstance(value, (str, date)):
        raise ValidationError(f"{field_name} must be a valid ISO date", field_name, "INVALID_FORMAT")
    try:
        return parse_iso_datetime(value)
    except ValueError as error:
        raise ValidationError(
            f"{field_name} must be a valid ISO date", field_name, "INVALID_FORMAT"
        ) from error


def validate_date_range(
    start: datetime,
    end: datetime,
    today: date,
    max_months: int = 60,
    min_days: int = 30,
) -> None:
    """Apply past-date, ordering and duration bounds."""
    if start.date() < today:
        raise ValidationError("Start date cannot be in the past", "startDate", "PAST_DATE")
    if end <= start:
        raise ValidationError("End date must be after start date", "endDate", "INVALID_RANGE")
    if end > add_months(start, max_months):
        raise ValidationError(
            f"Lease duration cannot exceed {max_months // 12} years", "endDate", "DURATION_EXCEEDED"
        )
    if end < start + timedelta(days=min_days):
        raise ValidationError(
            f"Minimum lease duration is {min_days} days", "endDate", "DURATION_TOO_SHORT"
        )


def validate_price(price: Any) -> Decimal:
    """Validate a request price and return it as Decimal."""
    if isinstance(price, bool) or not isinstance(price, (int, float, Decimal)):
        raise ValidationError("Price must be a valid number", "price", "INVALID_TYPE")
    if isinstance(price, float) and not math.isfinite(price):
        raise ValidationError("Price must be a valid number", "price", "INVALID_TYPE")
    try:
        amount = Decimal(str(price))
    except InvalidOperation as error:
        raise ValidationError("Price must be a valid number", "price", "INVALID_TYPE") from error
    if not amount.is_finite():
        raise ValidationError("Price must be a valid number", "price", "INVALID_TYPE")

    if amount <= 0:
        raise ValidationError("Price must be greater than zero", "price", "INVALID_VALUE")
    if amount > MAX_REQUEST_PRICE:
        raise ValidationError("Price cannot exceed 1,000,000", "price", "EXCEEDS_LIMIT")
    if amount != amount.quantize(CENT):
        raise ValidationError(
            "Price cannot have more than 2 decimal places", "price", "INVALID_PRECISION"
        )
    return amount


def validate_currency(currency: Any, supported: frozenset[str]) -> Currency:
    if (
        not isinstance(currency, str)
        or currency not in supported
        or currency not in Currency.__members__
    ):
        raise ValidationError(
            f"Currency must be one of: {', '.join(sorted(supported))}",
            "currency",
            "UNSUPPORTED_CURRENCY",
        )
    return Currency(currency)


def validate_payment_frequency(frequency: Any) -> PaymentFrequency:
    if not isinstance(frequency, str) or frequency not in PaymentFrequency.__members__:
        raise ValidationError(
            "Payment frequency must be one of: MONTHLY, QUARTERLY, ANNUALLY",
            "paymentFrequency",
            "INVALID_FREQUENCY",
        )
    return PaymentFrequency(frequency)


def validate_id_format(value: str, field_name: str) -> str:
    if len(value) < ID_MIN_LENGTH or len(value) > ID_MAX_LENGTH:
        raise ValidationError(
            f"{field_name} must be between {ID_MIN_LENGTH} and {ID_MAX_LENGTH} characters",
            field_name,
            "INVALID_LENGTH",
        )
    if not ID_PATTERN.match(value):
        raise ValidationError(f"{field_name} contains invalid characters", field_name, "INVALID_FORMAT")
    return value


def validate_metadata(metadata: dict[str, Any] | None) -> None:
    """Cap the serialized size and reject script content."""
    if metadata is None:
        return
    if not isinstance(metadata, dict):
        raise ValidationError("Metadata must be a key/value object", "metadata", "INVALID_TYPE")
    serialized = json.dumps(metadata, separators=(",", ":"), ensure_ascii=False, default=str)
    if len(serialized) > METADATA_MAX_CHARS:
        raise ValidationError("Metadata size cannot exceed 10KB", "metadata", "SIZE_EXCEEDED")
    lowered = serialized.lower()
    if any(marker in lowered for marker in PROHIBITED_MARKERS):
        raise ValidationError("Metadata contains prohibited content", "metadata", "PROHIBITED_CONTENT")


def validate_create_request(
    request: CreateAgreementRequest,
    config: LeasingConfig | None = None,
    today: date | None = None,
) -> None:
    """Run every request check in order, raising the first ValidationError."""
    config = config or LeasingConfig()
    today = today or utc_now().date()

    validate_required_text(request.employee_id, "employeeId")
    validate_required_text(request.item_id, "itemId")
    validate_required_text(request.company_id, "companyId")

    start = validate_date(request.start_date, "startDate")
    end = validate_date(request.end_date, "endDate")
    validate_date_range(
        start,
        end,
        today,
        max_months=config.max_leasing_duration,
        min_days=config.min_leasing_duration,
    )

    validate_price(request.price)
    validate_currency(request.currency, config.supported_currencies)
    validate_payment_frequency(request.payment_frequency)

    validate_id_format(request.employee_id, "employeeId")
    validate_id_format(request.item_id, "itemId")
    validate_id_format(request.company_id, "companyId")

    validate_metadata(request.metadata)
