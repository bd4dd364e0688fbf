"""Scheme creation and monthly payment schedule generation"""

import uuid
from datetime import date
from typing import List, Optional

from scheme_tracker.domain.exceptions import InvalidSchemeError
from scheme_tracker.domain.models import Payment, Scheme
from scheme_tracker.domain.status import calculate_due_date, refresh_scheme
from scheme_tracker.utils.date_utils import parse_date


def generate_payment_schedule(
    scheme_id: str,
    start_date: date,
    monthly_amount_cents: int,
    duration_months: int,
) -> List[Payment]:
    """
    Generate one unpaid installment per month of the scheme.

    Requirements:
    - Exactly `duration_months` rows, month numbers 1..duration_months
    - Each due on the start's day-of-month, `month_number` months later
      (clamped to month end)
    - Each expecting the full monthly amount

    Example:
        start 2024-01-31, 3 months →
        [2024-02-29, 2024-03-31, 2024-04-30]
    """
    return [
        Payment(
            id=f"{scheme_id}-month-{month_number}",
            scheme_id=scheme_id,
            month_number=month_number,
            due_date=calculate_due_date(start_date, month_number),
            amount_expected_cents=monthly_amount_cents,
        )
        for month_number in range(1, duration_months + 1)
    ]


def build_scheme(
    customer_name: str,
    start_date: date | str,
    monthly_amount_cents: int,
    duration_months: int = 12,
    customer_phone: Optional[str] = None,
    customer_address: Optional[str] = None,
    customer_group_name: Optional[str] = None,
    scheme_id: Optional[str] = None,
    today: date | None = None,
) -> Scheme:
    """
    Create a validated scheme with its full payment schedule and derived fields.

    Raises:
        InvalidSchemeError: Blank name, non-positive amount or duration
        InvalidDateError: Missing or unparsable start date
    """
    if not customer_name or not customer_name.strip():
        raise InvalidSchemeError("customer_name is required")
    if monthly_amount_cents <= 0:
        raise InvalidSchemeError(f"monthly_amount_cents must be positive, got {monthly_amount_cents}")
    if duration_months <= 0:
        raise InvalidSchemeError(f"duration_months must be positive, got {duration_months}")

    start = parse_date(start_date, "start_date")
    scheme_id = scheme_id or uuid.uuid4().hex[:12]

    scheme = Scheme(
        id=scheme_id,
        customer_name=customer_name.strip(),
        start_date=start,
        monthly_amount_cents=monthly_amount_cents,
        duration_months=duration_months,
        payments=generate_payment_schedule(scheme_id, start, monthly_amount_cents, duration_months),
        customer_phone=customer_phone or None,
        customer_address=customer_address or None,
        customer_group_name=(customer_group_name or "").strip() or None,
    )
    validate_scheme(scheme)
    return refresh_scheme(scheme, today)


def validate_scheme(scheme: Scheme) -> None:
    """
    Check the structural invariants the status engine relies on.

    Raises:
        InvalidSchemeError: Wrong number of payment rows, rows out of month order,
            or non-positive amount/duration
    """
    if scheme.monthly_amount_cents <= 0:
        raise InvalidSchemeError(f"Scheme {scheme.id}: monthly amount must be positive")
    if scheme.duration_months <= 0:
        raise InvalidSchemeError(f"Scheme {scheme.id}: duration must be positive")
    if len(scheme.payments) != scheme.duration_months:
        raise InvalidSchemeError(
            f"Scheme {scheme.id}: expected {scheme.duration_months} payments, found {len(scheme.payments)}"
        )

    month_numbers = [p.month_number for p in scheme.payments]
    if month_numbers != list(range(1, scheme.duration_months + 1)):
        raise InvalidSchemeError(f"Scheme {scheme.id}: payment months out of order: {month_numbers}")
