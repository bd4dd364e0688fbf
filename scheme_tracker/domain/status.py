"""
Status and totals engine.

Every figure shown for a scheme (payment badges, scheme status, collected and
remaining amounts, the next payment a customer may pay) comes from these
functions. They are pure: the same scheme and the same `today` always give the
same answer, and nothing here reads or writes storage.
"""

import copy
from datetime import date
from typing import List, Optional

from scheme_tracker.domain.models import (
    Payment,
    PaymentStatus,
    Scheme,
    SchemeStatus,
    SchemeTotals,
)
from scheme_tracker.utils.date_utils import add_months, parse_date

DELETABLE_STATUSES = frozenset({SchemeStatus.CLOSED, SchemeStatus.ARCHIVED})


def calculate_due_date(start_date: date, month_number: int) -> date:
    """
    Due date of installment `month_number` (1-based).

    Same day-of-month as the start, `month_number` months later. Short months
    clamp to their last day: a scheme started Jan 31 is due Feb 28/29, Mar 31,
    Apr 30, ...
    """
    # Month 1 is due one month after start, never on the start date itself
    return add_months(parse_date(start_date, "start_date"), month_number)


def derive_payment_status(payment: Payment, scheme_start_date: date, today: date | None = None) -> PaymentStatus:
    """
    Classify one installment.

    Rules (first match wins):
    1. Paid at least the expected amount → Paid (partial payments count as unpaid)
    2. Due date strictly before today → Overdue (due today is not yet overdue)
    3. Otherwise → Upcoming
    """
    if payment.amount_paid_cents is not None and payment.amount_paid_cents >= payment.amount_expected_cents:
        return PaymentStatus.PAID

    today = today or date.today()
    due_date = calculate_due_date(scheme_start_date, payment.month_number)
    if due_date < today:
        return PaymentStatus.OVERDUE
    return PaymentStatus.UPCOMING


def _live_payments(scheme: Scheme) -> List[Payment]:
    return [p for p in scheme.payments if not p.is_archived]


def derive_scheme_status(scheme: Scheme, today: date | None = None) -> SchemeStatus:
    """
    Classify a scheme.

    Operator markers override everything else: archived, then closed. After
    that the status follows the payments: fully paid → Completed, not yet
    started → Upcoming, anything overdue → Overdue, else Active.
    """
    if scheme.archived_date is not None:
        return SchemeStatus.ARCHIVED
    if scheme.closure_date is not None:
        return SchemeStatus.CLOSED

    today = today or date.today()
    statuses = [derive_payment_status(p, scheme.start_date, today) for p in _live_payments(scheme)]

    if statuses and all(s == PaymentStatus.PAID for s in statuses):
        return SchemeStatus.COMPLETED
    if today < parse_date(scheme.start_date, "start_date"):
        return SchemeStatus.UPCOMING
    if any(s == PaymentStatus.OVERDUE for s in statuses):
        return SchemeStatus.OVERDUE
    return SchemeStatus.ACTIVE


def calculate_scheme_totals(scheme: Scheme, today: date | None = None) -> SchemeTotals:
    """Recompute collected/remaining/paid-count from scratch over non-archived payments"""
    today = today or date.today()
    collected = 0
    remaining = 0
    paid_count = 0

    for payment in _live_payments(scheme):
        if payment.amount_paid_cents is not None:
            collected += payment.amount_paid_cents
        if derive_payment_status(payment, scheme.start_date, today) == PaymentStatus.PAID:
            paid_count += 1
        else:
            remaining += payment.amount_expected_cents

    return SchemeTotals(
        total_collected_cents=collected,
        total_remaining_cents=remaining,
        payments_made_count=paid_count,
    )


def refresh_scheme(scheme: Scheme, today: date | None = None) -> Scheme:
    """Write derived statuses and totals onto the record (display cache only) and return it"""
    today = today or date.today()
    for payment in scheme.payments:
        payment.status = derive_payment_status(payment, scheme.start_date, today)

    totals = calculate_scheme_totals(scheme, today)
    scheme.status = derive_scheme_status(scheme, today)
    scheme.total_collected_cents = totals.total_collected_cents
    scheme.total_remaining_cents = totals.total_remaining_cents
    scheme.payments_made_count = totals.payments_made_count
    return scheme


def is_recordable(scheme: Scheme, index: int, today: date | None = None) -> bool:
    """
    Whether `scheme.payments[index]` may take a new record.

    Payments are strictly in order: the slot must be unpaid and every earlier
    non-archived slot must be paid. Archived slots never take records.
    """
    if not 0 <= index < len(scheme.payments):
        return False
    today = today or date.today()

    def paid(p: Payment) -> bool:
        return derive_payment_status(p, scheme.start_date, today) == PaymentStatus.PAID

    candidate = scheme.payments[index]
    if candidate.is_archived or paid(candidate):
        return False
    return all(paid(p) for p in scheme.payments[:index] if not p.is_archived)


def find_next_recordable_payment(scheme: Scheme, today: date | None = None) -> Optional[int]:
    """Index of the first recordable payment, or None when the scheme is fully paid"""
    today = today or date.today()
    for index in range(len(scheme.payments)):
        if is_recordable(scheme, index, today):
            return index
    return None


def select_recordable_payments(scheme: Scheme, months: int, today: date | None = None) -> List[int]:
    """
    Indexes a batch of `months` full payments would fill, in order.

    Applies the in-order rule `months` times on a scratch copy, filling each
    selected slot with its expected amount before looking for the next one.
    The scheme passed in is not modified.
    """
    today = today or date.today()
    scratch = copy.deepcopy(scheme)

    selected: List[int] = []
    for _ in range(max(months, 0)):
        index = find_next_recordable_payment(scratch, today)
        if index is None:
            break
        slot = scratch.payments[index]
        slot.amount_paid_cents = slot.amount_expected_cents
        selected.append(index)
    return selected


def can_delete_scheme(scheme: Scheme, today: date | None = None) -> bool:
    """Only Closed or Archived schemes may be permanently deleted"""
    return derive_scheme_status(scheme, today) in DELETABLE_STATUSES
