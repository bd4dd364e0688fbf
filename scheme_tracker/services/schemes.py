"""Scheme and payment operations: every mutation ends with a full status/totals refresh"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Set

from scheme_tracker.config import settings
from scheme_tracker.domain.exceptions import (
    IneligibleForDeletionError,
    InvalidSchemeError,
    InvalidPaymentError,
    PaymentNotFoundError,
    PaymentOrderError,
    SchemeNotFoundError,
    SchemeStateError,
)
from scheme_tracker.domain.models import (
    BatchRecordDetail,
    BatchRecordOutcome,
    DuePayment,
    GroupSummary,
    Payment,
    PaymentMode,
    PaymentStatus,
    Result,
    Scheme,
    SchemeStatus,
)
from scheme_tracker.domain.repository import SchemeRepository
from scheme_tracker.domain.schedule import build_scheme, validate_scheme
from scheme_tracker.domain.status import (
    can_delete_scheme,
    derive_payment_status,
    find_next_recordable_payment,
    is_recordable,
    refresh_scheme,
)
from scheme_tracker.infrastructure.observability.logging import log_scheme_event
from scheme_tracker.infrastructure.observability.metrics import (
    payments_reversed_counter,
    record_payment_modes,
    scheme_deletions_counter,
    schemes_archived_counter,
    schemes_closed_counter,
    schemes_created_counter,
)
from scheme_tracker.utils.date_utils import parse_date

logger = logging.getLogger(__name__)

LIVE_STATUSES = frozenset({SchemeStatus.ACTIVE, SchemeStatus.OVERDUE})
FROZEN_STATUSES = frozenset({SchemeStatus.CLOSED, SchemeStatus.ARCHIVED})


class SchemeService:
    """
    Operator actions on schemes.

    The service owns no state: schemes are loaded from the repository, changed,
    run through the status engine and written back.
    """

    def __init__(self, repository: SchemeRepository, today: Callable[[], date] = date.today):
        self.repository = repository
        self._today = today

    # Loading and saving

    def _load(self, scheme_id: str) -> Scheme:
        scheme = self.repository.get(scheme_id)
        if scheme is None:
            raise SchemeNotFoundError(f"Scheme {scheme_id} not found")
        validate_scheme(scheme)
        return refresh_scheme(scheme, self._today())

    def _save(self, scheme: Scheme, step: str, **fields) -> Scheme:
        refresh_scheme(scheme, self._today())
        saved = self.repository.put(scheme)
        log_scheme_event(step, saved.id, saved.status.value, **fields)
        return saved

    @staticmethod
    def _payment(scheme: Scheme, payment_id: str) -> Payment:
        payment = scheme.find_payment(payment_id)
        if payment is None:
            raise PaymentNotFoundError(f"Payment {payment_id} not found in scheme {scheme.id}")
        return payment

    @staticmethod
    def _require_open(scheme: Scheme, action: str) -> None:
        if scheme.status in FROZEN_STATUSES:
            raise SchemeStateError(f"Cannot {action}: scheme {scheme.id} is {scheme.status.value}")

    # Schemes

    def create_scheme(
        self,
        customer_name: str,
        start_date: date | str,
        monthly_amount_cents: int,
        duration_months: Optional[int] = None,
        customer_phone: Optional[str] = None,
        customer_address: Optional[str] = None,
        customer_group_name: Optional[str] = None,
    ) -> Scheme:
        scheme = build_scheme(
            customer_name=customer_name,
            start_date=start_date,
            monthly_amount_cents=monthly_amount_cents,
            duration_months=settings.default_duration_months if duration_months is None else duration_months,
            customer_phone=customer_phone,
            customer_address=customer_address,
            customer_group_name=customer_group_name,
            today=self._today(),
        )
        schemes_created_counter.inc()
        return self._save(scheme, "scheme_created")

    def get_scheme(self, scheme_id: str) -> Scheme:
        return self._load(scheme_id)

    def list_schemes(self, include_archived: bool = False) -> List[Scheme]:
        today = self._today()
        return [refresh_scheme(s, today) for s in self.repository.list(include_archived=include_archived)]

    def update_customer_details(
        self,
        scheme_id: str,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        customer_address: Optional[str] = None,
    ) -> Scheme:
        """Change descriptive customer fields; None leaves a field as it is, "" clears phone/address"""
        scheme = self._load(scheme_id)
        if customer_name is not None:
            if not customer_name.strip():
                raise InvalidSchemeError("customer_name cannot be blank")
            scheme.customer_name = customer_name.strip()
        if customer_phone is not None:
            scheme.customer_phone = customer_phone.strip() or None
        if customer_address is not None:
            scheme.customer_address = customer_address.strip() or None
        return self._save(scheme, "customer_updated")

    def assign_group(self, scheme_id: str, group_name: Optional[str]) -> Scheme:
        """Move a scheme into a customer group; an empty name removes it from its group"""
        scheme = self._load(scheme_id)
        scheme.customer_group_name = (group_name or "").strip() or None
        return self._save(scheme, "group_assigned", group_name=scheme.customer_group_name)

    def delete_scheme(self, scheme_id: str) -> Result[Scheme, IneligibleForDeletionError]:
        """
        Permanently delete a Closed or Archived scheme.

        Live schemes are not deleted: the result carries an
        IneligibleForDeletionError naming the current status instead.
        """
        scheme = self._load(scheme_id)
        if not can_delete_scheme(scheme, self._today()):
            scheme_deletions_counter.labels(outcome="rejected").inc()
            logger.warning(
                "Deletion rejected",
                extra={"scheme_id": scheme_id, "scheme_status": scheme.status.value},
            )
            return Result.failure(IneligibleForDeletionError(scheme_id, scheme.status.value))

        self.repository.delete(scheme_id)
        scheme_deletions_counter.labels(outcome="deleted").inc()
        log_scheme_event("scheme_deleted", scheme_id, scheme.status.value)
        return Result.success(scheme)

    # Payments

    def record_payment(
        self,
        scheme_id: str,
        payment_id: str,
        amount_paid_cents: Optional[int] = None,
        payment_date: date | str | None = None,
        modes: Optional[Iterable[PaymentMode]] = None,
    ) -> Scheme:
        """
        Record money against the next payable installment.

        Only the earliest unpaid month can be recorded. The amount defaults to
        the installment's expected amount; a full payment without a date is
        dated today.

        Raises:
            PaymentOrderError: Installment already paid, or an earlier one is unpaid
            SchemeStateError: Scheme is Closed/Archived, or the installment is archived
        """
        scheme = self._load(scheme_id)
        self._require_open(scheme, "record payment")
        payment = self._payment(scheme, payment_id)
        index = scheme.payments.index(payment)

        if payment.is_archived:
            raise SchemeStateError(f"Payment {payment_id} is archived")
        if payment.status == PaymentStatus.PAID:
            raise PaymentOrderError(f"Month {payment.month_number} is already paid")
        if not is_recordable(scheme, index, self._today()):
            blocking = find_next_recordable_payment(scheme, self._today())
            month = scheme.payments[blocking].month_number if blocking is not None else "?"
            raise PaymentOrderError(
                f"Month {payment.month_number} cannot be recorded before month {month} is paid"
            )

        amount = payment.amount_expected_cents if amount_paid_cents is None else amount_paid_cents
        self._fill(payment, amount, payment_date, modes)
        return self._save(scheme, "payment_recorded", month_number=payment.month_number, amount_cents=amount)

    def _fill(
        self,
        payment: Payment,
        amount_cents: int,
        payment_date: date | str | None,
        modes: Optional[Iterable[PaymentMode]],
    ) -> None:
        if amount_cents <= 0:
            raise InvalidPaymentError(f"amount_paid_cents must be positive, got {amount_cents}")

        payment.amount_paid_cents = amount_cents
        if payment_date is not None:
            payment.payment_date = parse_date(payment_date, "payment_date")
        elif amount_cents >= payment.amount_expected_cents:
            payment.payment_date = self._today()
        payment.mode_of_payment = set(modes) if modes else None
        record_payment_modes(payment.mode_of_payment)

    def edit_payment(
        self,
        scheme_id: str,
        payment_id: str,
        amount_paid_cents: Optional[int] = None,
        payment_date: date | str | None = None,
        modes: Optional[Iterable[PaymentMode]] = None,
    ) -> Scheme:
        """Correct the details of an already recorded installment; unspecified fields are kept"""
        scheme = self._load(scheme_id)
        self._require_open(scheme, "edit payment")
        payment = self._payment(scheme, payment_id)
        if payment.amount_paid_cents is None:
            raise PaymentOrderError(f"Month {payment.month_number} has no recorded payment to edit")

        if amount_paid_cents is not None:
            if amount_paid_cents <= 0:
                raise InvalidPaymentError(f"amount_paid_cents must be positive, got {amount_paid_cents}")
            payment.amount_paid_cents = amount_paid_cents
        if payment_date is not None:
            payment.payment_date = parse_date(payment_date, "payment_date")
        if modes is not None:
            payment.mode_of_payment = set(modes) or None
        return self._save(scheme, "payment_edited", month_number=payment.month_number)

    def reverse_payment(self, scheme_id: str, payment_id: str) -> Scheme:
        """Clear a recorded installment back to unpaid; the row stays in the schedule"""
        scheme = self._load(scheme_id)
        self._require_open(scheme, "reverse payment")
        payment = self._payment(scheme, payment_id)
        payment.clear_recorded()
        payments_reversed_counter.inc()
        return self._save(scheme, "payment_reversed", month_number=payment.month_number)

    def record_next_payments(
        self,
        scheme_id: str,
        months: int,
        payment_date: date | str | None = None,
        modes: Optional[Iterable[PaymentMode]] = None,
    ) -> BatchRecordOutcome:
        """
        Pay `months` consecutive installments of one scheme, one monthly amount each.

        Each round records the scheme's next recordable month. The loop stops
        when nothing is left to record, or when a round leaves its month unpaid
        (an installment expecting more than the monthly amount), since every
        later month is then blocked.
        """
        if months <= 0:
            raise InvalidPaymentError(f"months must be positive, got {months}")

        scheme = self._load(scheme_id)
        self._require_open(scheme, "record payments")
        today = self._today()
        modes = set(modes) if modes else None
        detail = BatchRecordDetail(scheme_id=scheme.id, customer_name=scheme.customer_name, outcome="Paid")

        for _ in range(months):
            index = find_next_recordable_payment(scheme, today)
            if index is None:
                break
            payment = scheme.payments[index]
            self._fill(payment, scheme.monthly_amount_cents, payment_date, modes)
            detail.month_numbers.append(payment.month_number)
            detail.amount_cents += scheme.monthly_amount_cents
            if derive_payment_status(payment, scheme.start_date, today) != PaymentStatus.PAID:
                break

        outcome = BatchRecordOutcome(details=[detail])
        if detail.month_numbers:
            self._save(scheme, "batch_recorded", month_numbers=detail.month_numbers)
            outcome.success_count = len(detail.month_numbers)
            outcome.total_recorded_cents = detail.amount_cents
        else:
            detail.outcome = "Skipped - No due payment found"
            outcome.skipped_count = 1
        return outcome

    def record_next_payments_for_group(
        self,
        group_name: str,
        payment_date: date | str | None = None,
        modes: Optional[Iterable[PaymentMode]] = None,
    ) -> BatchRecordOutcome:
        """Record the next recordable installment of every Active/Overdue scheme in a group"""
        outcome = BatchRecordOutcome()
        today = self._today()
        modes = set(modes) if modes else None

        for scheme in self.list_schemes():
            if scheme.customer_group_name != group_name:
                continue
            detail = BatchRecordDetail(scheme_id=scheme.id, customer_name=scheme.customer_name, outcome="Paid")
            outcome.details.append(detail)

            if scheme.status not in LIVE_STATUSES:
                detail.outcome = "Skipped - Scheme not active/overdue"
                outcome.skipped_count += 1
                continue
            index = find_next_recordable_payment(scheme, today)
            if index is None:
                detail.outcome = "Skipped - No due payment found"
                outcome.skipped_count += 1
                continue

            payment = scheme.payments[index]
            self._fill(payment, payment.amount_expected_cents, payment_date, modes)
            self._save(scheme, "group_payment_recorded", group_name=group_name, month_number=payment.month_number)

            detail.month_numbers.append(payment.month_number)
            detail.amount_cents = payment.amount_expected_cents
            outcome.success_count += 1
            outcome.total_recorded_cents += payment.amount_expected_cents

        return outcome

    def archive_payment(self, scheme_id: str, payment_id: str, archived_date: date | str | None = None) -> Scheme:
        """Hide one installment from active views and totals"""
        scheme = self._load(scheme_id)
        self._require_open(scheme, "archive payment")
        payment = self._payment(scheme, payment_id)
        payment.is_archived = True
        payment.archived_date = parse_date(archived_date, "archived_date") if archived_date else self._today()
        return self._save(scheme, "payment_archived", month_number=payment.month_number)

    def unarchive_payment(self, scheme_id: str, payment_id: str) -> Scheme:
        scheme = self._load(scheme_id)
        self._require_open(scheme, "unarchive payment")
        payment = self._payment(scheme, payment_id)
        payment.is_archived = False
        payment.archived_date = None
        return self._save(scheme, "payment_unarchived", month_number=payment.month_number)

    def list_due_payments(self) -> List[DuePayment]:
        """Next recordable installment of every Active/Overdue scheme, earliest due first"""
        today = self._today()
        due = []
        for scheme in self.list_schemes():
            if scheme.status not in LIVE_STATUSES:
                continue
            index = find_next_recordable_payment(scheme, today)
            if index is None:
                continue
            payment = scheme.payments[index]
            due.append(
                DuePayment(
                    scheme_id=scheme.id,
                    customer_name=scheme.customer_name,
                    customer_group_name=scheme.customer_group_name,
                    payment_id=payment.id,
                    month_number=payment.month_number,
                    due_date=payment.due_date,
                    amount_expected_cents=payment.amount_expected_cents,
                    status=payment.status,
                )
            )
        return sorted(due, key=lambda d: (d.due_date, d.customer_name))

    # Closure and archival

    def close_scheme(
        self,
        scheme_id: str,
        closure_date: date | str | None = None,
        modes: Optional[Iterable[PaymentMode]] = None,
    ) -> Scheme:
        """
        Close a scheme, settling every unpaid installment in full on the closure date.

        Settled installments carry the System Closure mode (or `modes`) so that
        reopening can tell them apart from real payments.
        """
        scheme = self._load(scheme_id)
        self._require_open(scheme, "close scheme")
        closed_on = parse_date(closure_date, "closure_date") if closure_date else self._today()
        closure_modes = set(modes) if modes else {PaymentMode.SYSTEM_CLOSURE}

        settled = 0
        for payment in scheme.payments:
            if payment.is_archived or payment.status == PaymentStatus.PAID:
                continue
            payment.amount_paid_cents = payment.amount_expected_cents
            payment.payment_date = closed_on
            payment.mode_of_payment = set(closure_modes)
            settled += 1

        scheme.closure_date = closed_on
        schemes_closed_counter.inc()
        return self._save(scheme, "scheme_closed", settled_payments=settled, closure_date=closed_on.isoformat())

    def reopen_scheme(self, scheme_id: str) -> Scheme:
        """Undo a closure: installments settled by the closure go back to unpaid"""
        scheme = self._load(scheme_id)
        if scheme.status != SchemeStatus.CLOSED:
            raise SchemeStateError(f"Cannot reopen: scheme {scheme_id} is {scheme.status.value}")

        for payment in scheme.payments:
            if (
                payment.payment_date == scheme.closure_date
                and payment.mode_of_payment
                and PaymentMode.SYSTEM_CLOSURE in payment.mode_of_payment
            ):
                payment.clear_recorded()

        scheme.closure_date = None
        return self._save(scheme, "scheme_reopened")

    def archive_scheme(self, scheme_id: str, archived_date: date | str | None = None, trigger: str = "manual") -> Scheme:
        """Move a Closed scheme to the archive"""
        scheme = self._load(scheme_id)
        if scheme.status != SchemeStatus.CLOSED:
            raise SchemeStateError(f"Cannot archive: scheme {scheme_id} is {scheme.status.value}, not Closed")
        scheme.archived_date = parse_date(archived_date, "archived_date") if archived_date else self._today()
        schemes_archived_counter.labels(trigger=trigger).inc()
        return self._save(scheme, "scheme_archived", trigger=trigger)

    def unarchive_scheme(self, scheme_id: str) -> Scheme:
        """Bring an archived scheme back; it returns as Closed"""
        scheme = self._load(scheme_id)
        if scheme.status != SchemeStatus.ARCHIVED:
            raise SchemeStateError(f"Cannot unarchive: scheme {scheme_id} is {scheme.status.value}")
        scheme.archived_date = None
        return self._save(scheme, "scheme_unarchived")

    def auto_archive_closed_schemes(self, grace_period_days: Optional[int] = None) -> int:
        """Archive Closed schemes whose closure is at least `grace_period_days` old; returns how many"""
        grace = settings.auto_archive_grace_days if grace_period_days is None else grace_period_days
        cutoff = self._today() - timedelta(days=grace)

        archived = 0
        for scheme in self.list_schemes():
            if scheme.status == SchemeStatus.CLOSED and scheme.closure_date and scheme.closure_date <= cutoff:
                self.archive_scheme(scheme.id, trigger="auto")
                archived += 1

        logger.info("Auto-archive finished", extra={"archived_count": archived, "grace_period_days": grace})
        return archived

    # Groups

    def list_group_names(self) -> List[str]:
        """Sorted unique group names of non-archived schemes"""
        return sorted({s.customer_group_name for s in self.repository.list() if s.customer_group_name})

    def summarize_groups(self) -> List[GroupSummary]:
        today = self._today()
        grouped: Dict[str, List[Scheme]] = defaultdict(list)
        for scheme in self.list_schemes():
            if scheme.customer_group_name:
                grouped[scheme.customer_group_name].append(scheme)

        summaries = []
        for name in sorted(grouped):
            schemes = grouped[name]
            customers: Set[str] = {s.customer_name for s in schemes}
            summaries.append(
                GroupSummary(
                    group_name=name,
                    scheme_count=len(schemes),
                    customer_names=sorted(customers),
                    recordable_scheme_count=sum(
                        1
                        for s in schemes
                        if s.status in LIVE_STATUSES and find_next_recordable_payment(s, today) is not None
                    ),
                    total_collected_cents=sum(s.total_collected_cents for s in schemes),
                    total_remaining_cents=sum(s.total_remaining_cents for s in schemes),
                )
            )
        return summaries
