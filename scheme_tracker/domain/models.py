"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Generic, List, Optional, Set, TypeVar


class PaymentStatus(str, Enum):
    """Derived lifecycle status of one installment"""

    PAID = "Paid"
    UPCOMING = "Upcoming"
    OVERDUE = "Overdue"


class SchemeStatus(str, Enum):
    """Derived lifecycle status of a scheme"""

    UPCOMING = "Upcoming"
    ACTIVE = "Active"
    OVERDUE = "Overdue"
    COMPLETED = "Completed"
    CLOSED = "Closed"
    ARCHIVED = "Archived"


class PaymentMode(str, Enum):
    """
    Payment channel tags.

    New channels are added here; anything not listed is rejected when parsed,
    so status logic that checks for SYSTEM_CLOSURE can't be broken by a typo.
    """

    CASH = "Cash"
    CARD = "Card"
    UPI = "UPI"
    TRANSFER = "Transfer"
    SYSTEM_CLOSURE = "System Closure"
    IMPORTED = "Imported"


@dataclass
class Payment:
    """Single expected monthly installment within a scheme"""

    id: str
    scheme_id: str
    month_number: int  # 1-based
    due_date: date
    amount_expected_cents: int
    amount_paid_cents: Optional[int] = None
    payment_date: Optional[date] = None
    mode_of_payment: Optional[Set[PaymentMode]] = None
    status: PaymentStatus = PaymentStatus.UPCOMING  # display cache, see domain.status
    is_archived: bool = False
    archived_date: Optional[date] = None

    def clear_recorded(self) -> None:
        """Reverse a recorded payment; the installment row itself stays"""
        self.amount_paid_cents = None
        self.payment_date = None
        self.mode_of_payment = None


@dataclass
class Scheme:
    """One customer's enrollment in a fixed-duration monthly payment plan"""

    id: str
    customer_name: str
    start_date: date
    monthly_amount_cents: int
    duration_months: int
    payments: List[Payment] = field(default_factory=list)
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_group_name: Optional[str] = None
    closure_date: Optional[date] = None
    archived_date: Optional[date] = None

    # Derived fields, rewritten by refresh_scheme after every mutation
    status: SchemeStatus = SchemeStatus.UPCOMING
    total_collected_cents: int = 0
    total_remaining_cents: int = 0
    payments_made_count: int = 0

    def find_payment(self, payment_id: str) -> Optional[Payment]:
        return next((p for p in self.payments if p.id == payment_id), None)


@dataclass(frozen=True)
class SchemeTotals:
    """Aggregated money figures for a scheme"""

    total_collected_cents: int
    total_remaining_cents: int
    payments_made_count: int


@dataclass
class GroupSummary:
    """Roll-up of every non-archived scheme sharing a customer group name"""

    group_name: str
    scheme_count: int
    customer_names: List[str]
    recordable_scheme_count: int
    total_collected_cents: int
    total_remaining_cents: int


@dataclass
class BatchRecordDetail:
    """Outcome of batch recording for one scheme"""

    scheme_id: str
    customer_name: str
    outcome: str
    month_numbers: List[int] = field(default_factory=list)
    amount_cents: int = 0


@dataclass
class BatchRecordOutcome:
    """Aggregate result of recording next-due payments across schemes"""

    success_count: int = 0
    skipped_count: int = 0
    total_recorded_cents: int = 0
    details: List[BatchRecordDetail] = field(default_factory=list)


@dataclass
class DuePayment:
    """Next recordable installment of a live scheme"""

    scheme_id: str
    customer_name: str
    customer_group_name: Optional[str]
    payment_id: str
    month_number: int
    due_date: date
    amount_expected_cents: int
    status: PaymentStatus


T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Success value or failure reason, for operations whose failure is an expected outcome"""

    value: Optional[T] = None
    error: Optional[E] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T, E]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: E) -> "Result[T, E]":
        return cls(error=error)
