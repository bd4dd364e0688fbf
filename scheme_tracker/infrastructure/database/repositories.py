"""Data access layer for schemes and payments"""

from typing import List, Optional
from sqlalchemy.orm import Session
from scheme_tracker.infrastructure.database.models import SchemeRecord, PaymentRecord
from scheme_tracker.domain.models import Payment, PaymentMode, PaymentStatus, Scheme, SchemeStatus


def _to_payment(row: PaymentRecord) -> Payment:
    return Payment(
        id=row.id,
        scheme_id=row.scheme_id,
        month_number=row.month_number,
        due_date=row.due_date,
        amount_expected_cents=row.amount_expected_cents,
        amount_paid_cents=row.amount_paid_cents,
        payment_date=row.payment_date,
        mode_of_payment={PaymentMode(m) for m in row.mode_of_payment} if row.mode_of_payment else None,
        status=PaymentStatus(row.status),
        is_archived=row.is_archived,
        archived_date=row.archived_date,
    )


def _to_scheme(row: SchemeRecord) -> Scheme:
    return Scheme(
        id=row.id,
        customer_name=row.customer_name,
        start_date=row.start_date,
        monthly_amount_cents=row.monthly_amount_cents,
        duration_months=row.duration_months,
        payments=[_to_payment(p) for p in sorted(row.payments, key=lambda p: p.month_number)],
        customer_phone=row.customer_phone,
        customer_address=row.customer_address,
        customer_group_name=row.customer_group_name,
        closure_date=row.closure_date,
        archived_date=row.archived_date,
        status=SchemeStatus(row.status),
        total_collected_cents=row.total_collected_cents,
        total_remaining_cents=row.total_remaining_cents,
        payments_made_count=row.payments_made_count,
    )


def _apply_payment(row: PaymentRecord, payment: Payment) -> None:
    row.month_number = payment.month_number
    row.due_date = payment.due_date
    row.amount_expected_cents = payment.amount_expected_cents
    row.amount_paid_cents = payment.amount_paid_cents
    row.payment_date = payment.payment_date
    row.mode_of_payment = sorted(m.value for m in payment.mode_of_payment) if payment.mode_of_payment else None
    row.status = payment.status.value
    row.is_archived = payment.is_archived
    row.archived_date = payment.archived_date


class SqlSchemeRepository:
    """Repository for schemes backed by a SQLAlchemy session; the caller commits"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, scheme_id: str) -> Optional[Scheme]:
        """Fetch scheme with its payments"""
        row = self.db.get(SchemeRecord, scheme_id)
        return _to_scheme(row) if row else None

    def list(self, include_archived: bool = False) -> List[Scheme]:
        """Fetch schemes, newest start first"""
        query = self.db.query(SchemeRecord)
        if not include_archived:
            query = query.filter(SchemeRecord.archived_date.is_(None))
        return [_to_scheme(row) for row in query.order_by(SchemeRecord.start_date.desc()).all()]

    def put(self, scheme: Scheme) -> Scheme:
        """Insert or update a scheme together with all of its payment rows"""
        row = self.db.get(SchemeRecord, scheme.id)
        if row is None:
            row = SchemeRecord(id=scheme.id)
            self.db.add(row)

        row.customer_name = scheme.customer_name
        row.customer_phone = scheme.customer_phone
        row.customer_address = scheme.customer_address
        row.customer_group_name = scheme.customer_group_name
        row.start_date = scheme.start_date
        row.monthly_amount_cents = scheme.monthly_amount_cents
        row.duration_months = scheme.duration_months
        row.closure_date = scheme.closure_date
        row.archived_date = scheme.archived_date
        row.status = scheme.status.value
        row.total_collected_cents = scheme.total_collected_cents
        row.total_remaining_cents = scheme.total_remaining_cents
        row.payments_made_count = scheme.payments_made_count

        existing = {p.id: p for p in row.payments}
        kept = []
        for payment in scheme.payments:
            payment_row = existing.get(payment.id) or PaymentRecord(id=payment.id, scheme_id=scheme.id)
            _apply_payment(payment_row, payment)
            kept.append(payment_row)
        row.payments = kept  # delete-orphan drops rows no longer present

        self.db.flush()
        return _to_scheme(row)

    def delete(self, scheme_id: str) -> bool:
        """Delete scheme; payments go with it via cascade"""
        row = self.db.get(SchemeRecord, scheme_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True
