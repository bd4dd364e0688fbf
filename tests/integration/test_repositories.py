"""Integration tests for the SQLAlchemy scheme repository"""

import pytest
from sqlalchemy.orm import Session
from scheme_tracker.domain.models import PaymentMode, PaymentStatus, SchemeStatus
from scheme_tracker.domain.status import refresh_scheme
from scheme_tracker.infrastructure.database.models import PaymentRecord
from scheme_tracker.infrastructure.database.repositories import SqlSchemeRepository

pytestmark = pytest.mark.integration


def test_put_and_get_roundtrip(db: Session, make_scheme, months_ago, pay_months, today):
    repo = SqlSchemeRepository(db)
    scheme = pay_months(make_scheme(months_ago(4), customer_group_name="Office", customer_phone="555-0100"), 2)
    scheme.payments[0].mode_of_payment = {PaymentMode.CASH, PaymentMode.UPI}
    refresh_scheme(scheme, today)

    repo.put(scheme)
    db.commit()
    loaded = repo.get(scheme.id)

    assert loaded == scheme
    assert loaded.payments[0].mode_of_payment == {PaymentMode.CASH, PaymentMode.UPI}
    assert loaded.status == SchemeStatus.OVERDUE
    assert [p.month_number for p in loaded.payments] == list(range(1, 13))


def test_put_updates_existing_payment_rows(db: Session, make_scheme, today):
    repo = SqlSchemeRepository(db)
    scheme = make_scheme(today)
    repo.put(scheme)
    db.commit()

    scheme.payments[0].amount_paid_cents = 100_000
    scheme.payments[0].payment_date = today
    refresh_scheme(scheme, today)
    repo.put(scheme)
    db.commit()

    loaded = repo.get(scheme.id)
    assert loaded.payments[0].status == PaymentStatus.PAID
    assert loaded.payments_made_count == 1
    assert db.query(PaymentRecord).count() == 12


def test_get_missing_returns_none(db: Session):
    assert SqlSchemeRepository(db).get("missing") is None


def test_list_orders_and_filters_archived(db: Session, make_scheme, months_ago, today):
    repo = SqlSchemeRepository(db)
    older = make_scheme(months_ago(3), customer_name="Older")
    newer = make_scheme(today, customer_name="Newer")
    archived = make_scheme(months_ago(1), customer_name="Gone")
    archived.archived_date = today
    for scheme in (older, newer, archived):
        repo.put(scheme)
    db.commit()

    assert [s.customer_name for s in repo.list()] == ["Newer", "Older"]
    assert [s.customer_name for s in repo.list(include_archived=True)] == ["Newer", "Gone", "Older"]


def test_delete_cascades_to_payments(db: Session, make_scheme, today):
    repo = SqlSchemeRepository(db)
    scheme = make_scheme(today)
    repo.put(scheme)
    db.commit()

    assert repo.delete(scheme.id) is True
    db.commit()

    assert repo.get(scheme.id) is None
    assert db.query(PaymentRecord).count() == 0
    assert repo.delete(scheme.id) is False
