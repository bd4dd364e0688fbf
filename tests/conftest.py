"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from scheme_tracker.api.dependencies import get_scheme_service
from scheme_tracker.api.main import create_app
from scheme_tracker.domain.models import Scheme
from scheme_tracker.domain.schedule import build_scheme
from scheme_tracker.infrastructure.database.models import Base
from scheme_tracker.infrastructure.database.repositories import SqlSchemeRepository
from scheme_tracker.infrastructure.database.session import get_db
from scheme_tracker.infrastructure.memory.repository import InMemorySchemeRepository
from scheme_tracker.services.schemes import SchemeService
from scheme_tracker.utils.date_utils import add_months

# Every test runs against this calendar day
TODAY = date(2024, 6, 15)

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def months_ago(months: int) -> date:
    return add_months(TODAY, -months)


def pay_months(scheme: Scheme, count: int) -> Scheme:
    """Mark the first `count` installments paid in full on their due dates"""
    for payment in scheme.payments[:count]:
        payment.amount_paid_cents = payment.amount_expected_cents
        payment.payment_date = payment.due_date
    return scheme


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture(name="months_ago")
def months_ago_fixture():
    return months_ago


@pytest.fixture(name="pay_months")
def pay_months_fixture():
    return pay_months


@pytest.fixture
def make_scheme():
    """Factory for validated schemes (monthly amount 1000.00, 12 months by default)"""

    def _make(start_date: date, monthly_amount_cents: int = 100_000, duration_months: int = 12, **kwargs) -> Scheme:
        return build_scheme(
            customer_name=kwargs.pop("customer_name", "Asha Verma"),
            start_date=start_date,
            monthly_amount_cents=monthly_amount_cents,
            duration_months=duration_months,
            today=TODAY,
            **kwargs,
        )

    return _make


@pytest.fixture
def repository() -> InMemorySchemeRepository:
    return InMemorySchemeRepository()


@pytest.fixture
def service(repository: InMemorySchemeRepository) -> SchemeService:
    """Scheme service over in-memory storage, pinned to TODAY"""
    return SchemeService(repository, today=lambda: TODAY)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a pinned calendar day"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_scheme_service():
        return SchemeService(SqlSchemeRepository(db), today=lambda: TODAY)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheme_service] = override_get_scheme_service
    return TestClient(app)
