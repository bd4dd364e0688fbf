"""Dependency injection for FastAPI endpoints"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from scheme_tracker.domain.exceptions import (
    DomainException,
    InvalidDateError,
    InvalidPaymentError,
    InvalidSchemeError,
    PaymentNotFoundError,
    PaymentOrderError,
    SchemeNotFoundError,
    SchemeStateError,
)
from scheme_tracker.infrastructure.database.repositories import SqlSchemeRepository
from scheme_tracker.infrastructure.database.session import get_db
from scheme_tracker.services.schemes import SchemeService

# Domain failures → HTTP status
ERROR_STATUS = {
    SchemeNotFoundError: 404,
    PaymentNotFoundError: 404,
    InvalidSchemeError: 422,
    InvalidPaymentError: 422,
    InvalidDateError: 422,
    PaymentOrderError: 409,
    SchemeStateError: 409,
}


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_scheme_service(db: Session = Depends(get_db)) -> SchemeService:
    """Provide a scheme service bound to the request's database session"""
    return SchemeService(SqlSchemeRepository(db))


@contextmanager
def unit_of_work(db: Session, request_id: str = "unknown") -> Iterator[None]:
    """
    Commit on success; roll back and translate errors otherwise.

    Domain errors become 4xx responses, anything else a 500.
    """
    try:
        yield
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except DomainException as e:
        db.rollback()
        status_code = ERROR_STATUS.get(type(e), 400)
        logging.warning(f"Rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=status_code, detail=str(e))
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
