"""/v1/schemes/{scheme_id}/payments - record, edit, reverse and archive installments"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from scheme_tracker.api.dependencies import get_request_id, get_scheme_service, unit_of_work
from scheme_tracker.api.v1.schemas import (
    ArchiveRequest,
    BatchRecordRequest,
    BatchRecordResponse,
    DuePaymentSchema,
    DuePaymentsResponse,
    EditPaymentRequest,
    RecordPaymentRequest,
    SchemeResponse,
)
from scheme_tracker.infrastructure.database.session import get_db
from scheme_tracker.services.schemes import SchemeService

router = APIRouter()


@router.get("/payments/due", response_model=DuePaymentsResponse)
def list_due_payments(service: SchemeService = Depends(get_scheme_service)):
    """Next payable installment of every Active/Overdue scheme, earliest due first"""
    return DuePaymentsResponse(payments=[DuePaymentSchema.model_validate(d) for d in service.list_due_payments()])


# Declared before /{payment_id} so "batch" is not captured as a payment id
@router.post("/schemes/{scheme_id}/payments/batch", response_model=BatchRecordResponse)
def record_batch(
    scheme_id: str,
    body: BatchRecordRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """
    Pay several consecutive months of one scheme.

    Installments are filled strictly in order, one monthly amount each.
    """
    with unit_of_work(db, get_request_id(request)):
        outcome = service.record_next_payments(
            scheme_id, body.months, payment_date=body.payment_date, modes=body.modes
        )
    return BatchRecordResponse.model_validate(outcome)


@router.post("/schemes/{scheme_id}/payments/{payment_id}", response_model=SchemeResponse)
def record_payment(
    scheme_id: str,
    payment_id: str,
    body: RecordPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """
    Record a payment against an installment.

    Returns 409 if an earlier installment is still unpaid.
    """
    with unit_of_work(db, get_request_id(request)):
        scheme = service.record_payment(
            scheme_id,
            payment_id,
            amount_paid_cents=body.amount_paid_cents,
            payment_date=body.payment_date,
            modes=body.modes,
        )
    return SchemeResponse.model_validate(scheme)


@router.patch("/schemes/{scheme_id}/payments/{payment_id}", response_model=SchemeResponse)
def edit_payment(
    scheme_id: str,
    payment_id: str,
    body: EditPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.edit_payment(
            scheme_id,
            payment_id,
            amount_paid_cents=body.amount_paid_cents,
            payment_date=body.payment_date,
            modes=body.modes,
        )
    return SchemeResponse.model_validate(scheme)


@router.delete("/schemes/{scheme_id}/payments/{payment_id}", response_model=SchemeResponse)
def reverse_payment(
    scheme_id: str,
    payment_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """Clear a recorded payment; the installment stays in the schedule"""
    with unit_of_work(db, get_request_id(request)):
        scheme = service.reverse_payment(scheme_id, payment_id)
    return SchemeResponse.model_validate(scheme)


@router.post("/schemes/{scheme_id}/payments/{payment_id}/archive", response_model=SchemeResponse)
def archive_payment(
    scheme_id: str,
    payment_id: str,
    body: ArchiveRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.archive_payment(scheme_id, payment_id, archived_date=body.archived_date)
    return SchemeResponse.model_validate(scheme)


@router.post("/schemes/{scheme_id}/payments/{payment_id}/unarchive", response_model=SchemeResponse)
def unarchive_payment(
    scheme_id: str,
    payment_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.unarchive_payment(scheme_id, payment_id)
    return SchemeResponse.model_validate(scheme)
