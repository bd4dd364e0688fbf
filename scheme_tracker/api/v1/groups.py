"""/v1/groups - customer group listing, summaries and group batch recording"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from scheme_tracker.api.dependencies import get_request_id, get_scheme_service, unit_of_work
from scheme_tracker.api.v1.schemas import (
    BatchRecordResponse,
    GroupBatchRequest,
    GroupListResponse,
    GroupSummaryResponse,
    GroupSummarySchema,
)
from scheme_tracker.infrastructure.database.session import get_db
from scheme_tracker.services.schemes import SchemeService

router = APIRouter()


@router.get("/groups", response_model=GroupListResponse)
def list_groups(service: SchemeService = Depends(get_scheme_service)):
    return GroupListResponse(groups=service.list_group_names())


@router.get("/groups/summary", response_model=GroupSummaryResponse)
def summarize_groups(service: SchemeService = Depends(get_scheme_service)):
    """Per-group scheme counts, recordable schemes and money totals"""
    return GroupSummaryResponse(
        groups=[GroupSummarySchema.model_validate(g) for g in service.summarize_groups()]
    )


@router.post("/groups/{group_name}/payments", response_model=BatchRecordResponse)
def record_group_payments(
    group_name: str,
    body: GroupBatchRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """
    Record the next due installment of every Active/Overdue scheme in the group.

    Schemes that are not live, or have nothing to record, are reported as skipped.
    """
    with unit_of_work(db, get_request_id(request)):
        outcome = service.record_next_payments_for_group(
            group_name, payment_date=body.payment_date, modes=body.modes
        )
    return BatchRecordResponse.model_validate(outcome)
