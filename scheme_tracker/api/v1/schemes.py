"""/v1/schemes - create, inspect, close, archive and delete schemes"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from scheme_tracker.api.dependencies import get_request_id, get_scheme_service, unit_of_work
from scheme_tracker.api.v1.schemas import (
    ArchiveRequest,
    AutoArchiveRequest,
    AutoArchiveResponse,
    CloseSchemeRequest,
    CustomerUpdateRequest,
    DeleteSchemeResponse,
    GroupAssignRequest,
    SchemeCreateRequest,
    SchemeListResponse,
    SchemeResponse,
)
from scheme_tracker.infrastructure.database.session import get_db
from scheme_tracker.services.schemes import SchemeService

router = APIRouter()


@router.post("/schemes", response_model=SchemeResponse, status_code=201)
def create_scheme(
    body: SchemeCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """
    Enroll a customer in a new scheme.

    Generates one installment per month of the duration.
    """
    with unit_of_work(db, get_request_id(request)):
        scheme = service.create_scheme(
            customer_name=body.customer_name,
            start_date=body.start_date,
            monthly_amount_cents=body.monthly_amount_cents,
            duration_months=body.duration_months,
            customer_phone=body.customer_phone,
            customer_address=body.customer_address,
            customer_group_name=body.customer_group_name,
        )
    return SchemeResponse.model_validate(scheme)


@router.get("/schemes", response_model=SchemeListResponse)
def list_schemes(
    include_archived: bool = Query(False, description="Include archived schemes"),
    service: SchemeService = Depends(get_scheme_service),
):
    schemes = service.list_schemes(include_archived=include_archived)
    return SchemeListResponse(schemes=[SchemeResponse.model_validate(s) for s in schemes])


@router.get("/schemes/{scheme_id}", response_model=SchemeResponse)
def get_scheme(
    scheme_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.get_scheme(scheme_id)
    return SchemeResponse.model_validate(scheme)


@router.delete("/schemes/{scheme_id}", response_model=DeleteSchemeResponse)
def delete_scheme(
    scheme_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """
    Permanently delete a scheme.

    Returns 409 with the current status unless the scheme is Closed or Archived.
    """
    with unit_of_work(db, get_request_id(request)):
        result = service.delete_scheme(scheme_id)
        if not result.ok:
            raise HTTPException(
                status_code=409,
                detail={"message": str(result.error), "status": result.error.status},
            )
    return DeleteSchemeResponse(scheme_id=scheme_id, deleted=True)


@router.patch("/schemes/{scheme_id}/customer", response_model=SchemeResponse)
def update_customer(
    scheme_id: str,
    body: CustomerUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.update_customer_details(
            scheme_id,
            customer_name=body.customer_name,
            customer_phone=body.customer_phone,
            customer_address=body.customer_address,
        )
    return SchemeResponse.model_validate(scheme)


@router.put("/schemes/{scheme_id}/group", response_model=SchemeResponse)
def assign_group(
    scheme_id: str,
    body: GroupAssignRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.assign_group(scheme_id, body.group_name)
    return SchemeResponse.model_validate(scheme)


@router.post("/schemes/{scheme_id}/close", response_model=SchemeResponse)
def close_scheme(
    scheme_id: str,
    body: CloseSchemeRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """Close a scheme, settling unpaid installments on the closure date"""
    with unit_of_work(db, get_request_id(request)):
        scheme = service.close_scheme(scheme_id, closure_date=body.closure_date, modes=body.modes)
    return SchemeResponse.model_validate(scheme)


@router.post("/schemes/{scheme_id}/reopen", response_model=SchemeResponse)
def reopen_scheme(
    scheme_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.reopen_scheme(scheme_id)
    return SchemeResponse.model_validate(scheme)


@router.post("/schemes/{scheme_id}/archive", response_model=SchemeResponse)
def archive_scheme(
    scheme_id: str,
    body: ArchiveRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.archive_scheme(scheme_id, archived_date=body.archived_date)
    return SchemeResponse.model_validate(scheme)


@router.post("/schemes/{scheme_id}/unarchive", response_model=SchemeResponse)
def unarchive_scheme(
    scheme_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    with unit_of_work(db, get_request_id(request)):
        scheme = service.unarchive_scheme(scheme_id)
    return SchemeResponse.model_validate(scheme)


@router.post("/maintenance/auto-archive", response_model=AutoArchiveResponse)
def auto_archive(
    body: AutoArchiveRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: SchemeService = Depends(get_scheme_service),
):
    """Archive Closed schemes past the grace period"""
    with unit_of_work(db, get_request_id(request)):
        archived = service.auto_archive_closed_schemes(body.grace_period_days)
    return AutoArchiveResponse(archived_count=archived)
