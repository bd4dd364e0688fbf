"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import List, Optional

from scheme_tracker.domain.models import PaymentMode, PaymentStatus, SchemeStatus


class SchemeCreateRequest(BaseModel):
    """Request body for POST /v1/schemes"""

    customer_name: str = Field(..., min_length=1, description="Customer display name")
    start_date: date
    monthly_amount_cents: int = Field(..., gt=0, description="Monthly installment in minor units")
    duration_months: Optional[int] = Field(None, gt=0, description="Defaults to the configured duration")
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_group_name: Optional[str] = None


class CustomerUpdateRequest(BaseModel):
    """Request body for PATCH /v1/schemes/{scheme_id}/customer"""

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None


class GroupAssignRequest(BaseModel):
    """Request body for PUT /v1/schemes/{scheme_id}/group; null or "" removes the group"""

    group_name: Optional[str] = None


class CloseSchemeRequest(BaseModel):
    closure_date: Optional[date] = None
    modes: List[PaymentMode] = Field(default_factory=list)


class ArchiveRequest(BaseModel):
    archived_date: Optional[date] = None


class RecordPaymentRequest(BaseModel):
    """Request body for POST /v1/schemes/{scheme_id}/payments/{payment_id}"""

    amount_paid_cents: Optional[int] = Field(None, gt=0, description="Defaults to the expected amount")
    payment_date: Optional[date] = None
    modes: List[PaymentMode] = Field(default_factory=list)


class EditPaymentRequest(BaseModel):
    """Request body for PATCH /v1/schemes/{scheme_id}/payments/{payment_id}"""

    amount_paid_cents: Optional[int] = Field(None, gt=0)
    payment_date: Optional[date] = None
    modes: Optional[List[PaymentMode]] = None


class BatchRecordRequest(BaseModel):
    """Request body for POST /v1/schemes/{scheme_id}/payments/batch"""

    months: int = Field(..., gt=0, description="Consecutive installments to pay")
    payment_date: Optional[date] = None
    modes: List[PaymentMode] = Field(default_factory=list)


class GroupBatchRequest(BaseModel):
    """Request body for POST /v1/groups/{group_name}/payments"""

    payment_date: Optional[date] = None
    modes: List[PaymentMode] = Field(default_factory=list)


class AutoArchiveRequest(BaseModel):
    grace_period_days: Optional[int] = Field(None, ge=0)


class PaymentSchema(BaseModel):
    """Single installment in a scheme"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    month_number: int
    due_date: date
    amount_expected_cents: int
    amount_paid_cents: Optional[int] = None
    payment_date: Optional[date] = None
    mode_of_payment: Optional[List[PaymentMode]] = None
    status: PaymentStatus
    is_archived: bool = False
    archived_date: Optional[date] = None


class SchemeResponse(BaseModel):
    """Scheme with its payment schedule and derived figures"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_name: str
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_group_name: Optional[str] = None
    start_date: date
    monthly_amount_cents: int
    duration_months: int
    closure_date: Optional[date] = None
    archived_date: Optional[date] = None
    status: SchemeStatus
    total_collected_cents: int
    total_remaining_cents: int
    payments_made_count: int
    payments: List[PaymentSchema]


class SchemeListResponse(BaseModel):
    schemes: List[SchemeResponse]


class DeleteSchemeResponse(BaseModel):
    scheme_id: str
    deleted: bool


class BatchRecordDetailSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    scheme_id: str
    customer_name: str
    outcome: str
    month_numbers: List[int]
    amount_cents: int


class BatchRecordResponse(BaseModel):
    """Outcome of recording next-due installments"""

    model_config = ConfigDict(from_attributes=True)

    success_count: int
    skipped_count: int
    total_recorded_cents: int
    details: List[BatchRecordDetailSchema]


class DuePaymentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    scheme_id: str
    customer_name: str
    customer_group_name: Optional[str] = None
    payment_id: str
    month_number: int
    due_date: date
    amount_expected_cents: int
    status: PaymentStatus


class DuePaymentsResponse(BaseModel):
    payments: List[DuePaymentSchema]


class GroupSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    group_name: str
    scheme_count: int
    customer_names: List[str]
    recordable_scheme_count: int
    total_collected_cents: int
    total_remaining_cents: int


class GroupListResponse(BaseModel):
    groups: List[str]


class GroupSummaryResponse(BaseModel):
    groups: List[GroupSummarySchema]


class AutoArchiveResponse(BaseModel):
    archived_count: int
