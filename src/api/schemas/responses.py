"""
Pydantic schemas — Response models para a API.
"""

from datetime import date, datetime

from pydantic import BaseModel

from src.core.entities.driver import DriverRecord, IndicationStatus, OmnilinkStatus, PendingDriverRecord
from src.core.interfaces.notifier import Notification


class NotificationResponse(BaseModel):
    level: str
    title: str
    description: str = ""

    @classmethod
    def of(cls, notification: Notification | None) -> "NotificationResponse | None":
        if notification is None:
            return None
        return cls(level=notification.level, title=notification.title, description=notification.description)


class DriverFieldsResponse(BaseModel):
    full_name: str
    cpf: str
    cnh: str | None = None
    cnh_expiry: date | None = None
    phone: str | None = None
    type: str | None = None
    omnilink_registration_date: date | None = None
    omnilink_expiry_date: date | None = None
    omnilink_status: OmnilinkStatus | None = None
    indication_status: IndicationStatus | None = None
    indication_reason: str | None = None
    cnh_pdf_url: str | None = None

    model_config = {"from_attributes": True}


class DriverResponse(DriverFieldsResponse):
    id: str
    created_at: datetime | None = None
    revision: int = 1

    @classmethod
    def of(cls, driver: DriverRecord | None) -> "DriverResponse | None":
        return cls.model_validate(driver) if driver is not None else None


class PendingDriverResponse(DriverFieldsResponse):
    id: str
    status: str
    reason: str | None = None
    reasons: list[str] = []
    original_driver_id: str | None = None
    uploaded_by: str | None = None
    created_at: datetime | None = None
    resolving_choice: str | None = None

    @classmethod
    def of(cls, pending: PendingDriverRecord) -> "PendingDriverResponse":
        data = DriverFieldsResponse.model_validate(pending).model_dump()
        return cls(
            **data,
            id=pending.id,
            status=pending.status,
            reason=pending.reason_text,
            reasons=sorted(r.value for r in pending.reasons),
            original_driver_id=pending.original_driver_id,
            uploaded_by=pending.uploaded_by,
            created_at=pending.created_at,
            resolving_choice=pending.resolving_choice,
        )


# ── Upload ──

class HeadersResponse(BaseModel):
    filename: str
    headers: list[str]
    total_rows: int
    mapping: dict[str, str | None]
    labels: dict[str, str]
    required: list[str]


class PreviewResponse(BaseModel):
    total_rows: int
    valid_rows: int
    skipped: int
    rows: list[DriverFieldsResponse]
    notification: NotificationResponse | None = None


class BatchResponse(BaseModel):
    inserted: int
    staged: int
    skipped_invalid: int
    notification: NotificationResponse


# ── Visão combinada ──

class DrillDownResponse(BaseModel):
    type: str
    value: str
    category: str


class ViewItemResponse(BaseModel):
    kind: str
    id: str
    is_pending: bool
    omnilink_status: str | None = None
    reference_missing: bool = False
    driver: DriverResponse | None = None
    pending: PendingDriverResponse | None = None
    duplicate_of: DriverResponse | None = None
    drill_down: DrillDownResponse | None = None


class MergedViewResponse(BaseModel):
    sequence: int
    stale: bool
    total_registered: int
    total_pending: int
    count: int
    items: list[ViewItemResponse]


# ── Quarentena ──

class ConflictResponse(BaseModel):
    pending: PendingDriverResponse
    authoritative: DriverResponse | None = None
    reference_missing: bool = False
    reasons_label: str = ""


class ApprovalResponse(BaseModel):
    kind: str
    pending: PendingDriverResponse
    driver: DriverResponse | None = None
    authoritative: DriverResponse | None = None
    notification: NotificationResponse


class ResolutionResponse(BaseModel):
    state: str
    pending_id: str
    authoritative_id: str
    driver: DriverResponse | None = None
    notification: NotificationResponse


class RejectionResponse(BaseModel):
    state: str = "rejected"
    pending_id: str
    notification: NotificationResponse


class BulkResponse(BaseModel):
    succeeded: int
    skipped: int
    failed: int
    messages: list[str] = []
    notification: NotificationResponse


class RecoverResponse(BaseModel):
    recovered: list[str]
    notification: NotificationResponse


# ── Cadastro direto ──

class DriverMutationResponse(BaseModel):
    driver: DriverResponse
    notification: NotificationResponse


class DeleteResponse(BaseModel):
    deleted: int
    notification: NotificationResponse
