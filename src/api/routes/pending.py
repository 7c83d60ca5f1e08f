"""
Routes: quarentena (aprovação, resolução de duplicidade, rejeição).
"""

import logging

from fastapi import APIRouter, HTTPException

from src.api.dependencies import get_resolver
from src.api.errors import http_error
from src.api.schemas.requests import IdsRequest, ResolveRequest
from src.api.schemas.responses import (
    ApprovalResponse,
    BulkResponse,
    ConflictResponse,
    DriverResponse,
    NotificationResponse,
    PendingDriverResponse,
    RecoverResponse,
    RejectionResponse,
    ResolutionResponse,
)
from src.core.entities.outcomes import BulkOutcome, TerminalState
from src.core.exceptions import DriverPipelineError
from src.infrastructure.notifications.messages import (
    approval_message,
    bulk_approve_message,
    bulk_reject_message,
    describe_reasons,
    recovery_message,
    rejection_message,
    resolution_message,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _bulk_response(outcome: BulkOutcome, notification) -> BulkResponse:
    return BulkResponse(
        succeeded=outcome.succeeded,
        skipped=outcome.skipped,
        failed=outcome.failed,
        messages=outcome.messages,
        notification=NotificationResponse.of(notification),
    )


# Rotas estáticas antes de /pending/{pending_id}

@router.post("/pending/bulk-approve", response_model=BulkResponse)
async def bulk_approve(req: IdsRequest):
    """Aprova várias pendentes; duplicatas com motorista existente são ignoradas."""
    if not req.ids:
        raise HTTPException(status_code=400, detail="Nenhum motorista pendente selecionado")
    try:
        outcome = get_resolver().bulk_approve(req.ids)
    except DriverPipelineError as e:
        raise http_error(e, "bulk-approve")
    return _bulk_response(outcome, bulk_approve_message(outcome))


@router.post("/pending/bulk-reject", response_model=BulkResponse)
async def bulk_reject(req: IdsRequest):
    if not req.ids:
        raise HTTPException(status_code=400, detail="Nenhum motorista pendente selecionado")
    try:
        outcome = get_resolver().bulk_reject(req.ids)
    except DriverPipelineError as e:
        raise http_error(e, "bulk-reject")
    return _bulk_response(outcome, bulk_reject_message(outcome))


@router.post("/pending/recover", response_model=RecoverResponse)
async def recover_interrupted():
    """Conclui resoluções interrompidas entre o update e o delete."""
    try:
        recovered = get_resolver().recover_interrupted()
    except DriverPipelineError as e:
        raise http_error(e, "recover")
    return RecoverResponse(recovered=recovered, notification=NotificationResponse.of(recovery_message(recovered)))


@router.get("/pending/{pending_id}/conflict", response_model=ConflictResponse)
async def get_conflict(pending_id: str):
    """Os dois registros lado a lado para o diálogo de duplicidade."""
    try:
        pending, authoritative = get_resolver().get_conflict(pending_id)
    except DriverPipelineError as e:
        raise http_error(e, "approve")
    return ConflictResponse(
        pending=PendingDriverResponse.of(pending),
        authoritative=DriverResponse.of(authoritative),
        reference_missing=bool(pending.original_driver_id) and authoritative is None,
        reasons_label=describe_reasons(pending.reasons),
    )


@router.post("/pending/{pending_id}/approve", response_model=ApprovalResponse)
async def approve(pending_id: str):
    """
    Aprova uma pendente.

    - kind=approved-new: virou motorista
    - kind=action-required: duplicidade, use /resolve com a escolha
    """
    try:
        outcome = get_resolver().approve(pending_id)
    except DriverPipelineError as e:
        raise http_error(e, "approve")
    return ApprovalResponse(
        kind=outcome.kind.value,
        pending=PendingDriverResponse.of(outcome.pending),
        driver=DriverResponse.of(outcome.driver),
        authoritative=DriverResponse.of(outcome.authoritative),
        notification=NotificationResponse.of(approval_message(outcome)),
    )


@router.post("/pending/{pending_id}/resolve", response_model=ResolutionResponse)
async def resolve(pending_id: str, req: ResolveRequest):
    try:
        outcome = get_resolver().resolve(
            req.choice, pending_id, req.authoritative_id, expected_revision=req.expected_revision,
        )
    except DriverPipelineError as e:
        raise http_error(e, "resolve")
    return ResolutionResponse(
        state=outcome.state.value,
        pending_id=outcome.pending_id,
        authoritative_id=outcome.authoritative_id,
        driver=DriverResponse.of(outcome.driver),
        notification=NotificationResponse.of(resolution_message(outcome)),
    )


@router.delete("/pending/{pending_id}", response_model=RejectionResponse)
async def reject(pending_id: str):
    try:
        get_resolver().reject(pending_id)
    except DriverPipelineError as e:
        raise http_error(e, "reject")
    return RejectionResponse(
        state=TerminalState.REJECTED.value,
        pending_id=pending_id,
        notification=NotificationResponse.of(rejection_message()),
    )
