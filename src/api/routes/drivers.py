"""
Routes: cadastro oficial + visão combinada.
"""

import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter, HTTPException

from src.api.dependencies import get_manager, get_view_service
from src.api.errors import http_error
from src.api.schemas.requests import DriverPayload, DriverUpdatePayload, IdsRequest
from src.api.schemas.responses import (
    DeleteResponse,
    DrillDownResponse,
    DriverMutationResponse,
    DriverResponse,
    MergedViewResponse,
    NotificationResponse,
    PendingDriverResponse,
    ViewItemResponse,
)
from src.core.exceptions import DriverPipelineError
from src.core.use_cases.merged_view import (
    SORT_COLUMNS,
    Category,
    CriterionType,
    FilterCriterion,
    ItemKind,
    SortDirection,
    ViewItem,
    ViewQuery,
    drill_down,
)
from src.infrastructure.notifications.messages import driver_deleted_message, driver_saved_message

logger = logging.getLogger(__name__)

router = APIRouter()


def _item_response(item: ViewItem) -> ViewItemResponse:
    target = drill_down(item)
    response = ViewItemResponse(
        kind=item.kind.value,
        id=item.id,
        is_pending=item.is_pending,
        omnilink_status=item.omnilink_status.value if item.omnilink_status else None,
        reference_missing=item.reference_missing,
        duplicate_of=DriverResponse.of(item.reference),
    )
    if item.kind == ItemKind.REGISTERED:
        response.driver = DriverResponse.of(item.record)
    else:
        response.pending = PendingDriverResponse.of(item.record)
    if target is not None:
        criterion, category = target
        response.drill_down = DrillDownResponse(
            type=criterion.type.value, value=criterion.value, category=category.value,
        )
    return response


@router.get("/drivers/view", response_model=MergedViewResponse)
async def merged_view(
    search: str = "",
    category: Category = Category.ALL,
    omnilink_status: Literal["all", "current", "lapsed"] = "all",
    indication_status: Literal["all", "indicated", "rectified", "not-indicated"] = "all",
    criterion_type: CriterionType | None = None,
    criterion_value: str | None = None,
    sort_column: str | None = None,
    sort_direction: SortDirection = SortDirection.ASC,
    today: date | None = None,
):
    """
    Lista combinada: motoristas cadastrados + pendentes de aprovação.

    Cada motorista cadastrado aparece seguido das suas duplicatas.
    Filtros: busca → categoria → Omnilink → indicação → critério → ordenação.
    """
    if sort_column and sort_column not in SORT_COLUMNS:
        raise HTTPException(status_code=400, detail=f"Coluna de ordenação inválida: {sort_column}")
    criterion = None
    if criterion_type is not None and criterion_value:
        criterion = FilterCriterion(type=criterion_type, value=criterion_value)

    query = ViewQuery(
        search=search,
        category=category,
        omnilink_status=omnilink_status,
        indication_status=indication_status,
        criterion=criterion,
        sort_column=sort_column,
        sort_direction=sort_direction,
        today=today,
    )
    try:
        view = get_view_service().refresh(query)
    except DriverPipelineError as e:
        raise http_error(e, "view")

    return MergedViewResponse(
        sequence=view.sequence,
        stale=view.stale,
        total_registered=view.total_registered,
        total_pending=view.total_pending,
        count=len(view.items),
        items=[_item_response(i) for i in view.items],
    )


@router.post("/drivers", response_model=DriverMutationResponse, status_code=201)
async def create_driver(payload: DriverPayload):
    """Cadastro direto (sem passar pelo classificador)."""
    try:
        driver = get_manager().create(payload.to_fields())
    except DriverPipelineError as e:
        raise http_error(e, "save")
    return DriverMutationResponse(
        driver=DriverResponse.of(driver),
        notification=NotificationResponse.of(driver_saved_message(created=True)),
    )


@router.put("/drivers/{driver_id}", response_model=DriverMutationResponse)
async def update_driver(driver_id: str, payload: DriverUpdatePayload):
    """Edição direta; com `expected_revision`, falha se outro operador alterou antes."""
    try:
        driver = get_manager().update(driver_id, payload.to_fields(), expected_revision=payload.expected_revision)
    except DriverPipelineError as e:
        raise http_error(e, "save")
    return DriverMutationResponse(
        driver=DriverResponse.of(driver),
        notification=NotificationResponse.of(driver_saved_message(created=False)),
    )


@router.delete("/drivers/{driver_id}", response_model=DeleteResponse)
async def delete_driver(driver_id: str):
    try:
        get_manager().delete(driver_id)
    except DriverPipelineError as e:
        raise http_error(e, "delete")
    return DeleteResponse(deleted=1, notification=NotificationResponse.of(driver_deleted_message(1)))


@router.post("/drivers/bulk-delete", response_model=DeleteResponse)
async def bulk_delete_drivers(req: IdsRequest):
    if not req.ids:
        raise HTTPException(status_code=400, detail="Nenhum motorista registrado selecionado")
    try:
        deleted = get_manager().bulk_delete(req.ids)
    except DriverPipelineError as e:
        raise http_error(e, "delete")
    return DeleteResponse(deleted=deleted, notification=NotificationResponse.of(driver_deleted_message(deleted)))
