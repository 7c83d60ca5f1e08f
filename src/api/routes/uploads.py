"""
Routes: Upload em massa de motoristas.

Fluxo em três passos (como a tela original):
  1. POST /uploads/headers — cabeçalhos + mapeamento sugerido
  2. POST /uploads/preview — linhas convertidas, nada gravado
  3. POST /uploads         — classifica e grava o lote
"""

import json
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from src.api.dependencies import current_user, get_classifier
from src.api.errors import http_error
from src.api.schemas.responses import (
    BatchResponse,
    DriverFieldsResponse,
    HeadersResponse,
    NotificationResponse,
    PreviewResponse,
)
from src.config.settings import get_settings
from src.core.exceptions import DriverPipelineError
from src.infrastructure.notifications.messages import batch_message, skipped_rows_message
from src.infrastructure.spreadsheet.mapping import FIELD_LABELS, REQUIRED_FIELDS, auto_map, map_rows
from src.infrastructure.spreadsheet.reader import SpreadsheetTable, read_table

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_upload(file: UploadFile) -> SpreadsheetTable:
    content = await file.read()
    if len(content) == 0:
        raise HTTPException(status_code=400, detail="Arquivo vazio")
    if len(content) > get_settings().max_upload_bytes:
        raise HTTPException(status_code=413, detail="Arquivo excede o tamanho máximo permitido")
    try:
        return read_table(content, file.filename)
    except DriverPipelineError as e:
        raise http_error(e, "upload")


def _resolve_mapping(raw: str | None, table: SpreadsheetTable) -> dict[str, str | None]:
    """Mapeamento enviado pelo operador (JSON campo → cabeçalho) ou sugerido."""
    if not raw:
        return auto_map(table.headers)
    try:
        chosen = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Mapeamento inválido: esperado JSON campo → coluna")
    if not isinstance(chosen, dict):
        raise HTTPException(status_code=400, detail="Mapeamento inválido: esperado JSON campo → coluna")

    mapping = {name: None for name in FIELD_LABELS}
    for name, header in chosen.items():
        # "unmapped" ou coluna inexistente = campo sem coluna
        if name in mapping and header in table.headers:
            mapping[name] = header
    return mapping


@router.post("/uploads/headers", response_model=HeadersResponse)
async def read_headers(file: UploadFile = File(...)):
    """Lê os cabeçalhos da primeira aba e sugere o mapeamento de colunas."""
    table = await _read_upload(file)
    return HeadersResponse(
        filename=file.filename or "",
        headers=table.headers,
        total_rows=len(table.rows),
        mapping=auto_map(table.headers),
        labels=FIELD_LABELS,
        required=list(REQUIRED_FIELDS),
    )


@router.post("/uploads/preview", response_model=PreviewResponse)
async def preview_upload(file: UploadFile = File(...), mapping: str | None = Form(default=None)):
    """Converte as linhas com o mapeamento escolhido, sem gravar nada."""
    table = await _read_upload(file)
    column_mapping = _resolve_mapping(mapping, table)
    try:
        mapped = map_rows(table.rows, column_mapping, months=get_settings().omnilink_validity_months)
    except DriverPipelineError as e:
        raise http_error(e, "mapping")

    return PreviewResponse(
        total_rows=len(table.rows),
        valid_rows=len(mapped.rows),
        skipped=mapped.skipped,
        rows=[DriverFieldsResponse.model_validate(r) for r in mapped.rows],
        notification=NotificationResponse.of(skipped_rows_message(mapped.skipped, len(table.rows))),
    )


@router.post("/uploads", response_model=BatchResponse)
async def upload_batch(
    file: UploadFile = File(...),
    mapping: str | None = Form(default=None),
    uploaded_by: str | None = Depends(current_user),
):
    """
    Classifica e grava um lote.

    Linhas sem conflito vão direto para o cadastro; as demais vão para
    a quarentena com os motivos do conflito.
    """
    table = await _read_upload(file)
    column_mapping = _resolve_mapping(mapping, table)
    try:
        mapped = map_rows(table.rows, column_mapping, months=get_settings().omnilink_validity_months)
    except DriverPipelineError as e:
        raise http_error(e, "mapping")

    if not mapped.rows:
        raise HTTPException(status_code=400, detail="Nenhum dado válido para upload")

    try:
        outcome = get_classifier().execute(mapped.rows, uploaded_by=uploaded_by)
    except DriverPipelineError as e:
        raise http_error(e, "upload")

    outcome.skipped_invalid += mapped.skipped
    logger.info(f"Upload {file.filename} by {uploaded_by}: {outcome}")
    return BatchResponse(
        inserted=outcome.inserted,
        staged=outcome.staged,
        skipped_invalid=outcome.skipped_invalid,
        notification=NotificationResponse.of(batch_message(outcome)),
    )
