"""
Tradução de exceções do domínio → HTTPException.

O corpo de erro carrega a mesma notificação que a resposta de sucesso.
"""

import logging

from fastapi import HTTPException

from src.core.exceptions import (
    ConcurrentModificationError,
    DriverPipelineError,
    InvalidRecordError,
    MalformedIdentifierError,
    MappingError,
    RecordNotFoundError,
    ReferentialIntegrityError,
    SpreadsheetReadError,
    StoreOperationError,
)
from src.infrastructure.notifications.messages import error_message

logger = logging.getLogger(__name__)

_STATUS = (
    (MalformedIdentifierError, 400),
    (InvalidRecordError, 400),
    (SpreadsheetReadError, 400),
    (RecordNotFoundError, 404),
    (ReferentialIntegrityError, 409),
    (ConcurrentModificationError, 409),
    (MappingError, 422),
    (StoreOperationError, 502),
)


def status_for(error: DriverPipelineError) -> int:
    for error_type, status in _STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def http_error(error: DriverPipelineError, operation: str) -> HTTPException:
    """Monta a HTTPException com mensagem + notificação para o operador."""
    status = status_for(error)
    if status >= 500:
        logger.error(f"{operation} failed: {error}")
    else:
        logger.warning(f"{operation} rejected ({status}): {error}")
    notification = error_message(operation, error)
    detail = {
        "message": str(error),
        "error": type(error).__name__,
        "notification": {
            "level": notification.level,
            "title": notification.title,
            "description": notification.description,
        },
    }
    inserted = getattr(error, "inserted", None)
    if inserted:
        detail["inserted"] = inserted
    return HTTPException(status_code=status, detail=detail)
