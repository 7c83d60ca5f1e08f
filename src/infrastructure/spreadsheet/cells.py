"""
Cell parsers — valores crus da planilha → valores de domínio.

Nenhum parser levanta exceção: valor ilegível vira None.
"""

import logging
from datetime import date, datetime

from openpyxl.utils.datetime import from_excel

from src.core.entities.driver import IndicationStatus, only_digits

logger = logging.getLogger(__name__)

DOCUMENT_LENGTH = 11  # CPF e CNH


def cell_text(value) -> str | None:
    """Texto limpo de uma célula. Números inteiros saem sem '.0'."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def parse_digits(value, pad_to: int | None = None) -> str | None:
    """
    Apenas os dígitos de uma célula (CPF, CNH, telefone).

    Células numéricas perdem zeros à esquerda no Excel; com `pad_to`
    eles são recompostos.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not value.is_integer():
            return only_digits(str(value))
        digits = str(int(value))
        return digits.zfill(pad_to) if pad_to else digits
    return only_digits(value)


def parse_document(value) -> str | None:
    return parse_digits(value, pad_to=DOCUMENT_LENGTH)


def parse_date(value) -> date | None:
    """
    Converte uma célula em data.

    Aceita:
      - datetime/date nativos (openpyxl)
      - número serial do Excel (sistema 1900)
      - "yyyy-mm-dd" (com ou sem hora) e "dd/mm/yyyy"
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return None
        if isinstance(converted, datetime):
            return converted.date()
        return converted if isinstance(converted, date) else None

    text = str(value).strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    parts = text.split(" ")[0].split("/")
    if len(parts) == 3:
        try:
            day, month, year = (int(p) for p in parts)
            return date(year, month, day)
        except ValueError:
            return None

    logger.debug(f"Unparseable date cell: {text!r}")
    return None


def parse_indication(value) -> IndicationStatus:
    """Texto livre → status de indicação (default: not-indicated)."""
    raw = (cell_text(value) or "").lower()
    if "não indicado" in raw or "nao indicado" in raw or "not indicated" in raw or "not-indicated" in raw:
        return IndicationStatus.NOT_INDICATED
    if "retificado" in raw or "rectified" in raw:
        return IndicationStatus.RECTIFIED
    if "indicado" in raw or "indicated" in raw:
        return IndicationStatus.INDICATED
    return IndicationStatus.NOT_INDICATED
