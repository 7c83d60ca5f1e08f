"""
Column mapping — cabeçalhos da planilha → campos lógicos do motorista.

O operador escolhe qual coluna alimenta cada campo; `auto_map` sugere
um mapeamento inicial a partir dos nomes dos cabeçalhos.
"""

import logging
import unicodedata
from dataclasses import dataclass

from src.core.entities.driver import (
    OMNILINK_VALIDITY_MONTHS,
    DriverFields,
    IndicationStatus,
    normalize_indication,
    with_omnilink,
)
from src.core.exceptions import MappingError
from src.infrastructure.spreadsheet.cells import cell_text, parse_date, parse_digits, parse_document, parse_indication

logger = logging.getLogger(__name__)


# Campo lógico → rótulo exibido ao operador
FIELD_LABELS = {
    "full_name": "Nome Completo do Motorista",
    "cpf": "CPF do Motorista",
    "type": "Tipo (Motorista/Agregado)",
    "omnilink_registration_date": "Data de Cadastro Omnilink Score",
    "cnh_expiry": "Validade da CNH",
    "cnh": "CNH do Motorista",
    "phone": "Telefone do Motorista",
    "indication_status": "Status de Indicação",
    "indication_reason": "Motivo de Não Indicação",
}

REQUIRED_FIELDS = ("full_name", "cpf")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()


def auto_map(headers: list[str]) -> dict[str, str | None]:
    """
    Sugere o mapeamento a partir dos cabeçalhos (sem acento, minúsculo).

    Quando mais de um cabeçalho casa com o mesmo campo, o último vence.
    """
    mapping: dict[str, str | None] = {name: None for name in FIELD_LABELS}
    for header in headers:
        if not header:
            continue
        h = _fold(header)
        if "nome" in h and "completo" in h:
            mapping["full_name"] = header
        if "cpf" in h:
            mapping["cpf"] = header
        if "tipo" in h:
            mapping["type"] = header
        if "omnilink" in h and ("reg." in h or "registro" in h or "data" in h):
            mapping["omnilink_registration_date"] = header
        if "cnh" in h and ("validade" in h or "vencimento" in h):
            mapping["cnh_expiry"] = header
        if "cnh" in h and "validade" not in h and "vencimento" not in h:
            mapping["cnh"] = header
        if "telefone" in h or "fone" in h:
            mapping["phone"] = header
        if "status" in h and "indica" in h:
            mapping["indication_status"] = header
        if "motivo" in h and "nao" in h and "indica" in h:
            mapping["indication_reason"] = header
    return mapping


def validate_mapping(mapping: dict[str, str | None]) -> None:
    """Levanta MappingError se nome completo ou CPF não estiverem mapeados."""
    missing = [FIELD_LABELS[name] for name in REQUIRED_FIELDS if not mapping.get(name)]
    if missing:
        raise MappingError(missing)


@dataclass
class MappedRows:
    """Linhas convertidas + quantas foram descartadas (sem nome/CPF)."""
    rows: list[DriverFields]
    skipped: int = 0


def map_row(row: dict, mapping: dict[str, str | None], today=None, months: int = OMNILINK_VALIDITY_MONTHS) -> DriverFields:
    """Uma linha crua (cabeçalho → valor) → DriverFields normalizado."""

    def cell(name):
        header = mapping.get(name)
        return row.get(header) if header else None

    indication = parse_indication(cell("indication_status"))
    record = DriverFields(
        full_name=cell_text(cell("full_name")) or "",
        cpf=parse_document(cell("cpf")) or "",
        cnh=parse_document(cell("cnh")),
        cnh_expiry=parse_date(cell("cnh_expiry")),
        phone=parse_digits(cell("phone")),
        type=cell_text(cell("type")),
        omnilink_registration_date=parse_date(cell("omnilink_registration_date")),
        indication_status=indication,
        indication_reason=cell_text(cell("indication_reason")) if indication == IndicationStatus.NOT_INDICATED else None,
    )
    record = with_omnilink(record, today=today, months=months)
    return normalize_indication(record)


def map_rows(
    rows: list[dict],
    mapping: dict[str, str | None],
    today=None,
    months: int = OMNILINK_VALIDITY_MONTHS,
) -> MappedRows:
    """
    Converte todas as linhas usando o mapeamento do operador.

    Raises:
        MappingError: Nome completo ou CPF não mapeados.
    """
    validate_mapping(mapping)
    mapped = []
    skipped = 0
    for raw in rows:
        record = map_row(raw, mapping, today=today, months=months)
        if record.full_name and record.cpf:
            mapped.append(record)
        else:
            skipped += 1

    if skipped:
        logger.info(f"{skipped} row(s) without full name or CPF skipped")
    return MappedRows(rows=mapped, skipped=skipped)
