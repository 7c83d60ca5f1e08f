"""
Spreadsheet Reader — .xlsx (openpyxl) e .csv.

Primeira planilha, primeira linha = cabeçalhos. Devolve as linhas como
dicionários cabeçalho → valor cru (sem normalização).
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from src.core.exceptions import SpreadsheetReadError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm", ".csv")


@dataclass
class SpreadsheetTable:
    """Conteúdo tabular de um arquivo."""
    headers: list[str]
    rows: list[dict] = field(default_factory=list)


def _is_blank(values) -> bool:
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in values)


def _build_table(header_row, data_rows) -> SpreadsheetTable:
    headers = [str(h).strip() if h is not None else "" for h in header_row]
    rows = []
    for values in data_rows:
        values = list(values)
        if _is_blank(values):
            continue
        rows.append({h: values[i] if i < len(values) else None for i, h in enumerate(headers) if h})
    return SpreadsheetTable(headers=[h for h in headers if h], rows=rows)


def read_xlsx(content: bytes) -> SpreadsheetTable:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
        raise SpreadsheetReadError(f"Não foi possível ler a planilha: {e}") from e

    try:
        if not workbook.worksheets:
            raise SpreadsheetReadError("A planilha não contém abas")
        rows = workbook.worksheets[0].iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return SpreadsheetTable(headers=[])
        return _build_table(header_row, rows)
    finally:
        workbook.close()


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def read_csv(content: bytes) -> SpreadsheetTable:
    text = _decode(content)
    first_line = text.split("\n", 1)[0]
    delimiter = ";" if first_line.count(";") > first_line.count(",") else ","
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    header_row = next(reader, None)
    if header_row is None:
        return SpreadsheetTable(headers=[])
    return _build_table(header_row, ([v if v != "" else None for v in r] for r in reader))


def read_table(content: bytes, filename: str) -> SpreadsheetTable:
    """
    Lê um arquivo de planilha pelo nome/extensão.

    Raises:
        SpreadsheetReadError: Extensão não suportada ou arquivo corrompido.
    """
    name = (filename or "").lower()
    if name.endswith(".csv"):
        table = read_csv(content)
    elif name.endswith((".xlsx", ".xlsm")):
        table = read_xlsx(content)
    else:
        raise SpreadsheetReadError(
            f"Formato não suportado: {filename}. Use {', '.join(SUPPORTED_EXTENSIONS)}."
        )
    logger.info(f"Read {len(table.rows)} row(s) from {filename}")
    return table
