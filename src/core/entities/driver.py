"""
Entity: Driver

Registro de motorista no domínio: o cadastro oficial (DriverRecord) e a
entrada em quarentena aguardando decisão (PendingDriverRecord).
Modelo puro — sem dependência de framework ou banco.
"""

import re
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum

from dateutil.relativedelta import relativedelta


OMNILINK_VALIDITY_MONTHS = 6
PENDING_STATUS = "pending"


class OmnilinkStatus(str, Enum):
    CURRENT = "current"
    LAPSED = "lapsed"


class IndicationStatus(str, Enum):
    INDICATED = "indicated"
    RECTIFIED = "rectified"
    NOT_INDICATED = "not-indicated"


class ConflictReason(str, Enum):
    DUPLICATE_CPF = "duplicate-cpf"
    DUPLICATE_CNH = "duplicate-cnh"
    BATCH_DUPLICATE_CPF = "batch-duplicate-cpf"
    BATCH_DUPLICATE_CNH = "batch-duplicate-cnh"


# Ordem canônica usada na serialização
_REASON_ORDER = list(ConflictReason)

BATCH_REASONS = frozenset({ConflictReason.BATCH_DUPLICATE_CPF, ConflictReason.BATCH_DUPLICATE_CNH})


@dataclass
class DriverFields:
    """Campos de negócio comuns ao cadastro oficial e à quarentena."""
    full_name: str
    cpf: str
    cnh: str | None = None
    cnh_expiry: date | None = None
    phone: str | None = None
    type: str | None = None                       # ex: "motorista", "agregado"
    omnilink_registration_date: date | None = None
    omnilink_expiry_date: date | None = None      # = cadastro + 6 meses
    omnilink_status: OmnilinkStatus | None = None
    indication_status: IndicationStatus | None = None
    indication_reason: str | None = None          # só com status not-indicated
    cnh_pdf_url: str | None = None

    def business_fields(self) -> "DriverFields":
        """Cópia apenas com os campos de negócio."""
        return DriverFields(**{name: getattr(self, name) for name in BUSINESS_FIELDS})


BUSINESS_FIELDS = tuple(f.name for f in fields(DriverFields))

# CPF é imutável depois de gravado
MUTABLE_FIELDS = tuple(name for name in BUSINESS_FIELDS if name != "cpf")


@dataclass
class DriverRecord(DriverFields):
    """Entidade de domínio: motorista cadastrado (fonte oficial)."""
    id: str = ""
    created_at: datetime | None = None
    revision: int = 1


@dataclass
class PendingDriverRecord(DriverFields):
    """Entidade de domínio: motorista aguardando aprovação."""
    id: str = ""
    status: str = PENDING_STATUS
    reasons: frozenset[ConflictReason] = field(default_factory=frozenset)
    original_driver_id: str | None = None
    uploaded_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # Marcador gravado antes de aplicar uma decisão (approve-new / keep-staged)
    resolving_choice: str | None = None
    resolution_started_at: datetime | None = None

    @property
    def is_duplicate(self) -> bool:
        """Conflita com um registro oficial (referência preenchida)."""
        return self.original_driver_id is not None

    @property
    def reason_text(self) -> str | None:
        return serialize_reasons(self.reasons)


# ─── Reason tags ─────────────────────────────────────────────

def serialize_reasons(reasons) -> str | None:
    """Conjunto de tags → string separada por vírgula (fronteira de storage)."""
    if not reasons:
        return None
    tags = set(reasons)
    return ", ".join(r.value for r in _REASON_ORDER if r in tags)


def parse_reasons(text: str | None) -> frozenset[ConflictReason]:
    """String separada por vírgula → conjunto de tags. Tags desconhecidas são ignoradas."""
    if not text:
        return frozenset()
    known = {r.value: r for r in ConflictReason}
    parsed = set()
    for part in text.split(","):
        tag = part.strip().replace("_", "-")
        if tag in known:
            parsed.add(known[tag])
    return frozenset(parsed)


# ─── Normalization ───────────────────────────────────────────

_NON_DIGIT = re.compile(r"\D")


def only_digits(value) -> str | None:
    """Remove tudo que não for dígito (CPF, CNH, telefone). Vazio → None."""
    if value is None:
        return None
    digits = _NON_DIGIT.sub("", str(value))
    return digits or None


def is_valid_row(record: DriverFields) -> bool:
    """Mínimo para entrar no lote: nome completo e CPF."""
    return bool(record.full_name and record.full_name.strip()) and bool(only_digits(record.cpf))


# ─── Derived fields ──────────────────────────────────────────

def derive_omnilink(
    registration_date: date | None,
    today: date | None = None,
    months: int = OMNILINK_VALIDITY_MONTHS,
) -> tuple[date | None, OmnilinkStatus | None]:
    """
    Calcula vencimento e status do Omnilink Score.

    Args:
        registration_date: Data de cadastro no Omnilink Score.
        today: Data de referência (default: hoje).
        months: Janela de validade em meses.

    Returns:
        (vencimento, status). Status é CURRENT se o vencimento for
        estritamente posterior a `today`, senão LAPSED.
    """
    if registration_date is None:
        return None, None
    today = today or date.today()
    expiry = registration_date + relativedelta(months=months)
    return expiry, omnilink_status_for(expiry, today)


def omnilink_status_for(expiry: date, today: date) -> OmnilinkStatus:
    return OmnilinkStatus.CURRENT if expiry > today else OmnilinkStatus.LAPSED


def with_omnilink(
    record: DriverFields,
    today: date | None = None,
    months: int = OMNILINK_VALIDITY_MONTHS,
) -> DriverFields:
    """Recalcula vencimento/status a partir da data de cadastro."""
    expiry, status = derive_omnilink(record.omnilink_registration_date, today, months)
    return replace(record, omnilink_expiry_date=expiry, omnilink_status=status)


def normalize_indication(record: DriverFields) -> DriverFields:
    """Motivo de não indicação só faz sentido com status not-indicated."""
    if record.indication_status != IndicationStatus.NOT_INDICATED and record.indication_reason:
        return replace(record, indication_reason=None)
    return record
