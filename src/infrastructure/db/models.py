"""
Database Models — SQLAlchemy.

Tables:
  - driver_record: cadastro oficial de motoristas
  - pending_driver_record: quarentena aguardando aprovação
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Date, DateTime, Text, Index
from sqlalchemy.orm import DeclarativeBase

from src.core.entities.driver import (
    BUSINESS_FIELDS,
    DriverFields,
    DriverRecord,
    IndicationStatus,
    OmnilinkStatus,
    PendingDriverRecord,
    parse_reasons,
    serialize_reasons,
)


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enum_or_none(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


class DriverColumnsMixin:
    """Campos de negócio comuns às duas tabelas."""
    full_name = Column(String(255), nullable=False)
    cpf = Column(String(20), nullable=False, index=True)
    cnh = Column(String(20), nullable=True, index=True)
    cnh_expiry = Column(Date, nullable=True)
    phone = Column(String(30), nullable=True)
    type = Column(String(30), nullable=True)
    omnilink_registration_date = Column(Date, nullable=True)
    omnilink_expiry_date = Column(Date, nullable=True)
    omnilink_status = Column(String(20), nullable=True)
    indication_status = Column(String(20), nullable=True)
    indication_reason = Column(Text, nullable=True)
    cnh_pdf_url = Column(Text, nullable=True)

    def apply_fields(self, data: DriverFields, names=BUSINESS_FIELDS) -> None:
        """Copia campos da entidade para a linha (enums → texto)."""
        for name in names:
            value = getattr(data, name)
            if isinstance(value, (OmnilinkStatus, IndicationStatus)):
                value = value.value
            setattr(self, name, value)

    def business_kwargs(self) -> dict:
        values = {name: getattr(self, name) for name in BUSINESS_FIELDS}
        values["omnilink_status"] = _enum_or_none(OmnilinkStatus, self.omnilink_status)
        values["indication_status"] = _enum_or_none(IndicationStatus, self.indication_status)
        return values


class DriverRow(DriverColumnsMixin, Base):
    """Motorista aceito (fonte oficial). CPF deveria ser único — sem constraint no banco."""
    __tablename__ = "driver_record"

    id = Column(String(36), primary_key=True, default=_new_id)
    created_at = Column(DateTime, default=utcnow, index=True)
    revision = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<Driver {self.id} cpf={self.cpf} rev={self.revision}>"

    @classmethod
    def from_fields(cls, data: DriverFields, driver_id: str | None = None) -> "DriverRow":
        row = cls(id=driver_id or _new_id(), created_at=utcnow(), revision=1)
        row.apply_fields(data)
        return row

    def to_entity(self) -> DriverRecord:
        return DriverRecord(
            **self.business_kwargs(),
            id=self.id,
            created_at=self.created_at,
            revision=self.revision or 1,
        )


class PendingDriverRow(DriverColumnsMixin, Base):
    """Linha em quarentena. Criada pelo classificador, excluída pelo resolvedor."""
    __tablename__ = "pending_driver_record"

    id = Column(String(36), primary_key=True, default=_new_id)
    status = Column(String(20), nullable=False, default="pending", index=True)
    reason = Column(Text, nullable=True)  # tags separadas por vírgula
    # Sem FK real: referência quebrada é falha de integridade a reportar, não a impedir
    original_driver_id = Column(String(36), nullable=True, index=True)
    uploaded_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    # Decisão em andamento: gravada antes do insert/update, limpa junto com a linha
    resolving_choice = Column(String(30), nullable=True)
    resolution_started_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_pending_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<PendingDriver {self.id} [{self.reason}] ref={self.original_driver_id}>"

    @classmethod
    def from_entity(cls, record: PendingDriverRecord) -> "PendingDriverRow":
        now = utcnow()
        row = cls(
            id=record.id or _new_id(),
            status=record.status,
            reason=serialize_reasons(record.reasons),
            original_driver_id=record.original_driver_id,
            uploaded_by=record.uploaded_by,
            created_at=record.created_at or now,
            updated_at=record.updated_at or now,
            resolving_choice=record.resolving_choice,
            resolution_started_at=record.resolution_started_at,
        )
        row.apply_fields(record)
        return row

    def to_entity(self) -> PendingDriverRecord:
        return PendingDriverRecord(
            **self.business_kwargs(),
            id=self.id,
            status=self.status,
            reasons=parse_reasons(self.reason),
            original_driver_id=self.original_driver_id,
            uploaded_by=self.uploaded_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
            resolving_choice=self.resolving_choice,
            resolution_started_at=self.resolution_started_at,
        )
