"""
Pydantic schemas — Request models para a API.
"""

from datetime import date

from pydantic import BaseModel, Field

from src.core.entities.driver import DriverFields, IndicationStatus


class DriverPayload(BaseModel):
    """Cadastro/edição direta de motorista."""
    full_name: str
    cpf: str
    cnh: str | None = None
    cnh_expiry: date | None = None
    phone: str | None = None
    type: str | None = None
    omnilink_registration_date: date | None = None
    indication_status: IndicationStatus | None = IndicationStatus.NOT_INDICATED
    indication_reason: str | None = None
    cnh_pdf_url: str | None = None

    def to_fields(self) -> DriverFields:
        return DriverFields(**self.model_dump())


class DriverUpdatePayload(DriverPayload):
    expected_revision: int | None = None

    def to_fields(self) -> DriverFields:
        return DriverFields(**self.model_dump(exclude={"expected_revision"}))


class ResolveRequest(BaseModel):
    """Escolha do operador para uma duplicidade."""
    choice: str = Field(..., description="keep-authoritative | keep-staged")
    authoritative_id: str
    expected_revision: int | None = None


class IdsRequest(BaseModel):
    ids: list[str] = Field(default_factory=list)
