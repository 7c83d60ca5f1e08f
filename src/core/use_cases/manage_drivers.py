"""
Use Case: Manage Drivers

Cadastro/edição/exclusão direta de motoristas (fora do fluxo de lote).
Edições diretas não passam pelo classificador: a unicidade de CPF
não é verificada aqui.
"""

import logging
from dataclasses import replace
from datetime import date

from src.core.entities.driver import (
    OMNILINK_VALIDITY_MONTHS,
    DriverFields,
    DriverRecord,
    normalize_indication,
    only_digits,
    with_omnilink,
)
from src.core.exceptions import InvalidRecordError, RecordNotFoundError
from src.core.interfaces.driver_store import IDriverStore

logger = logging.getLogger(__name__)


class ManageDriversUseCase:
    """Use Case: CRUD simples sobre o cadastro oficial."""

    def __init__(self, driver_store: IDriverStore, validity_months: int = OMNILINK_VALIDITY_MONTHS):
        self._drivers = driver_store
        self._months = validity_months

    def _prepare(self, data: DriverFields, today: date | None) -> DriverFields:
        cpf = only_digits(data.cpf)
        if not data.full_name or not data.full_name.strip() or not cpf:
            raise InvalidRecordError("Nome completo e CPF são obrigatórios")
        data = replace(
            data,
            full_name=data.full_name.strip(),
            cpf=cpf,
            cnh=only_digits(data.cnh),
        )
        data = with_omnilink(data, today=today, months=self._months)
        return normalize_indication(data)

    def create(self, data: DriverFields, today: date | None = None) -> DriverRecord:
        driver = self._drivers.insert(self._prepare(data, today))
        logger.info(f"Driver {driver.id} created")
        return driver

    def update(
        self,
        driver_id: str,
        data: DriverFields,
        expected_revision: int | None = None,
        today: date | None = None,
    ) -> DriverRecord:
        """Atualiza campos mutáveis; CPF permanece o gravado."""
        if self._drivers.get(driver_id) is None:
            raise RecordNotFoundError("Motorista", driver_id)
        driver = self._drivers.update(driver_id, self._prepare(data, today), expected_revision=expected_revision)
        logger.info(f"Driver {driver_id} updated (revision {driver.revision})")
        return driver

    def delete(self, driver_id: str) -> None:
        if not self._drivers.delete(driver_id):
            raise RecordNotFoundError("Motorista", driver_id)
        logger.info(f"Driver {driver_id} deleted")

    def bulk_delete(self, driver_ids: list[str]) -> int:
        deleted = self._drivers.delete_many(list(driver_ids))
        logger.info(f"{deleted} driver(s) deleted")
        return deleted
