"""
Use Case: Classify Batch

Recebe as linhas de uma planilha → separa em "gravar direto" e
"enviar para aprovação", comparando com o cadastro oficial e com
as demais linhas do próprio lote.
"""

import logging
from dataclasses import dataclass, field, replace

from src.core.entities.driver import (
    ConflictReason,
    DriverFields,
    PendingDriverRecord,
    PENDING_STATUS,
    is_valid_row,
    only_digits,
)
from src.core.entities.outcomes import BatchOutcome
from src.core.exceptions import BatchPersistError, StoreOperationError
from src.core.interfaces.driver_store import DriverKey, IDriverStore, IPendingDriverStore

logger = logging.getLogger(__name__)


@dataclass
class BatchPlan:
    """Resultado puro da classificação (nada gravado ainda)."""
    to_insert: list[DriverFields] = field(default_factory=list)
    to_stage: list[PendingDriverRecord] = field(default_factory=list)
    skipped_invalid: int = 0


def classify_rows(
    rows: list[DriverFields],
    existing: list[DriverKey],
    uploaded_by: str | None = None,
) -> BatchPlan:
    """
    Classifica as linhas na ordem de entrada.

    Args:
        rows: Linhas já mapeadas da planilha.
        existing: Chaves (id, cpf, cnh) do cadastro oficial, carregadas uma vez.
        uploaded_by: Operador responsável pelo upload.

    Returns:
        BatchPlan com as linhas a gravar e as linhas em quarentena.
    """
    # Primeiro match vence
    cpf_index: dict[str, str] = {}
    cnh_index: dict[str, str] = {}
    for key in existing:
        cpf_index.setdefault(key.cpf, key.id)
        if key.cnh:
            cnh_index.setdefault(key.cnh, key.id)

    batch_cpfs: set[str] = set()
    batch_cnhs: set[str] = set()
    plan = BatchPlan()

    for row in rows:
        if not is_valid_row(row):
            plan.skipped_invalid += 1
            continue

        row = replace(row, full_name=row.full_name.strip(), cpf=only_digits(row.cpf), cnh=only_digits(row.cnh))
        reasons: set[ConflictReason] = set()
        reference: str | None = None

        # ── Conflitos com o cadastro oficial ──
        if row.cpf in cpf_index:
            reasons.add(ConflictReason.DUPLICATE_CPF)
            reference = cpf_index[row.cpf]

        if row.cnh and row.cnh in cnh_index:
            reasons.add(ConflictReason.DUPLICATE_CNH)
            if reference is None:
                reference = cnh_index[row.cnh]

        # ── Conflitos dentro do lote ──
        if row.cpf in batch_cpfs:
            reasons.add(ConflictReason.BATCH_DUPLICATE_CPF)
        else:
            batch_cpfs.add(row.cpf)

        if row.cnh:
            if row.cnh in batch_cnhs:
                reasons.add(ConflictReason.BATCH_DUPLICATE_CNH)
            else:
                batch_cnhs.add(row.cnh)

        if reasons:
            plan.to_stage.append(PendingDriverRecord(
                **vars(row.business_fields()),
                status=PENDING_STATUS,
                reasons=frozenset(reasons),
                original_driver_id=reference,
                uploaded_by=uploaded_by,
            ))
        else:
            plan.to_insert.append(row.business_fields())

    return plan


class ClassifyBatchUseCase:
    """
    Use Case: classifica um lote e grava nos dois stores.

    Duas gravações em massa independentes — sem transação entre elas.
    Se a segunda falhar, a primeira NÃO é desfeita; o erro informa
    quantas linhas já foram gravadas.
    """

    def __init__(self, driver_store: IDriverStore, pending_store: IPendingDriverStore):
        self._drivers = driver_store
        self._pending = pending_store

    def plan(self, rows: list[DriverFields], uploaded_by: str | None = None) -> BatchPlan:
        """Classifica sem gravar (carrega o cadastro uma única vez)."""
        try:
            existing = self._drivers.list_keys()
        except StoreOperationError as e:
            raise StoreOperationError(f"Erro ao buscar motoristas existentes: {e}") from e
        return classify_rows(rows, existing, uploaded_by=uploaded_by)

    def execute(self, rows: list[DriverFields], uploaded_by: str | None = None) -> BatchOutcome:
        plan = self.plan(rows, uploaded_by=uploaded_by)
        outcome = BatchOutcome(skipped_invalid=plan.skipped_invalid)

        if plan.skipped_invalid:
            logger.warning(f"{plan.skipped_invalid} linha(s) sem nome ou CPF ignorada(s)")

        if plan.to_insert:
            try:
                outcome.inserted = self._drivers.insert_many(plan.to_insert)
            except StoreOperationError as e:
                logger.error(f"Bulk insert into driver store failed: {e}")
                raise BatchPersistError(f"Erro ao inserir motoristas únicos: {e}") from e

        if plan.to_stage:
            try:
                outcome.staged = self._pending.insert_many(plan.to_stage)
            except StoreOperationError as e:
                logger.error(f"Bulk insert into staging store failed after {outcome.inserted} direct inserts: {e}")
                raise BatchPersistError(
                    f"Erro ao enviar motoristas para aprovação: {e}",
                    inserted=outcome.inserted,
                ) from e

        logger.info(
            f"Batch classified: {outcome.inserted} inserted, {outcome.staged} staged, "
            f"{outcome.skipped_invalid} skipped"
        )
        return outcome
