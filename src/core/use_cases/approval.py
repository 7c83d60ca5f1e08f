"""
Use Case: Approval Resolver

Consome uma entrada pendente (e o motorista oficial referenciado, se
houver) e decide: aprovação direta, escolha humana entre "manter
existente" / "manter novo", ou erro de integridade.

Nenhuma operação aqui é atômica entre os dois stores: update + delete
são chamadas sequenciais. Antes do insert/update a pendente recebe
um marcador de decisão; os passos são idempotentes, então uma decisão
interrompida pode ser repetida ou concluída por `recover_interrupted`.
"""

import logging
import re

from src.core.entities.driver import (
    MUTABLE_FIELDS,
    DriverRecord,
    PendingDriverRecord,
)
from src.core.entities.outcomes import (
    ApprovalKind,
    ApprovalOutcome,
    BulkOutcome,
    ResolutionChoice,
    ResolutionOutcome,
    TerminalState,
)
from src.core.exceptions import (
    DriverPipelineError,
    MalformedIdentifierError,
    RecordNotFoundError,
    ReferentialIntegrityError,
    StoreOperationError,
)
from src.core.interfaces.driver_store import IDriverStore, IPendingDriverStore

logger = logging.getLogger(__name__)

APPROVE_NEW_MARK = "approve-new"

_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def is_well_formed_id(value) -> bool:
    """UUID canônico de 36 caracteres."""
    return isinstance(value, str) and len(value) == 36 and bool(_UUID_RE.match(value))


def same_values(a, b, names=MUTABLE_FIELDS) -> bool:
    return all(getattr(a, n) == getattr(b, n) for n in names)


class ApprovalResolver:
    """
    Use Case: ciclo de vida da quarentena.

    pending → approved-new | approved-merge-keep-authoritative |
              approved-merge-keep-staged | rejected
    Todo estado terminal exclui a entrada pendente.
    """

    def __init__(self, driver_store: IDriverStore, pending_store: IPendingDriverStore):
        self._drivers = driver_store
        self._pending = pending_store

    # ─── Leitura ─────────────────────────────────────────────

    def get_conflict(self, pending_id: str) -> tuple[PendingDriverRecord, DriverRecord | None]:
        """Entrada pendente + motorista oficial referenciado (se houver)."""
        pending = self._require_pending(pending_id)
        authoritative = None
        if pending.original_driver_id:
            authoritative = self._drivers.get(pending.original_driver_id)
        return pending, authoritative

    # ─── Aprovação individual ────────────────────────────────

    def approve(self, pending_id: str) -> ApprovalOutcome:
        """
        Aprova uma entrada pendente.

        - Sem referência → vira motorista novo (approved-new).
        - Referência válida → ACTION_REQUIRED; nada é alterado.
        - Referência quebrada → ReferentialIntegrityError; a entrada permanece.
        """
        pending, authoritative = self.get_conflict(pending_id)

        if pending.original_driver_id is None:
            driver = self._approve_new(pending)
            return ApprovalOutcome(kind=ApprovalKind.APPROVED_NEW, pending=pending, driver=driver)

        if authoritative is None:
            logger.warning(
                f"Pending {pending.id} references missing driver {pending.original_driver_id}"
            )
            raise ReferentialIntegrityError(pending.id, pending.original_driver_id)

        logger.info(f"Pending {pending.id} conflicts with driver {authoritative.id}; choice required")
        return ApprovalOutcome(
            kind=ApprovalKind.ACTION_REQUIRED,
            pending=pending,
            authoritative=authoritative,
        )

    def _approve_new(self, pending: PendingDriverRecord) -> DriverRecord:
        # O motorista novo herda o id da pendente: numa retentativa o insert
        # já feito é encontrado pelo id, e uma cópia legítima (outra pendente)
        # continua gerando um registro próprio.
        self._pending.mark_resolving(pending.id, APPROVE_NEW_MARK)
        driver = self._drivers.get(pending.id)
        if driver is None:
            driver = self._drivers.insert(pending.business_fields(), driver_id=pending.id)
        else:
            logger.info(f"Pending {pending.id} was already inserted as driver {driver.id}; finishing")

        try:
            self._pending.delete(pending.id)
        except StoreOperationError as e:
            raise StoreOperationError(
                f"Motorista {driver.id} inserido, mas falha ao remover entrada pendente {pending.id}: {e}. "
                "Repita a aprovação para concluir."
            ) from e

        logger.info(f"Pending {pending.id} approved as new driver {driver.id}")
        return driver

    # ─── Resolução de duplicidade ────────────────────────────

    def resolve(
        self,
        choice: ResolutionChoice | str,
        pending_id: str,
        authoritative_id: str,
        expected_revision: int | None = None,
    ) -> ResolutionOutcome:
        """
        Aplica a escolha do operador para uma duplicidade.

        Args:
            choice: keep-authoritative (descarta a pendente) ou
                keep-staged (sobrescreve o oficial, exceto CPF).
            pending_id: Entrada pendente.
            authoritative_id: Motorista oficial — precisa ser UUID válido.
            expected_revision: Revisão do oficial vista pelo operador (opcional).

        Returns:
            ResolutionOutcome com o estado terminal.
        """
        if not is_well_formed_id(authoritative_id):
            raise MalformedIdentifierError(authoritative_id)
        try:
            choice = ResolutionChoice(choice)
        except ValueError:
            raise MalformedIdentifierError(choice, f"Escolha inválida: {choice!r}") from None

        pending = self._require_pending(pending_id)
        if pending.original_driver_id != authoritative_id:
            raise MalformedIdentifierError(
                authoritative_id,
                f"A entrada pendente {pending_id} não referencia o motorista {authoritative_id}",
            )

        if choice == ResolutionChoice.KEEP_AUTHORITATIVE:
            self._delete_pending(pending.id)
            logger.info(f"Duplicate {pending.id} resolved: kept existing driver {authoritative_id}")
            return ResolutionOutcome(
                state=TerminalState.APPROVED_MERGE_KEEP_AUTHORITATIVE,
                pending_id=pending.id,
                authoritative_id=authoritative_id,
            )

        authoritative = self._drivers.get(authoritative_id)
        if authoritative is None:
            raise ReferentialIntegrityError(pending.id, authoritative_id)

        # 1. Marca a decisão e atualiza o oficial (pulado se já aplicado numa tentativa anterior)
        self._pending.mark_resolving(pending.id, ResolutionChoice.KEEP_STAGED.value)
        if same_values(authoritative, pending):
            driver = authoritative
        else:
            driver = self._drivers.update(authoritative_id, pending, expected_revision=expected_revision)

        # 2. Exclui a pendente
        try:
            self._delete_pending(pending.id)
        except StoreOperationError as e:
            logger.error(f"Driver {authoritative_id} updated but pending {pending.id} delete failed: {e}")
            raise StoreOperationError(
                f"Motorista {authoritative_id} atualizado, mas falha ao remover entrada pendente: {e}. "
                "Repita a resolução para concluir."
            ) from e

        logger.info(f"Duplicate {pending.id} resolved: driver {authoritative_id} overwritten")
        return ResolutionOutcome(
            state=TerminalState.APPROVED_MERGE_KEEP_STAGED,
            pending_id=pending.id,
            authoritative_id=authoritative_id,
            driver=driver,
        )

    # ─── Rejeição ────────────────────────────────────────────

    def reject(self, pending_id: str) -> None:
        """Exclui a entrada pendente, qualquer que seja o conflito."""
        self._delete_pending(pending_id)
        logger.info(f"Pending {pending_id} rejected")

    # ─── Operações em massa ──────────────────────────────────

    def bulk_approve(self, pending_ids: list[str]) -> BulkOutcome:
        """
        Aprova várias entradas, uma por vez (best-effort).

        Duplicatas com motorista oficial resolvível são ignoradas — exigem
        revisão individual. Falha numa linha não bloqueia as demais.
        """
        outcome = BulkOutcome()
        try:
            by_id = {p.id: p for p in self._pending.get_many(list(pending_ids))}
            references = {p.original_driver_id for p in by_id.values() if p.original_driver_id}
            known = {d.id for d in self._drivers.get_many(sorted(references))} if references else set()
        except StoreOperationError as e:
            # Sem a pré-carga, cada linha é buscada individualmente
            logger.warning(f"Bulk approve preload failed, looking up rows one by one: {e}")
            by_id, known = None, None

        for pending_id in pending_ids:
            try:
                pending, resolvable = self._bulk_lookup(pending_id, by_id, known)
            except DriverPipelineError as e:
                logger.warning(f"Bulk approve lookup failed for {pending_id}: {e}")
                outcome.failed += 1
                outcome.messages.append(f"Falha ao carregar entrada pendente {pending_id}: {e}")
                continue

            if pending is None:
                outcome.failed += 1
                outcome.messages.append(f"Entrada pendente {pending_id} não encontrada.")
                continue

            if resolvable:
                outcome.skipped += 1
                outcome.messages.append(
                    f"Motorista {pending.full_name} ({pending.cpf}) é uma duplicação e requer revisão individual."
                )
                continue

            if pending.original_driver_id:
                outcome.failed += 1
                outcome.messages.append(str(ReferentialIntegrityError(pending.id, pending.original_driver_id)))
                continue

            try:
                self._approve_new(pending)
                outcome.succeeded += 1
            except DriverPipelineError as e:
                logger.warning(f"Bulk approve failed for {pending.id}: {e}")
                outcome.failed += 1
                outcome.messages.append(f"Falha ao aprovar {pending.full_name}: {e}")

        logger.info(
            f"Bulk approve: {outcome.succeeded} approved, {outcome.skipped} skipped, {outcome.failed} failed"
        )
        return outcome

    def _bulk_lookup(self, pending_id: str, by_id, known) -> tuple[PendingDriverRecord | None, bool]:
        """Entrada pendente + se a referência dela resolve para um motorista."""
        if by_id is not None:
            pending = by_id.get(pending_id)
            return pending, bool(pending and pending.original_driver_id in known)
        pending = self._pending.get(pending_id)
        if pending is None or not pending.original_driver_id:
            return pending, False
        return pending, self._drivers.get(pending.original_driver_id) is not None

    def bulk_reject(self, pending_ids: list[str]) -> BulkOutcome:
        """Rejeita várias entradas, uma por vez (best-effort)."""
        outcome = BulkOutcome()
        for pending_id in pending_ids:
            try:
                self._delete_pending(pending_id)
                outcome.succeeded += 1
            except DriverPipelineError as e:
                logger.warning(f"Bulk reject failed for {pending_id}: {e}")
                outcome.failed += 1
                outcome.messages.append(str(e))

        logger.info(f"Bulk reject: {outcome.succeeded} rejected, {outcome.failed} failed")
        return outcome

    # ─── Recuperação ─────────────────────────────────────────

    def recover_interrupted(self) -> list[str]:
        """
        Conclui decisões que pararam no meio (insert/update feito, delete não).

        Só entradas com marcador de decisão são consideradas; uma
        pendente nunca decidida permanece na quarentena mesmo que seus
        campos coincidam com um motorista cadastrado.

        Returns:
            IDs das entradas pendentes concluídas.
        """
        recovered = []
        for pending in self._pending.list_pending():
            if not pending.resolving_choice:
                continue

            if pending.resolving_choice == APPROVE_NEW_MARK:
                applied = self._drivers.get(pending.id) is not None
            elif pending.resolving_choice == ResolutionChoice.KEEP_STAGED.value and pending.original_driver_id:
                target = self._drivers.get(pending.original_driver_id)
                applied = target is not None and same_values(target, pending)
            else:
                applied = False

            if not applied:
                logger.info(
                    f"Pending {pending.id} marked {pending.resolving_choice} but not applied; left for the operator"
                )
                continue

            self._pending.delete(pending.id)
            recovered.append(pending.id)
            logger.warning(f"Recovered interrupted {pending.resolving_choice} for pending {pending.id}")

        return recovered

    # ─── Helpers ─────────────────────────────────────────────

    def _require_pending(self, pending_id: str) -> PendingDriverRecord:
        pending = self._pending.get(pending_id)
        if pending is None:
            raise RecordNotFoundError("Entrada pendente", pending_id)
        return pending

    def _delete_pending(self, pending_id: str) -> None:
        if not self._pending.delete(pending_id):
            raise RecordNotFoundError("Entrada pendente", pending_id)
