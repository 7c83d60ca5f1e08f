"""
Entity: Outcomes

Resultados tipados das operações do pipeline (ingestão, aprovação,
resolução, operações em massa). A camada de notificação converte
estes objetos em mensagens — o núcleo nunca fala com a UI.
"""

from dataclasses import dataclass, field
from enum import Enum

from src.core.entities.driver import DriverRecord, PendingDriverRecord


class ApprovalKind(str, Enum):
    APPROVED_NEW = "approved-new"
    ACTION_REQUIRED = "action-required"


class ResolutionChoice(str, Enum):
    KEEP_AUTHORITATIVE = "keep-authoritative"
    KEEP_STAGED = "keep-staged"


class TerminalState(str, Enum):
    """Estados terminais de uma entrada pendente (a linha é excluída em todos)."""
    APPROVED_NEW = "approved-new"
    APPROVED_MERGE_KEEP_AUTHORITATIVE = "approved-merge-keep-authoritative"
    APPROVED_MERGE_KEEP_STAGED = "approved-merge-keep-staged"
    REJECTED = "rejected"


@dataclass
class BatchOutcome:
    """Resultado da classificação + gravação de um lote."""
    inserted: int = 0              # gravados direto no cadastro
    staged: int = 0                # enviados para aprovação
    skipped_invalid: int = 0       # linhas sem nome/CPF


@dataclass
class ApprovalOutcome:
    """Resultado de uma aprovação individual."""
    kind: ApprovalKind
    pending: PendingDriverRecord
    driver: DriverRecord | None = None           # criado (approved-new)
    authoritative: DriverRecord | None = None    # em conflito (action-required)

    @property
    def action_required(self) -> bool:
        return self.kind == ApprovalKind.ACTION_REQUIRED


@dataclass
class ResolutionOutcome:
    """Resultado de uma resolução de duplicidade."""
    state: TerminalState
    pending_id: str
    authoritative_id: str
    driver: DriverRecord | None = None


@dataclass
class BulkOutcome:
    """
    Resultado de operação em massa (best-effort).

    Sempre três números: sucesso, ignorados por duplicidade, falhas.
    """
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    messages: list[str] = field(default_factory=list)

    @property
    def has_problems(self) -> bool:
        return self.failed > 0 or self.skipped > 0
