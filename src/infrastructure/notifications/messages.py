"""
Notification messages — resultados tipados → mensagens para o operador.

Funções puras; o núcleo devolve outcomes/exceções e a borda (API, CLI)
escolhe como exibir.
"""

from src.core.entities.driver import ConflictReason
from src.core.entities.outcomes import (
    ApprovalOutcome,
    BatchOutcome,
    BulkOutcome,
    ResolutionOutcome,
    TerminalState,
)
from src.core.exceptions import BatchPersistError
from src.core.interfaces.notifier import Notification

SUCCESS = "success"
INFO = "info"
WARNING = "warning"
ERROR = "error"

REASON_LABELS = {
    ConflictReason.DUPLICATE_CPF: "CPF já cadastrado",
    ConflictReason.DUPLICATE_CNH: "CNH já cadastrada",
    ConflictReason.BATCH_DUPLICATE_CPF: "CPF repetido na planilha",
    ConflictReason.BATCH_DUPLICATE_CNH: "CNH repetida na planilha",
}


# ─── Upload ──────────────────────────────────────────────────

def batch_message(outcome: BatchOutcome) -> Notification:
    parts = []
    if outcome.inserted:
        parts.append(f"{outcome.inserted} motorista(s) cadastrado(s) com sucesso.")
    if outcome.staged:
        parts.append(f"{outcome.staged} motorista(s) enviado(s) para aprovação do administrador.")
    if not parts:
        parts.append("Nenhum motorista foi processado. Verifique os dados da planilha.")
    if outcome.skipped_invalid:
        parts.append(f"{outcome.skipped_invalid} linha(s) sem nome completo ou CPF ignorada(s).")
    return Notification(SUCCESS, "Upload em massa concluído!", " ".join(parts))


def batch_error_message(error: Exception) -> Notification:
    description = str(error) or "Não foi possível cadastrar os motoristas."
    if isinstance(error, BatchPersistError) and error.inserted:
        description += f" {error.inserted} motorista(s) já haviam sido cadastrado(s) antes da falha."
    return Notification(ERROR, "Erro no upload em massa", description)


def skipped_rows_message(skipped: int, total: int) -> Notification | None:
    """Aviso de pré-visualização: linhas descartadas por falta de nome/CPF."""
    if total and skipped == total:
        return Notification(
            WARNING,
            "Nenhum dado válido encontrado",
            "Verifique se as colunas obrigatórias foram mapeadas corretamente e estão preenchidas.",
        )
    if skipped:
        return Notification(
            INFO,
            "Algumas linhas foram ignoradas",
            f"{skipped} linha(s) sem 'Nome Completo' ou 'CPF' foram desconsideradas.",
        )
    return None


# ─── Aprovação / resolução ───────────────────────────────────

def approval_message(outcome: ApprovalOutcome) -> Notification:
    if outcome.action_required:
        auth = outcome.authoritative
        return Notification(
            WARNING,
            "Duplicação detectada",
            f"Escolha entre o motorista existente {auth.full_name} ({auth.cpf}) "
            f"e a entrada pendente {outcome.pending.full_name} ({outcome.pending.cpf}).",
        )
    return Notification(
        SUCCESS,
        "Motorista aprovado!",
        f"Motorista {outcome.pending.full_name} aprovado e adicionado à lista principal.",
    )


def resolution_message(outcome: ResolutionOutcome) -> Notification:
    if outcome.state == TerminalState.APPROVED_MERGE_KEEP_STAGED:
        description = "Motorista existente atualizado com os novos dados. Entrada pendente removida."
    else:
        description = "Motorista existente mantido. Entrada pendente removida."
    return Notification(SUCCESS, "Duplicação resolvida!", description)


def rejection_message() -> Notification:
    return Notification(SUCCESS, "Motorista rejeitado!", "O motorista pendente foi removido.")


def bulk_approve_message(outcome: BulkOutcome) -> Notification:
    """Sempre os três números: aprovados, ignorados (duplicação), falhas."""
    description = (
        f"{outcome.succeeded} motorista(s) aprovado(s). "
        f"{outcome.skipped} motorista(s) ignorado(s) (duplicação). "
        f"{outcome.failed} falha(s)."
    )
    if outcome.messages:
        description += f" Detalhes: {'; '.join(outcome.messages)}"
    if outcome.has_problems:
        return Notification(ERROR, "Aprovação em massa com problemas", description)
    return Notification(SUCCESS, "Aprovação em massa concluída!", description)


def bulk_reject_message(outcome: BulkOutcome) -> Notification:
    description = (
        f"{outcome.succeeded} motorista(s) pendente(s) removido(s). "
        f"{outcome.skipped} ignorado(s). "
        f"{outcome.failed} falha(s)."
    )
    if outcome.messages:
        description += f" Detalhes: {'; '.join(outcome.messages)}"
    if outcome.failed:
        return Notification(ERROR, "Rejeição em massa com problemas", description)
    return Notification(SUCCESS, "Rejeição em massa concluída!", description)


def recovery_message(recovered: list[str]) -> Notification:
    if not recovered:
        return Notification(INFO, "Nada a recuperar", "Nenhuma resolução interrompida encontrada.")
    return Notification(
        SUCCESS,
        "Resoluções concluídas",
        f"{len(recovered)} entrada(s) pendente(s) já aplicada(s) foram removida(s).",
    )


# ─── Cadastro direto ─────────────────────────────────────────

def driver_saved_message(created: bool) -> Notification:
    if created:
        return Notification(SUCCESS, "Motorista adicionado!", "Novo motorista cadastrado com sucesso.")
    return Notification(SUCCESS, "Motorista atualizado!", "Os dados do motorista foram atualizados.")


def driver_deleted_message(count: int = 1) -> Notification:
    if count == 1:
        return Notification(SUCCESS, "Motorista excluído!", "O motorista foi removido do sistema.")
    return Notification(SUCCESS, "Motoristas excluídos!", f"{count} motorista(s) foram removido(s) do sistema.")


# ─── Erros ───────────────────────────────────────────────────

ERROR_TITLES = {
    "upload": "Erro no upload em massa",
    "approve": "Erro ao aprovar motorista",
    "resolve": "Erro ao resolver duplicação",
    "reject": "Erro ao rejeitar motorista",
    "bulk-approve": "Erro na aprovação em massa",
    "bulk-reject": "Erro na rejeição em massa",
    "save": "Erro ao salvar motorista",
    "delete": "Erro ao excluir motorista",
    "recover": "Erro ao recuperar resoluções",
    "mapping": "Mapeamento incompleto",
}


def error_message(operation: str, error: Exception) -> Notification:
    if operation == "upload":
        return batch_error_message(error)
    title = ERROR_TITLES.get(operation, "Erro")
    return Notification(ERROR, title, str(error) or "Operação não concluída.")


def describe_reasons(reasons) -> str:
    """Tags de conflito → texto legível ("CPF já cadastrado, CNH repetida na planilha")."""
    return ", ".join(REASON_LABELS[r] for r in ConflictReason if r in set(reasons))
