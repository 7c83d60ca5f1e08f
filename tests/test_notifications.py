import logging

from src.core.entities.driver import ConflictReason, DriverRecord, PendingDriverRecord
from src.core.entities.outcomes import (
    ApprovalKind,
    ApprovalOutcome,
    BatchOutcome,
    BulkOutcome,
    ResolutionOutcome,
    TerminalState,
)
from src.core.exceptions import BatchPersistError, ReferentialIntegrityError
from src.infrastructure.notifications.logging_notifier import LoggingNotifier
from src.infrastructure.notifications.messages import (
    approval_message,
    batch_message,
    bulk_approve_message,
    bulk_reject_message,
    describe_reasons,
    error_message,
    resolution_message,
    skipped_rows_message,
)


class TestMessages:
    """Todo resultado vira uma mensagem legível."""

    def test_batch_counts(self):
        note = batch_message(BatchOutcome(inserted=3, staged=2, skipped_invalid=1))
        assert note.level == "success"
        assert "3 motorista(s) cadastrado(s)" in note.description
        assert "2 motorista(s) enviado(s) para aprovação" in note.description
        assert "1 linha(s)" in note.description

    def test_empty_batch(self):
        assert "Nenhum motorista foi processado" in batch_message(BatchOutcome()).description

    def test_partial_batch_failure_mentions_persisted_rows(self):
        note = error_message("upload", BatchPersistError("Erro ao enviar motoristas para aprovação: x", inserted=4))
        assert note.level == "error"
        assert "4 motorista(s) já haviam sido cadastrado(s)" in note.description

    def test_bulk_always_has_three_numbers(self):
        note = bulk_approve_message(BulkOutcome(succeeded=2))
        assert note.level == "success"
        assert "2 motorista(s) aprovado(s). 0 motorista(s) ignorado(s) (duplicação). 0 falha(s)." in note.description

        problems = bulk_approve_message(BulkOutcome(succeeded=1, skipped=1, messages=["duplicação"]))
        assert problems.level == "error"
        assert problems.title == "Aprovação em massa com problemas"

        rejected = bulk_reject_message(BulkOutcome(succeeded=1, failed=1, messages=["não encontrada"]))
        assert "1 falha(s)" in rejected.description

    def test_action_required(self):
        outcome = ApprovalOutcome(
            kind=ApprovalKind.ACTION_REQUIRED,
            pending=PendingDriverRecord(full_name="Bruno L.", cpf="2"),
            authoritative=DriverRecord(id="d1", full_name="Bruno Lima", cpf="2"),
        )
        note = approval_message(outcome)
        assert note.level == "warning"
        assert "Bruno Lima" in note.description

    def test_resolution(self):
        note = resolution_message(ResolutionOutcome(TerminalState.APPROVED_MERGE_KEEP_STAGED, "p", "d"))
        assert note.description.startswith("Motorista existente atualizado")

    def test_integrity_error(self):
        note = error_message("approve", ReferentialIntegrityError("p1", "d1"))
        assert note.title == "Erro ao aprovar motorista"
        assert "d1" in note.description

    def test_skipped_rows(self):
        assert skipped_rows_message(0, 5) is None
        assert skipped_rows_message(5, 5).level == "warning"
        assert skipped_rows_message(2, 5).level == "info"

    def test_describe_reasons(self):
        reasons = {ConflictReason.BATCH_DUPLICATE_CNH, ConflictReason.DUPLICATE_CPF}
        assert describe_reasons(reasons) == "CPF já cadastrado, CNH repetida na planilha"


class TestLoggingNotifier:

    def test_logs_with_matching_severity(self, caplog):
        notifier = LoggingNotifier()
        with caplog.at_level(logging.INFO):
            notifier.notify(batch_message(BatchOutcome(inserted=1)))
            notifier.notify(error_message("reject", RuntimeError("boom")))

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.INFO, logging.ERROR]
        assert "Erro ao rejeitar motorista boom" in caplog.records[1].getMessage()
        assert len(notifier.sent) == 2
