"""Exceções do pipeline de motoristas."""


class DriverPipelineError(Exception):
    """Classe base para exceções do pipeline."""


class ReferentialIntegrityError(DriverPipelineError):
    """Entrada pendente referencia um motorista que não existe no cadastro."""

    def __init__(self, pending_id: str, original_driver_id: str):
        self.pending_id = pending_id
        self.original_driver_id = original_driver_id
        super().__init__(
            f"Inconsistência de dados: o motorista original {original_driver_id} "
            f"referenciado pela entrada pendente {pending_id} não foi encontrado. "
            "Rejeite esta entrada ou corrija os dados."
        )


class MalformedIdentifierError(DriverPipelineError):
    """Identificador fora do formato esperado (UUID canônico)."""

    def __init__(self, value, message: str | None = None):
        self.value = value
        super().__init__(message or f"Identificador inválido: {value!r}. Esperado um UUID válido.")


class RecordNotFoundError(DriverPipelineError):
    """Registro endereçado não existe."""

    def __init__(self, resource: str, record_id: str):
        self.resource = resource
        self.record_id = record_id
        super().__init__(f"{resource} não encontrado: {record_id}")


class StoreOperationError(DriverPipelineError):
    """Falha em uma chamada ao banco — preserva a mensagem original."""


class BatchPersistError(StoreOperationError):
    """Uma das duas gravações em massa do lote falhou (sem rollback da outra)."""

    def __init__(self, message: str, inserted: int = 0, staged: int = 0):
        self.inserted = inserted
        self.staged = staged
        super().__init__(message)


class ConcurrentModificationError(DriverPipelineError):
    """Revisão esperada não confere — o registro foi alterado por outra pessoa."""

    def __init__(self, record_id: str, expected: int, actual: int):
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Motorista {record_id} foi alterado por outro operador "
            f"(revisão esperada {expected}, atual {actual})"
        )


class MappingError(DriverPipelineError):
    """Colunas obrigatórias da planilha não foram mapeadas."""

    def __init__(self, missing_labels: list[str]):
        self.missing_labels = missing_labels
        super().__init__(f"Mapeamento incompleto. Mapeie as colunas obrigatórias: {', '.join(missing_labels)}.")


class SpreadsheetReadError(DriverPipelineError):
    """Arquivo não pôde ser lido como tabela."""


class InvalidRecordError(DriverPipelineError):
    """Registro sem os campos obrigatórios (nome completo e CPF)."""
