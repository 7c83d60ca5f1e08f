"""
Contract: Driver Stores

Cadastro oficial de motoristas (Record Store) e área de quarentena
(Staging Store). Cada método corresponde a uma chamada independente
ao banco — não existe transação envolvendo os dois stores.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.core.entities.driver import DriverFields, DriverRecord, PendingDriverRecord


@dataclass(frozen=True)
class DriverKey:
    """Chaves de negócio de um motorista cadastrado."""
    id: str
    cpf: str
    cnh: str | None = None


class IDriverStore(ABC):
    """
    Port: Record Store

    Tabela oficial de motoristas aceitos. CPF é a chave natural
    (unicidade garantida apenas pelo classificador de lotes).
    """

    @abstractmethod
    def list_all(self) -> list[DriverRecord]:
        """Todos os motoristas cadastrados."""
        ...

    @abstractmethod
    def list_keys(self) -> list[DriverKey]:
        """Apenas (id, cpf, cnh) de todos os motoristas — carga leve por lote."""
        ...

    @abstractmethod
    def get(self, driver_id: str) -> DriverRecord | None:
        ...

    @abstractmethod
    def get_many(self, driver_ids: list[str]) -> list[DriverRecord]:
        ...

    @abstractmethod
    def find_by_cpf(self, cpf: str) -> list[DriverRecord]:
        """Motoristas com o CPF informado (normalmente 0 ou 1)."""
        ...

    @abstractmethod
    def insert(self, data: DriverFields, driver_id: str | None = None) -> DriverRecord:
        """Grava um motorista; `driver_id` fixa o id (senão um UUID novo)."""
        ...

    @abstractmethod
    def insert_many(self, rows: list[DriverFields]) -> int:
        """
        Grava vários motoristas em uma única operação.

        Returns:
            Quantidade gravada.
        """
        ...

    @abstractmethod
    def update(self, driver_id: str, data: DriverFields, expected_revision: int | None = None) -> DriverRecord:
        """
        Sobrescreve os campos mutáveis (todos exceto CPF) de um motorista.

        Args:
            driver_id: Motorista a atualizar.
            data: Novos valores.
            expected_revision: Se informado, falha quando a revisão atual difere.

        Returns:
            O registro atualizado (revisão incrementada).
        """
        ...

    @abstractmethod
    def delete(self, driver_id: str) -> bool:
        ...

    @abstractmethod
    def delete_many(self, driver_ids: list[str]) -> int:
        ...


class IPendingDriverStore(ABC):
    """
    Port: Staging Store

    Quarentena de linhas aguardando decisão. Somente o classificador
    (insert) e o resolvedor (delete) escrevem aqui.
    """

    @abstractmethod
    def list_pending(self) -> list[PendingDriverRecord]:
        """Entradas com status 'pending', em ordem de criação."""
        ...

    @abstractmethod
    def get(self, pending_id: str) -> PendingDriverRecord | None:
        ...

    @abstractmethod
    def get_many(self, pending_ids: list[str]) -> list[PendingDriverRecord]:
        ...

    @abstractmethod
    def insert_many(self, rows: list[PendingDriverRecord]) -> int:
        ...

    @abstractmethod
    def mark_resolving(self, pending_id: str, choice: str) -> bool:
        """
        Registra que uma decisão começou a ser aplicada.

        Gravado antes do insert/update no cadastro; a recuperação só
        conclui entradas que carregam esse marcador.

        Returns:
            True se a linha existia.
        """
        ...

    @abstractmethod
    def delete(self, pending_id: str) -> bool:
        """
        Remove uma entrada.

        Returns:
            True se a linha existia.
        """
        ...
