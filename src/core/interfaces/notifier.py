"""
Contract: Notifier

Canal de notificação para o operador (sucesso/erro de cada operação).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class Notification:
    """Mensagem legível para o operador."""
    level: str                # "success", "info", "warning", "error"
    title: str
    description: str = ""


class INotifier(ABC):
    """
    Port: Notifier

    Implementação pode ser toast na UI, log, e-mail etc.
    """

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        ...
