"""
Adapter: Logging Notifier

Notificações vão para o log (CLI, jobs, testes). A API devolve a
notificação no corpo da resposta em vez de usar este adapter.
"""

import logging

from src.core.interfaces.notifier import INotifier, Notification

logger = logging.getLogger(__name__)

_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class LoggingNotifier(INotifier):
    """Escreve cada notificação no logger, com severidade equivalente."""

    def __init__(self, log: logging.Logger = None):
        self._log = log or logger
        self.sent: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.sent.append(notification)
        level = _LEVELS.get(notification.level, logging.INFO)
        self._log.log(level, f"{notification.title} {notification.description}".strip())
