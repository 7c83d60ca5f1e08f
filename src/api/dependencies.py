"""
Composition root da API — use cases montados com adapters concretos.
"""

from fastapi import Header

from src.config.settings import get_settings
from src.core.use_cases.approval import ApprovalResolver
from src.core.use_cases.classify_batch import ClassifyBatchUseCase
from src.core.use_cases.manage_drivers import ManageDriversUseCase
from src.core.use_cases.merged_view import DriverViewService
from src.infrastructure.db.repository import DriverRepository, PendingDriverRepository

# Lazy singletons
_driver_store = None
_pending_store = None
_view_service = None


def get_driver_store() -> DriverRepository:
    global _driver_store
    if _driver_store is None:
        _driver_store = DriverRepository()
    return _driver_store


def get_pending_store() -> PendingDriverRepository:
    global _pending_store
    if _pending_store is None:
        _pending_store = PendingDriverRepository()
    return _pending_store


def get_classifier() -> ClassifyBatchUseCase:
    return ClassifyBatchUseCase(get_driver_store(), get_pending_store())


def get_resolver() -> ApprovalResolver:
    return ApprovalResolver(get_driver_store(), get_pending_store())


def get_manager() -> ManageDriversUseCase:
    return ManageDriversUseCase(get_driver_store(), validity_months=get_settings().omnilink_validity_months)


def get_view_service() -> DriverViewService:
    """Único por processo: o sequenciador precisa ver todas as reconstruções."""
    global _view_service
    if _view_service is None:
        _view_service = DriverViewService(get_driver_store(), get_pending_store())
    return _view_service


def current_user(x_user_id: str | None = Header(default=None)) -> str | None:
    """Operador autenticado (vem do provedor de identidade via cabeçalho)."""
    return x_user_id or None
