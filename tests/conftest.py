import pytest
from sqlalchemy.orm import sessionmaker

from src.core.entities.driver import DriverFields, IndicationStatus
from src.core.use_cases.approval import ApprovalResolver
from src.core.use_cases.classify_batch import ClassifyBatchUseCase
from src.infrastructure.db.database import create_db_engine, init_db
from src.infrastructure.db.repository import DriverRepository, PendingDriverRepository

# --- Fixtures Reutilizáveis ---


@pytest.fixture
def session_factory():
    """Banco SQLite em memória, isolado por teste."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def driver_store(session_factory):
    return DriverRepository(session_factory)


@pytest.fixture
def pending_store(session_factory):
    return PendingDriverRepository(session_factory)


@pytest.fixture
def classifier(driver_store, pending_store):
    return ClassifyBatchUseCase(driver_store, pending_store)


@pytest.fixture
def resolver(driver_store, pending_store):
    return ApprovalResolver(driver_store, pending_store)


@pytest.fixture
def make_fields():
    """Fábrica de DriverFields com valores padrão."""
    def _make(full_name="Ana Souza", cpf="11111111111", cnh=None, **extra):
        extra.setdefault("indication_status", IndicationStatus.NOT_INDICATED)
        return DriverFields(full_name=full_name, cpf=cpf, cnh=cnh, **extra)
    return _make
