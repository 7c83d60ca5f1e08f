"""
Driver Repositories — SQLAlchemy adapters for the store ports.

Handles:
  - Cadastro oficial (driver_record)
  - Quarentena (pending_driver_record)

Cada método abre e confirma sua própria sessão: não há transação
envolvendo as duas tabelas.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import asc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from src.core.entities.driver import (
    MUTABLE_FIELDS,
    PENDING_STATUS,
    DriverFields,
    DriverRecord,
    PendingDriverRecord,
)
from src.core.exceptions import ConcurrentModificationError, RecordNotFoundError, StoreOperationError
from src.core.interfaces.driver_store import DriverKey, IDriverStore, IPendingDriverStore
from src.infrastructure.db.database import get_db
from src.infrastructure.db.models import DriverRow, PendingDriverRow, utcnow

logger = logging.getLogger(__name__)


class _SqlStore:
    """Sessão por operação; erros de banco viram StoreOperationError."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._factory = session_factory

    @contextmanager
    def _session(self):
        try:
            with get_db(self._factory) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Database error in {type(self).__name__}: {e}")
            raise StoreOperationError(str(e)) from e


class DriverRepository(_SqlStore, IDriverStore):
    """Adapter: Record Store."""

    def list_all(self) -> list[DriverRecord]:
        with self._session() as db:
            rows = db.query(DriverRow).order_by(asc(DriverRow.created_at)).all()
            return [r.to_entity() for r in rows]

    def list_keys(self) -> list[DriverKey]:
        with self._session() as db:
            rows = (
                db.query(DriverRow.id, DriverRow.cpf, DriverRow.cnh)
                .order_by(asc(DriverRow.created_at))
                .all()
            )
            return [DriverKey(id=r.id, cpf=r.cpf, cnh=r.cnh) for r in rows]

    def get(self, driver_id: str) -> Optional[DriverRecord]:
        with self._session() as db:
            row = db.get(DriverRow, driver_id)
            return row.to_entity() if row else None

    def get_many(self, driver_ids: list[str]) -> list[DriverRecord]:
        if not driver_ids:
            return []
        with self._session() as db:
            rows = db.query(DriverRow).filter(DriverRow.id.in_(set(driver_ids))).all()
            return [r.to_entity() for r in rows]

    def find_by_cpf(self, cpf: str) -> list[DriverRecord]:
        with self._session() as db:
            rows = db.query(DriverRow).filter_by(cpf=cpf).order_by(asc(DriverRow.created_at)).all()
            return [r.to_entity() for r in rows]

    def insert(self, data: DriverFields, driver_id: str = None) -> DriverRecord:
        with self._session() as db:
            row = DriverRow.from_fields(data, driver_id)
            db.add(row)
            db.flush()
            logger.debug(f"Inserted driver {row.id}")
            return row.to_entity()

    def insert_many(self, rows: list[DriverFields]) -> int:
        if not rows:
            return 0
        with self._session() as db:
            db.add_all([DriverRow.from_fields(r) for r in rows])
            logger.info(f"Inserted {len(rows)} driver(s)")
            return len(rows)

    def update(self, driver_id: str, data: DriverFields, expected_revision: int = None) -> DriverRecord:
        with self._session() as db:
            row = db.get(DriverRow, driver_id)
            if row is None:
                raise RecordNotFoundError("Motorista", driver_id)
            if expected_revision is not None and row.revision != expected_revision:
                raise ConcurrentModificationError(driver_id, expected_revision, row.revision)
            row.apply_fields(data, names=MUTABLE_FIELDS)
            row.revision = (row.revision or 1) + 1
            db.flush()
            logger.info(f"Updated driver {driver_id} -> revision {row.revision}")
            return row.to_entity()

    def delete(self, driver_id: str) -> bool:
        with self._session() as db:
            deleted = db.query(DriverRow).filter_by(id=driver_id).delete(synchronize_session=False)
            return deleted > 0

    def delete_many(self, driver_ids: list[str]) -> int:
        if not driver_ids:
            return 0
        with self._session() as db:
            return (
                db.query(DriverRow)
                .filter(DriverRow.id.in_(set(driver_ids)))
                .delete(synchronize_session=False)
            )


class PendingDriverRepository(_SqlStore, IPendingDriverStore):
    """Adapter: Staging Store."""

    def list_pending(self) -> list[PendingDriverRecord]:
        with self._session() as db:
            rows = (
                db.query(PendingDriverRow)
                .filter_by(status=PENDING_STATUS)
                .order_by(asc(PendingDriverRow.created_at))
                .all()
            )
            return [r.to_entity() for r in rows]

    def get(self, pending_id: str) -> Optional[PendingDriverRecord]:
        with self._session() as db:
            row = db.get(PendingDriverRow, pending_id)
            return row.to_entity() if row else None

    def get_many(self, pending_ids: list[str]) -> list[PendingDriverRecord]:
        if not pending_ids:
            return []
        with self._session() as db:
            rows = db.query(PendingDriverRow).filter(PendingDriverRow.id.in_(set(pending_ids))).all()
            return [r.to_entity() for r in rows]

    def insert_many(self, rows: list[PendingDriverRecord]) -> int:
        if not rows:
            return 0
        with self._session() as db:
            db.add_all([PendingDriverRow.from_entity(r) for r in rows])
            logger.info(f"Staged {len(rows)} pending driver(s)")
            return len(rows)

    def mark_resolving(self, pending_id: str, choice: str) -> bool:
        with self._session() as db:
            row = db.get(PendingDriverRow, pending_id)
            if row is None:
                return False
            row.resolving_choice = choice
            row.resolution_started_at = utcnow()
            logger.debug(f"Pending {pending_id} marked as resolving ({choice})")
            return True

    def delete(self, pending_id: str) -> bool:
        with self._session() as db:
            deleted = db.query(PendingDriverRow).filter_by(id=pending_id).delete(synchronize_session=False)
            return deleted > 0
