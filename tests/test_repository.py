import uuid
from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from src.core.entities.driver import ConflictReason, IndicationStatus, OmnilinkStatus, PendingDriverRecord
from src.core.exceptions import ConcurrentModificationError, RecordNotFoundError, StoreOperationError
from src.infrastructure.db.models import PendingDriverRow


class TestDriverRepository:

    def test_insert_generates_uuid_and_round_trips_enums(self, driver_store, make_fields):
        driver = driver_store.insert(make_fields(
            omnilink_registration_date=date(2024, 3, 15),
            omnilink_expiry_date=date(2024, 9, 15),
            omnilink_status=OmnilinkStatus.CURRENT,
            cnh_pdf_url="https://files.example/cnh.pdf",
        ))

        loaded = driver_store.get(driver.id)
        assert len(driver.id) == 36
        assert loaded.omnilink_status == OmnilinkStatus.CURRENT
        assert loaded.indication_status == IndicationStatus.NOT_INDICATED
        assert loaded.cnh_pdf_url == "https://files.example/cnh.pdf"
        assert loaded.revision == 1
        assert loaded.created_at is not None

    def test_list_keys_and_find_by_cpf(self, driver_store, make_fields):
        driver_store.insert_many([make_fields("A", "1", cnh="10"), make_fields("B", "2")])
        keys = {k.cpf: k for k in driver_store.list_keys()}
        assert keys["1"].cnh == "10"
        assert keys["2"].cnh is None
        assert [d.full_name for d in driver_store.find_by_cpf("2")] == ["B"]

    def test_update_bumps_revision_and_keeps_cpf(self, driver_store, make_fields):
        driver = driver_store.insert(make_fields("Ana", "1"))
        updated = driver_store.update(driver.id, make_fields("Ana Maria", "999"), expected_revision=1)
        assert updated.full_name == "Ana Maria"
        assert updated.cpf == "1"
        assert updated.revision == 2

    def test_update_with_stale_revision(self, driver_store, make_fields):
        driver = driver_store.insert(make_fields())
        driver_store.update(driver.id, make_fields("Outro"))
        with pytest.raises(ConcurrentModificationError) as exc:
            driver_store.update(driver.id, make_fields("Terceiro"), expected_revision=1)
        assert exc.value.actual == 2
        assert driver_store.get(driver.id).full_name == "Outro"

    def test_update_missing(self, driver_store, make_fields):
        with pytest.raises(RecordNotFoundError):
            driver_store.update(str(uuid.uuid4()), make_fields())

    def test_delete_and_delete_many(self, driver_store, make_fields):
        a = driver_store.insert(make_fields("A", "1"))
        b = driver_store.insert(make_fields("B", "2"))
        c = driver_store.insert(make_fields("C", "3"))
        assert driver_store.delete(a.id)
        assert not driver_store.delete(a.id)
        assert driver_store.delete_many([b.id, c.id, "nope"]) == 2
        assert driver_store.list_all() == []

    def test_insert_with_fixed_id(self, driver_store, make_fields):
        driver_id = str(uuid.uuid4())
        assert driver_store.insert(make_fields(), driver_id=driver_id).id == driver_id
        assert driver_store.get(driver_id).cpf == "11111111111"

    def test_get_many_empty(self, driver_store):
        assert driver_store.get_many([]) == []

    def test_database_errors_become_store_errors(self, driver_store, session_factory):
        """Erro do SQLAlchemy vira StoreOperationError com a mensagem original."""
        with patch("src.infrastructure.db.repository.get_db",
                   side_effect=OperationalError("SELECT", {}, Exception("database is locked"))):
            with pytest.raises(StoreOperationError, match="database is locked"):
                driver_store.list_all()


class TestPendingDriverRepository:

    def test_reasons_serialized_at_the_boundary(self, pending_store, session_factory):
        record = PendingDriverRecord(
            id=str(uuid.uuid4()), full_name="Ana", cpf="1",
            reasons=frozenset({ConflictReason.BATCH_DUPLICATE_CPF, ConflictReason.DUPLICATE_CPF}),
            uploaded_by="op-1",
        )
        pending_store.insert_many([record])

        with session_factory() as db:
            row = db.get(PendingDriverRow, record.id)
            assert row.reason == "duplicate-cpf, batch-duplicate-cpf"

        loaded = pending_store.get(record.id)
        assert loaded.reasons == record.reasons
        assert loaded.uploaded_by == "op-1"
        assert loaded.status == "pending"

    def test_list_pending_only_actionable(self, pending_store, session_factory):
        pending_store.insert_many([
            PendingDriverRecord(id=str(uuid.uuid4()), full_name="A", cpf="1"),
            PendingDriverRecord(id=str(uuid.uuid4()), full_name="B", cpf="2", status="archived"),
        ])
        assert [p.full_name for p in pending_store.list_pending()] == ["A"]

    def test_delete(self, pending_store):
        record = PendingDriverRecord(id=str(uuid.uuid4()), full_name="A", cpf="1")
        pending_store.insert_many([record])
        assert pending_store.delete(record.id)
        assert not pending_store.delete(record.id)

    def test_mark_resolving_persists_marker(self, pending_store):
        record = PendingDriverRecord(id=str(uuid.uuid4()), full_name="A", cpf="1")
        pending_store.insert_many([record])

        assert pending_store.mark_resolving(record.id, "keep-staged")
        assert not pending_store.mark_resolving(str(uuid.uuid4()), "keep-staged")

        loaded = pending_store.get(record.id)
        assert loaded.resolving_choice == "keep-staged"
        assert loaded.resolution_started_at is not None
