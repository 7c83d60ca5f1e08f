import json
import uuid

import pytest
from fastapi.testclient import TestClient

from src.api import dependencies
from src.api.main import app
from src.core.entities.driver import ConflictReason, PendingDriverRecord
from src.infrastructure.db.database import configure, init_db

CSV_ABC = (
    "Nome Completo;CPF;CNH;Data Cadastro Omnilink\n"
    "Ana Souza;111.111.111-11;;15/03/2024\n"
    "Bruno L.;222.222.222-22;;\n"
    "Ana S.;11111111111;;\n"
    ";333;;\n"
).encode("utf-8")


@pytest.fixture
def client(monkeypatch):
    """App com banco em memória e singletons limpos."""
    configure("sqlite://")
    init_db()
    monkeypatch.setattr(dependencies, "_driver_store", None)
    monkeypatch.setattr(dependencies, "_pending_store", None)
    monkeypatch.setattr(dependencies, "_view_service", None)
    return TestClient(app)


def create_driver(client, name="Bruno Lima", cpf="22222222222", **extra):
    response = client.post("/api/v1/drivers", json={"full_name": name, "cpf": cpf, **extra})
    assert response.status_code == 201
    return response.json()["driver"]


def upload(client, content=CSV_ABC, filename="lote.csv", mapping=None, user="op-1"):
    data = {"mapping": json.dumps(mapping)} if mapping else {}
    return client.post(
        "/api/v1/uploads",
        files={"file": (filename, content, "text/csv")},
        data=data,
        headers={"X-User-Id": user},
    )


class TestUploadFlow:

    def test_headers_suggest_mapping(self, client):
        response = client.post("/api/v1/uploads/headers", files={"file": ("lote.csv", CSV_ABC, "text/csv")})
        body = response.json()
        assert response.status_code == 200
        assert body["mapping"]["full_name"] == "Nome Completo"
        assert body["mapping"]["omnilink_registration_date"] == "Data Cadastro Omnilink"
        assert body["required"] == ["full_name", "cpf"]
        assert body["total_rows"] == 4

    def test_preview_writes_nothing(self, client):
        response = client.post("/api/v1/uploads/preview", files={"file": ("lote.csv", CSV_ABC, "text/csv")})
        body = response.json()
        assert (body["valid_rows"], body["skipped"]) == (3, 1)
        assert body["rows"][0]["omnilink_expiry_date"] == "2024-09-15"
        assert body["notification"]["title"] == "Algumas linhas foram ignoradas"
        assert client.get("/api/v1/drivers/view").json()["count"] == 0

    def test_end_to_end_batch_and_view(self, client):
        """A direto; B e C em quarentena; B agrupado sob o oficial, C entre os novos."""
        existing = create_driver(client)

        response = upload(client)
        body = response.json()
        assert response.status_code == 200
        assert (body["inserted"], body["staged"], body["skipped_invalid"]) == (1, 2, 1)
        assert "1 motorista(s) cadastrado(s)" in body["notification"]["description"]

        view = client.get("/api/v1/drivers/view").json()
        kinds = [(i["kind"], (i["driver"] or i["pending"])["full_name"]) for i in view["items"]]
        assert kinds == [
            ("registered", "Ana Souza"),
            ("registered", "Bruno Lima"),
            ("pending-duplicate", "Bruno L."),
            ("pending-new", "Ana S."),
        ]
        dup = view["items"][2]
        assert dup["duplicate_of"]["id"] == existing["id"]
        assert dup["pending"]["reasons"] == ["duplicate-cpf"]
        assert dup["pending"]["uploaded_by"] == "op-1"
        assert view["items"][3]["pending"]["reason"] == "batch-duplicate-cpf"

    def test_missing_required_mapping(self, client):
        response = upload(client, mapping={"full_name": "Nome Completo"})
        assert response.status_code == 422
        assert "CPF do Motorista" in response.json()["detail"]["message"]

    def test_unsupported_file(self, client):
        response = upload(client, content=b"\x89PNG", filename="foto.png")
        assert response.status_code == 400


class TestPendingEndpoints:

    @pytest.fixture
    def staged(self, client):
        existing = create_driver(client)
        upload(client)
        items = client.get("/api/v1/drivers/view", params={"category": "pending"}).json()["items"]
        by_name = {i["pending"]["full_name"]: i["pending"] for i in items}
        return existing, by_name["Bruno L."], by_name["Ana S."]

    def test_approve_duplicate_requires_action(self, client, staged):
        existing, dup, _ = staged
        response = client.post(f"/api/v1/pending/{dup['id']}/approve")
        body = response.json()
        assert response.status_code == 200
        assert body["kind"] == "action-required"
        assert body["authoritative"]["id"] == existing["id"]

    def test_conflict_details(self, client, staged):
        existing, dup, _ = staged
        body = client.get(f"/api/v1/pending/{dup['id']}/conflict").json()
        assert body["authoritative"]["cpf"] == existing["cpf"]
        assert body["reasons_label"] == "CPF já cadastrado"
        assert not body["reference_missing"]

    def test_resolve_keep_staged(self, client, staged):
        existing, dup, _ = staged
        response = client.post(
            f"/api/v1/pending/{dup['id']}/resolve",
            json={"choice": "keep-staged", "authoritative_id": existing["id"], "expected_revision": 1},
        )
        body = response.json()
        assert response.status_code == 200
        assert body["state"] == "approved-merge-keep-staged"
        assert body["driver"]["full_name"] == "Bruno L."
        assert body["notification"]["title"] == "Duplicação resolvida!"

        view = client.get("/api/v1/drivers/view", params={"search": "22222222222"}).json()
        assert view["count"] == 1

    def test_resolve_malformed_id(self, client, staged):
        _, dup, _ = staged
        response = client.post(
            f"/api/v1/pending/{dup['id']}/resolve",
            json={"choice": "keep-staged", "authoritative_id": "123"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["notification"]["title"] == "Erro ao resolver duplicação"

    def test_dangling_reference(self, client):
        orphan = PendingDriverRecord(
            id=str(uuid.uuid4()), full_name="Órfão", cpf="9",
            reasons=frozenset({ConflictReason.DUPLICATE_CPF}), original_driver_id=str(uuid.uuid4()),
        )
        dependencies.get_pending_store().insert_many([orphan])

        response = client.post(f"/api/v1/pending/{orphan.id}/approve")
        assert response.status_code == 409
        assert "Inconsistência de dados" in response.json()["detail"]["message"]

        conflict = client.get(f"/api/v1/pending/{orphan.id}/conflict").json()
        assert conflict["reference_missing"]

    def test_bulk_approve_reports_three_numbers(self, client, staged):
        _, dup, fresh = staged
        body = client.post("/api/v1/pending/bulk-approve", json={"ids": [dup["id"], fresh["id"]]}).json()
        assert (body["succeeded"], body["skipped"], body["failed"]) == (1, 1, 0)
        assert "1 motorista(s) ignorado(s) (duplicação)" in body["notification"]["description"]

    def test_reject_and_bulk_reject(self, client, staged):
        _, dup, fresh = staged
        assert client.delete(f"/api/v1/pending/{dup['id']}").json()["state"] == "rejected"
        assert client.delete(f"/api/v1/pending/{dup['id']}").status_code == 404

        body = client.post("/api/v1/pending/bulk-reject", json={"ids": [fresh["id"]]}).json()
        assert body["succeeded"] == 1

    def test_bulk_requires_selection(self, client):
        assert client.post("/api/v1/pending/bulk-approve", json={"ids": []}).status_code == 400

    def test_recover_with_nothing_pending(self, client):
        body = client.post("/api/v1/pending/recover").json()
        assert body["recovered"] == []


class TestDriverEndpoints:

    def test_create_derives_omnilink_and_normalizes(self, client):
        driver = create_driver(
            client, "Carla", "333.333.333-33",
            omnilink_registration_date="2024-03-15",
            indication_status="indicated", indication_reason="não deveria ficar",
        )
        assert driver["cpf"] == "33333333333"
        assert driver["omnilink_expiry_date"] == "2024-09-15"
        assert driver["indication_reason"] is None

    def test_update_with_stale_revision(self, client):
        driver = create_driver(client)
        payload = {"full_name": "Bruno Editado", "cpf": driver["cpf"], "expected_revision": 1}
        assert client.put(f"/api/v1/drivers/{driver['id']}", json=payload).json()["driver"]["revision"] == 2
        assert client.put(f"/api/v1/drivers/{driver['id']}", json=payload).status_code == 409

    def test_create_without_cpf(self, client):
        assert client.post("/api/v1/drivers", json={"full_name": "Ana", "cpf": "abc"}).status_code == 400

    def test_delete(self, client):
        a, b = create_driver(client, "A", "1"), create_driver(client, "B", "2")
        assert client.delete(f"/api/v1/drivers/{a['id']}").status_code == 200
        assert client.delete(f"/api/v1/drivers/{a['id']}").status_code == 404
        assert client.post("/api/v1/drivers/bulk-delete", json={"ids": [b["id"]]}).json()["deleted"] == 1

    def test_view_rejects_unknown_sort_column(self, client):
        assert client.get("/api/v1/drivers/view", params={"sort_column": "password"}).status_code == 400

    def test_health(self, client):
        create_driver(client)
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["drivers"] == 1
