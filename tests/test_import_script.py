import pytest

from scripts.import_drivers import main, parse_overrides
from src.infrastructure.db.repository import DriverRepository, PendingDriverRepository


@pytest.fixture
def spreadsheet(tmp_path):
    path = tmp_path / "motoristas.csv"
    path.write_text(
        "Nome;Documento;CNH\n"
        "Ana Souza;111.111.111-11;\n"
        "Ana S.;11111111111;\n",
        encoding="utf-8",
    )
    return path


class TestImportScript:

    def test_overrides_parse(self):
        assert parse_overrides(["cpf=Documento", "full_name = Nome"]) == {"cpf": "Documento", "full_name": "Nome"}
        with pytest.raises(SystemExit):
            parse_overrides(["senha=X"])

    def test_import_with_overrides(self, spreadsheet, capsys):
        code = main([
            str(spreadsheet),
            "--map", "full_name=Nome",
            "--map", "cpf=Documento",
            "--user", "cli",
            "--database-url", "sqlite://",
        ])

        assert code == 0
        assert "Upload em massa concluído!" in capsys.readouterr().out
        assert [d.full_name for d in DriverRepository().list_all()] == ["Ana Souza"]
        [staged] = PendingDriverRepository().list_pending()
        assert staged.uploaded_by == "cli"

    def test_dry_run_writes_nothing(self, spreadsheet, capsys):
        code = main([str(spreadsheet), "--map", "full_name=Nome", "--map", "cpf=Documento",
                     "--database-url", "sqlite://", "--dry-run"])
        assert code == 0
        assert "batch-duplicate-cpf" in capsys.readouterr().out
        assert DriverRepository().list_all() == []

    def test_unmapped_cpf_fails(self, spreadsheet):
        assert main([str(spreadsheet), "--database-url", "sqlite://"]) == 2
