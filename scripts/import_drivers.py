"""
Bulk Driver Import — planilha → cadastro / quarentena.

Lê uma planilha (.xlsx ou .csv), mapeia as colunas automaticamente
(ou com --map campo=Cabeçalho), classifica o lote e grava no banco
configurado em DATABASE_URL.

Usage:
    python -m scripts.import_drivers motoristas.xlsx [--user ana] [--dry-run]
    python -m scripts.import_drivers motoristas.csv --map cpf="Documento" --map full_name="Nome"
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import logging

from src.config.settings import get_settings
from src.core.exceptions import DriverPipelineError
from src.core.use_cases.classify_batch import ClassifyBatchUseCase
from src.infrastructure.db.database import configure, init_db
from src.infrastructure.db.repository import DriverRepository, PendingDriverRepository
from src.infrastructure.notifications.logging_notifier import LoggingNotifier
from src.infrastructure.notifications.messages import batch_message, error_message, skipped_rows_message
from src.infrastructure.spreadsheet.mapping import FIELD_LABELS, auto_map, map_rows
from src.infrastructure.spreadsheet.reader import read_table

logger = logging.getLogger("import_drivers")


def parse_overrides(pairs: list[str]) -> dict[str, str]:
    """["cpf=Documento", ...] → {"cpf": "Documento"}"""
    overrides = {}
    for pair in pairs:
        name, sep, header = pair.partition("=")
        name = name.strip()
        if not sep or name not in FIELD_LABELS:
            raise SystemExit(f"--map inválido: {pair!r}. Campos: {', '.join(FIELD_LABELS)}")
        overrides[name] = header.strip() or None
    return overrides


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import drivers from a spreadsheet")
    parser.add_argument("file", help="Spreadsheet (.xlsx / .csv)")
    parser.add_argument("--map", action="append", default=[], metavar="FIELD=HEADER",
                        help="Override column mapping (repeatable)")
    parser.add_argument("--user", default=None, help="Operator id stored as uploaded_by")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    parser.add_argument("--dry-run", action="store_true", help="Classify only, write nothing")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    notifier = LoggingNotifier(logger)

    path = Path(args.file)
    if not path.exists():
        print(f"Arquivo não encontrado: {path}")
        return 1

    if args.database_url:
        configure(args.database_url)
    init_db()

    try:
        table = read_table(path.read_bytes(), path.name)
        mapping = auto_map(table.headers)
        mapping.update(parse_overrides(args.map))

        print(f"\n{'='*60}")
        print(f"  {path.name}: {len(table.rows)} linha(s)")
        for name, label in FIELD_LABELS.items():
            print(f"  {label:<36} ← {mapping.get(name) or '-'}")
        print(f"{'='*60}\n")

        mapped = map_rows(table.rows, mapping, months=settings.omnilink_validity_months)
        skipped = skipped_rows_message(mapped.skipped, len(table.rows))
        if skipped:
            notifier.notify(skipped)

        use_case = ClassifyBatchUseCase(DriverRepository(), PendingDriverRepository())
        if args.dry_run:
            plan = use_case.plan(mapped.rows, uploaded_by=args.user)
            print(f"  Inserir direto:        {len(plan.to_insert)}")
            print(f"  Enviar para aprovação: {len(plan.to_stage)}")
            for pending in plan.to_stage:
                print(f"    - {pending.full_name} ({pending.cpf}): {pending.reason_text}")
            return 0

        outcome = use_case.execute(mapped.rows, uploaded_by=args.user)
        outcome.skipped_invalid += mapped.skipped
    except DriverPipelineError as e:
        notifier.notify(error_message("upload", e))
        return 2

    notification = batch_message(outcome)
    notifier.notify(notification)
    print(f"{notification.title} {notification.description}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
