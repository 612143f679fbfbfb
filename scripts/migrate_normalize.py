"""Normaliza tags/categorías de notas heredadas (nombres -> referencias).

Correr una sola vez. Hacer backup de la base antes de ejecutar.

Uso típico:
  PYTHONPATH=. python scripts/migrate_normalize.py          # dry-run
  PYTHONPATH=. python scripts/migrate_normalize.py --yes    # ejecuta

Características:
  - Dry-run por defecto: muestra cuántas notas cambiarían y qué nombres se
    crearían como Tag/Category, sin escribir nada. Confirma con --yes.
  - Asegura el índice único por nombre antes de migrar (find-or-create seguro
    ante ejecuciones concurrentes).
  - Se puede relanzar: las notas ya migradas no se reescriben.
"""
from __future__ import annotations

import argparse
import logging
import sys

from app.core.exceptions import StorageError
from app.core.logging import setup_logging
from app.infrastructure.db.bootstrap import ensure_indexes
from app.infrastructure.db.mongo import close_mongo, db_ready, get_db, init_mongo
from app.services.reference_normalizer import MigrationReport, ReferenceNormalizer

_log = logging.getLogger("noteshelf.migration")


def _print_report(report: MigrationReport) -> None:
    print(f"Notas revisadas: {report.scanned}")
    if report.dry_run:
        print(f"Notas a migrar: {report.migrated}")
        print(f"Notas sin cambios: {report.unchanged}")
        for kind, names in report.names_to_create.items():
            print(f"{kind} a crear: {len(names)}")
            for n in names:
                print(f"  - {n}")
        print("\nDry-run. Añade --yes para ejecutar.")
        return
    print(f"Notas migradas: {report.migrated}")
    print(f"Notas sin cambios: {report.unchanged}")
    print(f"Tags creados: {report.tags_created}")
    print(f"Categorías creadas: {report.categories_created}")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Migra tags/categorías de texto libre a referencias.")
    ap.add_argument("--yes", action="store_true", help="Confirmar y ejecutar (por defecto es dry-run)")
    ap.add_argument("--log-level", default=None, help="Nivel de logging (INFO por defecto)")
    args = ap.parse_args(argv)

    setup_logging(args.log_level)
    init_mongo()
    if not db_ready():
        print("Mongo no accesible; revisa MONGO_URI.", file=sys.stderr)
        return 1

    try:
        db = get_db()
        if args.yes:
            ensure_indexes(db)
        report = ReferenceNormalizer(db).run(dry_run=not args.yes)
    except StorageError:
        _log.exception("La migración se detuvo; las notas procesadas quedan migradas")
        return 1
    finally:
        close_mongo()

    _print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
