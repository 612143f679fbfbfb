"""
Migración única: convierte las listas de nombres (texto libre) que las notas
heredadas guardan en `tags` / `categories` en referencias a entidades Tag /
Category, creando las que falten (find-or-create por nombre exacto).

Reglas:
- Cada nota se procesa y persiste por separado, en orden de llegada (`_id`).
  Si el proceso se corta, las notas ya migradas quedan migradas y el resto
  intacto; se puede relanzar.
- Strings son nombres (se recortan y se descartan vacíos); valores ObjectId ya
  son referencias y se conservan. Una nota sin nombres pendientes no se
  reescribe, así que correrla dos veces no cambia nada.
- Nombres repetidos resuelven al mismo id: la lista final conserva el orden de
  primera aparición sin duplicados.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from bson import ObjectId
from pymongo.database import Database

from app.core.config import settings
from app.infrastructure.db.mongo import storage_errors
from app.repositories.common import ReferenceKind
from app.repositories.taxonomy_repo import TaxonomyRepository

_log = logging.getLogger("noteshelf.migration")

# Campo de la nota -> tipo de entidad referenciada
_FIELDS = (("tags", ReferenceKind.TAG), ("categories", ReferenceKind.CATEGORY))


@dataclass
class MigrationReport:
    dry_run: bool = False
    scanned: int = 0
    migrated: int = 0
    unchanged: int = 0
    tags_created: int = 0
    categories_created: int = 0
    # Sólo en dry-run: nombres que se crearían, por tipo
    names_to_create: Dict[str, List[str]] = field(default_factory=lambda: {"tag": [], "category": []})


def _raw_values(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _has_pending_names(values: List[Any]) -> bool:
    return any(not isinstance(v, ObjectId) for v in values)


class ReferenceNormalizer:
    def __init__(self, db: Database) -> None:
        self._notes = db[settings.notes_collection]
        self._repos = {kind: TaxonomyRepository(db, kind) for _, kind in _FIELDS}

    def run(self, *, dry_run: bool = False) -> MigrationReport:
        report = MigrationReport(dry_run=dry_run)
        planned: Dict[ReferenceKind, Set[str]] = {kind: set() for _, kind in _FIELDS}

        with storage_errors("migration_scan"):
            cursor = self._notes.find({}, {"tags": 1, "categories": 1}).sort("_id", 1)
            for note in cursor:
                report.scanned += 1
                self._migrate_note(note, report, planned, dry_run=dry_run)

        if dry_run:
            report.names_to_create = {kind.value: sorted(names) for kind, names in planned.items()}
        _log.info(
            "Migración %s: scanned=%d migrated=%d unchanged=%d tags_created=%d categories_created=%d",
            "dry-run" if dry_run else "completa",
            report.scanned, report.migrated, report.unchanged,
            report.tags_created, report.categories_created,
        )
        return report

    def _migrate_note(
        self,
        note: Dict[str, Any],
        report: MigrationReport,
        planned: Dict[ReferenceKind, Set[str]],
        *,
        dry_run: bool,
    ) -> None:
        raw = {name: _raw_values(note.get(name)) for name, _ in _FIELDS}
        needs_write = any(_has_pending_names(values) for values in raw.values()) or any(
            not isinstance(note.get(name), list) for name, _ in _FIELDS
        )
        if not needs_write:
            report.unchanged += 1
            return

        if dry_run:
            for name, kind in _FIELDS:
                for value in raw[name]:
                    self._plan_value(kind, value, planned)
            report.migrated += 1
            return

        update: Dict[str, List[ObjectId]] = {}
        for name, kind in _FIELDS:
            update[name] = self._resolve_values(kind, raw[name], report)

        with storage_errors("migration_write"):
            self._notes.update_one({"_id": note["_id"]}, {"$set": update})
        report.migrated += 1
        _log.info("Nota migrada id=%s", note["_id"])

    def _resolve_values(self, kind: ReferenceKind, values: List[Any], report: MigrationReport) -> List[ObjectId]:
        ids: List[ObjectId] = []
        seen: Set[ObjectId] = set()
        for value in values:
            oid = self._resolve_value(kind, value, report)
            if oid is not None and oid not in seen:
                seen.add(oid)
                ids.append(oid)
        return ids

    def _resolve_value(self, kind: ReferenceKind, value: Any, report: MigrationReport) -> Optional[ObjectId]:
        if isinstance(value, ObjectId):
            return value
        name = str(value if value is not None else "").strip()
        if not name:
            return None
        oid, created = self._repos[kind].find_or_create(name)
        if created:
            if kind is ReferenceKind.TAG:
                report.tags_created += 1
            else:
                report.categories_created += 1
        return oid

    def _plan_value(self, kind: ReferenceKind, value: Any, planned: Dict[ReferenceKind, Set[str]]) -> None:
        if isinstance(value, ObjectId):
            return
        name = str(value if value is not None else "").strip()
        if not name or name in planned[kind]:
            return
        if self._repos[kind].find_id_by_name(name) is None:
            planned[kind].add(name)
