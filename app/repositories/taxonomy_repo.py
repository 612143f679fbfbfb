"""Repo de las colecciones de taxonomía (`tags` y `categories`).

- Un solo repositorio parametrizado por `ReferenceKind`: ambas colecciones
  tienen la misma forma `{name, createdAt, updatedAt}`.
- `name` va recortado y es único (índice `uniq_*_name`).
- Borrar un tag/categoría no toca las notas que lo referencian.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Tuple

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.infrastructure.db.mongo import storage_errors
from app.repositories.common import ReferenceKind, now_utc, to_object_id

_log = logging.getLogger("noteshelf.taxonomy")

LIST_LIMIT = 100


def _out(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": str(doc["_id"]), "name": doc.get("name") or ""}


def _clean_name(name: Any) -> str:
    return str(name or "").strip()


class TaxonomyRepository:
    def __init__(self, db: Database, kind: ReferenceKind) -> None:
        self.kind = kind
        self._coll = db[kind.collection]

    def list(self) -> List[Dict[str, Any]]:
        with storage_errors(f"list_{self.kind.value}s"):
            docs = list(self._coll.find({}, {"name": 1}).sort("name", 1).limit(LIST_LIMIT))
        return [_out(d) for d in docs]

    def get(self, entity_id: str) -> Dict[str, Any]:
        oid = to_object_id(entity_id)
        doc = None
        if oid is not None:
            with storage_errors(f"get_{self.kind.value}"):
                doc = self._coll.find_one({"_id": oid}, {"name": 1})
        if not doc:
            raise NotFoundError(f"{self.kind.label} not found")
        return _out(doc)

    def create(self, name: Any) -> Dict[str, Any]:
        clean = self._require_name(name)
        now = now_utc()
        with storage_errors(f"create_{self.kind.value}"):
            try:
                res = self._coll.insert_one({"name": clean, "createdAt": now, "updatedAt": now})
            except DuplicateKeyError:
                raise self._duplicate(clean)
        return {"id": str(res.inserted_id), "name": clean}

    def rename(self, entity_id: str, name: Any) -> Dict[str, Any]:
        clean = self._require_name(name)
        oid = to_object_id(entity_id)
        if oid is None:
            raise NotFoundError(f"{self.kind.label} not found")
        with storage_errors(f"rename_{self.kind.value}"):
            try:
                res = self._coll.update_one({"_id": oid}, {"$set": {"name": clean, "updatedAt": now_utc()}})
            except DuplicateKeyError:
                raise self._duplicate(clean)
        if res.matched_count == 0:
            raise NotFoundError(f"{self.kind.label} not found")
        return {"id": str(oid), "name": clean}

    def delete(self, entity_id: str) -> None:
        # Sin borrado en cascada: las notas pueden quedar con referencias colgantes
        oid = to_object_id(entity_id)
        if oid is None:
            raise NotFoundError(f"{self.kind.label} not found")
        with storage_errors(f"delete_{self.kind.value}"):
            res = self._coll.delete_one({"_id": oid})
        if res.deleted_count == 0:
            raise NotFoundError(f"{self.kind.label} not found")

    def find_or_create(self, name: str) -> Tuple[ObjectId, bool]:
        """Upsert atómico por nombre exacto (recortado, sensible a mayúsculas).

        Devuelve `(id, created)`. Si otro proceso inserta el mismo nombre en
        paralelo, el índice único rechaza el segundo upsert y se relee el existente.
        """
        clean = _clean_name(name)
        if not clean:
            raise ValidationError(f"{self.kind.label} name is required")
        now = now_utc()
        with storage_errors(f"find_or_create_{self.kind.value}"):
            try:
                res = self._coll.update_one(
                    {"name": clean},
                    {"$setOnInsert": {"createdAt": now, "updatedAt": now}},
                    upsert=True,
                )
                if res.upserted_id is not None:
                    _log.info("%s creado name=%r id=%s", self.kind.label, clean, res.upserted_id)
                    return res.upserted_id, True
            except DuplicateKeyError:
                _log.info("%s %r creado en paralelo; se reutiliza", self.kind.label, clean)
            doc = self._coll.find_one({"name": clean}, {"_id": 1})
        if not doc:
            raise StorageError(operation=f"find_or_create_{self.kind.value}")
        return doc["_id"], False

    def find_id_by_name(self, name: str) -> ObjectId | None:
        with storage_errors(f"find_{self.kind.value}_by_name"):
            doc = self._coll.find_one({"name": _clean_name(name)}, {"_id": 1})
        return doc["_id"] if doc else None

    def resolve(self, ids: Iterable[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
        """Mapa id -> {id, name}; los ids que ya no existen se omiten."""
        wanted = list({i for i in ids if isinstance(i, ObjectId)})
        if not wanted:
            return {}
        with storage_errors(f"resolve_{self.kind.value}s"):
            docs = list(self._coll.find({"_id": {"$in": wanted}}, {"name": 1}))
        return {d["_id"]: _out(d) for d in docs}

    def _require_name(self, name: Any) -> str:
        clean = _clean_name(name)
        if not clean:
            raise ValidationError(f"{self.kind.label} name is required")
        return clean

    def _duplicate(self, name: str) -> ValidationError:
        return ValidationError(f"{self.kind.label} '{name}' already exists")
