"""Repo de la colección de notas.

- Es el único componente que llama la capa HTTP para notas.
- Antes de cualquier escritura valida título y referencias (tags/categorías);
  si algo falla no se escribe nada.
- `categories` / `tags` se guardan como listas de ObjectId sin repetidos y se
  reemplazan completas en cada update (nunca se mezclan).
- Al leer, las referencias se resuelven a `{id, name}`; las colgantes (tag o
  categoría borrados después) se omiten de la vista.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.infrastructure.db.mongo import storage_errors
from app.repositories.common import ReferenceKind, as_utc, now_utc, to_object_id
from app.repositories.taxonomy_repo import TaxonomyRepository
from app.services.identifier_validator import IdentifierValidator
from app.services.query_builder import NoteFilters, QueryBuilder

_log = logging.getLogger("noteshelf.notes")


class NoteRepository:
    def __init__(
        self,
        db: Database,
        validator: Optional[IdentifierValidator] = None,
        query_builder: Optional[QueryBuilder] = None,
    ) -> None:
        self._coll = db[settings.notes_collection]
        self._validator = validator or IdentifierValidator(db)
        self._query_builder = query_builder or QueryBuilder(self._validator)
        self._tags = TaxonomyRepository(db, ReferenceKind.TAG)
        self._categories = TaxonomyRepository(db, ReferenceKind.CATEGORY)

    # --- lectura ---
    def list(self, filters: NoteFilters) -> List[Dict[str, Any]]:
        q = self._query_builder.build(filters)
        with storage_errors("list_notes"):
            docs = list(self._coll.find(q.filter).sort(q.sort).limit(q.limit))
        return self._resolve(docs)

    def get(self, note_id: str) -> Dict[str, Any]:
        oid = to_object_id(note_id)
        doc = None
        if oid is not None:
            with storage_errors("get_note"):
                doc = self._coll.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Note not found")
        return self._resolve([doc])[0]

    # --- escritura ---
    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        fields = self._validated_fields(payload)
        doc = {**fields, "createdAt": now_utc()}
        with storage_errors("create_note"):
            res = self._coll.insert_one(doc)
        doc["_id"] = res.inserted_id
        _log.info("Nota creada id=%s", res.inserted_id)
        return self._resolve([doc])[0]

    def update(self, note_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        oid = to_object_id(note_id)
        if oid is None:
            raise NotFoundError("Note not found")
        fields = self._validated_fields(payload)
        # Reemplazo completo de título/cuerpo/referencias; createdAt no cambia
        with storage_errors("update_note"):
            doc = self._coll.find_one_and_update(
                {"_id": oid},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise NotFoundError("Note not found")
        _log.info("Nota actualizada id=%s", oid)
        return self._resolve([doc])[0]

    def delete(self, note_id: str) -> None:
        oid = to_object_id(note_id)
        if oid is None:
            raise NotFoundError("Note not found")
        with storage_errors("delete_note"):
            res = self._coll.delete_one({"_id": oid})
        if res.deleted_count == 0:
            raise NotFoundError("Note not found")
        _log.info("Nota eliminada id=%s", oid)

    # --- helpers ---
    def _validated_fields(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required")
        body = payload.get("body")
        categories = self._validator.validate(ReferenceKind.CATEGORY, payload.get("categories") or [])
        tags = self._validator.validate(ReferenceKind.TAG, payload.get("tags") or [])
        return {"title": title, "body": body, "categories": categories, "tags": tags}

    def _resolve(self, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Sustituye ids por `{id, name}` con una consulta por colección."""
        cat_map = self._categories.resolve(i for d in docs for i in (d.get("categories") or []))
        tag_map = self._tags.resolve(i for d in docs for i in (d.get("tags") or []))
        out: List[Dict[str, Any]] = []
        for d in docs:
            out.append({
                "id": str(d["_id"]),
                "title": d.get("title") or "",
                "body": d.get("body"),
                "categories": [cat_map[i] for i in (d.get("categories") or []) if i in cat_map],
                "tags": [tag_map[i] for i in (d.get("tags") or []) if i in tag_map],
                "createdAt": as_utc(d.get("createdAt")),
            })
        return out
