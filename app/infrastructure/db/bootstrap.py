"""
Bootstrap de la base Mongo: define y aplica validadores (JSON Schema) e índices.
Se ejecuta al inicio de la app (y antes de la migración) para asegurar
colecciones mínimas y consistencia.

Mongo no aplica llaves foráneas: la integridad de `notes.tags` /
`notes.categories` la valida la aplicación (IdentifierValidator). Aquí sólo se
garantiza la unicidad de `name` en tags/categorías, que es la llave del
find-or-create.
No tumba la app si algo falla; deja warnings en casos no críticos.
"""
from __future__ import annotations

from typing import Any, Dict, List
import logging
from pymongo.database import Database
from pymongo.errors import PyMongoError
from app.core.config import settings

_log = logging.getLogger("noteshelf.mongo.bootstrap")


def _taxonomy_validator() -> Dict[str, Any]:
    return {
        "bsonType": "object",
        "required": ["name"],
        "properties": {
            "name": {"bsonType": "string", "minLength": 1, "description": "trimmed, unique"},
            "createdAt": {"bsonType": "date"},
            "updatedAt": {"bsonType": "date"},
        },
        "additionalProperties": True,
    }


def _note_validator() -> Dict[str, Any]:
    return {
        "bsonType": "object",
        "required": ["title", "categories", "tags", "createdAt"],
        "properties": {
            "title": {"bsonType": "string", "minLength": 1},
            "body": {"bsonType": ["string", "null"]},
            # Referencias por id; las notas heredadas con nombres quedan fuera
            # de la validación (moderate) hasta que corre la migración.
            "categories": {"bsonType": "array", "items": {"bsonType": "objectId"}},
            "tags": {"bsonType": "array", "items": {"bsonType": "objectId"}},
            "createdAt": {"bsonType": "date"},
        },
        "additionalProperties": True,
    }


def _collmod_or_create(db: Database, name: str, validator: Dict[str, Any] | None) -> None:
    try:
        if validator:
            # Intenta aplicar validator con collMod
            db.command({
                "collMod": name,
                "validator": {"$jsonSchema": validator},
                "validationLevel": "moderate",
            })
        else:
            # Asegura que exista la colección
            db.create_collection(name)
    except PyMongoError:
        # Si collMod falla (no existe o sin privilegios), intenta crear con validator
        try:
            if name not in db.list_collection_names():
                if validator:
                    db.create_collection(name, validator={"$jsonSchema": validator}, validationLevel="moderate")
                else:
                    db.create_collection(name)
        except PyMongoError as e:
            # No aborta el arranque; solo deja sin validator estricto.
            _log.warning("No se pudo aplicar validator en '%s': %s", name, e)


def _ensure_indexes(db: Database, name: str, indexes: List[Dict[str, Any]]) -> None:
    coll = db[name]
    for ix in indexes:
        ix = dict(ix)
        keys = ix.pop("keys")
        try:
            coll.create_index(keys, **ix)
        except PyMongoError as e:
            # Datos previos con nombres duplicados impiden el índice único
            _log.warning("No se pudo crear índice en '%s' (%s): %s", name, keys, e)


def ensure_indexes(db: Database) -> None:
    """Índices mínimos (idempotente)."""
    _ensure_indexes(db, settings.tags_collection, [
        {"keys": [("name", 1)], "unique": True, "name": "uniq_tag_name"},
    ])
    _ensure_indexes(db, settings.categories_collection, [
        {"keys": [("name", 1)], "unique": True, "name": "uniq_category_name"},
    ])
    _ensure_indexes(db, settings.notes_collection, [
        {"keys": [("tags", 1)], "name": "ix_note_tags"},
        {"keys": [("categories", 1)], "name": "ix_note_categories"},
        {"keys": [("createdAt", -1), ("_id", -1)], "name": "ix_note_created"},
        {"keys": [("title", 1), ("_id", 1)], "name": "ix_note_title"},
    ])


def ensure_collections(db: Database) -> None:
    """
    Garantiza colecciones, validadores e índices mínimos.
    """
    _collmod_or_create(db, settings.tags_collection, _taxonomy_validator())
    _collmod_or_create(db, settings.categories_collection, _taxonomy_validator())
    _collmod_or_create(db, settings.notes_collection, _note_validator())
    ensure_indexes(db)
