"""Utilidades compartidas por los repositorios: ids, timestamps y tipos de referencia."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from app.core.config import settings


class ReferenceKind(str, Enum):
    """Colecciones autoritativas a las que una nota puede referenciar."""

    TAG = "tag"
    CATEGORY = "category"

    @property
    def collection(self) -> str:
        if self is ReferenceKind.TAG:
            return settings.tags_collection
        return settings.categories_collection

    @property
    def label(self) -> str:
        return "Tag" if self is ReferenceKind.TAG else "Category"


def now_utc() -> datetime:
    # BSON guarda milisegundos: truncar aquí para que lo devuelto al crear
    # coincida con lo que se lee después
    dt = datetime.now(timezone.utc)
    return dt.replace(microsecond=dt.microsecond // 1000 * 1000)


def as_utc(value: Any) -> Any:
    """Marca como UTC los datetime sin zona (clientes sin `tz_aware`)."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_object_id(value: Any) -> Optional[ObjectId]:
    """ObjectId a partir de un id serializado; None si no es un id válido."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value.strip())
    except (InvalidId, TypeError):
        return None
