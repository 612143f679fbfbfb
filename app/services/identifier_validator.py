"""
Validación de referencias: comprueba que los ids de tags/categorías que trae una
nota (o un filtro) existan en su colección autoritativa antes de escribir.

Mongo no tiene llaves foráneas, así que esta verificación es la única barrera
contra referencias colgantes en el momento de la escritura. Es de sólo lectura.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from bson import ObjectId
from pymongo.database import Database

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.infrastructure.db.mongo import storage_errors
from app.repositories.common import ReferenceKind, to_object_id

_log = logging.getLogger("noteshelf.validation")


def _unique(values: Iterable[ObjectId]) -> List[ObjectId]:
    """Quita duplicados preservando el orden de primera aparición."""
    seen = set()
    out: List[ObjectId] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class IdentifierValidator:
    """Valida listas de ids contra la colección de tags o categorías.

    Con `strict_count=True` se conserva la comparación estricta heredada: la
    cantidad de ids distintos encontrados debe igualar la cantidad recibida, de
    modo que una lista con repetidos se rechaza aunque cada id exista.
    """

    def __init__(self, db: Database, *, strict_count: Optional[bool] = None) -> None:
        self._db = db
        self._strict = settings.reference_ids_strict_count if strict_count is None else strict_count

    def validate(self, kind: ReferenceKind, candidate_ids: Optional[Iterable[object]]) -> List[ObjectId]:
        """Devuelve los ids validados (sin repetidos) o lanza ValidationError."""
        raw = list(candidate_ids or [])
        if not raw:
            return []

        oids = [to_object_id(v) for v in raw]
        if any(o is None for o in oids):
            # Un id malformado nunca puede existir en la colección
            _log.info("Ids malformados en referencias de %s", kind.value)
            raise self._error(kind)

        expected = oids if self._strict else _unique(oids)
        with storage_errors(f"validate_{kind.value}_ids"):
            found = self._db[kind.collection].distinct("_id", {"_id": {"$in": expected}})
        if len(found) != len(expected):
            _log.info("Referencias de %s inexistentes: pedidas=%d encontradas=%d", kind.value, len(expected), len(found))
            raise self._error(kind)
        return _unique(oids)

    @staticmethod
    def _error(kind: ReferenceKind) -> ValidationError:
        return ValidationError(f"One or more {kind.label.lower()} ids do not exist")
