"""
Traduce los parámetros de listado de notas (filtros, búsqueda y orden) a una
sola consulta Mongo: filtro + orden + tope de resultados.

- categorías/tags: intersección con los ids pedidos (`$in`); ambos a la vez se
  combinan con AND.
- search: substring case-insensitive sobre título o cuerpo (regex escapado).
  Sólo el texto vacío se ignora; los espacios se buscan literalmente.
- orden: por `createdAt` o `title`, desempate por `_id` en la misma dirección.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from app.core.config import settings
from app.repositories.common import ReferenceKind
from app.services.identifier_validator import IdentifierValidator

SortField = Literal["createdAt", "title"]
SortOrder = Literal["asc", "desc"]

# Campo persistido por cada valor público de `sortBy`
_SORT_FIELDS: Dict[str, str] = {"createdAt": "createdAt", "title": "title"}


@dataclass
class NoteFilters:
    category_ids: List[str] = field(default_factory=list)
    tag_ids: List[str] = field(default_factory=list)
    search: Optional[str] = None
    sort_by: SortField = "createdAt"
    order: SortOrder = "desc"


@dataclass
class NoteQuery:
    filter: Dict[str, Any]
    sort: List[Tuple[str, int]]
    limit: int


def _non_blank(values: List[str]) -> List[str]:
    return [v for v in values if not isinstance(v, str) or v.strip()]


class QueryBuilder:
    def __init__(self, validator: IdentifierValidator, *, limit: Optional[int] = None) -> None:
        self._validator = validator
        self._limit = limit or settings.notes_list_limit

    def build(self, filters: NoteFilters) -> NoteQuery:
        # `?categories=` llega como [""]: un filtro vacío no filtra.
        # Ids desconocidos en un filtro son error (400), igual que al escribir
        category_ids = self._validator.validate(ReferenceKind.CATEGORY, _non_blank(filters.category_ids))
        tag_ids = self._validator.validate(ReferenceKind.TAG, _non_blank(filters.tag_ids))

        query: Dict[str, Any] = {}
        if category_ids:
            query["categories"] = {"$in": category_ids}
        if tag_ids:
            query["tags"] = {"$in": tag_ids}

        text = filters.search or ""
        if text:
            regex = re.compile(re.escape(text), re.IGNORECASE)
            query["$or"] = [{"title": regex}, {"body": regex}]

        field_name = _SORT_FIELDS.get(filters.sort_by, "createdAt")
        direction = ASCENDING if filters.order == "asc" else DESCENDING
        sort = [(field_name, direction), ("_id", direction)]
        return NoteQuery(filter=query, sort=sort, limit=self._limit)
