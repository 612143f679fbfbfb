"""
Esquemas Pydantic para `notes`.

- `title` es opcional a nivel de esquema: si falta, el repositorio responde 400
  ("Title is required") en vez del 422 del framework.
- `categories` / `tags` son listas de ids (string); `null` equivale a lista vacía.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.api.schemas.taxonomy import TaxonomyOut


class NotePayload(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v


class NoteOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    body: Optional[str] = None
    categories: List[TaxonomyOut] = Field(default_factory=list)
    tags: List[TaxonomyOut] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class NoteDeleteOut(BaseModel):
    message: str
