"""Esquemas para tags y categorías (CRUD de un solo campo)."""
from typing import Optional
from pydantic import BaseModel


class TaxonomyCreate(BaseModel):
    name: Optional[str] = None


class TaxonomyOut(BaseModel):
    id: str
    name: str
