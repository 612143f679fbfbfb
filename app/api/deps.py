"""
Dependencias reutilizables para routers (FastAPI Depends).

- Construye repositorios por request a partir del handle de Mongo inyectado.
- Mantener esta capa delgada: sin lógica de negocio.
"""
from fastapi import Depends
from pymongo.database import Database

from app.infrastructure.db.mongo import get_db
from app.repositories.common import ReferenceKind
from app.repositories.note_repo import NoteRepository
from app.repositories.taxonomy_repo import TaxonomyRepository


def get_database() -> Database:
    # StorageError (500) si Mongo no está inicializado
    return get_db()


def get_note_repository(db: Database = Depends(get_database)) -> NoteRepository:
    return NoteRepository(db)


def get_tag_repository(db: Database = Depends(get_database)) -> TaxonomyRepository:
    return TaxonomyRepository(db, ReferenceKind.TAG)


def get_category_repository(db: Database = Depends(get_database)) -> TaxonomyRepository:
    return TaxonomyRepository(db, ReferenceKind.CATEGORY)
