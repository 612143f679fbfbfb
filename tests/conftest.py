"""Fixtures compartidas: base Mongo en memoria (mongomock) y cliente HTTP."""
import mongomock
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_database
from app.infrastructure.db.bootstrap import ensure_indexes
from app.main import app
from app.repositories.common import ReferenceKind
from app.repositories.note_repo import NoteRepository
from app.repositories.taxonomy_repo import TaxonomyRepository


@pytest.fixture
def db():
    """Fresh in-memory database with the production indexes applied."""
    client = mongomock.MongoClient(tz_aware=True)
    database = client["noteshelf_test"]
    ensure_indexes(database)
    yield database
    client.close()


@pytest.fixture
def tag_repo(db) -> TaxonomyRepository:
    return TaxonomyRepository(db, ReferenceKind.TAG)


@pytest.fixture
def category_repo(db) -> TaxonomyRepository:
    return TaxonomyRepository(db, ReferenceKind.CATEGORY)


@pytest.fixture
def note_repo(db) -> NoteRepository:
    return NoteRepository(db)


@pytest.fixture
def client(db):
    """TestClient with the database dependency pointed at the in-memory db.

    Used without a context manager so the startup hook (real Mongo) never runs.
    """
    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
