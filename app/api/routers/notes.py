"""
Endpoints para `notes`: listado con filtros/búsqueda/orden y CRUD.

Errores (ver app.core.exceptions): 400 validación (título o referencias),
404 nota inexistente, 500 fallo de almacenamiento.
"""
from typing import List, Literal

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_note_repository
from app.api.schemas.note import NoteDeleteOut, NoteOut, NotePayload
from app.repositories.note_repo import NoteRepository
from app.services.query_builder import NoteFilters


router = APIRouter(prefix="/notes", tags=["Notes"])


@router.get(
    "",
    response_model=List[NoteOut],
    summary="Listar notas",
    description="Filtra por categorías y tags (ids, repetibles), busca en título/cuerpo y ordena. Máximo 100 resultados.",
)
def list_notes(
    categories: List[str] = Query(default=[]),
    tags: List[str] = Query(default=[]),
    search: str | None = Query(default=None),
    sort_by: Literal["createdAt", "title"] = Query(default="createdAt", alias="sortBy"),
    order: Literal["asc", "desc"] = Query(default="desc"),
    repo: NoteRepository = Depends(get_note_repository),
):
    filters = NoteFilters(
        category_ids=categories,
        tag_ids=tags,
        search=search,
        sort_by=sort_by,
        order=order,
    )
    return repo.list(filters)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteOut,
    summary="Crear nota",
    description="Crea una nota; las categorías y tags deben existir.",
)
def create_note(payload: NotePayload, repo: NoteRepository = Depends(get_note_repository)):
    return repo.create(payload.model_dump())


@router.put(
    "/{note_id}",
    response_model=NoteOut,
    summary="Actualizar nota",
    description="Reemplaza título, cuerpo y referencias de la nota.",
)
def update_note(note_id: str, payload: NotePayload, repo: NoteRepository = Depends(get_note_repository)):
    return repo.update(note_id, payload.model_dump())


@router.delete("/{note_id}", response_model=NoteDeleteOut, summary="Eliminar nota")
def delete_note(note_id: str, repo: NoteRepository = Depends(get_note_repository)) -> NoteDeleteOut:
    repo.delete(note_id)
    return NoteDeleteOut(message="Note deleted")
