"""Endpoints para tags y categorías: CRUD simple de un solo campo (`name`).

Son las colecciones autoritativas contra las que se validan las referencias de
las notas. Borrar no limpia las notas que las referencian.
"""
from typing import Callable, List

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_category_repository, get_tag_repository
from app.api.schemas.taxonomy import TaxonomyCreate, TaxonomyOut
from app.repositories.taxonomy_repo import TaxonomyRepository


def _build_router(prefix: str, label: str, dependency: Callable[..., TaxonomyRepository]) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[label])

    @router.get("", response_model=List[TaxonomyOut], summary=f"Listar {prefix.strip('/')}")
    def list_items(repo: TaxonomyRepository = Depends(dependency)):
        return repo.list()

    @router.post("", status_code=status.HTTP_201_CREATED, response_model=TaxonomyOut, summary=f"Crear {label.lower()}")
    def create_item(payload: TaxonomyCreate, repo: TaxonomyRepository = Depends(dependency)):
        return repo.create(payload.name)

    @router.put("/{item_id}", response_model=TaxonomyOut, summary=f"Renombrar {label.lower()}")
    def rename_item(item_id: str, payload: TaxonomyCreate, repo: TaxonomyRepository = Depends(dependency)):
        return repo.rename(item_id, payload.name)

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT, summary=f"Eliminar {label.lower()}")
    def delete_item(item_id: str, repo: TaxonomyRepository = Depends(dependency)) -> Response:
        repo.delete(item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


tags_router = _build_router("/tags", "Tag", get_tag_repository)
categories_router = _build_router("/categories", "Category", get_category_repository)
