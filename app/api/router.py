"""Agregador de routers de la API."""
from fastapi import APIRouter
from app.api.routers import health, notes, taxonomy

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(notes.router)
api_router.include_router(taxonomy.tags_router)
api_router.include_router(taxonomy.categories_router)
