"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
from fastapi import FastAPI
from app.core.config import settings
from app.infrastructure.db.mongo import init_mongo, close_mongo, db_ready, get_db
from app.infrastructure.db.bootstrap import ensure_collections
from app.api.router import api_router
from app.core.logging import setup_logging
from app.core.middleware import add_middlewares
from app.core.exceptions import register_exception_handlers
from pymongo.errors import PyMongoError
import logging

_log = logging.getLogger("noteshelf.startup")

setup_logging()
app = FastAPI(title=settings.app_name)

add_middlewares(app)
register_exception_handlers(app)


# Startup
@app.on_event("startup")
def on_startup():
    init_mongo()
    # Garantiza colecciones/índices/validadores mínimos si hay conexión
    if not db_ready():
        _log.warning("Mongo no listo; omitiendo ensure_collections()")
        return
    try:
        ensure_collections(get_db())
    except PyMongoError as e:
        # No impedir el arranque si fallan validadores/índices
        _log.warning("ensure_collections() falló: %s", e)


@app.on_event("shutdown")
def on_shutdown():
    close_mongo()


# Monta routers bajo el prefijo configurado
app.include_router(api_router, prefix=settings.api_prefix_normalized)
