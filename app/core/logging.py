"""
Configuración de logging para la aplicación e integración con Uvicorn.

Todos los loggers propios cuelgan de `noteshelf.*` (startup, mongo, notes,
taxonomy, migration, request, errors).
"""
import logging
from typing import Optional

from app.core.config import settings


def _resolve_level(level: Optional[str]) -> int:
    return getattr(logging, (level or settings.log_level).upper(), logging.INFO)


def setup_logging(level: Optional[str] = None) -> None:
    lvl = _resolve_level(level)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("noteshelf").setLevel(lvl)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(lvl)
