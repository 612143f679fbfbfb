"""Cliente MongoDB (pymongo) y helpers de acceso.

- `init_mongo()` se llama una sola vez en el startup (o al inicio de un script).
- Los repositorios no usan este módulo directamente: reciben el handle de la
  base (`Database`) por constructor; sólo `app.api.deps` y los scripts lo piden.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import certifi
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from app.core.config import settings
from app.core.exceptions import StorageError

_log = logging.getLogger("noteshelf.mongo")

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def _client_kwargs(uri: str) -> dict:
    # Ajustes conservadores: 15s y CA de certifi cuando hay TLS
    kwargs = dict(serverSelectionTimeoutMS=15000, tz_aware=True)
    if uri.startswith("mongodb+srv://"):
        # SRV ya implica TLS; proveemos CA bundle para robustez
        kwargs["tlsCAFile"] = certifi.where()
    elif settings.mongo_tls:
        kwargs["tls"] = True
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsAllowInvalidCertificates"] = bool(settings.mongo_tls_insecure)
        kwargs["tlsAllowInvalidHostnames"] = bool(settings.mongo_tls_allow_invalid_hostnames)
    return kwargs


def init_mongo() -> None:
    """
    Inicializa el cliente y valida conexión (ping).
    Si Mongo no responde, deja el handle en None y sólo loggea.
    """
    global _client, _db
    uri = settings.mongo_uri
    try:
        _client = MongoClient(uri, **_client_kwargs(uri))
        _client.admin.command("ping")
        _db = _client[settings.mongo_db]
        _log.info("Mongo conectado db=%s", settings.mongo_db)
    except ServerSelectionTimeoutError as e:
        # No tumbar la app: deja _db en None y loggea
        _log.warning("Mongo no accesible (timeout): %s", e)
        _client = None
        _db = None
    except PyMongoError as e:
        _log.warning("Error de conexión a Mongo: %s", e)
        _client = None
        _db = None


def close_mongo() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def get_db() -> Database:
    """
    Devuelve la referencia a la base de datos.
    Úsalo en dependencias/scripts, no en routers ni repositorios.
    """
    if _db is None:
        raise StorageError("Storage not initialised", operation="get_db")
    return _db


def db_ready() -> bool:
    return _db is not None


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Traduce errores del driver a StorageError (el detalle queda en el log)."""
    try:
        yield
    except PyMongoError as e:
        _log.exception("Mongo falló en %s: %s", operation, e)
        raise StorageError(operation=operation) from e
