"""
Errores de dominio y handlers globales para respuestas de error consistentes.

Taxonomía:
- ValidationError -> 400 (título faltante, id de referencia desconocido).
- NotFoundError   -> 404 (nota/tag/categoría inexistente).
- StorageError    -> 500 (Mongo inaccesible o rechaza la operación); el
  detalle interno se loggea, nunca se devuelve al cliente.
"""
import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class AppError(Exception):
    """Base de los errores de la aplicación; cada subclase fija su status HTTP."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class StorageError(AppError):
    status_code = 500

    def __init__(self, message: str = "Storage operation failed", *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def _body(request: Request, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message, **extra}
    rid = _req_id(request)
    if rid:
        body["request_id"] = rid
    return body


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("noteshelf.errors")

    @app.exception_handler(StorageError)
    async def _storage_handler(request: Request, exc: StorageError):
        # El detalle ya quedó en el log de la capa de datos
        log.error("Storage error request_id=%s operation=%s", _req_id(request), exc.operation)
        return JSONResponse(status_code=exc.status_code, content=_body(request, "Internal server error"))

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.detail or "HTTP error"))

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content=_body(request, "Validation error", errors=jsonable_encoder(exc.errors())))

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        log.exception("Unhandled error request_id=%s", _req_id(request))
        return JSONResponse(status_code=500, content=_body(request, "Internal server error"))
