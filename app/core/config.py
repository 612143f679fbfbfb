"""Configuración central de la aplicación (Pydantic Settings).

- Carga variables desde .env en la raíz del proyecto.
- Agrupa ajustes por área: App, CORS, Logging, Mongo, Notas.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field
from pathlib import Path

# Resuelve el .env ubicado en la raíz del proyecto (independiente del CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Conjunto de variables de configuración con valores por defecto razonables.

    Nota: los valores pueden sobreescribirse vía variables de entorno (.env).
    """
    # App
    app_name: str = "Noteshelf API"
    api_prefix: str = "/api"

    # CORS (para Vite/React en localhost)
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    cors_allow_any: bool = False  # Permite todos los orígenes (usa con cuidado)

    # Logging
    log_level: str = "INFO"

    # Mongo
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "noteshelf"
    mongo_tls: bool = False
    # TLS relax options (dev only)
    mongo_tls_insecure: bool = False  # allows invalid certs
    mongo_tls_allow_invalid_hostnames: bool = False

    # Colecciones: por defecto los nombres del corpus heredado
    notes_collection: str = "notes"
    tags_collection: str = "tags"
    categories_collection: str = "categories"

    # Notas
    notes_list_limit: int = Field(
        100,
        validation_alias=AliasChoices("NOTESHELF_LIST_LIMIT", "NOTES_LIST_LIMIT"),
    )
    # Si es True, ids repetidos en una lista de referencias hacen fallar la validación
    reference_ids_strict_count: bool = Field(
        False,
        validation_alias=AliasChoices("NOTESHELF_STRICT_REFERENCE_COUNT", "REFERENCE_IDS_STRICT_COUNT"),
    )

    # --- Utilidades derivadas / helpers ---
    @property
    def api_prefix_normalized(self) -> str:
        """Devuelve `api_prefix` con formato consistente.

        - Siempre inicia con '/'
        - Sin '/' final (excepto cuando es solo '/')
        - Si está vacío, devuelve ""
        """
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith('/'):
            pref = '/' + pref
        if len(pref) > 1 and pref.endswith('/'):
            pref = pref[:-1]
        return pref

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # no fallar si hay variables no usadas
    )


settings = Settings()
