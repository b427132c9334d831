# --------------------------------------------------------------
# File: config.py
# Description: Configuración por entorno (.env) y registro de logs.
# --------------------------------------------------------------
"""Lectura de la configuración de DocsCrypt desde variables de entorno."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from docscrypt.errors import InvalidParameters

load_dotenv()

DEFAULT_KEY = "default-key-change-this-in-prod"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
HANDLER_NAME = "docscrypt"


class Settings(BaseModel):
    """Valores de configuración resueltos al arrancar."""

    block_key: str = DEFAULT_KEY
    key_salt: Optional[str] = None
    affine_a: int = 5
    affine_b: int = 8
    strict_keys: bool = False
    storage_path: str = "./_data"
    temp_ttl_seconds: float = 3600
    temp_max_entries: int = 128
    temp_sweep_seconds: float = 300
    max_upload_bytes: int = 50 * 1024 * 1024
    log_level: str = "INFO"

    @property
    def vault_dir(self) -> str:
        return os.path.join(self.storage_path, "vault")

    @property
    def temp_dir(self) -> str:
        return os.path.join(self.storage_path, "temp")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidParameters(f"{name} debe ser un entero.") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise InvalidParameters(f"{name} debe ser un número.") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    """Construye la configuración a partir del entorno actual.

    Returns:
        Settings: Configuración validada.

    Raises:
        InvalidParameters: Si algún valor numérico no es interpretable.

    """

    return Settings(
        block_key=os.getenv("DOCSCRYPT_KEY", DEFAULT_KEY),
        key_salt=os.getenv("DOCSCRYPT_KEY_SALT") or None,
        affine_a=_env_int("AFFINE_A", 5),
        affine_b=_env_int("AFFINE_B", 8),
        strict_keys=_env_bool("STRICT_KEYS", False),
        storage_path=os.getenv("STORAGE_PATH", "./_data"),
        temp_ttl_seconds=_env_float("TEMP_TTL_SECONDS", 3600),
        temp_max_entries=_env_int("TEMP_MAX_ENTRIES", 128),
        temp_sweep_seconds=_env_float("TEMP_SWEEP_SECONDS", 300),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 50 * 1024 * 1024),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Instala un único handler de consola para el logger raíz."""

    root = logging.getLogger()
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.set_name(HANDLER_NAME)
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
