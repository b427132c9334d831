# --------------------------------------------------------------
# File: storage.py
# Description: Utilidades de persistencia atómica para contenedores y sidecars.
# --------------------------------------------------------------
"""Funciones auxiliares de entrada/salida para el almacenamiento local."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

__all__ = ["load_json", "read_bytes", "save_json", "write_bytes"]

logger = logging.getLogger(__name__)


def _ensure_parent_dir(path: str) -> None:
    """Garantiza que exista el directorio padre del archivo de destino."""

    parent = os.path.dirname(path) or "."
    os.makedirs(parent, exist_ok=True)


def load_json(path: str) -> Optional[Dict[str, Any]]:
    """Carga un sidecar JSON.

    Args:
        path (str): Ruta del archivo JSON.

    Returns:
        Optional[Dict[str, Any]]: Contenido cargado o ``None`` si no existe o
        está corrupto.

    """

    try:
        with open(path, "r", encoding="utf-8") as handler:
            data = json.load(handler)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError:
        logger.warning("Sidecar JSON corrupto: %s", path)
        return None
    return data if isinstance(data, dict) else None


def save_json(data: Dict[str, Any], path: str) -> None:
    """Guarda un diccionario como JSON aplicando escritura atómica."""

    _ensure_parent_dir(path)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as handler:
        json.dump(data, handler, indent=2, ensure_ascii=False)
    os.replace(tmp_path, path)


def write_bytes(data: bytes, path: str) -> None:
    """Escribe un blob binario con la misma estrategia atómica."""

    _ensure_parent_dir(path)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "wb") as handler:
        handler.write(data)
    os.replace(tmp_path, path)


def read_bytes(path: str) -> bytes:
    with open(path, "rb") as handler:
        return handler.read()
