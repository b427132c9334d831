# --------------------------------------------------------------
# File: __init__.py
# Description: Capa de servicios de documentos sobre el núcleo docscrypt.
# --------------------------------------------------------------
"""Inicializa el paquete `api` con los servicios de almacenamiento."""

__all__ = ["services", "temp_store"]
