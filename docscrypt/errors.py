# --------------------------------------------------------------
# File: errors.py
# Description: Jerarquía de errores tipados del núcleo de cifrado.
# --------------------------------------------------------------
"""Excepciones que el núcleo de cifrado devuelve a la capa que lo invoca.

Los mensajes nunca incluyen material de clave ni el texto interno del
backend criptográfico; la causa original queda encadenada con ``from``.
"""

__all__ = [
    "DocsCryptError",
    "InvalidParameters",
    "InvalidInput",
    "EncryptionError",
    "DecryptionError",
    "IntegrityError",
    "MalformedContainer",
]


class DocsCryptError(Exception):
    """Error base de DocsCrypt."""


class InvalidParameters(DocsCryptError):
    """Parámetros de construcción inválidos (afín no coprimo, clave mal formada)."""


class InvalidInput(DocsCryptError):
    """La entrada no tiene el tipo o la forma esperada."""


class EncryptionError(DocsCryptError):
    """Fallo del cifrador de bloque durante el cifrado."""


class DecryptionError(DocsCryptError):
    """Fallo del cifrador de bloque durante el descifrado (padding o longitud)."""


class IntegrityError(DecryptionError):
    """El checksum del claro recuperado no coincide con el de los metadatos."""


class MalformedContainer(DecryptionError):
    """El contenedor no respeta el formato ``[IV de 16 bytes][ciphertext]``."""
