# --------------------------------------------------------------
# File: __init__.py
# Description: Exposición pública del pipeline de cifrado de DocsCrypt.
# --------------------------------------------------------------
"""Inicializa el paquete `docscrypt` y expone las dos operaciones del núcleo."""

from docscrypt.combined import ALGORITHM_TAG, CombinedCipher, decrypt_buffer, encrypt_buffer
from docscrypt.errors import (
    DecryptionError,
    DocsCryptError,
    EncryptionError,
    IntegrityError,
    InvalidInput,
    InvalidParameters,
    MalformedContainer,
)

__all__ = [
    "ALGORITHM_TAG",
    "CombinedCipher",
    "DecryptionError",
    "DocsCryptError",
    "EncryptionError",
    "IntegrityError",
    "InvalidInput",
    "InvalidParameters",
    "MalformedContainer",
    "decrypt_buffer",
    "encrypt_buffer",
]
