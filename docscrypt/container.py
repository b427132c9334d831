# --------------------------------------------------------------
# File: container.py
# Description: Formato de contenedor [IV][ciphertext] y sidecar JSON de metadatos.
# --------------------------------------------------------------
"""Serialización de artefactos cifrados para su almacenamiento o descarga.

Disposición en disco::

    [16 bytes IV][ciphertext]          -> <nombre>.enc
    {"originalSize": ..., "iv": ...}   -> <nombre>.meta.json

El contenedor basta para descifrar sin metadatos, renunciando entonces a la
comprobación del checksum.
"""

from __future__ import annotations

import json
from typing import Tuple

from pydantic import ValidationError

from docscrypt.block_cipher import BLOCK_SIZE
from docscrypt.errors import InvalidInput, MalformedContainer
from docscrypt.models import EncryptedArtifact, EncryptionMetadata

__all__ = ["IV_SIZE", "metadata_from_json", "metadata_to_json", "pack", "unpack"]

IV_SIZE = BLOCK_SIZE


def pack(artifact: EncryptedArtifact) -> bytes:
    """Concatena el IV y el ciphertext de un artefacto."""

    if len(artifact.iv) != IV_SIZE:
        raise InvalidInput("El IV del artefacto debe ser de 16 bytes.")
    return artifact.iv + artifact.ciphertext


def unpack(blob: bytes) -> Tuple[bytes, bytes]:
    """Separa un contenedor en ``(iv, ciphertext)``.

    Raises:
        InvalidInput: Si ``blob`` no es un buffer de bytes.
        MalformedContainer: Si el contenedor no alcanza a contener el IV.

    """

    if not isinstance(blob, (bytes, bytearray, memoryview)):
        raise InvalidInput("El contenedor debe ser un buffer de bytes.")
    blob = bytes(blob)
    if len(blob) < IV_SIZE:
        raise MalformedContainer("Contenedor demasiado corto: falta el IV.")
    return blob[:IV_SIZE], blob[IV_SIZE:]


def metadata_to_json(metadata: EncryptionMetadata) -> str:
    return json.dumps(metadata.to_record(), indent=2, ensure_ascii=False)


def metadata_from_json(text: str) -> EncryptionMetadata:
    """Reconstruye los metadatos desde su representación JSON.

    Raises:
        MalformedContainer: JSON inválido o campos ausentes/incorrectos.

    """

    try:
        return EncryptionMetadata.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValidationError, TypeError) as exc:
        raise MalformedContainer("Metadatos de cifrado ilegibles.") from exc
