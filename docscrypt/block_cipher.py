# --------------------------------------------------------------
# File: block_cipher.py
# Description: Primitivas AES-128-CBC con padding PKCS7 para el pipeline.
# --------------------------------------------------------------
"""Envoltorio del cifrador de bloque de 128 bits en modo CBC.

El esquema se anunció como ARIA-128-CBC pero siempre ha usado
AES-128-CBC; el identificador ``aes-128-cbc`` es el que este módulo
reporta, y el tag del pipeline conserva el nombre histórico.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from docscrypt.errors import DecryptionError, EncryptionError, InvalidInput, InvalidParameters
from docscrypt.models import BlockCipherResult

__all__ = ["BLOCK_ALGORITHM", "BLOCK_SIZE", "BlockCipher", "normalize_iv", "normalize_key"]

logger = logging.getLogger(__name__)

BLOCK_ALGORITHM = "aes-128-cbc"
BLOCK_SIZE = 16
KEY_SIZE = 16

KeyLike = Union[str, bytes, bytearray]


def _fit(data: bytes, size: int) -> bytes:
    """Rellena con ceros o trunca ``data`` hasta ``size`` bytes."""

    return bytes(data[:size]).ljust(size, b"\x00")


def normalize_key(key: KeyLike) -> bytes:
    """Ajusta una clave a exactamente 16 bytes (modo compatible).

    Las claves de texto se rellenan con el carácter ``'0'`` o se truncan a
    16 caracteres antes de codificarse en UTF-8; las binarias se rellenan con
    ceros o se truncan. Reduce la entropía efectiva: para passphrases usar
    :func:`docscrypt.crypto_kdf.derive_block_key`.

    Args:
        key (KeyLike): Clave en texto o binaria.

    Returns:
        bytes: Clave de 128 bits.

    Raises:
        InvalidParameters: Si la clave está vacía o no es texto ni bytes.

    """

    if isinstance(key, str):
        if not key:
            raise InvalidParameters("La clave no puede estar vacía.")
        return _fit(key.ljust(KEY_SIZE, "0")[:KEY_SIZE].encode("utf-8"), KEY_SIZE)
    if isinstance(key, (bytes, bytearray)):
        if not key:
            raise InvalidParameters("La clave no puede estar vacía.")
        return _fit(bytes(key), KEY_SIZE)
    raise InvalidParameters("La clave debe ser texto o bytes.")


def normalize_iv(iv: Union[bytes, bytearray]) -> bytes:
    """Ajusta un IV a 16 bytes rellenando con ceros o truncando."""

    if not isinstance(iv, (bytes, bytearray)):
        raise InvalidInput("El IV debe ser un buffer de bytes.")
    return _fit(bytes(iv), BLOCK_SIZE)


class BlockCipher:
    """AES-128 en modo CBC con padding PKCS7.

    Args:
        key (KeyLike): Clave del cifrador.
        strict (bool): Si es ``True`` la clave y los IV deben medir 16 bytes
            exactos en lugar de ajustarse.

    """

    algorithm = BLOCK_ALGORITHM

    def __init__(self, key: KeyLike, *, strict: bool = False) -> None:
        self.strict = strict
        if strict:
            if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
                raise InvalidParameters("En modo estricto la clave debe ser de 16 bytes.")
            self._key = bytes(key)
        else:
            self._key = normalize_key(key)

    @classmethod
    def from_hex_key(cls, hex_key: str, *, strict: bool = False) -> "BlockCipher":
        try:
            key = bytes.fromhex(hex_key)
        except (TypeError, ValueError) as exc:
            raise InvalidParameters("La clave hexadecimal no es válida.") from exc
        return cls(key, strict=strict)

    @staticmethod
    def generate_key() -> bytes:
        """Genera una clave aleatoria de 128 bits."""

        return os.urandom(KEY_SIZE)

    @staticmethod
    def generate_iv() -> bytes:
        """Genera un IV aleatorio de 128 bits."""

        return os.urandom(BLOCK_SIZE)

    def _prepare_iv(self, iv: Union[bytes, bytearray]) -> bytes:
        if self.strict:
            if not isinstance(iv, (bytes, bytearray)) or len(iv) != BLOCK_SIZE:
                raise InvalidInput("En modo estricto el IV debe ser de 16 bytes.")
            return bytes(iv)
        return normalize_iv(iv)

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(iv))

    def encrypt(self, data: Union[bytes, str], iv: Optional[bytes] = None) -> BlockCipherResult:
        """Cifra ``data`` con AES-128-CBC.

        Args:
            data (Union[bytes, str]): Datos en claro; el texto se codifica en UTF-8.
            iv (Optional[bytes]): IV a utilizar; se genera uno aleatorio si falta.

        Returns:
            BlockCipherResult: Ciphertext, IV efectivo e identificador del algoritmo.

        Raises:
            InvalidInput: Si ``data`` no es texto ni bytes.
            EncryptionError: Si el backend criptográfico falla.

        """

        if isinstance(data, str):
            data = data.encode("utf-8")
        elif not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidInput("Los datos deben ser bytes o texto.")

        iv = self.generate_iv() if iv is None else self._prepare_iv(iv)

        try:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(bytes(data)) + padder.finalize()
            encryptor = self._cipher(iv).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except (TypeError, ValueError) as exc:
            logger.error("Fallo del cifrado %s: %s", BLOCK_ALGORITHM, type(exc).__name__)
            raise EncryptionError("No se ha podido cifrar el bloque de datos.") from exc

        return BlockCipherResult(ciphertext=ciphertext, iv=iv, algorithm=BLOCK_ALGORITHM)

    def decrypt(self, ciphertext: bytes, iv: bytes) -> bytes:
        """Descifra ``ciphertext`` y elimina el padding PKCS7.

        Raises:
            InvalidInput: Si el ciphertext no es un buffer de bytes.
            DecryptionError: Longitud no múltiplo del bloque o padding inválido,
                síntoma habitual de datos alterados o de clave/IV incorrectos.

        """

        if not isinstance(ciphertext, (bytes, bytearray, memoryview)):
            raise InvalidInput("El ciphertext debe ser un buffer de bytes.")
        iv = self._prepare_iv(iv)

        try:
            decryptor = self._cipher(iv).decryptor()
            padded = decryptor.update(bytes(ciphertext)) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            logger.warning("Fallo del descifrado %s: %s", BLOCK_ALGORITHM, type(exc).__name__)
            raise DecryptionError(
                "No se ha podido descifrar: datos corruptos o clave/IV incorrectos."
            ) from exc

    def get_key_info(self) -> dict:
        return {"algorithm": BLOCK_ALGORITHM, "keyLength": len(self._key), "strict": self.strict}

    def __repr__(self) -> str:
        return f"BlockCipher(algorithm={BLOCK_ALGORITHM!r}, strict={self.strict})"
