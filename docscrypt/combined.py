# --------------------------------------------------------------
# File: combined.py
# Description: Pipeline de cifrado en dos etapas (afín + AES-128-CBC).
# --------------------------------------------------------------
"""Composición del cifrado afín con el cifrador de bloque.

Cifrado:    claro -> afín -> AES-128-CBC -> (ciphertext, iv) + metadatos
Descifrado: ciphertext -> AES-128-CBC^-1 -> afín^-1 -> claro -> checksum

El orden es parte del formato: los artefactos ya emitidos solo se recuperan
deshaciendo las etapas en orden inverso. El tag ``aria-128-cbc+affine`` lo
identifica en los metadatos.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from docscrypt import container
from docscrypt.affine import AffineCipher
from docscrypt.block_cipher import BlockCipher, KeyLike
from docscrypt.config import Settings, get_settings
from docscrypt.crypto_kdf import derive_block_key
from docscrypt.errors import DocsCryptError, IntegrityError, InvalidInput, InvalidParameters
from docscrypt.models import CipherParameters, EncryptedArtifact, EncryptionMetadata

__all__ = [
    "ALGORITHM_TAG",
    "SUPPORTED_TAGS",
    "CombinedCipher",
    "build_cipher",
    "decrypt_buffer",
    "encrypt_buffer",
    "get_default_cipher",
    "resolve_block_key",
    "sha256_hex",
]

logger = logging.getLogger(__name__)

ALGORITHM_TAG = "aria-128-cbc+affine"
SUPPORTED_TAGS = frozenset({ALGORITHM_TAG})
SELF_TEST_MESSAGE = b"Hello, this is a test message for encryption!"

MetadataLike = Union[EncryptionMetadata, Mapping[str, Any]]


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _coerce_iv(iv: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(iv, str):
        try:
            return bytes.fromhex(iv)
        except ValueError as exc:
            raise InvalidInput("El IV hexadecimal no es válido.") from exc
    if isinstance(iv, (bytes, bytearray)):
        return bytes(iv)
    raise InvalidInput("El IV debe ser hexadecimal o bytes.")


def _coerce_metadata(metadata: Optional[MetadataLike]) -> Optional[EncryptionMetadata]:
    if metadata is None or isinstance(metadata, EncryptionMetadata):
        return metadata
    try:
        return EncryptionMetadata.model_validate(dict(metadata))
    except (ValidationError, TypeError, ValueError) as exc:
        raise InvalidInput("Los metadatos de cifrado no son válidos.") from exc


class CombinedCipher:
    """Pipeline afín + AES-128-CBC con metadatos de integridad.

    Args:
        block_key (KeyLike): Clave del cifrador de bloque.
        affine_a (int): Multiplicador afín.
        affine_b (int): Desplazamiento afín.
        strict (bool): Exige clave e IV de 16 bytes exactos.

    """

    algorithm_tag = ALGORITHM_TAG

    def __init__(
        self, block_key: KeyLike, affine_a: int = 5, affine_b: int = 8, *, strict: bool = False
    ) -> None:
        self.affine_cipher = AffineCipher(affine_a, affine_b)
        self.block_cipher = BlockCipher(block_key, strict=strict)

    @classmethod
    def from_parameters(cls, params: CipherParameters, *, strict: bool = False) -> "CombinedCipher":
        if params.modulus != 256:
            raise InvalidParameters("El pipeline requiere módulo 256.")
        return cls(params.block_key, params.multiplier, params.addend, strict=strict)

    def encrypt(self, data: bytes) -> EncryptedArtifact:
        """Cifra ``data`` y adjunta los metadatos del artefacto.

        Args:
            data (bytes): Claro a proteger.

        Returns:
            EncryptedArtifact: IV, ciphertext y metadatos con el SHA-256 del claro.

        Raises:
            InvalidInput: Si ``data`` no es un buffer de bytes.
            EncryptionError: Si falla el cifrador de bloque.

        """

        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidInput("Los datos deben ser un buffer de bytes.")
        data = bytes(data)
        logger.debug("Cifrado combinado: %d bytes", len(data))

        checksum = sha256_hex(data)
        intermediate = self.affine_cipher.encrypt(data)
        result = self.block_cipher.encrypt(intermediate)
        logger.debug("Etapa %s completada: %d bytes", result.algorithm, len(result.ciphertext))

        metadata = EncryptionMetadata(
            original_size=len(data),
            encrypted_size=len(result.ciphertext),
            iv=result.iv.hex(),
            algorithm_tag=self.algorithm_tag,
            timestamp=datetime.now(timezone.utc).isoformat(),
            checksum=checksum,
        )
        return EncryptedArtifact(iv=result.iv, ciphertext=result.ciphertext, metadata=metadata)

    def decrypt(
        self,
        ciphertext: bytes,
        iv: Union[str, bytes],
        metadata: Optional[MetadataLike] = None,
        *,
        allow_unverified: bool = False,
    ) -> bytes:
        """Deshace las dos etapas y verifica el checksum si hay metadatos.

        Args:
            ciphertext (bytes): Datos cifrados sin el IV.
            iv (Union[str, bytes]): IV en hexadecimal o binario.
            metadata (Optional[MetadataLike]): Metadatos del artefacto.
            allow_unverified (bool): Devuelve el claro aunque el checksum no
                coincida (se registra una advertencia).

        Returns:
            bytes: Claro recuperado.

        Raises:
            InvalidInput: Tipos incorrectos o tag de algoritmo no soportado.
            DecryptionError: Padding o longitud inválidos.
            IntegrityError: El checksum no coincide.

        """

        if not isinstance(ciphertext, (bytes, bytearray, memoryview)):
            raise InvalidInput("Los datos cifrados deben ser un buffer de bytes.")
        meta = _coerce_metadata(metadata)
        if meta is not None and meta.algorithm_tag not in SUPPORTED_TAGS:
            raise InvalidInput(f"Algoritmo no soportado: {meta.algorithm_tag}")

        logger.debug("Descifrado combinado: %d bytes", len(ciphertext))
        intermediate = self.block_cipher.decrypt(bytes(ciphertext), _coerce_iv(iv))
        plaintext = self.affine_cipher.decrypt(intermediate)

        if meta is None:
            logger.debug("Sin metadatos: se omite la verificación de integridad")
            return plaintext

        if not hmac.compare_digest(sha256_hex(plaintext), meta.checksum.lower()):
            if allow_unverified:
                logger.warning("Checksum no coincide; se devuelve el claro sin verificar")
                return plaintext
            logger.error("Fallo de integridad tras el descifrado")
            raise IntegrityError("El checksum no coincide: datos alterados o clave incorrecta.")
        logger.debug("Integridad verificada")
        return plaintext

    def encrypt_buffer(self, plaintext: bytes) -> EncryptedArtifact:
        return self.encrypt(plaintext)

    def decrypt_buffer(
        self,
        data: bytes,
        iv: Optional[Union[str, bytes]] = None,
        metadata: Optional[MetadataLike] = None,
        *,
        allow_unverified: bool = False,
    ) -> bytes:
        """Descifra un ciphertext con IV explícito o un contenedor ``[IV][ct]``.

        Sin ``iv`` el buffer se interpreta como contenedor y los primeros 16
        bytes son el IV.

        Raises:
            MalformedContainer: Contenedor de menos de 16 bytes.

        """

        if iv is None:
            iv, data = container.unpack(data)
        return self.decrypt(data, iv, metadata, allow_unverified=allow_unverified)

    @staticmethod
    def verify_integrity(original: bytes, decrypted: bytes) -> bool:
        """Igualdad exacta de dos buffers, longitud incluida."""

        types = (bytes, bytearray, memoryview)
        if not isinstance(original, types) or not isinstance(decrypted, types):
            return False
        if len(original) != len(decrypted):
            return False
        return hmac.compare_digest(bytes(original), bytes(decrypted))

    def get_parameters(self) -> Dict[str, Any]:
        return {
            "algorithm": self.algorithm_tag,
            "block": self.block_cipher.get_key_info(),
            "affine": self.affine_cipher.get_parameters(),
        }

    def self_test(self) -> Dict[str, Any]:
        """Cifra y descifra un mensaje de prueba sin propagar errores."""

        try:
            artifact = self.encrypt(SELF_TEST_MESSAGE)
            decrypted = self.decrypt(artifact.ciphertext, artifact.metadata.iv, artifact.metadata)
        except DocsCryptError as exc:
            logger.error("Autotest de cifrado fallido: %s", exc)
            return {"success": False, "error": str(exc)}

        ok = self.verify_integrity(SELF_TEST_MESSAGE, decrypted)
        return {
            "success": ok,
            "originalSize": len(SELF_TEST_MESSAGE),
            "encryptedSize": len(artifact.ciphertext),
            "decryptedSize": len(decrypted),
            "message": "Prueba superada." if ok else "Prueba fallida: los datos no coinciden.",
        }


def resolve_block_key(settings: Settings, key: Optional[str] = None) -> Tuple[KeyLike, bool]:
    """Convierte una clave de texto en la clave de bloque según la configuración.

    Con ``key_salt`` la clave se trata como passphrase y se deriva con
    Argon2id; con ``strict_keys`` se lee como 32 caracteres hexadecimales.
    En ambos casos el cifrador resultante debe ir en modo estricto.

    Args:
        settings (Settings): Configuración activa.
        key (Optional[str]): Clave a convertir; por defecto ``settings.block_key``.

    Returns:
        Tuple[KeyLike, bool]: Clave de bloque y si el cifrador es estricto.

    Raises:
        InvalidParameters: Sal o clave hexadecimal mal formadas.

    """

    text = settings.block_key if key is None else key
    if settings.key_salt:
        try:
            salt = bytes.fromhex(settings.key_salt)
        except ValueError as exc:
            raise InvalidParameters("DOCSCRYPT_KEY_SALT debe ser hexadecimal.") from exc
        return derive_block_key(text, salt), True
    if settings.strict_keys:
        try:
            return bytes.fromhex(text), True
        except (TypeError, ValueError) as exc:
            raise InvalidParameters("En modo estricto la clave debe ser hexadecimal.") from exc
    return text, False


def build_cipher(settings: Settings) -> CombinedCipher:
    """Crea el pipeline a partir de la configuración."""

    block_key, strict = resolve_block_key(settings)
    return CombinedCipher(block_key, settings.affine_a, settings.affine_b, strict=strict)


@lru_cache(maxsize=1)
def get_default_cipher() -> CombinedCipher:
    return build_cipher(get_settings())


def encrypt_buffer(plaintext: bytes) -> EncryptedArtifact:
    """Cifra ``plaintext`` con el pipeline configurado por entorno."""

    return get_default_cipher().encrypt_buffer(plaintext)


def decrypt_buffer(
    data: bytes,
    iv: Optional[Union[str, bytes]] = None,
    metadata: Optional[MetadataLike] = None,
    *,
    allow_unverified: bool = False,
) -> bytes:
    """Descifra con el pipeline configurado por entorno (ver ``CombinedCipher.decrypt_buffer``)."""

    return get_default_cipher().decrypt_buffer(
        data, iv, metadata, allow_unverified=allow_unverified
    )
