# --------------------------------------------------------------
# File: models.py
# Description: Modelos de datos comunes utilizados por la capa criptográfica.
# --------------------------------------------------------------
"""Modelos Pydantic que encapsulan estructuras de intercambio criptográfico."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from docscrypt.affine import BYTE_MODULUS, AffineCipher


class CipherParameters(BaseModel):
    """Parámetros del pipeline combinado.

    Attributes:
        multiplier (int): Multiplicador afín ``a``; coprimo con ``modulus``.
        addend (int): Desplazamiento afín ``b``.
        modulus (int): Módulo afín, fijo en 256 para buffers de bytes.
        block_key (bytes): Clave del cifrador de bloque de 128 bits.

    """

    model_config = ConfigDict(frozen=True)

    multiplier: int = 5
    addend: int = 8
    modulus: int = BYTE_MODULUS
    block_key: bytes

    @model_validator(mode="after")
    def _check_coprime(self) -> "CipherParameters":
        # InvalidParameters no hereda de ValueError: pydantic la deja propagar.
        AffineCipher.validate_parameters(self.multiplier, self.addend, self.modulus)
        return self


class BlockCipherResult(BaseModel):
    """Representa el resultado de una operación AES-128-CBC.

    Attributes:
        ciphertext (bytes): Datos cifrados con padding PKCS7.
        iv (bytes): Vector de inicialización de 128 bits utilizado.
        algorithm (str): Identificador del cifrador de bloque.

    """

    ciphertext: bytes
    iv: bytes
    algorithm: str


class EncryptionMetadata(BaseModel):
    """Registro de metadatos que acompaña a cada artefacto cifrado.

    Se serializa con claves camelCase (``originalSize``, ``algorithmTag``...);
    al leer también acepta la clave histórica ``algorithm``.

    Attributes:
        original_size (int): Tamaño del claro en bytes.
        encrypted_size (int): Tamaño del ciphertext sin el IV.
        iv (str): IV en hexadecimal.
        algorithm_tag (str): Identificador del esquema de dos etapas.
        timestamp (str): Instante de cifrado en ISO-8601 (UTC).
        checksum (str): SHA-256 en hexadecimal del claro original.

    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_size: int = Field(alias="originalSize", ge=0)
    encrypted_size: int = Field(alias="encryptedSize", ge=0)
    iv: str = Field(pattern=r"^[0-9a-fA-F]{32}$")
    algorithm_tag: str = Field(
        alias="algorithmTag",
        validation_alias=AliasChoices("algorithmTag", "algorithm", "algorithm_tag"),
    )
    timestamp: str
    checksum: str = Field(pattern=r"^[0-9a-fA-F]{64}$")

    def to_record(self) -> dict:
        """Devuelve el registro con las claves camelCase del sidecar."""

        return self.model_dump(by_alias=True)


class EncryptedArtifact(BaseModel):
    """Artefacto producido por una única llamada de cifrado.

    Attributes:
        iv (bytes): IV de 16 bytes.
        ciphertext (bytes): Resultado del cifrado afín seguido de AES-128-CBC.
        metadata (EncryptionMetadata): Metadatos para verificar la integridad.

    """

    model_config = ConfigDict(frozen=True)

    iv: bytes
    ciphertext: bytes
    metadata: EncryptionMetadata
