# --------------------------------------------------------------
# File: services.py
# Description: Servicios de cifrado, almacenamiento y descarga de documentos.
# --------------------------------------------------------------
"""Capa de servicios que conecta la interfaz con el pipeline de cifrado.

Cada documento se guarda como ``<doc_id>.enc`` (contenedor ``[IV][ct]``) y
``<doc_id>.meta.json`` (sidecar con nombre original y metadatos de cifrado).
"""

from __future__ import annotations

import logging
import os
import re
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from api.temp_store import TempFileEntry, TempFileStore
from docscrypt import container
from docscrypt.combined import CombinedCipher, build_cipher, resolve_block_key
from docscrypt.config import Settings, configure_logging, get_settings
from docscrypt.errors import DecryptionError, DocsCryptError, InvalidInput
from docscrypt.models import EncryptionMetadata
from docscrypt.storage import load_json, read_bytes, save_json, write_bytes

__all__ = [
    "ALLOWED_EXTENSIONS",
    "DocumentNotFound",
    "DocumentService",
    "StoredDocument",
    "build_document_service",
    "get_document_service",
    "secure_name",
    "validate_upload",
]

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".docx", ".xlsx")
ENCRYPTED_SUFFIX = ".encrypted"
SIDECAR_VERSION = 1
_DOC_ID = re.compile(r"^[0-9a-f]{32}$")


class DocumentNotFound(DocsCryptError, LookupError):
    """El documento solicitado no existe en el almacén."""


class StoredDocument(BaseModel):
    """Contenido del sidecar ``.meta.json`` de un documento cifrado."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = SIDECAR_VERSION
    doc_id: str = Field(alias="docId")
    original_name: str = Field(alias="originalName")
    stored_as: str = Field(alias="storedAs")
    file_type: str = Field(alias="fileType")
    created_at: str = Field(alias="createdAt")
    metadata: EncryptionMetadata


def secure_name(name: str) -> str:
    """Normaliza el nombre de archivo para evitar caracteres problemáticos.

    Args:
        name (str): Nombre original del archivo proporcionado por el usuario.

    Returns:
        str: Nombre limpio y libre de rutas o caracteres inválidos.
    """
    bad = '<>:"/\\|?*'
    for ch in bad:
        name = name.replace(ch, "_")
    return name.strip().replace("..", "_")


def validate_upload(filename: str, size: int, max_bytes: int) -> str:
    """Comprueba extensión y tamaño de un documento subido.

    Returns:
        str: Tipo de archivo (``docx`` o ``xlsx``).

    Raises:
        InvalidInput: Extensión no permitida o tamaño excesivo.

    """

    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise InvalidInput("Solo se permiten archivos Word (.docx) y Excel (.xlsx).")
    if size > max_bytes:
        raise InvalidInput(f"El archivo supera el tamaño máximo de {max_bytes} bytes.")
    return extension[1:]


def _decrypted_name(filename: str, original_filename: Optional[str]) -> str:
    if original_filename:
        return secure_name(original_filename)
    name = secure_name(filename or "documento")
    if name.lower().endswith(ENCRYPTED_SUFFIX):
        return name[: -len(ENCRYPTED_SUFFIX)] or "documento"
    return f"{name}.decrypted"


class DocumentService:
    """Cifra, guarda y recupera documentos ofimáticos.

    Args:
        cipher (CombinedCipher): Pipeline de cifrado configurado.
        vault_dir (str): Carpeta de contenedores y sidecars.
        temp_store (TempFileStore): Registro de claros temporales.
        max_upload_bytes (int): Tamaño máximo aceptado por documento.
        settings (Optional[Settings]): Configuración con la que se interpretan
            las claves personalizadas; si falta, solo se respeta el modo
            estricto del pipeline.

    """

    def __init__(
        self,
        cipher: CombinedCipher,
        vault_dir: str,
        temp_store: TempFileStore,
        *,
        max_upload_bytes: int = 50 * 1024 * 1024,
        settings: Optional[Settings] = None,
    ) -> None:
        self.cipher = cipher
        self.vault_dir = vault_dir
        self.temp_store = temp_store
        self.max_upload_bytes = max_upload_bytes
        self.settings = settings or Settings(strict_keys=cipher.block_cipher.strict)
        os.makedirs(vault_dir, exist_ok=True)

    def _paths(self, doc_id: str) -> Tuple[str, str]:
        if not isinstance(doc_id, str) or not _DOC_ID.match(doc_id):
            raise DocumentNotFound("Documento no encontrado.")
        base = os.path.join(self.vault_dir, doc_id)
        return base + ".enc", base + ".meta.json"

    def encrypt_document(self, data: bytes, filename: str) -> StoredDocument:
        """Valida, cifra y guarda un documento.

        Args:
            data (bytes): Contenido del documento.
            filename (str): Nombre original del archivo.

        Returns:
            StoredDocument: Sidecar persistido junto al contenedor.

        """

        if not isinstance(data, (bytes, bytearray)):
            raise InvalidInput("El documento debe ser un buffer de bytes.")
        file_type = validate_upload(filename, len(data), self.max_upload_bytes)
        artifact = self.cipher.encrypt(bytes(data))

        doc_id = uuid.uuid4().hex
        enc_path, meta_path = self._paths(doc_id)
        record = StoredDocument(
            doc_id=doc_id,
            original_name=secure_name(filename),
            stored_as=os.path.basename(enc_path),
            file_type=file_type,
            created_at=datetime.now(timezone.utc).isoformat(),
            metadata=artifact.metadata,
        )
        write_bytes(container.pack(artifact), enc_path)
        try:
            save_json(record.model_dump(by_alias=True), meta_path)
        except OSError:
            logger.error("No se pudo guardar el sidecar de %s; se descarta el contenedor", doc_id)
            try:
                os.remove(enc_path)
            except FileNotFoundError:
                pass
            raise
        logger.info(
            "Documento cifrado: id=%s tipo=%s claro=%d cifrado=%d",
            doc_id,
            file_type,
            artifact.metadata.original_size,
            artifact.metadata.encrypted_size,
        )
        return record

    def _load_record(self, meta_path: str) -> Optional[StoredDocument]:
        raw = load_json(meta_path)
        if raw is None:
            return None
        try:
            return StoredDocument.model_validate(raw)
        except ValidationError:
            logger.warning("Sidecar con formato inválido: %s", meta_path)
            return None

    def get_document(self, doc_id: str) -> StoredDocument:
        enc_path, meta_path = self._paths(doc_id)
        record = self._load_record(meta_path)
        if record is None or not os.path.exists(enc_path):
            raise DocumentNotFound("Documento no encontrado.")
        return record

    def list_documents(self) -> List[StoredDocument]:
        """Devuelve los documentos guardados, los más recientes primero."""

        records = []
        for name in sorted(os.listdir(self.vault_dir)):
            if not name.endswith(".meta.json"):
                continue
            record = self._load_record(os.path.join(self.vault_dir, name))
            if record is not None:
                records.append(record)
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def decrypt_document(self, doc_id: str) -> Tuple[str, bytes]:
        """Descifra un documento guardado verificando su checksum.

        Returns:
            Tuple[str, bytes]: Nombre original y contenido en claro.

        Raises:
            DocumentNotFound: El documento no existe.
            DecryptionError: Contenedor corrupto o checksum inválido.

        """

        record = self.get_document(doc_id)
        enc_path, _ = self._paths(doc_id)
        blob = read_bytes(enc_path)
        plaintext = self.cipher.decrypt_buffer(blob, metadata=record.metadata)
        logger.info("Documento descifrado: id=%s bytes=%d", doc_id, len(plaintext))
        return record.original_name, plaintext

    def get_encrypted_document(self, doc_id: str) -> Tuple[str, bytes]:
        """Devuelve el contenedor sin descifrar con nombre ``<original>.encrypted``."""

        record = self.get_document(doc_id)
        enc_path, _ = self._paths(doc_id)
        return record.original_name + ENCRYPTED_SUFFIX, read_bytes(enc_path)

    def delete_document(self, doc_id: str) -> None:
        enc_path, meta_path = self._paths(doc_id)
        found = False
        for path in (enc_path, meta_path):
            try:
                os.remove(path)
                found = True
            except FileNotFoundError:
                continue
        if not found:
            raise DocumentNotFound("Documento no encontrado.")
        logger.info("Documento eliminado: id=%s", doc_id)

    def decrypt_uploaded(
        self,
        blob: bytes,
        filename: str,
        original_filename: Optional[str] = None,
        key: Optional[Union[str, bytes]] = None,
    ) -> TempFileEntry:
        """Descifra un contenedor subido sin sidecar y lo deja en el almacén temporal.

        Sin metadatos no hay verificación de checksum. Con ``key`` se usa un
        pipeline con esa clave y los mismos parámetros afines; la clave se
        interpreta igual que la configurada (passphrase Argon2id, hexadecimal
        estricta o texto ajustado).

        """

        cipher = self.cipher
        if key:
            if isinstance(key, (bytes, bytearray)):
                block_key, strict = bytes(key), self.cipher.block_cipher.strict
            else:
                block_key, strict = resolve_block_key(self.settings, key)
            affine = self.cipher.affine_cipher
            cipher = CombinedCipher(block_key, affine.a, affine.b, strict=strict)
        try:
            plaintext = cipher.decrypt_buffer(blob)
        except DecryptionError:
            logger.warning("Descifrado de archivo subido fallido: %s", secure_name(filename or ""))
            raise
        entry = self.temp_store.put(plaintext, _decrypted_name(filename, original_filename))
        logger.info("Archivo subido descifrado: temp=%s bytes=%d", entry.temp_id, entry.size)
        return entry

    def take_temp_file(self, temp_id: str) -> Tuple[str, bytes]:
        return self.temp_store.take(temp_id)

    def encryption_info(self) -> Dict[str, Any]:
        return self.cipher.get_parameters()

    def self_test(self) -> Dict[str, Any]:
        return self.cipher.self_test()


def build_document_service(settings: Optional[Settings] = None) -> DocumentService:
    """Construye el servicio y arranca el barrido de temporales."""

    settings = settings or get_settings()
    temp_store = TempFileStore(
        settings.temp_dir,
        ttl_seconds=settings.temp_ttl_seconds,
        max_entries=settings.temp_max_entries,
    )
    temp_store.start_sweeper(settings.temp_sweep_seconds)
    return DocumentService(
        build_cipher(settings),
        settings.vault_dir,
        temp_store,
        max_upload_bytes=settings.max_upload_bytes,
        settings=settings,
    )


@lru_cache(maxsize=1)
def get_document_service() -> DocumentService:
    """Instancia compartida por todas las páginas del proceso."""

    settings = get_settings()
    configure_logging(settings.log_level)
    return build_document_service(settings)
