# --------------------------------------------------------------
# File: test_services.py
# Description: Pruebas del servicio de documentos sobre el almacén local.
# --------------------------------------------------------------

import hashlib
import json
import os

import pytest

from api.services import (
    DocumentNotFound,
    build_document_service,
    get_document_service,
    secure_name,
    validate_upload,
)
from api.temp_store import TempFileExpired
from docscrypt import container
from docscrypt.combined import CombinedCipher
from docscrypt.config import Settings, get_settings
from docscrypt.crypto_kdf import derive_block_key, generate_salt
from docscrypt.errors import (
    DecryptionError,
    IntegrityError,
    InvalidInput,
    InvalidParameters,
    MalformedContainer,
)

DOCX = b"PK\x03\x04" + os.urandom(500)


def test_encrypt_document_writes_container_and_sidecar(service):
    record = service.encrypt_document(DOCX, "Informe Final.docx")
    enc_path = os.path.join(service.vault_dir, record.stored_as)
    meta_path = os.path.join(service.vault_dir, f"{record.doc_id}.meta.json")
    with open(enc_path, "rb") as handler:
        blob = handler.read()
    with open(meta_path, encoding="utf-8") as handler:
        sidecar = json.load(handler)

    assert blob[:16].hex() == record.metadata.iv
    assert len(blob) == 16 + record.metadata.encrypted_size
    assert sidecar["originalName"] == "Informe Final.docx"
    assert sidecar["fileType"] == "docx"
    assert sidecar["metadata"]["checksum"] == hashlib.sha256(DOCX).hexdigest()
    assert sidecar["metadata"]["algorithmTag"] == "aria-128-cbc+affine"


def test_decrypt_document_roundtrip(service):
    record = service.encrypt_document(DOCX, "hoja.XLSX")
    assert record.file_type == "xlsx"
    filename, data = service.decrypt_document(record.doc_id)
    assert filename == "hoja.XLSX"
    assert data == DOCX


def test_decrypt_document_detects_tampering(service):
    record = service.encrypt_document(DOCX, "informe.docx")
    enc_path = os.path.join(service.vault_dir, record.stored_as)
    with open(enc_path, "rb") as handler:
        blob = bytearray(handler.read())
    blob[20] ^= 0x04
    with open(enc_path, "wb") as handler:
        handler.write(bytes(blob))
    with pytest.raises(DecryptionError):
        service.decrypt_document(record.doc_id)


def test_decrypt_document_with_forged_checksum(service):
    record = service.encrypt_document(DOCX, "informe.docx")
    meta_path = os.path.join(service.vault_dir, f"{record.doc_id}.meta.json")
    with open(meta_path, encoding="utf-8") as handler:
        sidecar = json.load(handler)
    sidecar["metadata"]["checksum"] = "0" * 64
    with open(meta_path, "w", encoding="utf-8") as handler:
        json.dump(sidecar, handler)
    with pytest.raises(IntegrityError):
        service.decrypt_document(record.doc_id)


@pytest.mark.parametrize("filename", ["notas.txt", "script.docx.exe", "sin_extension", ""])
def test_rejects_unsupported_types(service, filename):
    with pytest.raises(InvalidInput):
        service.encrypt_document(DOCX, filename)


def test_rejects_oversized_upload(service):
    with pytest.raises(InvalidInput):
        service.encrypt_document(b"\x00" * 4097, "grande.docx")
    assert validate_upload("ok.docx", 4096, 4096) == "docx"


def test_list_get_and_delete(service):
    first = service.encrypt_document(DOCX, "a.docx")
    second = service.encrypt_document(DOCX, "b.xlsx")
    with open(os.path.join(service.vault_dir, "roto.meta.json"), "w", encoding="utf-8") as handler:
        handler.write("{no json")

    ids = {r.doc_id for r in service.list_documents()}
    assert ids == {first.doc_id, second.doc_id}
    assert service.get_document(first.doc_id).original_name == "a.docx"

    service.delete_document(first.doc_id)
    with pytest.raises(DocumentNotFound):
        service.get_document(first.doc_id)
    with pytest.raises(DocumentNotFound):
        service.delete_document(first.doc_id)


@pytest.mark.parametrize("doc_id", ["../../etc/passwd", "x" * 32, "", None])
def test_unknown_or_unsafe_ids(service, doc_id):
    with pytest.raises(DocumentNotFound):
        service.decrypt_document(doc_id)


def test_get_encrypted_document(service):
    record = service.encrypt_document(DOCX, "informe.docx")
    name, blob = service.get_encrypted_document(record.doc_id)
    assert name == "informe.docx.encrypted"
    iv, _ = container.unpack(blob)
    assert iv.hex() == record.metadata.iv


def test_decrypt_uploaded_standalone(service):
    """Un contenedor descargado se descifra sin sidecar y se entrega una sola vez."""
    record = service.encrypt_document(DOCX, "informe.docx")
    name, blob = service.get_encrypted_document(record.doc_id)

    entry = service.decrypt_uploaded(blob, name)
    assert entry.filename == "informe.docx"
    assert entry.size == len(DOCX)

    filename, data = service.take_temp_file(entry.temp_id)
    assert (filename, data) == ("informe.docx", DOCX)
    with pytest.raises(TempFileExpired):
        service.take_temp_file(entry.temp_id)


def test_decrypt_uploaded_names(service):
    blob = container.pack(service.cipher.encrypt(DOCX))
    assert service.decrypt_uploaded(blob, "x.bin", original_filename="real.docx").filename == "real.docx"
    assert service.decrypt_uploaded(blob, "x.bin").filename == "x.bin.decrypted"


def test_decrypt_uploaded_with_custom_key(service):
    blob = container.pack(CombinedCipher("clave-personal").encrypt(DOCX))
    entry = service.decrypt_uploaded(blob, "doc.docx.encrypted", key="clave-personal")
    assert service.take_temp_file(entry.temp_id)[1] == DOCX


def test_decrypt_uploaded_with_custom_passphrase_in_salted_mode(tmp_path):
    """Con sal configurada la clave personalizada se deriva igual que la del servidor."""
    salt = generate_salt()
    settings = Settings(block_key="pass-servidor", key_salt=salt.hex(), storage_path=str(tmp_path))
    svc = build_document_service(settings)
    try:
        other = CombinedCipher(derive_block_key("otra-pass", salt), strict=True)
        blob = container.pack(other.encrypt(DOCX))
        entry = svc.decrypt_uploaded(blob, "x.encrypted", key="otra-pass")
        assert svc.take_temp_file(entry.temp_id) == ("x", DOCX)
    finally:
        svc.temp_store.stop_sweeper()


def test_decrypt_uploaded_with_custom_hex_key_in_strict_mode(tmp_path):
    settings = Settings(block_key="00" * 16, strict_keys=True, storage_path=str(tmp_path))
    svc = build_document_service(settings)
    try:
        custom = bytes(range(16))
        blob = container.pack(CombinedCipher(custom, strict=True).encrypt(DOCX))
        entry = svc.decrypt_uploaded(blob, "doc.docx.encrypted", key=custom.hex())
        assert svc.take_temp_file(entry.temp_id) == ("doc.docx", DOCX)
        with pytest.raises(InvalidParameters):
            svc.decrypt_uploaded(blob, "doc.docx.encrypted", key="no-es-hex")
    finally:
        svc.temp_store.stop_sweeper()


def test_encrypt_document_discards_container_when_sidecar_fails(service, monkeypatch):
    def failing_save(data, path):
        raise OSError("disco lleno")

    monkeypatch.setattr("api.services.save_json", failing_save)
    with pytest.raises(OSError):
        service.encrypt_document(DOCX, "informe.docx")
    assert os.listdir(service.vault_dir) == []
    assert service.list_documents() == []


def test_decrypt_uploaded_too_short(service):
    with pytest.raises(MalformedContainer):
        service.decrypt_uploaded(b"\x00" * 10, "roto.encrypted")
    assert len(service.temp_store) == 0


def test_info_and_self_test(service):
    info = service.encryption_info()
    assert info["algorithm"] == "aria-128-cbc+affine"
    assert info["block"]["keyLength"] == 16
    assert service.self_test()["success"] is True


def test_build_document_service_from_environment():
    settings = get_settings()
    svc = build_document_service(settings)
    try:
        record = svc.encrypt_document(DOCX, "env.docx")
        assert svc.vault_dir == settings.vault_dir
        assert os.path.exists(os.path.join(settings.vault_dir, record.stored_as))
    finally:
        svc.temp_store.stop_sweeper()


def test_get_document_service_is_shared():
    first = get_document_service()
    try:
        assert get_document_service() is first
    finally:
        first.temp_store.stop_sweeper()


def test_secure_name():
    assert secure_name('../a<b>:c"d/e\\f|g?h*.docx') == "__a_b__c_d_e_f_g_h_.docx"
