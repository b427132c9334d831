# --------------------------------------------------------------
# File: conftest.py
# Description: Fixtures compartidas para aislar almacenamiento y configuración.
# --------------------------------------------------------------

from typing import Iterator

import pytest

from api.services import DocumentService, get_document_service
from api.temp_store import TempFileStore
from docscrypt.combined import CombinedCipher, get_default_cipher

TEST_KEY = "unit-test-key-16"


@pytest.fixture(autouse=True)
def _isolate_storage(tmp_path, monkeypatch) -> Iterator[None]:
    """Aísla STORAGE_PATH y la configuración de cifrado para cada prueba.

    Args:
        tmp_path (Path): Carpeta temporal proporcionada por pytest.
        monkeypatch (pytest.MonkeyPatch): Fixture para ajustar variables de entorno.

    Returns:
        Iterator[None]: Control del fixture autouse durante la ejecución de cada test.
    """
    data_dir = tmp_path / "_data"
    data_dir.mkdir()
    monkeypatch.setenv("STORAGE_PATH", str(data_dir))
    monkeypatch.setenv("DOCSCRYPT_KEY", TEST_KEY)
    for name in ("AFFINE_A", "AFFINE_B", "STRICT_KEYS", "DOCSCRYPT_KEY_SALT"):
        monkeypatch.delenv(name, raising=False)

    get_default_cipher.cache_clear()
    get_document_service.cache_clear()
    yield
    get_default_cipher.cache_clear()
    get_document_service.cache_clear()


@pytest.fixture
def cipher() -> CombinedCipher:
    """Pipeline con la clave de pruebas y los parámetros afines por defecto."""
    return CombinedCipher(TEST_KEY)


class FakeClock:
    """Reloj manual para controlar la caducidad de temporales."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def temp_store(tmp_path, clock) -> Iterator[TempFileStore]:
    store = TempFileStore(str(tmp_path / "temp"), ttl_seconds=60, max_entries=3, clock=clock)
    yield store
    store.stop_sweeper()


@pytest.fixture
def service(tmp_path, cipher, temp_store) -> DocumentService:
    return DocumentService(cipher, str(tmp_path / "vault"), temp_store, max_upload_bytes=4096)
