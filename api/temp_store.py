# --------------------------------------------------------------
# File: temp_store.py
# Description: Registro acotado con caducidad de archivos descifrados temporales.
# --------------------------------------------------------------
"""Almacén temporal de claros pendientes de descarga.

Cada entrada se crea al descifrar y se elimina al leerse (``take``) o al
caducar. Un hilo de barrido independiente del tráfico elimina las entradas
vencidas cada ``interval`` segundos.
"""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from docscrypt.errors import DocsCryptError, InvalidInput
from docscrypt.storage import read_bytes, write_bytes

__all__ = ["TempFileEntry", "TempFileExpired", "TempFileStore"]

logger = logging.getLogger(__name__)


class TempFileExpired(DocsCryptError, LookupError):
    """El identificador temporal no existe o ya ha caducado."""


@dataclass(frozen=True)
class TempFileEntry:
    temp_id: str
    path: str
    filename: str
    size: int
    expires_at: float


class TempFileStore:
    """Mapa ``id -> TempFileEntry`` con TTL y número máximo de entradas.

    Args:
        directory (str): Carpeta donde se escriben los claros temporales.
        ttl_seconds (float): Vida de cada entrada.
        max_entries (int): Capacidad máxima del registro.
        clock (Callable[[], float]): Reloj monotónico inyectable.

    """

    def __init__(
        self,
        directory: str,
        *,
        ttl_seconds: float = 3600,
        max_entries: int = 128,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0 or max_entries <= 0:
            raise InvalidInput("ttl_seconds y max_entries deben ser positivos.")
        self.directory = directory
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, TempFileEntry] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, temp_id: object) -> bool:
        with self._lock:
            return temp_id in self._entries

    @staticmethod
    def _remove_file(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("No se pudo borrar el temporal %s: %s", path, exc)

    def _evict_locked(self, temp_id: str) -> None:
        entry = self._entries.pop(temp_id)
        self._remove_file(entry.path)

    def _sweep_locked(self, now: float) -> int:
        expired = [tid for tid, entry in self._entries.items() if entry.expires_at <= now]
        for temp_id in expired:
            self._evict_locked(temp_id)
            logger.info("Temporal caducado eliminado: %s", temp_id)
        return len(expired)

    def put(self, data: bytes, filename: str) -> TempFileEntry:
        """Escribe ``data`` en disco y registra la entrada.

        Si el registro está lleno se barren las entradas caducadas y, de no
        bastar, se expulsa la más próxima a caducar.

        """

        temp_id = f"temp_{uuid.uuid4().hex}"
        path = os.path.join(self.directory, temp_id)
        write_bytes(data, path)
        with self._lock:
            now = self._clock()
            if len(self._entries) >= self.max_entries:
                self._sweep_locked(now)
            while len(self._entries) >= self.max_entries:
                oldest = min(self._entries.values(), key=lambda e: e.expires_at)
                logger.info("Registro temporal lleno; se expulsa %s", oldest.temp_id)
                self._evict_locked(oldest.temp_id)
            entry = TempFileEntry(
                temp_id=temp_id,
                path=path,
                filename=filename,
                size=len(data),
                expires_at=now + self.ttl_seconds,
            )
            self._entries[temp_id] = entry
        return entry

    def take(self, temp_id: str) -> Tuple[str, bytes]:
        """Devuelve ``(filename, data)`` y elimina la entrada.

        Raises:
            TempFileExpired: Identificador desconocido o caducado.

        """

        with self._lock:
            entry = self._entries.pop(temp_id, None)
        if entry is None:
            raise TempFileExpired("Archivo temporal no encontrado o caducado.")
        try:
            if entry.expires_at <= self._clock():
                raise TempFileExpired("Archivo temporal no encontrado o caducado.")
            try:
                data = read_bytes(entry.path)
            except FileNotFoundError as exc:
                raise TempFileExpired("Archivo temporal no encontrado o caducado.") from exc
        finally:
            self._remove_file(entry.path)
        return entry.filename, data

    def sweep(self) -> int:
        """Elimina las entradas caducadas y devuelve cuántas se borraron."""

        with self._lock:
            return self._sweep_locked(self._clock())

    def clear(self) -> None:
        with self._lock:
            for temp_id in list(self._entries):
                self._evict_locked(temp_id)

    def _run_sweeper(self, interval: float) -> None:
        while not self._stop.wait(interval):
            removed = self.sweep()
            if removed:
                logger.debug("Barrido temporal: %d entradas eliminadas", removed)

    def start_sweeper(self, interval: float = 300) -> None:
        """Arranca el hilo de barrido periódico (idempotente)."""

        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._run_sweeper, args=(interval,), name="temp-sweeper", daemon=True
        )
        self._sweeper.start()

    def stop_sweeper(self, timeout: Optional[float] = 1.0) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=timeout)
            self._sweeper = None
