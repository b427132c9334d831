# --------------------------------------------------------------
# File: test_temp_store.py
# Description: Pruebas del registro temporal con caducidad de archivos descifrados.
# --------------------------------------------------------------

import os
import time

import pytest

from api.temp_store import TempFileExpired, TempFileStore
from docscrypt.errors import InvalidInput


def test_put_and_take_deletes_entry(temp_store):
    entry = temp_store.put(b"claro", "informe.docx")
    assert os.path.exists(entry.path)
    assert entry.temp_id in temp_store
    filename, data = temp_store.take(entry.temp_id)
    assert (filename, data) == ("informe.docx", b"claro")
    assert entry.temp_id not in temp_store
    assert not os.path.exists(entry.path)
    with pytest.raises(TempFileExpired):
        temp_store.take(entry.temp_id)


def test_take_after_expiry_fails(temp_store, clock):
    entry = temp_store.put(b"claro", "informe.docx")
    clock.advance(61)
    with pytest.raises(TempFileExpired):
        temp_store.take(entry.temp_id)
    assert not os.path.exists(entry.path)


def test_sweep_removes_only_expired(temp_store, clock):
    old = temp_store.put(b"1", "a.docx")
    clock.advance(30)
    fresh = temp_store.put(b"2", "b.docx")
    clock.advance(31)
    assert temp_store.sweep() == 1
    assert old.temp_id not in temp_store
    assert fresh.temp_id in temp_store
    assert not os.path.exists(old.path)


def test_capacity_evicts_closest_to_expiry(temp_store, clock):
    """Con el registro lleno se expulsa la entrada más antigua."""
    entries = []
    for i in range(3):
        entries.append(temp_store.put(bytes([i]), f"{i}.docx"))
        clock.advance(1)
    newest = temp_store.put(b"n", "n.docx")
    assert len(temp_store) == 3
    assert entries[0].temp_id not in temp_store
    assert newest.temp_id in temp_store


def test_clear(temp_store):
    entry = temp_store.put(b"claro", "a.docx")
    temp_store.clear()
    assert len(temp_store) == 0
    assert not os.path.exists(entry.path)


def test_invalid_configuration(tmp_path):
    with pytest.raises(InvalidInput):
        TempFileStore(str(tmp_path), ttl_seconds=0)
    with pytest.raises(InvalidInput):
        TempFileStore(str(tmp_path), max_entries=0)


def test_background_sweeper_runs_without_traffic(tmp_path):
    """El barrido periódico elimina entradas sin que haya nuevas peticiones."""
    store = TempFileStore(str(tmp_path / "temp"), ttl_seconds=0.05)
    entry = store.put(b"claro", "a.docx")
    store.start_sweeper(interval=0.02)
    try:
        deadline = time.monotonic() + 2.0
        while entry.temp_id in store and time.monotonic() < deadline:
            time.sleep(0.02)
        assert entry.temp_id not in store
        assert not os.path.exists(entry.path)
    finally:
        store.stop_sweeper()
