# --------------------------------------------------------------
# File: test_crypto_kdf.py
# Description: Pruebas de la derivación de claves de bloque con Argon2id.
# --------------------------------------------------------------

import pytest

from docscrypt.block_cipher import BlockCipher
from docscrypt.crypto_kdf import derive_block_key, generate_salt
from docscrypt.errors import InvalidParameters

FAST = {"t": 1, "m": 8 * 1024}


def test_derive_block_key_is_deterministic():
    salt = generate_salt()
    first = derive_block_key("passphrase larga", salt, **FAST)
    second = derive_block_key("passphrase larga", salt, **FAST)
    assert first == second
    assert len(first) == 16


def test_derive_block_key_depends_on_salt_and_passphrase():
    salt = generate_salt()
    base = derive_block_key("passphrase larga", salt, **FAST)
    assert derive_block_key("passphrase larga", generate_salt(), **FAST) != base
    assert derive_block_key("otra passphrase", salt, **FAST) != base


def test_derived_key_works_in_strict_mode():
    key = derive_block_key("passphrase larga", generate_salt(), **FAST)
    cipher = BlockCipher(key, strict=True)
    result = cipher.encrypt(b"documento")
    assert cipher.decrypt(result.ciphertext, result.iv) == b"documento"


def test_derive_block_key_rejects_bad_input():
    with pytest.raises(InvalidParameters):
        derive_block_key("", generate_salt())
    with pytest.raises(InvalidParameters):
        derive_block_key("passphrase", b"corta")
