# --------------------------------------------------------------
# File: crypto_kdf.py
# Description: Derivación de claves de bloque de 128 bits mediante Argon2id.
# --------------------------------------------------------------
"""Derivación explícita de claves a partir de passphrases.

Alternativa al ajuste por relleno/truncado de :mod:`docscrypt.block_cipher`:
produce exactamente 16 bytes aptos para el modo estricto.
"""

import os

from argon2.low_level import Type, hash_secret_raw

from docscrypt.errors import InvalidParameters

SALT_SIZE = 16
BLOCK_KEY_SIZE = 16


def generate_salt() -> bytes:
    """Genera una salt aleatoria de 128 bits."""

    return os.urandom(SALT_SIZE)


def derive_block_key(
    passphrase: str,
    salt: bytes,
    *,
    t: int = 3,
    m: int = 64 * 1024,
    p: int = 1,
    outlen: int = BLOCK_KEY_SIZE,
) -> bytes:
    """Deriva la clave del cifrador de bloque usando Argon2id.

    Args:
        passphrase (str): Passphrase de entrada del usuario.
        salt (bytes): Salt aleatoria asociada a la passphrase (mínimo 8 bytes).
        t (int): Coste temporal en iteraciones Argon2id.
        m (int): Memoria en KiB consumida durante la derivación.
        p (int): Paralelismo configurado para Argon2id.
        outlen (int): Longitud en bytes de la clave resultante.

    Returns:
        bytes: Clave simétrica derivada lista para ``BlockCipher(strict=True)``.

    Raises:
        InvalidParameters: Passphrase vacía o salt demasiado corta.

    """

    if not passphrase:
        raise InvalidParameters("La passphrase no puede estar vacía.")
    if len(salt) < 8:
        raise InvalidParameters("La salt debe tener al menos 8 bytes.")
    return hash_secret_raw(
        passphrase.encode("utf-8"),
        salt,
        time_cost=t,
        memory_cost=m,
        parallelism=p,
        hash_len=outlen,
        type=Type.ID,
    )
