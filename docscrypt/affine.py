# --------------------------------------------------------------
# File: affine.py
# Description: Cifrado afín byte a byte sobre residuos módulo 256.
# --------------------------------------------------------------
"""Sustitución afín reversible ``E(x) = (a·x + b) mod m`` aplicada por byte."""

from __future__ import annotations

from typing import Dict, Tuple

from docscrypt.errors import InvalidInput, InvalidParameters

__all__ = ["AffineCipher", "extended_gcd", "gcd", "mod_inverse"]

BYTE_MODULUS = 256


def gcd(a: int, b: int) -> int:
    """Máximo común divisor por el algoritmo de Euclides."""

    while b != 0:
        a, b = b, a % b
    return a


def extended_gcd(a: int, b: int) -> Tuple[int, int, int]:
    """Algoritmo de Euclides extendido.

    Args:
        a (int): Primer operando.
        b (int): Segundo operando.

    Returns:
        Tuple[int, int, int]: ``(g, x, y)`` tales que ``a*x + b*y == g``.

    """

    if a == 0:
        return b, 0, 1
    g, x1, y1 = extended_gcd(b % a, a)
    return g, y1 - (b // a) * x1, x1


def mod_inverse(a: int, m: int) -> int:
    """Inverso multiplicativo de ``a`` módulo ``m``.

    Raises:
        InvalidParameters: Si ``a`` y ``m`` no son coprimos.

    """

    g, x, _ = extended_gcd(a, m)
    if g != 1:
        raise InvalidParameters(f"No existe inverso de {a} módulo {m}.")
    return (x % m + m) % m


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class AffineCipher:
    """Transformación afín sin estado entre bytes y de longitud constante.

    Attributes:
        a (int): Multiplicador, coprimo con ``m``.
        b (int): Desplazamiento reducido módulo ``m``.
        m (int): Módulo (256 para buffers de bytes completos).
        a_inverse (int): Inverso de ``a`` módulo ``m``.

    """

    def __init__(self, a: int = 5, b: int = 8, m: int = BYTE_MODULUS) -> None:
        self.validate_parameters(a, b, m)
        self.a = a
        self.b = b % m
        self.m = m
        self.a_inverse = mod_inverse(a, m)
        self._encrypt_table = bytes(self.encrypt_byte(x) for x in range(m))
        self._decrypt_table = bytes(self.decrypt_byte(y) for y in range(m))

    @staticmethod
    def validate_parameters(a: int, b: int, m: int = BYTE_MODULUS) -> bool:
        """Comprueba que los parámetros definan una biyección sobre ``[0, m)``.

        Raises:
            InvalidParameters: Tipos no enteros, valores fuera de rango o
            ``gcd(a, m) != 1``.

        """

        if not (_is_int(a) and _is_int(b) and _is_int(m)):
            raise InvalidParameters("Los parámetros afines deben ser enteros.")
        if a <= 0 or b < 0:
            raise InvalidParameters("Se requiere a > 0 y b >= 0.")
        if not 1 < m <= BYTE_MODULUS:
            raise InvalidParameters(f"El módulo debe estar entre 2 y {BYTE_MODULUS}.")
        if gcd(a, m) != 1:
            raise InvalidParameters(f"'a' ({a}) y 'm' ({m}) deben ser coprimos.")
        return True

    def _check_residue(self, value: int) -> None:
        if not _is_int(value) or not 0 <= value < self.m:
            raise InvalidInput(f"El valor debe estar en [0, {self.m}).")

    def encrypt_byte(self, x: int) -> int:
        """Devuelve ``(a*x + b) mod m``."""

        self._check_residue(x)
        return (self.a * x + self.b) % self.m

    def decrypt_byte(self, y: int) -> int:
        """Devuelve ``(a_inverse * (y - b + m)) mod m``."""

        self._check_residue(y)
        return (self.a_inverse * (y - self.b + self.m)) % self.m

    def _apply(self, buffer: bytes, table: bytes) -> bytes:
        if not isinstance(buffer, (bytes, bytearray, memoryview)):
            raise InvalidInput("La entrada debe ser un buffer de bytes.")
        data = bytes(buffer)
        if self.m == BYTE_MODULUS:
            return data.translate(table)
        # Con módulos menores solo son válidos los bytes < m.
        if data and max(data) >= self.m:
            raise InvalidInput(f"El buffer contiene bytes fuera de [0, {self.m}).")
        return bytes(table[x] for x in data)

    def encrypt(self, buffer: bytes) -> bytes:
        """Cifra cada byte del buffer de forma independiente."""

        return self._apply(buffer, self._encrypt_table)

    def decrypt(self, buffer: bytes) -> bytes:
        """Descifra cada byte del buffer de forma independiente."""

        return self._apply(buffer, self._decrypt_table)

    def get_parameters(self) -> Dict[str, int]:
        return {"a": self.a, "b": self.b, "m": self.m, "a_inverse": self.a_inverse}

    def __repr__(self) -> str:
        return f"AffineCipher(a={self.a}, b={self.b}, m={self.m})"
