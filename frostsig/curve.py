"""Arithmetic on the secp256k1 group: scalars, points and hashing into scalars."""

from __future__ import annotations

import functools
import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional, Tuple

P = 2**256 - 2**32 - 977
N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
GX = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
GY = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8

SCALAR_LENGTH = 32
POINT_LENGTH = 33

_Affine = Optional[Tuple[int, int]]
_HASH_DOMAIN = b"frostsig/hash-to-scalar"


def _add(a: _Affine, b: _Affine) -> _Affine:
    if a is None:
        return b
    if b is None:
        return a
    x1, y1 = a
    x2, y2 = b
    if x1 == x2:
        if (y1 + y2) % P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, P) % P
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, P) % P
    x3 = (slope * slope - x1 - x2) % P
    y3 = (slope * (x1 - x3) - y1) % P
    return x3, y3


def _mul(k: int, point: _Affine) -> _Affine:
    result: _Affine = None
    addend = point
    while k:
        if k & 1:
            result = _add(result, addend)
        addend = _add(addend, addend)
        k >>= 1
    return result


@functools.lru_cache(maxsize=None)
def _base_table() -> tuple:
    table = []
    point: _Affine = (GX, GY)
    for _ in range(256):
        table.append(point)
        point = _add(point, point)
    return tuple(table)


def _base_mul(k: int) -> _Affine:
    result: _Affine = None
    for point, bit in zip(_base_table(), reversed(f"{k:0256b}")):
        if bit == "1":
            result = _add(result, point)
    return result


def _y_for_x(x: int) -> int:
    c = (x * x * x + 7) % P
    y = pow(c, (P + 1) // 4, P)
    if y * y % P != c:
        raise ValueError("x coordinate is not on the curve")
    return y


@dataclass(frozen=True)
class Scalar:
    """An element of the scalar field of secp256k1."""

    value: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", self.value % N)

    @classmethod
    def random(cls) -> "Scalar":
        """Sample a uniformly random non-zero scalar."""
        return cls(secrets.randbelow(N - 1) + 1)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Scalar":
        data = bytes(data)
        if len(data) != SCALAR_LENGTH:
            raise ValueError(f"expected {SCALAR_LENGTH} bytes for a scalar, found {len(data)}")
        value = int.from_bytes(data, "big")
        if value >= N:
            raise ValueError("scalar is not reduced modulo the group order")
        return cls(value)

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(SCALAR_LENGTH, "big")

    def is_zero(self) -> bool:
        return self.value == 0

    def act_on_base(self) -> "Point":
        """Return this scalar times the group generator."""
        return Point._from_affine(_base_mul(self.value))

    def inverse(self) -> "Scalar":
        if self.value == 0:
            raise ZeroDivisionError("zero scalar has no inverse")
        return Scalar(pow(self.value, -1, N))

    def __add__(self, other: object) -> "Scalar":
        if not isinstance(other, Scalar):
            return NotImplemented
        return Scalar(self.value + other.value)

    def __sub__(self, other: object) -> "Scalar":
        if not isinstance(other, Scalar):
            return NotImplemented
        return Scalar(self.value - other.value)

    def __neg__(self) -> "Scalar":
        return Scalar(-self.value)

    def __mul__(self, other: object):
        if isinstance(other, Scalar):
            return Scalar(self.value * other.value)
        if isinstance(other, Point):
            return other * self
        return NotImplemented


@dataclass(frozen=True)
class Point:
    """A point on secp256k1 in affine coordinates; both coordinates None is the identity."""

    x: Optional[int] = None
    y: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.x is None) != (self.y is None):
            raise ValueError("both coordinates must be given, or neither")
        if self.x is not None:
            x, y = self.x, self.y
            if not (0 <= x < P and 0 <= y < P) or (y * y - x * x * x - 7) % P:
                raise ValueError("point is not on the curve")

    @classmethod
    def identity(cls) -> "Point":
        return cls()

    @classmethod
    def _from_affine(cls, affine: _Affine) -> "Point":
        return cls() if affine is None else cls(*affine)

    @property
    def _affine(self) -> _Affine:
        return None if self.x is None else (self.x, self.y)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Point":
        """Decode a compressed point; 33 zero bytes stand for the identity."""
        data = bytes(data)
        if data == bytes(POINT_LENGTH):
            return cls()
        if len(data) != POINT_LENGTH or data[0] not in (2, 3):
            raise ValueError("invalid compressed point encoding")
        x = int.from_bytes(data[1:], "big")
        if x >= P:
            raise ValueError("x coordinate out of range")
        y = _y_for_x(x)
        if y & 1 != data[0] & 1:
            y = P - y
        return cls(x, y)

    def to_bytes(self) -> bytes:
        if self.x is None:
            return bytes(POINT_LENGTH)
        return bytes([2 | (self.y & 1)]) + self.x.to_bytes(32, "big")

    def is_identity(self) -> bool:
        return self.x is None

    def has_even_y(self) -> bool:
        if self.y is None:
            raise ValueError("the identity has no y coordinate")
        return self.y & 1 == 0

    def x_bytes(self) -> bytes:
        if self.x is None:
            raise ValueError("the identity has no x coordinate")
        return self.x.to_bytes(32, "big")

    def __add__(self, other: object) -> "Point":
        if not isinstance(other, Point):
            return NotImplemented
        return Point._from_affine(_add(self._affine, other._affine))

    def __neg__(self) -> "Point":
        if self.x is None:
            return self
        return Point(self.x, (-self.y) % P)

    def __sub__(self, other: object) -> "Point":
        if not isinstance(other, Point):
            return NotImplemented
        return self + (-other)

    def __mul__(self, other: object) -> "Point":
        if not isinstance(other, Scalar):
            return NotImplemented
        return Point._from_affine(_mul(other.value, self._affine))

    __rmul__ = __mul__


def lift_x(data: bytes) -> Point:
    """Return the point with the given 32-byte x coordinate and an even y coordinate."""
    data = bytes(data)
    if len(data) != 32:
        raise ValueError(f"expected 32 bytes for an x coordinate, found {len(data)}")
    x = int.from_bytes(data, "big")
    if x >= P:
        raise ValueError("x coordinate out of range")
    y = _y_for_x(x)
    if y & 1:
        y = P - y
    return Point(x, y)


def _encode(item: object) -> bytes:
    if isinstance(item, Point):
        tag, payload = b"P", item.to_bytes()
    elif isinstance(item, Scalar):
        tag, payload = b"S", item.to_bytes()
    elif isinstance(item, (bytes, bytearray, memoryview)):
        tag, payload = b"B", bytes(item)
    elif isinstance(item, str):
        tag, payload = b"T", item.encode("utf-8")
    elif isinstance(item, int):
        tag, payload = b"I", item.to_bytes((item.bit_length() + 8) // 8, "big", signed=True)
    else:
        raise TypeError(f"cannot hash value of type {type(item).__name__}")
    return tag + len(payload).to_bytes(8, "big") + payload


def hash_to_scalar(*args: object) -> Scalar:
    """Hash a sequence of points, scalars, bytes, strings and integers into a scalar."""
    hasher = hashlib.sha512(_HASH_DOMAIN)
    for item in args:
        hasher.update(_encode(item))
    return Scalar(int.from_bytes(hasher.digest(), "big"))