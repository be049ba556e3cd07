"""Polynomials over the scalar field, their commitments, and Lagrange coefficients."""

from __future__ import annotations

import functools
import operator
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from frostsig.curve import Point, Scalar


def id_scalar(party_id: str) -> Scalar:
    """Interpret the UTF-8 bytes of a party identifier as a big-endian scalar."""
    value = Scalar(int.from_bytes(party_id.encode("utf-8"), "big"))
    if value.is_zero():
        raise ValueError(f"party ID {party_id!r} maps to the zero scalar")
    return value


@dataclass(frozen=True)
class Polynomial:
    """A polynomial with scalar coefficients, lowest degree first."""

    coefficients: Tuple[Scalar, ...]

    def __post_init__(self) -> None:
        if not self.coefficients:
            raise ValueError("a polynomial needs at least one coefficient")

    @classmethod
    def random(cls, degree: int, constant: Optional[Scalar] = None) -> "Polynomial":
        """Build a polynomial of the given degree with random non-constant coefficients."""
        if degree < 0:
            raise ValueError("degree must be non-negative")
        if constant is None:
            constant = Scalar(0)
        return cls((constant, *(Scalar.random() for _ in range(degree))))

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def evaluate(self, x: Scalar) -> Scalar:
        result = Scalar(0)
        for coefficient in reversed(self.coefficients):
            result = result * x + coefficient
        return result


@dataclass(frozen=True)
class Exponent:
    """A commitment to a polynomial: each coefficient multiplied by the generator."""

    coefficients: Tuple[Point, ...]

    def __post_init__(self) -> None:
        if not self.coefficients:
            raise ValueError("an exponent needs at least one coefficient")

    @classmethod
    def from_polynomial(cls, polynomial: Polynomial) -> "Exponent":
        return cls(tuple(c.act_on_base() for c in polynomial.coefficients))

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def constant(self) -> Point:
        return self.coefficients[0]

    def evaluate(self, x: Scalar) -> Point:
        result = Point.identity()
        for coefficient in reversed(self.coefficients):
            result = result * x + coefficient
        return result

    @classmethod
    def sum(cls, exponents: Iterable["Exponent"]) -> "Exponent":
        """Add exponents of equal degree coefficient by coefficient."""
        exponents = list(exponents)
        if not exponents:
            raise ValueError("cannot sum an empty collection of exponents")
        if len({e.degree for e in exponents}) != 1:
            raise ValueError("exponents must all have the same degree")
        columns = zip(*(e.coefficients for e in exponents))
        return cls(tuple(functools.reduce(operator.add, column) for column in columns))


def lagrange(party_ids: Iterable[str]) -> Dict[str, Scalar]:
    """Return the Lagrange coefficients for interpolation at zero over the given parties."""
    ids = list(party_ids)
    if len(set(ids)) != len(ids):
        raise ValueError("duplicate party IDs")
    points = {pid: id_scalar(pid) for pid in ids}
    coefficients: Dict[str, Scalar] = {}
    for pid, x_i in points.items():
        numerator = Scalar(1)
        denominator = Scalar(1)
        for other, x_j in points.items():
            if other == pid:
                continue
            numerator = numerator * x_j
            denominator = denominator * (x_j - x_i)
        try:
            coefficients[pid] = numerator * denominator.inverse()
        except ZeroDivisionError:
            raise ValueError("party IDs map to equal scalars") from None
    return coefficients