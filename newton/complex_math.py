"""Complex arithmetic on plain (real, imag) float pairs.

The solver and the TensorFlow lanes both evaluate these exact formulas, so
results agree bit for bit between the two execution strategies.
"""

from __future__ import annotations

import math
from typing import NamedTuple


class Complex(NamedTuple):
    """Immutable complex value with double-precision components."""

    real: float
    imag: float

    def __str__(self) -> str:
        sign = "-" if math.copysign(1.0, self.imag) < 0 else "+"
        return f"{self.real:.6g} {sign} {abs(self.imag):.6g}i"


ZERO = Complex(0.0, 0.0)
ONE = Complex(1.0, 0.0)


def sub(a: Complex, b: Complex) -> Complex:
    return Complex(a.real - b.real, a.imag - b.imag)


def mul(a: Complex, b: Complex) -> Complex:
    return Complex(
        a.real * b.real - a.imag * b.imag,
        a.real * b.imag + a.imag * b.real,
    )


def div(a: Complex, b: Complex) -> Complex:
    """Divide ``a`` by ``b``; a divisor with zero squared magnitude yields ``0+0i``."""

    mag_sq = b.real * b.real + b.imag * b.imag
    if mag_sq == 0.0:
        return ZERO
    return Complex(
        (a.real * b.real + a.imag * b.imag) / mag_sq,
        (a.imag * b.real - a.real * b.imag) / mag_sq,
    )


def power(z: Complex, exponent: int) -> Complex:
    """Raise ``z`` to an integer power by repeated multiplication.

    Negative exponents take the reciprocal of the positive power through
    :func:`div`, so ``0 ** -k`` follows the zero-division fallback.
    """

    if exponent == 0:
        return ONE
    result = ONE
    for _ in range(abs(exponent)):
        result = mul(result, z)
    if exponent < 0:
        return div(ONE, result)
    return result


def magnitude(z: Complex) -> float:
    return math.sqrt(z.real * z.real + z.imag * z.imag)
