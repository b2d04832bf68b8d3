import math

from newton.complex_math import ONE, ZERO, Complex, div, magnitude, mul, power, sub


def test_sub_and_mul():
    assert sub(Complex(3.0, 4.0), Complex(1.0, 2.0)) == Complex(2.0, 2.0)
    assert mul(Complex(1.0, 2.0), Complex(3.0, 4.0)) == Complex(-5.0, 10.0)


def test_div_inverts_mul():
    assert div(Complex(-5.0, 10.0), Complex(3.0, 4.0)) == Complex(1.0, 2.0)


def test_div_by_zero_returns_zero():
    assert div(Complex(7.0, -3.0), ZERO) == ZERO
    assert div(ONE, Complex(-0.0, 0.0)) == ZERO


def test_power_small_exponents():
    i = Complex(0.0, 1.0)
    assert power(i, 0) == ONE
    assert power(ZERO, 0) == ONE
    assert power(i, 1) == i
    assert power(i, 2) == Complex(-1.0, 0.0)
    assert power(Complex(2.0, 0.0), 10) == Complex(1024.0, 0.0)


def test_power_negative_exponent_is_reciprocal():
    assert power(Complex(0.0, 1.0), -1) == Complex(0.0, -1.0)
    assert power(Complex(2.0, 0.0), -2) == Complex(0.25, 0.0)
    assert power(ZERO, -3) == ZERO


def test_magnitude():
    assert magnitude(Complex(3.0, 4.0)) == 5.0
    assert magnitude(ZERO) == 0.0
    assert math.isinf(magnitude(Complex(math.inf, 0.0)))


def test_complex_is_immutable_value():
    z = Complex(1.5, -2.0)
    assert z == Complex(1.5, -2.0)
    assert str(z) == "1.5 - 2i"
    try:
        z.real = 3.0
    except AttributeError:
        pass
    else:
        raise AssertionError("Complex should be immutable")
