"""TensorFlow lanes that run the Newton iteration for every pixel at once.

Real and imaginary parts travel as separate float64 tensors and are combined
with the same formulas as :mod:`newton.complex_math`, so each lane ends with
the outcome :func:`newton.renderer.solve_pixel` computes for that pixel.

:func:`solve_grid` switches off the Grappler rewrites listed in
``_EXACT_OPTIONS`` while it runs and restores the caller's optimizer options
afterwards; importing this module changes no TensorFlow settings.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

import numpy as np
import tensorflow as tf

from .complex_math import Complex

# Grappler rewrites such as factor hoisting, op fusion and folding "0 * x" to 0
# change the floating-point results of individual lanes.
_EXACT_OPTIONS = {"arithmetic_optimization": False, "constant_folding": False, "remapping": False}


@contextmanager
def _exact_arithmetic() -> Iterator[None]:
    saved = tf.config.optimizer.get_experimental_options()
    tf.config.optimizer.set_experimental_options(_EXACT_OPTIONS)
    try:
        yield
    finally:
        # Options cannot be unset again; an unset rewrite is on by default.
        restored = {key: True for key in _EXACT_OPTIONS}
        restored.update(saved)
        tf.config.optimizer.set_experimental_options(restored)


def _mul(ar: tf.Tensor, ai: tf.Tensor, br: tf.Tensor, bi: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
    return ar * br - ai * bi, ar * bi + ai * br


def _div(ar: tf.Tensor, ai: tf.Tensor, br: tf.Tensor, bi: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
    mag_sq = br * br + bi * bi
    zero = tf.equal(mag_sq, tf.constant(0.0, dtype=mag_sq.dtype))
    safe = tf.where(zero, tf.ones_like(mag_sq), mag_sq)
    real = (ar * br + ai * bi) / safe
    imag = (ai * br - ar * bi) / safe
    return (
        tf.where(zero, tf.zeros_like(real), real),
        tf.where(zero, tf.zeros_like(imag), imag),
    )


def _power(zr: tf.Tensor, zi: tf.Tensor, exponent: int) -> tuple[tf.Tensor, tf.Tensor]:
    ones = tf.ones_like(zr)
    zeros = tf.zeros_like(zr)
    if exponent == 0:
        return ones, zeros
    rr, ri = ones, zeros
    for _ in range(abs(exponent)):
        rr, ri = _mul(rr, ri, zr, zi)
    if exponent < 0:
        return _div(ones, zeros, rr, ri)
    return rr, ri


def _magnitude(zr: tf.Tensor, zi: tf.Tensor) -> tf.Tensor:
    return tf.sqrt(zr * zr + zi * zi)


@tf.function
def _newton_step(
    i: tf.Tensor,
    zr: tf.Tensor,
    zi: tf.Tensor,
    root_indices: tf.Tensor,
    iterations: tf.Tensor,
    active: tf.Tensor,
    roots_real: tf.Tensor,
    roots_imag: tf.Tensor,
    n: int,
    tolerance: float,
    epsilon: float,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every active lane by one convergence check and Newton update."""

    tol = tf.constant(tolerance, dtype=zr.dtype)
    hit = tf.fill(tf.shape(root_indices), tf.constant(-1, dtype=tf.int32))
    # Walk the roots backwards so the lowest matching index is kept.
    for k in reversed(range(roots_real.shape[0])):
        distance = _magnitude(zr - roots_real[k], zi - roots_imag[k])
        hit = tf.where(distance < tol, tf.constant(k, dtype=tf.int32), hit)
    converged = tf.logical_and(active, hit >= 0)
    root_indices = tf.where(converged, hit, root_indices)
    iterations = tf.where(converged, i, iterations)
    active = tf.logical_and(active, tf.logical_not(converged))

    pr, pi = _power(zr, zi, n)
    fr = pr - tf.constant(1.0, dtype=zr.dtype)
    fi = pi - tf.constant(0.0, dtype=zr.dtype)
    qr, qi = _power(zr, zi, n - 1)
    dr, di = _mul(tf.fill(tf.shape(zr), tf.constant(float(n), dtype=zr.dtype)), tf.zeros_like(zr), qr, qi)
    singular = tf.logical_and(active, _magnitude(dr, di) < tf.constant(epsilon, dtype=zr.dtype))
    iterations = tf.where(singular, i, iterations)
    active = tf.logical_and(active, tf.logical_not(singular))

    ur, ui = _div(fr, fi, dr, di)
    zr = tf.where(active, zr - ur, zr)
    zi = tf.where(active, zi - ui, zi)
    return zr, zi, root_indices, iterations, active


@tf.function
def _newton_run(
    zr: tf.Tensor,
    zi: tf.Tensor,
    roots_real: tf.Tensor,
    roots_imag: tf.Tensor,
    max_iterations: tf.Tensor,
    n: int,
    tolerance: float,
    epsilon: float,
) -> tuple[tf.Tensor, tf.Tensor]:
    """Iterate all lanes with a TensorFlow while loop until none is active."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    root_indices = tf.fill(tf.shape(zr), tf.constant(-1, dtype=tf.int32))
    iterations = tf.zeros_like(root_indices)
    active = tf.ones_like(root_indices, tf.bool)

    def cond(i, zr, zi, root_indices, iterations, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, root_indices, iterations, active):
        zr, zi, root_indices, iterations, active = _newton_step(
            i, zr, zi, root_indices, iterations, active, roots_real, roots_imag, n, tolerance, epsilon
        )
        return i + 1, zr, zi, root_indices, iterations, active

    _, _, _, root_indices, iterations, active = tf.while_loop(
        cond, body, (i, zr, zi, root_indices, iterations, active)
    )
    iterations = tf.where(active, max_iterations, iterations)
    return root_indices, iterations


def solve_grid(
    real_grid: np.ndarray,
    imag_grid: np.ndarray,
    roots: Sequence[Complex],
    n: int,
    *,
    tolerance: float,
    max_iterations: int,
    epsilon: float,
    device: Optional[str] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Solve every starting point of the grid; returns ``(root_indices, iterations)``."""

    roots_real = np.array([root.real for root in roots], dtype=np.float64)
    roots_imag = np.array([root.imag for root in roots], dtype=np.float64)

    with _exact_arithmetic(), tf.device(device if device is not None else "/CPU:0"):
        root_indices, iterations = _newton_run(
            tf.convert_to_tensor(real_grid, dtype=tf.float64),
            tf.convert_to_tensor(imag_grid, dtype=tf.float64),
            tf.convert_to_tensor(roots_real, dtype=tf.float64),
            tf.convert_to_tensor(roots_imag, dtype=tf.float64),
            tf.constant(max_iterations, dtype=tf.int32),
            int(n),
            float(tolerance),
            float(epsilon),
        )

    return root_indices.numpy().astype(np.int32), iterations.numpy().astype(np.int32)
