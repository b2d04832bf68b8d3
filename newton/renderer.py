"""Rendering primitives for Newton fractals of ``z**n - 1``."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import numpy as np

from .complex_math import ONE, Complex, div, magnitude, mul, power, sub
from .palette import DEFAULT_GAMMA, MASTER_PALETTE, RGB, build_palette, color_outcomes, describe_palette, validate_palette

DEFAULT_TOLERANCE = 1e-6
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_EPSILON = 1e-10
DEFAULT_VIEWPORT = (-2.0, 2.0, -2.0, 2.0)

NOT_CONVERGED = -1

SEQUENTIAL = "sequential"
LANES = "lanes"
STRATEGIES = (SEQUENTIAL, LANES)

Logger = Callable[[str], None]


def _silent(message: str) -> None:
    pass


@dataclass(frozen=True)
class FractalConfig:
    """Parameters that describe a single render of a Newton fractal."""

    n: int
    width: int
    height: int
    tolerance: float = DEFAULT_TOLERANCE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    epsilon: float = DEFAULT_EPSILON
    gamma: float = DEFAULT_GAMMA
    x_min: float = DEFAULT_VIEWPORT[0]
    x_max: float = DEFAULT_VIEWPORT[1]
    y_min: float = DEFAULT_VIEWPORT[2]
    y_max: float = DEFAULT_VIEWPORT[3]
    palette: tuple[RGB, ...] = field(default=MASTER_PALETTE)

    def __post_init__(self) -> None:
        if self.n in (-1, 0, 1):
            raise ValueError("n must not be 0, 1 or -1 to create a fractal.")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive.")
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive.")
        if not (self.tolerance > 0.0 and math.isfinite(self.tolerance)):
            raise ValueError("tolerance must be positive.")
        if not (self.epsilon > 0.0 and math.isfinite(self.epsilon)):
            raise ValueError("epsilon must be positive.")
        if not (self.gamma >= 0.0 and math.isfinite(self.gamma)):
            raise ValueError("gamma must be a non-negative number.")
        for name in ("x_min", "x_max", "y_min", "y_max"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number.")
        object.__setattr__(self, "palette", validate_palette(self.palette))

    @property
    def degree(self) -> int:
        """Number of roots, ``|n|``."""
        return abs(self.n)


@dataclass(frozen=True)
class SamplingMetadata:
    """Metadata describing the sampling grid for a rendered frame.

    Rows run from ``y_max`` downwards so that the imaginary axis points up.
    """

    x_min: float
    y_max: float
    x_step: float
    y_step: float
    x_res: int
    y_res: int


@dataclass(frozen=True)
class RenderResult:
    """Container for the color buffer and per-pixel outcomes of a render."""

    colors: np.ndarray
    root_indices: np.ndarray
    iterations: np.ndarray
    metadata: SamplingMetadata


def calculate_roots(n: int) -> tuple[Complex, ...]:
    """Solve ``z**n = 1``: ``|n|`` points at angles ``2*pi*k/n`` on the unit circle.

    For negative ``n`` the angles run clockwise, giving the conjugates of the
    ``|n|`` roots in the same index order.
    """

    if n in (-1, 0, 1):
        raise ValueError("n must not be 0, 1 or -1 to create a fractal.")
    roots = []
    for k in range(abs(n)):
        theta = 2 * math.pi * k / n
        roots.append(Complex(math.cos(theta), math.sin(theta)))
    return tuple(roots)


def newton_step(z: Complex, n: int, epsilon: float = DEFAULT_EPSILON) -> Optional[Complex]:
    """Apply one Newton update for ``z**n - 1``; ``None`` when ``f'(z)`` underflows."""

    f = sub(power(z, n), ONE)
    df = mul(Complex(float(n), 0.0), power(z, n - 1))
    if magnitude(df) < epsilon:
        return None
    return sub(z, div(f, df))


def solve_pixel(
    z: Complex,
    roots: Sequence[Complex],
    n: int,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    epsilon: float = DEFAULT_EPSILON,
) -> tuple[int, int]:
    """Iterate Newton's method from ``z`` and report ``(root_index, iterations)``.

    The root index is the first root (in order) closer than ``tolerance``, or
    ``-1`` when the derivative vanishes or the iteration budget runs out.
    """

    for iteration in range(max_iterations):
        for index, root in enumerate(roots):
            if magnitude(sub(z, root)) < tolerance:
                return index, iteration
        z = newton_step(z, n, epsilon)
        if z is None:
            return NOT_CONVERGED, iteration
    return NOT_CONVERGED, max_iterations


def _compute_metadata(config: FractalConfig) -> SamplingMetadata:
    x_res = config.width
    y_res = config.height
    x_step = (config.x_max - config.x_min) / (x_res - 1) if x_res > 1 else 0.0
    y_step = (config.y_max - config.y_min) / (y_res - 1) if y_res > 1 else 0.0
    return SamplingMetadata(
        x_min=float(config.x_min),
        y_max=float(config.y_max),
        x_step=float(x_step),
        y_step=float(y_step),
        x_res=x_res,
        y_res=y_res,
    )


def pixel_to_complex(metadata: SamplingMetadata, row: int, col: int) -> Complex:
    if metadata.x_res > 1:
        x = metadata.x_min + col * metadata.x_step
    else:
        x = metadata.x_min
    if metadata.y_res > 1:
        y = metadata.y_max - row * metadata.y_step
    else:
        y = metadata.y_max
    return Complex(x, y)


class Fractal:
    """A single Newton-fractal render session.

    Roots and palette are computed once from ``config`` and never change;
    :meth:`generate` fills and returns the color buffer.
    """

    def __init__(
        self,
        config: FractalConfig,
        *,
        strategy: str = SEQUENTIAL,
        device: Optional[str] = None,
        log: Optional[Logger] = None,
        trace: Optional[Logger] = None,
        trace_interval: int = 0,
    ) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy '{strategy}'. Valid choices: {', '.join(STRATEGIES)}.")
        if trace_interval < 0:
            raise ValueError("trace_interval must not be negative.")
        self._config = config
        self._strategy = strategy
        self._device = device
        self._log = log or _silent
        self._trace = trace or _silent
        self._trace_interval = trace_interval
        self._roots = calculate_roots(config.n)
        self._palette = build_palette(config.n, config.palette)

        self._log(f"--- Calculating {config.degree} roots of z^{config.n} - 1 ---")
        for index, root in enumerate(self._roots):
            self._log(f"Root {index}: {root}")
        self._log(f"Palette: {describe_palette(self._palette)}")

    @property
    def config(self) -> FractalConfig:
        return self._config

    @property
    def strategy(self) -> str:
        return self._strategy

    @property
    def roots(self) -> tuple[Complex, ...]:
        return self._roots

    @property
    def palette(self) -> tuple[RGB, ...]:
        return self._palette

    def generate(self) -> RenderResult:
        config = self._config
        metadata = _compute_metadata(config)
        reals = [pixel_to_complex(metadata, 0, col).real for col in range(metadata.x_res)]
        imags = [pixel_to_complex(metadata, row, 0).imag for row in range(metadata.y_res)]

        started = time.perf_counter()
        if self._strategy == LANES:
            root_indices, iterations = self._solve_lanes(reals, imags)
        else:
            root_indices, iterations = self._solve_sequential(reals, imags)
        self._log(
            "Solved {0}x{1} pixels with the {2} strategy in {3:.2f}s".format(
                config.width, config.height, self._strategy, time.perf_counter() - started
            )
        )

        if self._trace_interval:
            self._trace_pixels(reals, imags, root_indices, iterations)

        colors = color_outcomes(root_indices, iterations, self._palette, config.max_iterations, config.gamma)
        return RenderResult(
            colors=colors,
            root_indices=root_indices,
            iterations=iterations,
            metadata=metadata,
        )

    def _solve_sequential(self, reals: list[float], imags: list[float]) -> tuple[np.ndarray, np.ndarray]:
        config = self._config
        shape = (len(imags), len(reals))
        root_indices = np.full(shape, NOT_CONVERGED, dtype=np.int32)
        iterations = np.zeros(shape, dtype=np.int32)
        for row, imag in enumerate(imags):
            for col, real in enumerate(reals):
                root_index, count = solve_pixel(
                    Complex(real, imag),
                    self._roots,
                    config.n,
                    config.tolerance,
                    config.max_iterations,
                    config.epsilon,
                )
                root_indices[row, col] = root_index
                iterations[row, col] = count
        return root_indices, iterations

    def _solve_lanes(self, reals: list[float], imags: list[float]) -> tuple[np.ndarray, np.ndarray]:
        from .kernel import solve_grid

        config = self._config
        real_grid, imag_grid = np.meshgrid(
            np.asarray(reals, dtype=np.float64),
            np.asarray(imags, dtype=np.float64),
        )
        return solve_grid(
            real_grid,
            imag_grid,
            self._roots,
            config.n,
            tolerance=config.tolerance,
            max_iterations=config.max_iterations,
            epsilon=config.epsilon,
            device=self._device,
        )

    def _trace_pixels(
        self,
        reals: list[float],
        imags: list[float],
        root_indices: np.ndarray,
        iterations: np.ndarray,
    ) -> None:
        step = self._trace_interval
        for row in range(0, len(imags), step):
            for col in range(0, len(reals), step):
                root_index = int(root_indices[row, col])
                outcome = f"root {root_index}" if root_index != NOT_CONVERGED else "no root"
                self._trace(
                    f"Pixel ({col}, {row}) z0 = {Complex(reals[col], imags[row])}: "
                    f"{outcome} after {int(iterations[row, col])} iterations"
                )


def render_frame(
    config: FractalConfig,
    *,
    strategy: str = SEQUENTIAL,
    device: Optional[str] = None,
) -> RenderResult:
    """Render a Newton fractal given the supplied parameters."""

    return Fractal(config, strategy=strategy, device=device).generate()
