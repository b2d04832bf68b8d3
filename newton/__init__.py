"""Public API for Newton fractal rendering utilities."""

from .complex_math import Complex, div, magnitude, mul, power, sub
from .palette import MASTER_PALETTE, build_palette, color_for_outcome, color_outcomes
from .ppm import default_filename, resolve_output_path, write_ppm
from .renderer import (
    LANES,
    NOT_CONVERGED,
    SEQUENTIAL,
    STRATEGIES,
    Fractal,
    FractalConfig,
    RenderResult,
    SamplingMetadata,
    calculate_roots,
    newton_step,
    pixel_to_complex,
    render_frame,
    solve_pixel,
)

__all__ = [
    "Complex",
    "Fractal",
    "FractalConfig",
    "LANES",
    "MASTER_PALETTE",
    "NOT_CONVERGED",
    "RenderResult",
    "SEQUENTIAL",
    "STRATEGIES",
    "SamplingMetadata",
    "build_palette",
    "calculate_roots",
    "color_for_outcome",
    "color_outcomes",
    "default_filename",
    "div",
    "magnitude",
    "mul",
    "newton_step",
    "pixel_to_complex",
    "power",
    "render_frame",
    "resolve_output_path",
    "solve_pixel",
    "sub",
    "write_ppm",
]
