"""Base colours per root and the brightness falloff applied to them."""

from __future__ import annotations

from typing import Sequence

import numpy as np

RGB = tuple[int, int, int]

DEFAULT_GAMMA = 8.0

MASTER_PALETTE: tuple[RGB, ...] = (
    (230, 25, 75),    # red
    (60, 180, 75),    # green
    (0, 130, 200),    # blue
    (255, 225, 25),   # yellow
    (245, 130, 48),   # orange
    (145, 30, 180),   # purple
    (70, 240, 240),   # cyan
    (240, 50, 230),   # magenta
    (210, 245, 60),   # lime
    (250, 190, 212),  # pink
    (0, 128, 128),    # teal
    (220, 190, 255),  # lavender
    (170, 110, 40),   # brown
)

BLACK: RGB = (0, 0, 0)


def validate_palette(palette: Sequence[Sequence[int]]) -> tuple[RGB, ...]:
    """Return ``palette`` as a tuple of RGB triples, rejecting malformed entries."""

    if len(palette) == 0:
        raise ValueError("palette must contain at least one color.")
    colors: list[RGB] = []
    for entry in palette:
        if len(entry) != 3:
            raise ValueError(f"palette entry {tuple(entry)!r} must have three channels.")
        channels = tuple(int(channel) for channel in entry)
        if any(channel < 0 or channel > 255 for channel in channels):
            raise ValueError(f"palette entry {channels!r} has a channel outside 0..255.")
        colors.append(channels)  # type: ignore[arg-type]
    return tuple(colors)


def build_palette(n: int, master: Sequence[RGB] = MASTER_PALETTE) -> tuple[RGB, ...]:
    """Assign one base color per root, cycling through ``master`` when needed."""

    size = len(master)
    return tuple(tuple(master[k % size]) for k in range(abs(n)))  # type: ignore[misc]


def color_for_outcome(
    root_index: int,
    iterations: int,
    palette: Sequence[RGB],
    max_iterations: int,
    gamma: float = DEFAULT_GAMMA,
) -> RGB:
    if root_index == -1:
        return BLACK
    base = palette[root_index]
    brightness = (1.0 - iterations / max_iterations) ** gamma
    return (
        int(base[0] * brightness),
        int(base[1] * brightness),
        int(base[2] * brightness),
    )


def color_outcomes(
    root_indices: np.ndarray,
    iterations: np.ndarray,
    palette: Sequence[RGB],
    max_iterations: int,
    gamma: float = DEFAULT_GAMMA,
) -> np.ndarray:
    """Apply :func:`color_for_outcome` to whole outcome grids.

    Brightness is evaluated once per distinct iteration count, with the same
    float arithmetic as the scalar mapper, so the cost follows the image rather
    than the iteration budget.
    """

    root_indices = np.asarray(root_indices)
    levels, inverse = np.unique(np.asarray(iterations), return_inverse=True)
    brightness = np.array(
        [(1.0 - int(level) / max_iterations) ** gamma for level in levels],
        dtype=np.float64,
    )
    base = np.asarray(palette, dtype=np.float64)[root_indices]
    shades = base * brightness[inverse.reshape(root_indices.shape)][..., np.newaxis]
    colors = np.trunc(shades).astype(np.uint8)
    colors[root_indices == -1] = BLACK
    return colors


def describe_palette(palette: Sequence[RGB]) -> str:
    unique = len(set(palette))
    swatches = ", ".join(f"#{r:02x}{g:02x}{b:02x}" for r, g, b in palette)
    return f"{len(palette)} colors ({unique} distinct): {swatches}"
