"""Plain-text PPM output for rendered color buffers."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np

OUTPUT_DIR = "out"
MAX_CHANNEL = 255


def default_filename(n: int, now: Optional[datetime] = None) -> str:
    """Build a collision-resistant file name from the fractal order and a timestamp."""

    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S-%f")
    return f"newton_n{n}_{stamp}.ppm"


def resolve_output_path(n: int, output: Optional[str] = None, output_dir: Optional[str] = None) -> Path:
    if output:
        return Path(output).expanduser().resolve()
    directory = Path(output_dir or OUTPUT_DIR).expanduser()
    return (directory / default_filename(n)).resolve()


def write_ppm(colors: np.ndarray, output_path: Path) -> Path:
    """Write ``colors`` (``height x width x 3``) as a ``P3`` image.

    The file is opened before anything is written, so an unwritable path fails
    without leaving a partial image behind.
    """

    if colors.ndim != 3 or colors.shape[2] != 3:
        raise ValueError(f"Expected a (height, width, 3) color buffer, got shape {colors.shape}.")
    height, width, _ = colors.shape
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="ascii", newline="\n") as handle:
        handle.write(f"P3\n{width} {height}\n{MAX_CHANNEL}\n")
        np.savetxt(handle, colors.reshape(-1, 3).astype(np.int64), fmt="%d", delimiter=" ")
    return output_path
