from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["3", "160", "160"]


@dataclass
class Expected:
    path: Path
    is_dir: bool = False


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return [sys.executable, "fractal.py", *self.args]


def _single(name: str, filename: str, args: list[str], base: list[str] = BASE_ARGS) -> Example:
    output = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        args=[*base, *args, "--output", str(output)],
        expected=[Expected(output)],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _single("degree-five", "pentagon.ppm", [], base=["5", "160", "160"]),
    _single("degree-fourteen", "wrapped-palette.ppm", [], base=["14", "160", "160"]),
    _single("negative-degree", "reciprocal.ppm", [], base=["-4", "160", "160"]),
    _single("rectangular", "wide.ppm", [], base=["3", "240", "120"]),
    _single("max-iterations", "few-steps.ppm", ["--max-iterations", "12"]),
    _single("tolerance", "loose.ppm", ["--tolerance", "1e-2"]),
    _single("epsilon", "strict-derivative.ppm", ["--epsilon", "1e-4"]),
    _single("gamma", "linear-falloff.ppm", ["--gamma", "1.0"]),
    _single("viewport", "upper-right.ppm", ["--x-min", "0", "--x-max", "1.5", "--y-min", "0", "--y-max", "1.5"]),
    _single("sequential", "scalar.ppm", ["--strategy", "sequential"], base=["3", "48", "48"]),
    _single("device", "auto.ppm", ["--device", "auto"]),
    _single("trace-pixels", "traced.ppm", ["--trace-pixels", "40"]),
    _single("verbose", "diagnostic.ppm", ["--verbose"]),
    Example(
        name="output-dir",
        args=[*BASE_ARGS, "--output-dir", str(EXAMPLES_ROOT / "output-dir" / "renders")],
        expected=[Expected(EXAMPLES_ROOT / "output-dir" / "renders", is_dir=True)],
        clean=[EXAMPLES_ROOT / "output-dir"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if expected.is_dir:
            if not expected.path.is_dir():
                raise RuntimeError(f"Expected directory {expected.path} was not created")
            if not any(expected.path.iterdir()):
                raise RuntimeError(f"Directory {expected.path} is empty")
        else:
            if not expected.path.is_file():
                raise RuntimeError(f"Expected file {expected.path} was not created")
            with expected.path.open(encoding="ascii") as handle:
                if handle.readline() != "P3\n":
                    raise RuntimeError(f"{expected.path} is not a plain-text PPM image")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        subprocess.run(example.full_args(), check=True)
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
