import os
import re
import sys
from argparse import ArgumentParser, ArgumentTypeError

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

# TensorFlow is only imported for the lanes strategy, but its C++ logger reads
# this variable at import time.
if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


def trace(message):
    print(message)


from newton import LANES, STRATEGIES, Fractal, FractalConfig, resolve_output_path, write_ppm
from newton.palette import DEFAULT_GAMMA
from newton.ppm import OUTPUT_DIR
from newton.renderer import DEFAULT_EPSILON, DEFAULT_MAX_ITERATIONS, DEFAULT_TOLERANCE, DEFAULT_VIEWPORT

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 800

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def _strict_integer(label):
    """Accept an optional sign followed by digits only, nothing else."""

    def parse(text):
        if not _INTEGER_RE.fullmatch(text):
            raise ArgumentTypeError(f"{label} must be a valid integer")
        return int(text)

    parse.__name__ = label
    return parse


def build_parser():
    parser = ArgumentParser(
        description="Render a Newton fractal for z^n - 1 = 0 as a plain-text PPM image.",
    )

    parser.add_argument('n', type=_strict_integer("<n>"),
                        help='degree of the polynomial (integer, not 0, 1 or -1)')

    parser.add_argument('width', type=_strict_integer("[width]"), nargs='?', default=DEFAULT_WIDTH,
                        help=f'width of the output image (positive integer, default: {DEFAULT_WIDTH})')

    parser.add_argument('height', type=_strict_integer("[height]"), nargs='?', default=DEFAULT_HEIGHT,
                        help=f'height of the output image (positive integer, default: {DEFAULT_HEIGHT})')

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='maximum number of Newton steps per pixel',
                        metavar='MAX_ITERATIONS', default=DEFAULT_MAX_ITERATIONS)

    parser.add_argument('--tolerance', type=float,
                        dest='tolerance', help='distance to a root below which a pixel counts as converged',
                        metavar='TOLERANCE', default=DEFAULT_TOLERANCE)

    parser.add_argument('--epsilon', type=float,
                        dest='epsilon', help="magnitude of f'(z) below which the iteration is abandoned",
                        metavar='EPSILON', default=DEFAULT_EPSILON)

    parser.add_argument('--gamma', type=float, default=DEFAULT_GAMMA,
                        help='exponent applied to the brightness falloff; larger values darken slow pixels')

    parser.add_argument('--x-min', type=float, dest='x_min', metavar='X_MIN', default=DEFAULT_VIEWPORT[0],
                        help='real coordinate of the left image edge')
    parser.add_argument('--x-max', type=float, dest='x_max', metavar='X_MAX', default=DEFAULT_VIEWPORT[1],
                        help='real coordinate of the right image edge')
    parser.add_argument('--y-min', type=float, dest='y_min', metavar='Y_MIN', default=DEFAULT_VIEWPORT[2],
                        help='imaginary coordinate of the bottom image edge')
    parser.add_argument('--y-max', type=float, dest='y_max', metavar='Y_MAX', default=DEFAULT_VIEWPORT[3],
                        help='imaginary coordinate of the top image edge')

    parser.add_argument('--strategy', choices=STRATEGIES, default=LANES,
                        help='"sequential" solves one pixel at a time; "lanes" solves the whole grid with TensorFlow.')

    parser.add_argument('--device', choices=('cpu', 'gpu', 'auto'), default='cpu',
                        help='TensorFlow device for the lanes strategy. "auto" uses the first GPU when one is visible.')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination file. Defaults to a timestamped name inside --output-dir.')

    parser.add_argument('--output-dir', dest='output_dir', type=str, default=OUTPUT_DIR,
                        help=f'Directory for timestamped output files (default: {OUTPUT_DIR}).')

    parser.add_argument('--trace-pixels', type=int, dest='trace_pixels', metavar='N', default=0,
                        help='Print the outcome of one pixel every N rows and columns.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging: roots, palette, timing and TensorFlow diagnostics.')

    return parser


def build_config(opt, parser: ArgumentParser) -> FractalConfig:
    if opt.n in (0, 1, -1):
        parser.error("<n> must not be 0, 1 or -1 to create a fractal")
    if opt.width <= 0:
        parser.error("[width] must be a positive number")
    if opt.height <= 0:
        parser.error("[height] must be a positive number")
    if opt.trace_pixels < 0:
        parser.error("--trace-pixels must not be negative")

    try:
        return FractalConfig(
            n=opt.n,
            width=opt.width,
            height=opt.height,
            tolerance=opt.tolerance,
            max_iterations=opt.max_iterations,
            epsilon=opt.epsilon,
            gamma=opt.gamma,
            x_min=opt.x_min,
            x_max=opt.x_max,
            y_min=opt.y_min,
            y_max=opt.y_max,
        )
    except ValueError as exc:
        parser.error(str(exc))


def select_device(requested: str) -> str:
    import tensorflow as tf

    if _suppress_messages:
        tf.get_logger().setLevel("ERROR")
    log("TensorFlow version: %s" % tf.__version__)

    if requested == 'cpu':
        return '/CPU:0'

    gpus = tf.config.list_physical_devices('GPU')
    if gpus:
        try:
            for gpu in gpus:
                tf.config.experimental.set_memory_growth(gpu, True)
            log("GPU found, using %s" % gpus[0].name)
            return '/GPU:0'
        except RuntimeError as e:
            log(e)
    if requested == 'gpu':
        print("No usable GPU found, using CPU", file=sys.stderr)
    else:
        log("No GPU found, using CPU")
    return '/CPU:0'


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = build_config(opt, parser)
    device = select_device(opt.device) if opt.strategy == LANES else None

    fractal = Fractal(
        config,
        strategy=opt.strategy,
        device=device,
        log=log,
        trace=trace,
        trace_interval=opt.trace_pixels,
    )
    result = fractal.generate()

    output_path = resolve_output_path(config.n, opt.output, opt.output_dir)
    try:
        write_ppm(result.colors, output_path)
    except OSError as exc:
        print(f"Error: could not write {output_path}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    print(f"Saved {config.width}x{config.height} fractal for n={config.n} to {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
