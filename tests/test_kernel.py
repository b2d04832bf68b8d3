import numpy as np
import pytest

pytest.importorskip("tensorflow")

from newton.renderer import LANES, NOT_CONVERGED, Fractal, FractalConfig  # noqa: E402


@pytest.mark.parametrize("n", [2, 3, 5, -3])
def test_lanes_match_sequential_solver(n):
    config = FractalConfig(n=n, width=17, height=13, max_iterations=40)
    sequential = Fractal(config).generate()
    lanes = Fractal(config, strategy=LANES).generate()
    assert np.array_equal(lanes.root_indices, sequential.root_indices)
    assert np.array_equal(lanes.iterations, sequential.iterations)
    assert np.array_equal(lanes.colors, sequential.colors)


def test_lanes_match_on_offset_viewport():
    config = FractalConfig(n=4, width=11, height=9, x_min=-0.7, x_max=1.3, y_min=-0.25, y_max=0.9, tolerance=1e-4)
    sequential = Fractal(config).generate()
    lanes = Fractal(config, strategy=LANES).generate()
    assert np.array_equal(lanes.root_indices, sequential.root_indices)
    assert np.array_equal(lanes.iterations, sequential.iterations)


def test_lanes_report_exhausted_and_singular_pixels():
    config = FractalConfig(n=3, width=3, height=3, max_iterations=2)
    result = Fractal(config, strategy=LANES).generate()
    assert result.root_indices[1, 1] == NOT_CONVERGED
    assert result.iterations[1, 1] == 0
    assert result.root_indices[0, 0] == NOT_CONVERGED
    assert result.iterations[0, 0] == 2


def test_lanes_single_pixel():
    config = FractalConfig(n=3, width=1, height=1, x_min=1.0, y_max=0.0)
    result = Fractal(config, strategy=LANES).generate()
    assert result.root_indices.tolist() == [[0]]
    assert result.iterations.tolist() == [[0]]


def test_solve_grid_restores_optimizer_options():
    import tensorflow as tf

    from newton.kernel import solve_grid
    from newton.renderer import calculate_roots

    tf.config.optimizer.set_experimental_options({"constant_folding": True})
    before = tf.config.optimizer.get_experimental_options()
    solve_grid(
        np.array([[2.0]]),
        np.array([[0.0]]),
        calculate_roots(3),
        3,
        tolerance=1e-6,
        max_iterations=10,
        epsilon=1e-10,
    )
    after = tf.config.optimizer.get_experimental_options()
    assert after["constant_folding"] is True
    for key in ("arithmetic_optimization", "remapping"):
        assert after.get(key, True) == before.get(key, True)
    assert {key: value for key, value in after.items() if key in before} == before
