import pytest

import fractal


def _run(tmp_path, *args):
    output = tmp_path / "fractal.ppm"
    code = fractal.main([*args, "--strategy", "sequential", "--output", str(output)])
    return code, output


def test_renders_small_image(tmp_path, capsys):
    code, output = _run(tmp_path, "3", "3", "3")
    assert code == 0
    text = output.read_text()
    assert text.startswith("P3\n3 3\n255\n")
    pixels = text.splitlines()[3:]
    assert len(pixels) == 9
    for line in pixels:
        values = [int(value) for value in line.split(" ")]
        assert len(values) == 3
        assert all(0 <= value <= 255 for value in values)
    assert "Saved 3x3 fractal for n=3" in capsys.readouterr().out


def test_negative_degree_is_accepted(tmp_path):
    code, output = _run(tmp_path, "-3", "4", "2")
    assert code == 0
    assert output.read_text().startswith("P3\n4 2\n255\n")


def test_default_dimensions():
    opt = fractal.build_parser().parse_args(["5"])
    assert (opt.n, opt.width, opt.height) == (5, 800, 800)
    assert opt.strategy == "lanes"


def test_explicit_sign_is_allowed():
    opt = fractal.build_parser().parse_args(["+4", "10", "+20"])
    assert (opt.n, opt.width, opt.height) == (4, 10, 20)


@pytest.mark.parametrize(
    "argv, message",
    [
        ([], "the following arguments are required: n"),
        (["1"], "must not be 0, 1 or -1"),
        (["0"], "must not be 0, 1 or -1"),
        (["-1"], "must not be 0, 1 or -1"),
        (["abc"], "<n> must be a valid integer"),
        (["3.5"], "<n> must be a valid integer"),
        (["3", "1_0"], "[width] must be a valid integer"),
        (["3", "0"], "[width] must be a positive number"),
        (["3", "10", "-2"], "[height] must be a positive number"),
        (["3", "10", "x"], "[height] must be a valid integer"),
        (["3", "--tolerance", "0"], "tolerance must be positive"),
        (["3", "--gamma", "nan"], "gamma must be a non-negative number"),
        (["3", "--x-max", "inf"], "x_max must be a finite number"),
    ],
)
def test_invalid_arguments_print_usage_and_fail(argv, message, capsys):
    with pytest.raises(SystemExit) as excinfo:
        fractal.main(argv)
    assert excinfo.value.code != 0
    err = capsys.readouterr().err
    assert "usage:" in err
    assert message in err


def test_unwritable_output_fails(tmp_path, capsys):
    code = fractal.main(["3", "2", "2", "--strategy", "sequential", "--output", str(tmp_path)])
    assert code == 1
    assert "Error: could not write" in capsys.readouterr().err


def test_output_dir_gets_timestamped_file(tmp_path):
    code = fractal.main(["4", "2", "2", "--strategy", "sequential", "--output-dir", str(tmp_path / "out")])
    assert code == 0
    files = list((tmp_path / "out").iterdir())
    assert len(files) == 1
    assert files[0].name.startswith("newton_n4_")


def test_verbose_lists_roots(tmp_path, capsys):
    code, _ = _run(tmp_path, "3", "2", "2", "--verbose")
    assert code == 0
    out = capsys.readouterr().out
    assert "Root 0: 1 + 0i" in out
    assert "Palette: 3 colors" in out


def test_quiet_by_default(tmp_path, capsys):
    code, _ = _run(tmp_path, "3", "2", "2")
    assert code == 0
    out = capsys.readouterr().out
    assert "Root 0" not in out


def test_trace_pixels(tmp_path, capsys):
    code, _ = _run(tmp_path, "3", "4", "4", "--trace-pixels", "2")
    assert code == 0
    out = capsys.readouterr().out
    assert out.count("Pixel (") == 4
