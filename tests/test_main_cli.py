from pathlib import Path

import pytest

import main
from src.core import logging_utils


SQUARE_OBJ = """\
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
f 1 2 3
f 1 3 4
"""


@pytest.fixture(autouse=True)
def _no_file_logging(monkeypatch):
    monkeypatch.setattr(logging_utils, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(main, "DEFAULT_RENDER_RESOLUTION", 64)


@pytest.fixture
def square_obj(tmp_path) -> Path:
    path = tmp_path / "square.obj"
    path.write_text(SQUARE_OBJ, encoding="utf-8")
    return path


def test_parse_seams():
    assert main.parse_seams("0:1, 2:3,") == [(0, 1), (2, 3)]
    assert main.parse_seams("") == []
    with pytest.raises(ValueError):
        main.parse_seams("0-1")


def test_help_and_no_args(capsys):
    assert main.run_cli([]) == 0
    assert main.run_cli(["--help"]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_unknown_command_fails(capsys):
    assert main.run_cli(["no-such-file.obj"]) == 1
    assert "Error" in capsys.readouterr().out


def test_invalid_seam_option_fails(square_obj):
    assert main.run_cli([str(square_obj), "--seams=0"]) == 1


def test_info(square_obj, capsys):
    assert main.run_cli(["--info", str(square_obj)]) == 0
    out = capsys.readouterr().out
    assert "n_vertices: 4" in out
    assert "n_faces: 2" in out


def test_process_mesh_writes_all_outputs(square_obj):
    assert main.run_cli([str(square_obj)]) == 0

    for suffix in (".uv.obj", ".uv.svg", ".uv.png"):
        out = square_obj.with_suffix(suffix)
        assert out.exists(), suffix
        assert out.stat().st_size > 0

    assert "vt " in square_obj.with_suffix(".uv.obj").read_text(encoding="utf-8")


def test_svg_command_with_seams(square_obj, tmp_path):
    out = tmp_path / "layout.svg"
    assert main.run_cli(["--svg", str(square_obj), str(out), "--seams=0:2"]) == 0

    text = out.read_text(encoding="utf-8")
    assert 'id="seams"' in text


def test_flatten_and_png_commands(square_obj, tmp_path):
    mesh_out = tmp_path / "flat.obj"
    png_out = tmp_path / "flat.png"

    assert main.run_cli(["--flatten", str(square_obj), str(mesh_out)]) == 0
    assert main.run_cli(["--png", str(square_obj), str(png_out)]) == 0

    assert mesh_out.exists()
    assert png_out.exists()


def test_flatten_failure_returns_error_code(tmp_path, capsys):
    empty = tmp_path / "empty.obj"
    empty.write_text("v 0 0 0\nv 1 0 0\n", encoding="utf-8")

    assert main.run_cli(["--flatten", str(empty)]) == 1
    assert "Error" in capsys.readouterr().out


def test_color_seam_option(monkeypatch, square_obj):
    monkeypatch.setattr(main, "DEFAULT_COLOR_SEAMS", True)
    rest, seams, color_seams = main._split_seam_options(["a.obj", "--seams=0:1", "--no-color-seams"])
    assert rest == ["a.obj"]
    assert seams == [(0, 1)]
    assert color_seams is False

    assert main._split_seam_options(["a.obj"])[2] is True
    assert main.run_cli(["--flatten", str(square_obj), "--no-color-seams"]) == 0


def test_flatten_prints_topology(square_obj, capsys):
    assert main.run_cli(["--flatten", str(square_obj)]) == 0
    assert "Topology: disk (euler=1, 1 boundary loops)" in capsys.readouterr().out
