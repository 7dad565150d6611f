from pathlib import Path

from src.core.output_paths import (
    uv_mesh_output_path,
    uv_png_output_path,
    uv_svg_output_path,
)
from src.core.unit_utils import conversion_factor, normalize_unit, resolve_svg_unit


def test_default_output_names():
    assert uv_mesh_output_path("scan/patch.ply") == Path("scan/patch.uv.obj")
    assert uv_svg_output_path("scan/patch.ply") == Path("scan/patch.uv.svg")
    assert uv_png_output_path(Path("patch.obj")) == Path("patch.uv.png")


def test_explicit_output_path_wins():
    assert uv_svg_output_path("patch.obj", "out/layout.svg") == Path("out/layout.svg")
    assert uv_mesh_output_path("patch.obj", "") == Path("patch.uv.obj")


def test_unit_helpers():
    assert normalize_unit("Centimeters") == "cm"
    assert normalize_unit(None) == "mm"
    assert resolve_svg_unit("mm", None) == ("mm", 1.0)
    assert resolve_svg_unit("m", None) == ("cm", 100.0)
    assert resolve_svg_unit("cm", "mm") == ("mm", 10.0)
    assert resolve_svg_unit("mm", "cm") == ("cm", 0.1)
    assert resolve_svg_unit("cm", "m") == ("cm", 1.0)
    assert conversion_factor("m", "mm") == 1000.0
    assert conversion_factor("furlong", "cm") == 0.1
