"""
Length units for real-size exports.

Mesh coordinates are in ``mesh.unit``; a flattened result carries a ``scale``
that maps normalized UVs back to those units. SVG documents are written in
``mm`` or ``cm`` only (meters are written as centimeters).
"""

from __future__ import annotations

from typing import Optional

MM_PER_UNIT = {"mm": 1.0, "cm": 10.0, "m": 1000.0}

_ALIASES = {
    "millimeter": "mm",
    "millimeters": "mm",
    "millimetre": "mm",
    "centimeter": "cm",
    "centimeters": "cm",
    "centimetre": "cm",
    "meter": "m",
    "meters": "m",
    "metre": "m",
}

_SVG_UNITS = ("mm", "cm")


def normalize_unit(unit: Optional[str]) -> str:
    """단위 문자열 정규화 (알 수 없으면 'mm')"""
    u = str(unit or "").strip().lower()
    u = _ALIASES.get(u, u)
    return u if u in MM_PER_UNIT else "mm"


def conversion_factor(src: Optional[str], dst: Optional[str]) -> float:
    """src 단위 값에 곱하면 dst 단위가 되는 배율"""
    return MM_PER_UNIT[normalize_unit(src)] / MM_PER_UNIT[normalize_unit(dst)]


def resolve_svg_unit(mesh_unit: Optional[str], requested: Optional[str]) -> tuple[str, float]:
    """
    Returns:
        (svg_unit, unit_scale): ``unit_scale`` converts mesh-unit values to
        ``svg_unit``. Without a request the mesh unit is kept when SVG allows it.
    """
    target = normalize_unit(mesh_unit if requested is None else requested)
    if target not in _SVG_UNITS:
        target = "cm"
    return target, conversion_factor(mesh_unit, target)
