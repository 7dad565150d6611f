"""
Flattened Mesh → SVG exporter

펼쳐진 UV 레이아웃을 실측 단위 SVG로 내보냅니다.

Layers (each an SVG ``<g>`` with a stable id): grid, wireframe, outline,
seams. Coordinates are ``flattened.uv_real`` converted to the SVG unit, with
the y axis flipped.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from .flattener import FlattenedMesh
from .seams import SeamRegistry
from .unit_utils import resolve_svg_unit

_LOGGER = logging.getLogger(__name__)

SVG_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="no"?>'
SVG_COMMENT = '<!-- Produced by UVUnfold (UV layout SVG) -->'


@dataclass(frozen=True)
class SVGExportOptions:
    unit: Optional[str] = None  # 'mm' | 'cm' | 'm' (None이면 mesh.unit 사용)
    margin: float = 0.0  # mesh 단위
    include_grid: bool = False
    grid_spacing: float = 1.0  # SVG 단위
    include_outline: bool = True
    include_wireframe: bool = True
    include_seams: bool = True
    stroke_color: str = "#000000"
    stroke_width: float = 0.05  # SVG 단위
    wireframe_color: str = "#808080"
    seam_color: str = "#D62728"
    grid_color: str = "#CCCCCC"
    grid_stroke_width: float = 0.02


def _points_attr(points: np.ndarray) -> str:
    return " ".join(f"{x:.6f},{y:.6f}" for x, y in points)


class _Frame:
    """mesh 단위 2D 좌표 → SVG 사용자 좌표"""

    def __init__(self, origin: np.ndarray, unit_scale: float, height: float):
        self.origin = origin
        self.unit_scale = unit_scale
        self.height = height

    def __call__(self, points: np.ndarray) -> np.ndarray:
        pts = (np.asarray(points, dtype=np.float64) - self.origin) * self.unit_scale
        pts[:, 1] = self.height - pts[:, 1]
        return pts


class FlattenedSVGExporter:
    """FlattenedMesh를 실측 SVG로 내보내는 유틸리티."""

    def export(self, flattened: FlattenedMesh, output_path: str | Path,
               options: SVGExportOptions | None = None,
               seams: SeamRegistry | None = None) -> str:
        """
        Args:
            flattened: 펼침 결과
            output_path: 저장 경로
            options: 레이어/단위 옵션
            seams: 그릴 시임 엣지 (None이면 seams 레이어 생략)

        Returns:
            저장된 경로 문자열
        """
        options = options or SVGExportOptions()
        output_path = Path(output_path)
        svg_unit, unit_scale = resolve_svg_unit(flattened.original_mesh.unit, options.unit)

        uv_real = np.asarray(flattened.uv_real, dtype=np.float64)
        if uv_real.shape[0] == 0:
            parts = [
                SVG_HEADER,
                f'<svg xmlns="http://www.w3.org/2000/svg" width="1{svg_unit}" height="1{svg_unit}" viewBox="0 0 1 1">',
                SVG_COMMENT,
                '<!-- Empty UV: nothing to export -->',
                '</svg>',
            ]
            output_path.write_text("\n".join(parts), encoding="utf-8")
            return str(output_path)

        used = np.unique(flattened.faces.reshape(-1)) if flattened.n_faces else np.arange(len(uv_real))
        lo = uv_real[used].min(axis=0) - float(options.margin)
        hi = uv_real[used].max(axis=0) + float(options.margin)
        width, height = (max(float(s), 1e-6) for s in (hi - lo) * unit_scale)
        frame = _Frame(lo, unit_scale, height)

        parts = [
            SVG_HEADER,
            f'<svg xmlns="http://www.w3.org/2000/svg" '
            f'width="{width:.4f}{svg_unit}" height="{height:.4f}{svg_unit}" '
            f'viewBox="0 0 {width:.6f} {height:.6f}">',
            SVG_COMMENT,
        ]
        if options.include_grid and options.grid_spacing > 0:
            parts += self._grid_layer(width, height, options)
        if options.include_wireframe:
            parts += self._wireframe_layer(flattened, uv_real, frame, options)
        if options.include_outline:
            parts += self._outline_layer(flattened, uv_real, used, frame, options)
        if options.include_seams and seams is not None and len(seams) > 0:
            parts += self._seam_layer(seams, uv_real, frame, options)
        parts.append('</svg>')

        output_path.write_text("\n".join(parts), encoding="utf-8")
        _LOGGER.info("UV layout SVG written: %s (%.3f x %.3f %s)", output_path, width, height, svg_unit)
        return str(output_path)

    @staticmethod
    def _grid_layer(width: float, height: float, options: SVGExportOptions) -> list[str]:
        step = float(options.grid_spacing)
        xs = np.arange(0.0, width + 1e-9, step)
        ys = np.arange(0.0, height + 1e-9, step)
        lines = [f'<line x1="{x:.6f}" y1="0" x2="{x:.6f}" y2="{height:.6f}" />' for x in xs]
        lines += [f'<line x1="0" y1="{y:.6f}" x2="{width:.6f}" y2="{y:.6f}" />' for y in ys]
        return [
            f'<g id="grid" stroke="{options.grid_color}" stroke-width="{options.grid_stroke_width}">',
            *lines,
            '</g>',
        ]

    @staticmethod
    def _wireframe_layer(flattened: FlattenedMesh, uv_real: np.ndarray, frame: _Frame,
                         options: SVGExportOptions) -> list[str]:
        polys = [
            f'<polygon points="{_points_attr(frame(uv_real[face]))}" fill="none" />'
            for face in flattened.faces
        ]
        return [
            f'<g id="wireframe" stroke="{options.wireframe_color}" fill="none" '
            f'stroke-width="{options.stroke_width}">',
            *polys,
            '</g>',
        ]

    def _outline_layer(self, flattened: FlattenedMesh, uv_real: np.ndarray, used: np.ndarray,
                       frame: _Frame, options: SVGExportOptions) -> list[str]:
        shapes: list[str] = []
        loops = flattened.original_mesh.get_boundary_loops()
        for loop in loops:
            closed = np.append(loop, loop[0])
            shapes.append(f'<polyline points="{_points_attr(frame(uv_real[closed]))}" fill="none" />')
        if not loops:
            # 경계가 없는 닫힌 메쉬: UV convex hull로 대체
            hull = self._convex_hull_2d(uv_real[used])
            if len(hull) >= 3:
                shapes.append(f'<polygon points="{_points_attr(frame(uv_real[used[hull]]))}" fill="none" />')
        return [
            f'<g id="outline" stroke="{options.stroke_color}" fill="none" '
            f'stroke-width="{options.stroke_width}">',
            *shapes,
            '</g>',
        ]

    @staticmethod
    def _seam_layer(seams: SeamRegistry, uv_real: np.ndarray, frame: _Frame,
                    options: SVGExportOptions) -> list[str]:
        n = len(uv_real)
        lines: list[str] = []
        for v1, v2 in seams:
            if not (0 <= v1 < n and 0 <= v2 < n):
                continue
            (x1, y1), (x2, y2) = frame(uv_real[[v1, v2]])
            lines.append(f'<line x1="{x1:.6f}" y1="{y1:.6f}" x2="{x2:.6f}" y2="{y2:.6f}" />')
        if len(lines) < len(seams):
            _LOGGER.debug("SVG export: %d seam edges out of range skipped", len(seams) - len(lines))
        return [
            f'<g id="seams" stroke="{options.seam_color}" fill="none" '
            f'stroke-width="{2.0 * options.stroke_width}">',
            *lines,
            '</g>',
        ]

    @staticmethod
    def _convex_hull_2d(points: np.ndarray) -> np.ndarray:
        """볼록 껍질 정점 인덱스 (반시계 방향). 3점 미만이거나 일직선이면 빈 배열"""
        pts = np.asarray(points, dtype=np.float64)
        if len(pts) < 3:
            return np.zeros((0,), dtype=np.int32)
        try:
            return np.asarray(ConvexHull(pts).vertices, dtype=np.int32)
        except QhullError:
            return np.zeros((0,), dtype=np.int32)
