"""
Seam extraction from vertex colors

빨간색으로 칠한 정점 사이의 메쉬 엣지를 시임으로 추출합니다.

A vertex is marked when its red channel is above ``red_min`` and both green
and blue are below their maxima. A mesh edge becomes a seam when both of its
endpoints are marked; marked vertices that share no edge produce nothing.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .mesh_loader import MeshData
from .seams import SeamRegistry

_LOGGER = logging.getLogger(__name__)

RED_MIN = 0.7
GREEN_MAX = 0.4
BLUE_MAX = 0.4


def normalized_colors(colors: np.ndarray) -> np.ndarray:
    """(N, 3|4) 색 → (N, 3) float [0, 1] RGB (정수형은 255로 나눔)"""
    colors = np.asarray(colors)
    if colors.ndim != 2 or colors.shape[1] < 3:
        raise ValueError(f"vertex colors must be (N, 3) or (N, 4), got {colors.shape}")
    rgb = colors[:, :3].astype(np.float64)
    if np.issubdtype(colors.dtype, np.integer):
        rgb /= 255.0
    return rgb


def extract_marked_vertices(colors: np.ndarray, *,
                            red_min: float = RED_MIN,
                            green_max: float = GREEN_MAX,
                            blue_max: float = BLUE_MAX) -> np.ndarray:
    """빨간 정점 인덱스 (오름차순)"""
    rgb = normalized_colors(colors)
    if rgb.shape[0] == 0:
        return np.zeros((0,), dtype=np.int32)
    mask = (rgb[:, 0] > red_min) & (rgb[:, 1] < green_max) & (rgb[:, 2] < blue_max)
    return np.flatnonzero(mask).astype(np.int32)


def extract_seam_edges(faces: np.ndarray, marked: np.ndarray,
                       n_vertices: Optional[int] = None) -> np.ndarray:
    """
    양 끝점이 모두 표시된 면 엣지

    Returns:
        (K, 2) 정렬된 무방향 엣지 (v1 < v2), 중복 없음
    """
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    marked = np.asarray(marked, dtype=np.int64).reshape(-1)
    if faces.shape[0] == 0 or marked.size == 0:
        return np.zeros((0, 2), dtype=np.int32)

    n = int(n_vertices) if n_vertices is not None else int(max(faces.max(), marked.max())) + 1
    is_marked = np.zeros(n, dtype=bool)
    is_marked[marked] = True

    edges = np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]])
    edges = edges[is_marked[edges[:, 0]] & is_marked[edges[:, 1]]]
    if edges.shape[0] == 0:
        return np.zeros((0, 2), dtype=np.int32)
    return np.unique(np.sort(edges, axis=1), axis=0).astype(np.int32)


def seams_from_vertex_colors(mesh: MeshData, registry: Optional[SeamRegistry] = None, *,
                             red_min: float = RED_MIN,
                             green_max: float = GREEN_MAX,
                             blue_max: float = BLUE_MAX) -> SeamRegistry:
    """
    정점 색에서 시임을 추출해 registry에 추가

    Meshes without vertex colors leave the registry unchanged.

    Returns:
        시임이 추가된 registry (None이면 새로 만듦)
    """
    registry = registry if registry is not None else SeamRegistry()
    if not mesh.has_vertex_colors:
        return registry

    marked = extract_marked_vertices(
        mesh.vertex_colors, red_min=red_min, green_max=green_max, blue_max=blue_max
    )
    edges = extract_seam_edges(mesh.faces, marked, mesh.n_vertices)
    for v1, v2 in edges.tolist():
        registry.add_seam_edge(v1, v2)

    _LOGGER.info("Color seams: %d marked vertices, %d seam edges", len(marked), len(edges))
    if len(marked) and not len(edges):
        _LOGGER.warning("Marked vertices share no mesh edge; no seams extracted")
    return registry
