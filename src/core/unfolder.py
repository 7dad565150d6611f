"""
Planar unfolding (BFS triangle unfolding)

삼각형을 하나씩 평면에 펼치는 방식의 초기 UV 생성.

The seed triangle is laid down with its true edge lengths; every other
triangle is reached breadth-first across shared edges and its one unplaced
vertex is solved with the law of cosines against the already placed edge.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
import math
from typing import Optional, Sequence

import numpy as np

from .geometry import Vec2, Vec3, clamp_unit
from .halfedge import edge_key

_LOGGER = logging.getLogger(__name__)

EPS = 1e-10


@dataclass
class UnfoldResult:
    """
    Attributes:
        uv: (N, 2) 정점별 2D 좌표 (면 집합에 속하지 않은 정점은 (0, 0))
        placed: (N,) 순회로 배치된 정점 마스크 (fallback 정점은 False)
        processed_faces: 순회에서 처리된 면 개수
        fallback_vertices: 원점에 배치된 면 집합 정점 개수
    """
    uv: np.ndarray
    placed: np.ndarray
    processed_faces: int = 0
    fallback_vertices: int = 0


def _place_seed(points: list[Vec3], face: Sequence[int], uv: list[Optional[Vec2]]) -> None:
    a, b, c = (int(v) for v in face)
    e01 = (points[b] - points[a]).length()
    e02 = (points[c] - points[a]).length()
    e12 = (points[c] - points[b]).length()

    denom = 2.0 * e01 * e02
    cos_a = clamp_unit((e01 * e01 + e02 * e02 - e12 * e12) / denom) if denom > EPS else 1.0
    sin_a = math.sqrt(1.0 - cos_a * cos_a)

    uv[a] = Vec2(0.0, 0.0)
    uv[b] = Vec2(e01, 0.0)
    uv[c] = Vec2(e02 * cos_a, e02 * sin_a)


def _solve_third_vertex(p1: Vec2, p2: Vec2, len12: float, len1n: float, len2n: float) -> Optional[Vec2]:
    """
    p1→p2 선분 기준으로 새 정점 위치를 코사인 법칙으로 계산합니다.

    The result always lies left of p1→p2 (positive signed area); ``None`` when
    the placed segment is too short to define a direction.
    """
    seg = p2 - p1
    if seg.length() < EPS:
        return None

    if len1n < EPS:
        cos_t = 1.0
    else:
        cos_t = clamp_unit((len12 * len12 + len1n * len1n - len2n * len2n) / (2.0 * len12 * len1n))
    sin_t = math.sqrt(1.0 - cos_t * cos_t)

    direction = seg.normalize()
    along = direction * (len1n * cos_t)
    offset = direction.perp() * (len1n * sin_t)

    candidate = p1 + along + offset
    if seg.cross(candidate - p1) < 0.0:
        # 반대쪽으로 접힌 경우 공유 엣지 기준으로 반사
        candidate = p1 + along - offset
    return candidate


def build_face_adjacency(faces: np.ndarray, face_indices: Sequence[int]) -> dict[tuple[int, int], list[int]]:
    """무방향 엣지 → 인접 면 목록 (주어진 면 집합 안에서만)"""
    edge_to_faces: dict[tuple[int, int], list[int]] = {}
    for fi in face_indices:
        f = faces[int(fi)]
        for i in range(3):
            edge_to_faces.setdefault(edge_key(f[i], f[(i + 1) % 3]), []).append(int(fi))
    return edge_to_faces


def flatten_piece(vertices: np.ndarray, faces: np.ndarray,
                  face_indices: Optional[Sequence[int]] = None) -> UnfoldResult:
    """
    면 집합을 BFS로 평면에 펼칩니다.

    Args:
        vertices: (N, 3) 정점 좌표
        faces: (M, 3) 면 인덱스
        face_indices: 펼칠 면 인덱스 목록 (None이면 전체, 첫 면이 시드)

    Returns:
        UnfoldResult: 모든 정점에 대한 유한한 2D 좌표
    """
    vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    faces = np.asarray(faces, dtype=np.int32).reshape(-1, 3)
    n = int(vertices.shape[0])

    if face_indices is None:
        face_indices = range(int(faces.shape[0]))
    face_list = [int(f) for f in face_indices]

    if not face_list:
        return UnfoldResult(uv=np.zeros((n, 2), dtype=np.float64), placed=np.zeros(n, dtype=bool))

    points = [Vec3.from_seq(p) for p in vertices]
    uv: list[Optional[Vec2]] = [None] * n

    seed = face_list[0]
    _place_seed(points, faces[seed], uv)

    edge_to_faces = build_face_adjacency(faces, face_list)

    processed = {seed}
    queue = deque([seed])
    n_deferred = 0

    while queue:
        current = queue.popleft()
        cf = faces[current]

        for i in range(3):
            key = edge_key(cf[i], cf[(i + 1) % 3])
            for neighbor in edge_to_faces.get(key, ()):
                if neighbor in processed:
                    continue

                nf = [int(v) for v in faces[neighbor]]
                unplaced = [k for k in range(3) if uv[nf[k]] is None]

                if not unplaced:
                    # 세 정점이 이미 배치됨: 순회만 이어간다
                    processed.add(neighbor)
                    queue.append(neighbor)
                    continue
                if len(unplaced) != 1:
                    continue

                k = unplaced[0]
                new_v = nf[k]
                # 면의 감김 순서를 따르므로 (s1, s2, new_v)는 면의 순환 회전이다
                s1 = nf[(k + 1) % 3]
                s2 = nf[(k + 2) % 3]
                if s1 == s2:
                    continue

                len12 = (points[s2] - points[s1]).length()
                if len12 < EPS:
                    n_deferred += 1
                    continue
                len1n = (points[new_v] - points[s1]).length()
                len2n = (points[new_v] - points[s2]).length()

                candidate = _solve_third_vertex(uv[s1], uv[s2], len12, len1n, len2n)
                if candidate is None:
                    n_deferred += 1
                    continue

                uv[new_v] = candidate
                processed.add(neighbor)
                queue.append(neighbor)

    placed = np.array([p is not None for p in uv], dtype=bool)

    n_fallback = 0
    for fi in face_list:
        for v in faces[fi]:
            if uv[int(v)] is None:
                uv[int(v)] = Vec2(0.0, 0.0)
                n_fallback += 1

    if n_deferred:
        _LOGGER.debug("Unfold: %d face placements deferred on near-zero edges", n_deferred)
    if n_fallback:
        _LOGGER.debug("Unfold: %d unreachable vertices placed at origin", n_fallback)

    out = np.zeros((n, 2), dtype=np.float64)
    for v, p in enumerate(uv):
        if p is not None:
            out[v, 0] = p.x
            out[v, 1] = p.y

    return UnfoldResult(
        uv=out,
        placed=placed,
        processed_faces=len(processed),
        fallback_vertices=n_fallback,
    )
