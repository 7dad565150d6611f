"""
Conformal smoothing pass

Iterative 1-ring Laplacian relaxation over unfolded UVs. This approximates
angle preservation locally; it is not a conformal energy minimizer.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
from scipy import sparse

_LOGGER = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 20
DEFAULT_ALPHA = 0.5
MIN_NEIGHBORS = 2


def build_vertex_neighbors(n_vertices: int, faces: np.ndarray,
                           face_indices: Optional[Sequence[int]] = None) -> sparse.csr_matrix:
    """
    면 집합으로 제한한 1-ring 인접 행렬 (중복 제거, 자기 자신 제외)

    Returns:
        (N, N) CSR 행렬, 이웃이면 1
    """
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    if face_indices is not None:
        faces = faces[np.asarray(list(face_indices), dtype=np.int64)]

    if faces.size == 0:
        return sparse.csr_matrix((n_vertices, n_vertices), dtype=np.float64)

    rows = np.concatenate([faces[:, 0], faces[:, 1], faces[:, 2], faces[:, 1], faces[:, 2], faces[:, 0]])
    cols = np.concatenate([faces[:, 1], faces[:, 2], faces[:, 0], faces[:, 0], faces[:, 1], faces[:, 2]])
    keep = rows != cols
    rows = rows[keep]
    cols = cols[keep]

    adj = sparse.coo_matrix(
        (np.ones(rows.shape[0], dtype=np.float64), (rows, cols)),
        shape=(n_vertices, n_vertices),
    ).tocsr()
    adj.sum_duplicates()
    adj.data[:] = 1.0
    return adj


def optimize_conformal(uv: np.ndarray, faces: np.ndarray,
                       face_indices: Optional[Sequence[int]] = None,
                       iterations: int = DEFAULT_ITERATIONS,
                       *,
                       alpha: float = DEFAULT_ALPHA,
                       pinned: Optional[np.ndarray] = None) -> np.ndarray:
    """
    이웃 평균과 현재 위치를 섞는 Jacobi 방식 라플라시안 완화

    new = (1 - alpha) * old + alpha * mean(neighbors(old))

    Every round reads only the previous round's snapshot. Vertices with fewer
    than two neighbours, and vertices flagged in ``pinned``, keep their
    position.

    Args:
        uv: (N, 2) UV 좌표 (제자리에서 갱신됨)
        faces: (M, 3) 면 인덱스
        face_indices: 이웃 계산에 사용할 면 집합 (None이면 전체)
        iterations: 반복 횟수 (음수는 0으로 취급)
        alpha: 이웃 평균 쪽 가중치
        pinned: (N,) 고정할 정점 마스크

    Returns:
        갱신된 uv (입력 배열과 동일 객체)
    """
    n = int(uv.shape[0])
    iterations = max(0, int(iterations))
    alpha = float(alpha)

    adj = build_vertex_neighbors(n, faces, face_indices)
    degree = np.asarray(adj.sum(axis=1)).ravel()

    active = degree >= MIN_NEIGHBORS
    if pinned is not None:
        active &= ~np.asarray(pinned, dtype=bool).reshape(-1)[:n]

    if iterations == 0 or not np.any(active):
        return uv

    # 활성 정점 행만 남긴 평균 연산자 D^-1 A
    inv_deg = np.zeros(n, dtype=np.float64)
    inv_deg[active] = 1.0 / degree[active]
    averaging = sparse.diags(inv_deg) @ adj
    active_idx = np.flatnonzero(active)

    for _ in range(iterations):
        prev = uv.copy()
        mean = averaging @ prev
        uv[active_idx] = (1.0 - alpha) * prev[active_idx] + alpha * mean[active_idx]

    _LOGGER.debug(
        "Smoothing: %d iterations over %d/%d vertices (alpha=%.3f)",
        iterations, active_idx.size, n, alpha,
    )
    return uv
