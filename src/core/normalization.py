"""UV bounding-box normalization."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

DEGENERATE_EXTENT = 1e-10


def normalize_uv(uv: np.ndarray, vertex_indices: Optional[Sequence[int]] = None) -> float:
    """
    UV를 긴 축 기준 [0, 1]로 균등 스케일 (제자리 변환)

    Only the rows in ``vertex_indices`` (all rows when None) are measured and
    moved. A bounding box with extent below ``DEGENERATE_EXTENT`` is left as is.

    Returns:
        적용된 스케일의 역수 (원본 단위 / UV 단위). 변환하지 않았으면 1.0
    """
    if vertex_indices is None:
        idx = np.arange(uv.shape[0])
    else:
        idx = np.unique(np.asarray(list(vertex_indices), dtype=np.int64))
    if idx.size == 0:
        return 1.0

    pts = uv[idx]
    min_uv = pts.min(axis=0)
    max_uv = pts.max(axis=0)
    extent = float(np.max(max_uv - min_uv))
    if not np.isfinite(extent) or extent <= DEGENERATE_EXTENT:
        return 1.0

    uv[idx] = (pts - min_uv) / extent
    return extent
