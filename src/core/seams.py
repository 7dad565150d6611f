"""
Seam registry

Caller-declared seam edges, stored as canonical undirected edge keys. The
flattening pass does not read this set; the SVG exporter draws it.
"""

from __future__ import annotations

from typing import Iterator

from .halfedge import edge_key


class SeamRegistry:
    """무방향 시임 엣지 집합"""

    def __init__(self):
        self._edges: set[tuple[int, int]] = set()

    def add_seam_edge(self, v1: int, v2: int) -> tuple[int, int]:
        key = edge_key(v1, v2)
        self._edges.add(key)
        return key

    def clear_seams(self) -> None:
        self._edges.clear()

    def is_seam(self, v1: int, v2: int) -> bool:
        return edge_key(v1, v2) in self._edges

    def edges(self) -> list[tuple[int, int]]:
        """정렬된 엣지 목록"""
        return sorted(self._edges)

    def __contains__(self, edge) -> bool:
        try:
            v1, v2 = edge
        except (TypeError, ValueError):
            return False
        return self.is_seam(v1, v2)

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return iter(self.edges())

    def __repr__(self) -> str:
        return f"SeamRegistry({len(self._edges)} edges)"
