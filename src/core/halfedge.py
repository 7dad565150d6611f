"""
Half-edge topology

Triangle soup → half-edge mesh. Relationships (next/prev/twin) are integer
indices into one shared list; an absent twin is ``NO_TWIN``.

Half-edge ``3 * f + i`` belongs to face ``f`` and runs from corner ``i`` to
corner ``(i + 1) % 3``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterator

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import connected_components

_LOGGER = logging.getLogger(__name__)

NO_TWIN = -1

TOPOLOGY_DISK = "disk"
TOPOLOGY_CYLINDER = "cylinder"
TOPOLOGY_CLOSED = "closed"
TOPOLOGY_COMPLEX = "complex"


def edge_key(v1: int, v2: int) -> tuple[int, int]:
    """무방향 엣지 키 (작은 인덱스 먼저)"""
    a = int(v1)
    b = int(v2)
    return (a, b) if a < b else (b, a)


@dataclass
class HalfEdge:
    """
    Attributes:
        vertex: 목표(target) 정점
        face: 소속 면
        next: 같은 면의 다음 half-edge
        prev: 같은 면의 이전 half-edge
        twin: 반대 방향 half-edge (없으면 NO_TWIN)
        is_boundary: 경계 half-edge 여부
        is_seam: 시임 여부 (현재 항상 False)
    """
    vertex: int
    face: int
    next: int
    prev: int
    twin: int = NO_TWIN
    is_boundary: bool = False
    is_seam: bool = False


@dataclass(frozen=True)
class TopologyInfo:
    """
    오일러 특성 기반 위상 요약

    ``n_vertices`` counts only vertices referenced by a face.
    """
    euler: int
    n_vertices: int
    n_edges: int
    n_faces: int
    boundary_loops: int
    kind: str

    @property
    def is_disk(self) -> bool:
        return self.kind == TOPOLOGY_DISK


def classify_topology(euler: int, boundary_loops: int) -> str:
    """
    χ=1 → disk, χ=0 with two or more boundary loops → cylinder,
    χ=2 without boundary → closed, anything else → complex.
    """
    if euler == 1:
        return TOPOLOGY_DISK
    if euler == 0 and boundary_loops >= 2:
        return TOPOLOGY_CYLINDER
    if euler == 2 and boundary_loops == 0:
        return TOPOLOGY_CLOSED
    return TOPOLOGY_COMPLEX


class HalfEdgeMesh:
    """
    Half-edge 메쉬

    Builds topology and classifies boundaries on construction. Nothing is
    mutated afterwards.
    """

    def __init__(self, vertices: np.ndarray, faces: np.ndarray):
        self.vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(faces, dtype=np.int32).reshape(-1, 3)

        n = int(self.vertices.shape[0])
        self.half_edges: list[HalfEdge] = []
        self.vertex_half_edge = np.full(n, -1, dtype=np.int64)
        self.is_boundary_vertex = np.zeros(n, dtype=bool)
        self._edge_buckets: dict[tuple[int, int], list[int]] = {}

        self._build_half_edges()
        self._identify_boundaries()

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_faces(self) -> int:
        return int(self.faces.shape[0])

    @property
    def n_half_edges(self) -> int:
        return len(self.half_edges)

    def _build_half_edges(self) -> None:
        buckets = self._edge_buckets

        for fi, face in enumerate(self.faces):
            first = 3 * fi
            for i in range(3):
                origin = int(face[i])
                target = int(face[(i + 1) % 3])
                he_idx = first + i
                self.half_edges.append(
                    HalfEdge(
                        vertex=target,
                        face=fi,
                        next=first + (i + 1) % 3,
                        prev=first + (i + 2) % 3,
                    )
                )
                buckets.setdefault(edge_key(origin, target), []).append(he_idx)

                if self.vertex_half_edge[origin] == -1:
                    self.vertex_half_edge[origin] = he_idx

        # 같은 무방향 엣지를 공유하는 half-edge 중 방향이 반대인 것끼리 짝짓기.
        # 비다양체(3개 이상)인 경우 먼저 만난 한 쌍만 연결된다.
        n_nonmanifold = 0
        for hes in buckets.values():
            if len(hes) > 2:
                n_nonmanifold += 1
            for pos, h in enumerate(hes):
                he = self.half_edges[h]
                if he.twin != NO_TWIN:
                    continue
                h_origin = self.origin(h)
                for other in hes[pos + 1:]:
                    o = self.half_edges[other]
                    if o.twin != NO_TWIN:
                        continue
                    if self.origin(other) == he.vertex and o.vertex == h_origin:
                        he.twin = other
                        o.twin = h
                        break

        if n_nonmanifold:
            _LOGGER.debug("Half-edge build: %d non-manifold edges (partial twin pairing)", n_nonmanifold)

    def _identify_boundaries(self) -> None:
        for h, he in enumerate(self.half_edges):
            if he.twin == NO_TWIN:
                he.is_boundary = True
                self.is_boundary_vertex[self.origin(h)] = True
                self.is_boundary_vertex[he.vertex] = True

    def origin(self, h: int) -> int:
        """half-edge의 시작 정점 (= 이전 half-edge의 목표 정점)"""
        return self.half_edges[self.half_edges[h].prev].vertex

    def edge_vertices(self, h: int) -> tuple[int, int]:
        return self.origin(h), self.half_edges[h].vertex

    def boundary_half_edges(self) -> list[int]:
        return [h for h, he in enumerate(self.half_edges) if he.is_boundary]

    def boundary_vertices(self) -> np.ndarray:
        return np.flatnonzero(self.is_boundary_vertex).astype(np.int32)

    def outgoing_half_edges(self, v: int) -> Iterator[int]:
        """
        정점 v에서 나가는 half-edge 순회 (vertex_half_edge를 시작점으로 사용)

        Walks one way around the fan via ``twin(prev(h))``; if that hits a
        boundary, walks back the other way via ``next(twin(h))``.
        """
        start = int(self.vertex_half_edge[v])
        if start < 0:
            return

        seen = {start}
        yield start

        h = start
        hit_boundary = False
        while True:
            twin = self.half_edges[self.half_edges[h].prev].twin
            if twin == NO_TWIN:
                hit_boundary = True
                break
            if twin in seen:
                break
            seen.add(twin)
            yield twin
            h = twin

        if not hit_boundary:
            return

        h = start
        while True:
            twin = self.half_edges[h].twin
            if twin == NO_TWIN:
                break
            nxt = self.half_edges[twin].next
            if nxt in seen:
                break
            seen.add(nxt)
            yield nxt
            h = nxt

    def vertex_one_ring(self, v: int) -> list[int]:
        """half-edge 순회로 얻은 1-ring 이웃 정점 (중복 없음)"""
        ring: list[int] = []
        for h in self.outgoing_half_edges(v):
            he = self.half_edges[h]
            for u in (he.vertex, self.origin(he.prev)):
                if u != v and u not in ring:
                    ring.append(u)
        return ring

    def face_components(self) -> tuple[int, np.ndarray]:
        """
        공유 엣지 기준 면 연결 컴포넌트

        Returns:
            (n_components, labels), labels는 (M,) 배열
        """
        m = self.n_faces
        if m == 0:
            return 0, np.zeros((0,), dtype=np.int32)

        rows: list[int] = []
        cols: list[int] = []
        for hes in self._edge_buckets.values():
            if len(hes) < 2:
                continue
            f0 = self.half_edges[hes[0]].face
            for h in hes[1:]:
                rows.append(f0)
                cols.append(self.half_edges[h].face)

        graph = sparse.coo_matrix(
            (np.ones(len(rows), dtype=np.int8), (rows, cols)),
            shape=(m, m),
        ).tocsr()
        n_comp, labels = connected_components(graph, directed=False)
        return int(n_comp), np.asarray(labels, dtype=np.int32)

    @property
    def n_edges(self) -> int:
        """무방향 엣지 수"""
        return len(self._edge_buckets)

    def euler_characteristic(self) -> int:
        """χ = V - E + F (면에 쓰인 정점만 셈)"""
        if self.n_faces == 0:
            return 0
        n_used = int(np.unique(self.faces.reshape(-1)).size)
        return n_used - self.n_edges + self.n_faces

    def count_boundary_loops(self) -> int:
        """경계 엣지로 이어진 정점 그룹 수"""
        boundary = self.boundary_half_edges()
        if not boundary:
            return 0

        pairs = np.array([self.edge_vertices(h) for h in boundary], dtype=np.int64)
        n = self.n_vertices
        graph = sparse.coo_matrix(
            (np.ones(len(pairs), dtype=np.int8), (pairs[:, 0], pairs[:, 1])),
            shape=(n, n),
        ).tocsr()
        _n_comp, labels = connected_components(graph, directed=False)
        return int(np.unique(labels[self.is_boundary_vertex]).size)

    def topology_info(self) -> TopologyInfo:
        euler = self.euler_characteristic()
        loops = self.count_boundary_loops()
        n_used = int(np.unique(self.faces.reshape(-1)).size) if self.n_faces else 0
        return TopologyInfo(
            euler=euler,
            n_vertices=n_used,
            n_edges=self.n_edges,
            n_faces=self.n_faces,
            boundary_loops=loops,
            kind=classify_topology(euler, loops),
        )
