"""
UV Flattening Module
메쉬 UV 펼침 - BFS 삼각형 펼침 + 라플라시안 완화 + 정규화

Pipeline: half-edge topology → breadth-first law-of-cosines unfolding →
Jacobi Laplacian relaxation → uniform bounding-box normalization.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union
import logging
import numpy as np

from .halfedge import HalfEdgeMesh, TopologyInfo
from .logging_utils import log_once
from .mesh_loader import MeshData
from .normalization import normalize_uv
from .runtime_defaults import DEFAULTS
from .seam_extractor import seams_from_vertex_colors
from .seams import SeamRegistry
from .smoothing import optimize_conformal
from .unfolder import flatten_piece

_LOGGER = logging.getLogger(__name__)

EMPTY_MESH_ERROR = "Empty mesh"


@dataclass
class FlattenedMesh:
    """
    평면화된 메쉬 결과

    Attributes:
        uv: (N, 2) 정규화된 2D 좌표 (긴 축 기준 [0, 1])
        faces: (M, 3) 면 인덱스 (원본과 동일)
        original_mesh: 원본 3D 메쉬 참조
        distortion_per_face: 각 면의 왜곡도 (0=왜곡없음, 1=100% 왜곡)
        scale: UV 1 단위당 원본 단위 길이
        unplaced_vertices: 순회로 도달하지 못해 원점에 놓인 정점 수
        n_components: 면 연결 컴포넌트 수
        flipped_faces: 시드 삼각형과 감김 방향이 반대인 면 수
        topology: 오일러 특성 / 경계 루프 수 / 위상 종류 (disk, cylinder, closed, complex)
    """
    uv: np.ndarray
    faces: np.ndarray
    original_mesh: MeshData
    distortion_per_face: Optional[np.ndarray] = None
    scale: float = 1.0
    unplaced_vertices: int = 0
    n_components: int = 1
    flipped_faces: int = 0
    topology: Optional[TopologyInfo] = None

    # 캐시
    _bounds: Optional[np.ndarray] = field(default=None, repr=False)

    def __post_init__(self):
        self.uv = np.asarray(self.uv, dtype=np.float64).reshape(-1, 2)
        self.faces = np.asarray(self.faces, dtype=np.int32).reshape(-1, 3)

    @property
    def n_vertices(self) -> int:
        return len(self.uv)

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    @property
    def uv_real(self) -> np.ndarray:
        """원본 단위로 되돌린 UV"""
        return self.uv * float(self.scale)

    @property
    def bounds(self) -> np.ndarray:
        """2D 경계 [[min_u, min_v], [max_u, max_v]]"""
        if self._bounds is None:
            if self.uv.size == 0:
                self._bounds = np.zeros((2, 2), dtype=np.float64)
            else:
                self._bounds = np.array([self.uv.min(axis=0), self.uv.max(axis=0)])
        return self._bounds

    @property
    def extents(self) -> np.ndarray:
        """2D 크기 [width, height]"""
        return self.bounds[1] - self.bounds[0]

    @property
    def width(self) -> float:
        """실제 너비 (원본 단위)"""
        return float(self.extents[0] * self.scale)

    @property
    def height(self) -> float:
        """실제 높이 (원본 단위)"""
        return float(self.extents[1] * self.scale)

    @property
    def mean_distortion(self) -> float:
        """평균 왜곡도"""
        if self.distortion_per_face is None or len(self.distortion_per_face) == 0:
            return 0.0
        return float(np.mean(self.distortion_per_face))

    @property
    def max_distortion(self) -> float:
        """최대 왜곡도"""
        if self.distortion_per_face is None or len(self.distortion_per_face) == 0:
            return 0.0
        return float(np.max(self.distortion_per_face))

    def get_pixel_coordinates(self, width: int, height: int) -> np.ndarray:
        """
        UV를 픽셀 좌표로 변환

        The longer UV axis spans the image; aspect ratio is kept.

        Returns:
            (N, 2) 픽셀 좌표 배열 (y축은 이미지 좌표계로 뒤집힘)
        """
        if self.uv.size == 0:
            return np.zeros((0, 2), dtype=np.int32)
        ext = self.extents
        candidates = [
            (size - 1) / float(e)
            for size, e in ((width, ext[0]), (height, ext[1]))
            if float(e) > 1e-12
        ]
        s = min(candidates) if candidates else 0.0
        pixels = (self.uv - self.bounds[0]) * s
        pixels[:, 1] = (height - 1) - pixels[:, 1]
        return np.rint(pixels).astype(np.int32)


def signed_areas_2d(uv: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """면별 2D signed area (반시계 = 양수)"""
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    if faces.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)
    tri = np.asarray(uv, dtype=np.float64)[faces]
    e1 = tri[:, 1] - tri[:, 0]
    e2 = tri[:, 2] - tri[:, 0]
    return 0.5 * (e1[:, 0] * e2[:, 1] - e1[:, 1] * e2[:, 0])


def compute_face_distortion(vertices: np.ndarray, faces: np.ndarray, uv_real: np.ndarray) -> np.ndarray:
    """
    각 면의 왜곡도 계산 (0 = 왜곡 없음)

    Mean of an area-ratio term and an edge-stretch term; ``uv_real`` must be
    in the same units as ``vertices``.
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    if faces.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)

    tri3 = vertices[faces]
    e1_3d = tri3[:, 1] - tri3[:, 0]
    e2_3d = tri3[:, 2] - tri3[:, 0]
    area_3d = np.linalg.norm(np.cross(e1_3d, e2_3d), axis=1) / 2

    area_2d = np.abs(signed_areas_2d(uv_real, faces))
    tri2 = np.asarray(uv_real, dtype=np.float64)[faces]
    e1_2d = tri2[:, 1] - tri2[:, 0]
    e2_2d = tri2[:, 2] - tri2[:, 0]

    def _ratio(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        hi = np.maximum(a, b)
        lo = np.minimum(a, b)
        out = np.zeros_like(hi)
        ok = hi > 1e-10
        out[ok] = lo[ok] / hi[ok]
        return out

    area_distortion = 1.0 - _ratio(area_2d, area_3d)

    len1_3d = np.linalg.norm(e1_3d, axis=1)
    len2_3d = np.linalg.norm(e2_3d, axis=1)
    len1_2d = np.linalg.norm(e1_2d, axis=1)
    len2_2d = np.linalg.norm(e2_2d, axis=1)
    stretch_distortion = 1.0 - (_ratio(len1_2d, len1_3d) + _ratio(len2_2d, len2_3d)) / 2

    distortions = (area_distortion + stretch_distortion) / 2
    degenerate = (area_3d < 1e-10) | (area_2d < 1e-10)
    distortions[degenerate] = 1.0
    return np.clip(distortions, 0, 1)


class UVFlattener:
    """
    UV 펼침 세션

    Owns one mesh, its half-edge topology, the seam set and the last UV
    result. Not thread-safe; callers serialize access.
    """

    def __init__(self, smoothing_iterations: Optional[int] = None,
                 smoothing_alpha: Optional[float] = None,
                 pin_boundary: Optional[bool] = None):
        """
        Args:
            smoothing_iterations: 라플라시안 완화 반복 횟수 (기본 DEFAULTS)
            smoothing_alpha: 이웃 평균 가중치 (기본 DEFAULTS)
            pin_boundary: 경계 정점 고정 여부 (기본 DEFAULTS)
        """
        self.smoothing_iterations = int(
            DEFAULTS.smoothing_iterations if smoothing_iterations is None else smoothing_iterations
        )
        self.smoothing_alpha = float(DEFAULTS.smoothing_alpha if smoothing_alpha is None else smoothing_alpha)
        self.pin_boundary = bool(DEFAULTS.pin_boundary if pin_boundary is None else pin_boundary)

        self._mesh = MeshData(vertices=np.zeros((0, 3)), faces=np.zeros((0, 3)))
        self._topology: Optional[HalfEdgeMesh] = None
        self._seams = SeamRegistry()
        self._uv = np.zeros((0, 2), dtype=np.float64)
        self._result: Optional[FlattenedMesh] = None
        self._error = ""

    # ------------------------------------------------------------------
    # Mesh / seam state
    # ------------------------------------------------------------------
    def set_mesh(self, vertices: Union[Sequence[float], np.ndarray],
                 faces: Union[Sequence[int], np.ndarray], unit: str = 'mm') -> None:
        """
        평탄화된 정점/면 배열로 메쉬 설정

        Raises:
            ValueError: 배열 형식이 잘못된 경우
        """
        self.load(MeshData.from_flat_arrays(vertices, faces, unit=unit))

    def load(self, mesh: MeshData) -> None:
        """
        메쉬 로드 (이전 토폴로지, 결과, 시임은 모두 폐기)

        Raises:
            ValueError: NaN/Inf 좌표 또는 범위를 벗어난 면 인덱스
        """
        mesh.validate()
        self._mesh = MeshData(
            vertices=np.array(mesh.vertices, dtype=np.float64, copy=True),
            faces=np.array(mesh.faces, dtype=np.int32, copy=True),
            unit=mesh.unit,
            filepath=mesh.filepath,
            vertex_colors=None if mesh.vertex_colors is None else np.array(mesh.vertex_colors, copy=True),
        )
        self._topology = HalfEdgeMesh(self._mesh.vertices, self._mesh.faces)
        self._seams.clear_seams()
        self._uv = np.zeros((0, 2), dtype=np.float64)
        self._result = None
        self._error = ""

        _LOGGER.debug(
            "Mesh loaded: %d vertices, %d faces, %d boundary vertices",
            self._mesh.n_vertices,
            self._mesh.n_faces,
            int(np.count_nonzero(self._topology.is_boundary_vertex)),
        )

    def add_seam_edge(self, v1: int, v2: int) -> None:
        self._seams.add_seam_edge(v1, v2)

    def clear_seams(self) -> None:
        self._seams.clear_seams()

    def add_seams_from_vertex_colors(self, **thresholds) -> int:
        """
        빨간 정점 색으로 표시된 엣지를 시임에 추가

        Keyword arguments are passed to ``seams_from_vertex_colors``
        (``red_min``, ``green_max``, ``blue_max``).

        Returns:
            새로 추가된 시임 엣지 수
        """
        before = len(self._seams)
        seams_from_vertex_colors(self._mesh, self._seams, **thresholds)
        return len(self._seams) - before

    @property
    def mesh(self) -> MeshData:
        return self._mesh

    @property
    def topology(self) -> Optional[HalfEdgeMesh]:
        return self._topology

    @property
    def seams(self) -> SeamRegistry:
        return self._seams

    # ------------------------------------------------------------------
    # Flatten
    # ------------------------------------------------------------------
    def flatten(self) -> bool:
        """
        현재 메쉬를 펼칩니다.

        Returns:
            성공 여부. 실패 시 ``error``에 메시지가 남고 UV 버퍼는 비워진다.
        """
        self._error = ""
        self._uv = np.zeros((0, 2), dtype=np.float64)
        self._result = None

        mesh = self._mesh
        if mesh.is_empty or self._topology is None:
            self._error = EMPTY_MESH_ERROR
            _LOGGER.info("Flatten rejected: %s (%d vertices, %d faces)",
                         EMPTY_MESH_ERROR, mesh.n_vertices, mesh.n_faces)
            return False

        try:
            result = self._flatten_all(mesh, self._topology)
        except Exception as e:
            self._error = f"Flatten failed: {type(e).__name__}: {e}"
            _LOGGER.exception("Flatten failed")
            return False

        self._result = result
        self._uv = result.uv.copy()
        return True

    def _flatten_all(self, mesh: MeshData, topology: HalfEdgeMesh) -> FlattenedMesh:
        face_list = list(range(mesh.n_faces))

        # 1) BFS 펼침
        unfold = flatten_piece(mesh.vertices, mesh.faces, face_list)
        uv = unfold.uv

        # 2) 라플라시안 완화
        pinned = topology.is_boundary_vertex if self.pin_boundary else None
        optimize_conformal(
            uv,
            mesh.faces,
            face_list,
            self.smoothing_iterations,
            alpha=self.smoothing_alpha,
            pinned=pinned,
        )

        # 3) 정규화 (면에 쓰인 정점만)
        used = np.unique(mesh.faces.reshape(-1))
        scale = normalize_uv(uv, used)

        if not np.isfinite(uv).all():
            log_once(_LOGGER, "flattener:non_finite_uv", logging.WARNING,
                     "Non-finite UV values replaced with 0")
            uv = np.nan_to_num(uv, nan=0.0, posinf=0.0, neginf=0.0)

        topo = topology.topology_info()
        if not topo.is_disk:
            _LOGGER.warning(
                "Mesh is not a disk (%s, euler=%d, %d boundary loops); expect overlaps or distortion",
                topo.kind, topo.euler, topo.boundary_loops,
            )

        n_components, _labels = topology.face_components()
        if n_components > 1:
            log_once(
                _LOGGER,
                "flattener:multiple_components",
                logging.WARNING,
                "Mesh has %d face-connected components; only the seed component is unfolded",
                n_components,
            )

        areas = signed_areas_2d(uv, mesh.faces)
        flipped = int(np.count_nonzero(areas < -1e-14))
        if flipped:
            _LOGGER.debug("Flatten: %d faces with reversed UV winding", flipped)

        distortion = compute_face_distortion(mesh.vertices, mesh.faces, uv * scale)

        return FlattenedMesh(
            uv=uv,
            faces=mesh.faces,
            original_mesh=mesh,
            distortion_per_face=distortion,
            scale=scale,
            unplaced_vertices=unfold.fallback_vertices,
            n_components=n_components,
            flipped_faces=flipped,
            topology=topo,
        )

    # ------------------------------------------------------------------
    # Result accessors
    # ------------------------------------------------------------------
    def get_uv_coords(self) -> np.ndarray:
        """[u0, v0, u1, v1, ...] 형태의 UV 배열"""
        return self._uv.reshape(-1).copy()

    def get_uv_count(self) -> int:
        return int(self._uv.shape[0])

    @property
    def uv_count(self) -> int:
        return self.get_uv_count()

    @property
    def uv(self) -> np.ndarray:
        return self._uv.copy()

    @property
    def error(self) -> str:
        return self._error

    def get_error(self) -> str:
        return self._error

    @property
    def result(self) -> Optional[FlattenedMesh]:
        return self._result


def flatten_mesh(mesh: MeshData, *,
                 seams: Optional[Sequence[tuple[int, int]]] = None,
                 color_seams: bool = False,
                 smoothing_iterations: Optional[int] = None,
                 smoothing_alpha: Optional[float] = None,
                 pin_boundary: Optional[bool] = None) -> tuple[FlattenedMesh, SeamRegistry]:
    """
    Convenience wrapper: 메쉬 하나를 새 세션으로 펼칩니다.

    Raises:
        ValueError: 잘못된 메쉬 배열 또는 펼침 실패 (빈 메쉬 등)
    """
    flattener = UVFlattener(
        smoothing_iterations=smoothing_iterations,
        smoothing_alpha=smoothing_alpha,
        pin_boundary=pin_boundary,
    )
    flattener.load(mesh)
    for v1, v2 in seams or ():
        flattener.add_seam_edge(v1, v2)
    if color_seams:
        flattener.add_seams_from_vertex_colors()

    if not flattener.flatten() or flattener.result is None:
        raise ValueError(flattener.error or "Flatten failed")
    return flattener.result, flattener.seams
