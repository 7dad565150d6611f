"""
Mesh Loader Module
메쉬 입출력 및 데이터 구조 정의

Supports: OBJ, PLY, STL, OFF, GLTF/GLB formats (via trimesh)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Sequence, Union
import logging
import numpy as np

try:
    import trimesh
except ImportError:
    raise ImportError("trimesh is required. Install with: pip install trimesh")

_LOGGER = logging.getLogger(__name__)

ArrayLike = Union[Sequence[float], np.ndarray]


def _check_arrays(vertices: np.ndarray, faces: np.ndarray) -> None:
    if not np.isfinite(vertices).all():
        raise ValueError("vertex positions must be finite")
    n = vertices.size // 3
    if faces.size and (faces.min() < 0 or faces.max() >= n):
        raise ValueError(f"face index out of range [0, {n}): min={int(faces.min())}, max={int(faces.max())}")


@dataclass
class MeshData:
    """
    삼각형 메쉬 컨테이너

    Attributes:
        vertices: (N, 3) float64 정점 좌표
        faces: (M, 3) int32 면 인덱스
        unit: 좌표 단위 ('mm', 'cm', 'm')
        filepath: 원본 파일 경로 (메모리에서 만든 메쉬는 None)
        vertex_colors: (N, 3|4) 정점 색 (없으면 None)
    """
    vertices: np.ndarray
    faces: np.ndarray
    unit: str = 'mm'
    filepath: Optional[Path] = None
    vertex_colors: Optional[np.ndarray] = None

    # Computed properties cache
    _bounds: Optional[np.ndarray] = field(default=None, repr=False)
    _surface_area: Optional[float] = field(default=None, repr=False)

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int32).reshape(-1, 3)
        if self.vertex_colors is not None:
            colors = np.asarray(self.vertex_colors)
            self.vertex_colors = colors.reshape(len(colors), -1) if colors.size else None

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_faces(self) -> int:
        return int(self.faces.shape[0])

    @property
    def has_vertex_colors(self) -> bool:
        return self.vertex_colors is not None and len(self.vertex_colors) == self.n_vertices

    @property
    def is_empty(self) -> bool:
        """정점 또는 면이 하나도 없으면 True"""
        return self.n_vertices == 0 or self.n_faces == 0

    @property
    def bounds(self) -> np.ndarray:
        """경계 박스 [[min_x, min_y, min_z], [max_x, max_y, max_z]]"""
        if self._bounds is None:
            if self.n_vertices:
                self._bounds = np.stack([self.vertices.min(axis=0), self.vertices.max(axis=0)])
            else:
                self._bounds = np.zeros((2, 3), dtype=np.float64)
        return self._bounds

    @property
    def extents(self) -> np.ndarray:
        return self.bounds[1] - self.bounds[0]

    @property
    def surface_area(self) -> float:
        """총 표면적 (mesh.unit²)"""
        if self._surface_area is None:
            tri = self.vertices[self.faces]
            doubled = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
            self._surface_area = float(np.linalg.norm(doubled, axis=1).sum() / 2.0) if len(tri) else 0.0
        return self._surface_area

    def _directed_edges(self) -> np.ndarray:
        f = self.faces
        return np.concatenate([f[:, [0, 1]], f[:, [1, 2]], f[:, [2, 0]]]).astype(np.int64)

    def get_boundary_edges(self) -> np.ndarray:
        """
        경계 엣지 (K, 2), 면의 감김 방향을 따른 (origin, target) 순서

        An edge is on the boundary when exactly one face uses it.
        """
        if self.n_faces == 0:
            return np.zeros((0, 2), dtype=np.int32)

        directed = self._directed_edges()
        undirected = np.sort(directed, axis=1)
        _, inverse, counts = np.unique(undirected, axis=0, return_inverse=True, return_counts=True)
        single = counts[np.asarray(inverse).reshape(-1)] == 1
        return directed[single].astype(np.int32)

    def get_boundary_loops(self) -> List[np.ndarray]:
        """
        경계 루프 목록

        Each loop is an (L,) vertex index array following the boundary edge
        direction, without repeating the start vertex. Walks start from the
        smallest unused edge so the result is deterministic.
        """
        edges = self.get_boundary_edges()
        if len(edges) == 0:
            return []

        outgoing: dict[int, list[int]] = {}
        for a, b in edges.tolist():
            outgoing.setdefault(a, []).append(b)
        unused = {tuple(e) for e in edges.tolist()}

        loops: list[np.ndarray] = []
        while unused:
            start, curr = min(unused)
            unused.discard((start, curr))
            loop = [start]
            while curr != start:
                loop.append(curr)
                nxt = next((b for b in outgoing.get(curr, ()) if (curr, b) in unused), None)
                if nxt is None:
                    # 열린 경계 체인 (비다양체 등)
                    break
                unused.discard((curr, nxt))
                curr = nxt
            if len(loop) >= 3:
                loops.append(np.asarray(loop, dtype=np.int32))

        if len(loops) > 1:
            _LOGGER.debug("Mesh has %d boundary loops", len(loops))
        return loops

    def validate(self) -> None:
        """
        좌표 유한성 / 면 인덱스 범위 검사

        Raises:
            ValueError: NaN/Inf 좌표 또는 범위를 벗어난 인덱스
        """
        _check_arrays(self.vertices, self.faces)

    def to_trimesh(self, uv: Optional[np.ndarray] = None) -> 'trimesh.Trimesh':
        """
        trimesh 객체로 변환

        Args:
            uv: (N, 2) 정점별 UV. 주어지면 TextureVisuals로 첨부

        Raises:
            ValueError: uv 행 수가 정점 수와 다를 때
        """
        visual = None
        if uv is not None:
            uv = np.asarray(uv, dtype=np.float64).reshape(-1, 2)
            if len(uv) != self.n_vertices:
                raise ValueError(f"uv has {len(uv)} rows, expected {self.n_vertices}")
            visual = trimesh.visual.TextureVisuals(uv=uv)
        elif self.has_vertex_colors:
            visual = trimesh.visual.ColorVisuals(vertex_colors=self.vertex_colors)
        return trimesh.Trimesh(vertices=self.vertices, faces=self.faces, visual=visual, process=False)

    @classmethod
    def from_trimesh(cls, mesh: 'trimesh.Trimesh',
                     filepath: Optional[Path] = None,
                     unit: str = 'mm') -> 'MeshData':
        colors = None
        # 텍스처 visual에는 정점 색이 없음
        if getattr(mesh.visual, 'kind', None) == 'vertex':
            colors = np.asarray(mesh.visual.vertex_colors)
        return cls(
            vertices=np.asarray(mesh.vertices),
            faces=np.asarray(mesh.faces),
            unit=unit,
            filepath=filepath,
            vertex_colors=colors,
        )

    @classmethod
    def from_flat_arrays(cls, vertices: ArrayLike, faces: ArrayLike, unit: str = 'mm') -> 'MeshData':
        """
        [x0, y0, z0, x1, ...] / [a0, b0, c0, ...] 형태의 배열에서 생성 (입력은 복사됨)

        Already shaped (N, 3) / (M, 3) arrays are accepted as well.

        Raises:
            ValueError: 길이가 3의 배수가 아님, 정수가 아닌 인덱스,
                인덱스 범위 초과, NaN/Inf 좌표
        """
        v = np.array(vertices, dtype=np.float64, copy=True).reshape(-1)
        f = np.asarray(faces).reshape(-1)
        if v.size % 3:
            raise ValueError(f"vertex array length {v.size} is not a multiple of 3")
        if f.size % 3:
            raise ValueError(f"face array length {f.size} is not a multiple of 3")
        if f.size and not np.issubdtype(f.dtype, np.integer):
            if not np.all(np.isfinite(f)) or np.any(f != np.round(f)):
                raise ValueError("face indices must be integers")
        f = f.astype(np.int64)

        _check_arrays(v, f)

        return cls(vertices=v.reshape(-1, 3), faces=f.reshape(-1, 3), unit=unit)


class MeshLoader:
    """
    trimesh 기반 메쉬 파일 로더

    Supported formats:
        - OBJ (Wavefront)
        - PLY (Polygon File Format)
        - STL (Stereolithography)
        - OFF (Object File Format)
        - GLTF/GLB (GL Transmission Format)
    """

    SUPPORTED_FORMATS = {
        '.obj': 'Wavefront OBJ',
        '.ply': 'Polygon File Format',
        '.stl': 'Stereolithography',
        '.off': 'Object File Format',
        '.gltf': 'GL Transmission Format',
        '.glb': 'GL Transmission Format (Binary)',
    }

    def __init__(self, default_unit: str = 'mm'):
        """
        Args:
            default_unit: 기본 좌표 단위 ('mm', 'cm', 'm')
        """
        self.default_unit = default_unit

    @classmethod
    def get_supported_formats(cls) -> dict:
        return dict(cls.SUPPORTED_FORMATS)

    @staticmethod
    def _existing(filepath: Union[str, Path]) -> Path:
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")
        return filepath

    @staticmethod
    def _read(filepath: Path) -> 'trimesh.Trimesh':
        """파일을 단일 Trimesh로 읽기 (Scene은 병합)"""
        try:
            # 정점 순서 유지: 입력 인덱스와 UV 인덱스가 일치해야 함
            loaded = trimesh.load(str(filepath), force='mesh', process=False, maintain_order=True)
        except TypeError:
            # 구버전 trimesh 호환
            loaded = trimesh.load(str(filepath), force='mesh')

        if isinstance(loaded, trimesh.Scene):
            parts = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
            if not parts:
                raise ValueError(f"No valid mesh found in: {filepath}")
            loaded = parts[0] if len(parts) == 1 else trimesh.util.concatenate(parts)

        if not isinstance(loaded, trimesh.Trimesh):
            raise TypeError(f"Expected trimesh.Trimesh, got {type(loaded).__name__}")
        return loaded

    def load(self, filepath: Union[str, Path], unit: Optional[str] = None) -> MeshData:
        """
        메쉬 파일 로드

        Raises:
            FileNotFoundError: 파일이 존재하지 않음
            ValueError: 지원하지 않는 포맷 / 메쉬가 없는 Scene
        """
        filepath = self._existing(filepath)
        ext = filepath.suffix.lower()
        if ext not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {ext}\n"
                f"Supported formats: {list(self.SUPPORTED_FORMATS.keys())}"
            )

        mesh = MeshData.from_trimesh(self._read(filepath), filepath=filepath, unit=unit or self.default_unit)
        _LOGGER.info("Loaded %s: %d vertices, %d faces", filepath.name, mesh.n_vertices, mesh.n_faces)
        return mesh

    def get_file_info(self, filepath: Union[str, Path]) -> dict:
        """
        파일 정보 미리보기

        Read errors are reported under the ``error`` key rather than raised.
        """
        filepath = self._existing(filepath)
        ext = filepath.suffix.lower()

        info = {
            'filename': filepath.name,
            'format': self.SUPPORTED_FORMATS.get(ext, 'Unknown'),
            'extension': ext,
            'file_size_mb': round(filepath.stat().st_size / (1024 * 1024), 2),
        }
        try:
            mesh = self._read(filepath)
            info['n_vertices'] = int(mesh.vertices.shape[0])
            info['n_faces'] = int(mesh.faces.shape[0])
            info['has_uv'] = getattr(mesh.visual, 'uv', None) is not None
            info['has_vertex_colors'] = getattr(mesh.visual, 'kind', None) == 'vertex'
        except Exception as e:
            info['error'] = str(e)
        return info


class MeshProcessor:
    """메쉬 저장 유틸리티"""

    def save_mesh(self, mesh_data: Union[MeshData, 'trimesh.Trimesh'], filepath: Union[str, Path],
                  uv: Optional[np.ndarray] = None) -> str:
        """
        메쉬를 파일로 저장 (포맷은 확장자로 결정)

        Args:
            mesh_data: MeshData 또는 trimesh.Trimesh 객체
            filepath: 저장할 파일 경로
            uv: (N, 2) 정점별 UV (OBJ에서는 vt 레코드로 기록됨)

        Returns:
            저장된 경로 문자열
        """
        mesh = mesh_data.to_trimesh(uv=uv) if isinstance(mesh_data, MeshData) else mesh_data
        mesh.export(str(filepath))
        _LOGGER.info("Saved mesh: %s", filepath)
        return str(filepath)
