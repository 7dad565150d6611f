"""
UV Layout Renderer
UV 레이아웃 미리보기 이미지 생성 (PIL)

Draws the normalized [0, 1] UV square as a raster image: optional per-face
distortion tint, then the triangle wireframe.
"""

from dataclasses import dataclass
import numpy as np
from PIL import Image, ImageDraw

from .flattener import FlattenedMesh
from .runtime_defaults import DEFAULTS


@dataclass
class UVLayoutImage:
    """
    UV 레이아웃 이미지 결과

    Attributes:
        image: (H, W, 3) uint8 RGB 배열
        dpi: 해상도
    """
    image: np.ndarray
    dpi: int = 300

    @property
    def width_pixels(self) -> int:
        return self.image.shape[1]

    @property
    def height_pixels(self) -> int:
        return self.image.shape[0]

    def to_pil_image(self) -> Image.Image:
        """PIL Image로 변환"""
        return Image.fromarray(np.asarray(self.image, dtype=np.uint8))

    def save(self, filepath: str) -> None:
        self.to_pil_image().save(filepath, dpi=(self.dpi, self.dpi))


def distortion_color(value: float) -> tuple[int, int, int]:
    """0 → 초록, 1 → 빨강"""
    t = float(np.clip(value, 0.0, 1.0)) if np.isfinite(value) else 1.0
    return (int(round(255 * t)), int(round(200 * (1.0 - t))), 60)


class UVLayoutRenderer:
    """FlattenedMesh의 UV 레이아웃을 래스터 이미지로 그립니다."""

    def __init__(self, default_dpi: int = DEFAULTS.export_dpi,
                 padding: int = 8,
                 line_color: tuple[int, int, int] = (0, 0, 0),
                 background: tuple[int, int, int] = (255, 255, 255)):
        self.default_dpi = default_dpi
        self.padding = int(max(0, padding))
        self.line_color = line_color
        self.background = background

    def render(self, flattened: FlattenedMesh, resolution: int = DEFAULTS.render_resolution,
               color_by_distortion: bool = True) -> UVLayoutImage:
        """
        Args:
            flattened: 펼침 결과
            resolution: 정사각형 이미지 한 변의 픽셀 수
            color_by_distortion: 면을 왜곡도 색으로 채울지 여부

        Returns:
            UVLayoutImage
        """
        resolution = int(max(2 * self.padding + 2, resolution))
        img = Image.new('RGB', (resolution, resolution), self.background)
        draw = ImageDraw.Draw(img)

        span = float(resolution - 1 - 2 * self.padding)
        uv = np.asarray(flattened.uv, dtype=np.float64)
        px = np.empty_like(uv)
        px[:, 0] = self.padding + uv[:, 0] * span
        px[:, 1] = self.padding + (1.0 - uv[:, 1]) * span

        distortion = flattened.distortion_per_face
        fill_faces = (
            color_by_distortion
            and distortion is not None
            and len(distortion) == flattened.n_faces
        )

        for fi, face in enumerate(flattened.faces):
            pts = [(float(px[v, 0]), float(px[v, 1])) for v in face]
            if fill_faces:
                draw.polygon(pts, fill=distortion_color(float(distortion[fi])))
            draw.line(pts + [pts[0]], fill=self.line_color, width=1)

        return UVLayoutImage(image=np.asarray(img, dtype=np.uint8), dpi=self.default_dpi)
