import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from src.core.flattener import flatten_mesh
from src.core.mesh_loader import MeshData
from src.core.uv_layout_renderer import UVLayoutRenderer, distortion_color


def _square() -> MeshData:
    vertices = np.array(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]],
        dtype=np.float64,
    )
    faces = np.array([[0, 1, 2], [0, 2, 3]], dtype=np.int32)
    return MeshData(vertices=vertices, faces=faces)


class TestUVLayoutRenderer(unittest.TestCase):
    def test_render_square_layout(self):
        flattened, _ = flatten_mesh(_square())
        image = UVLayoutRenderer(default_dpi=150, padding=4).render(flattened, resolution=64)

        self.assertEqual(image.image.shape, (64, 64, 3))
        self.assertEqual(image.image.dtype, np.uint8)
        self.assertEqual(image.width_pixels, 64)
        self.assertEqual(image.height_pixels, 64)
        self.assertEqual(image.dpi, 150)

        # padding stays background, the undistorted interior is tinted green
        np.testing.assert_array_equal(image.image[0, 0], [255, 255, 255])
        np.testing.assert_array_equal(image.image[15, 20], list(distortion_color(0.0)))
        # wireframe crosses the layout
        self.assertTrue(np.any(np.all(image.image == 0, axis=2)))

    def test_render_without_distortion_colors(self):
        flattened, _ = flatten_mesh(_square())
        image = UVLayoutRenderer(padding=4).render(flattened, resolution=64, color_by_distortion=False)

        np.testing.assert_array_equal(image.image[15, 20], [255, 255, 255])

    def test_tiny_resolution_is_clamped(self):
        flattened, _ = flatten_mesh(_square())
        image = UVLayoutRenderer(padding=8).render(flattened, resolution=1)

        self.assertEqual(image.width_pixels, 18)

    def test_save_png_with_dpi(self):
        flattened, _ = flatten_mesh(_square())
        image = UVLayoutRenderer(default_dpi=200).render(flattened, resolution=32)

        with tempfile.TemporaryDirectory() as tmpdir:
            out = Path(tmpdir) / "layout.png"
            image.save(str(out))
            with Image.open(out) as img:
                self.assertEqual(img.size, (32, 32))
                self.assertEqual(img.mode, "RGB")
                dpi = img.info.get("dpi")
            self.assertIsNotNone(dpi)
            self.assertEqual(round(float(dpi[0])), 200)

    def test_distortion_color(self):
        self.assertEqual(distortion_color(0.0), (0, 200, 60))
        self.assertEqual(distortion_color(1.0), (255, 0, 60))
        self.assertEqual(distortion_color(5.0), (255, 0, 60))
        self.assertEqual(distortion_color(float("nan")), (255, 0, 60))


if __name__ == "__main__":
    unittest.main()
