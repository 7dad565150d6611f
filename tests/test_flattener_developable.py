import unittest

import numpy as np

from src.core.flattener import UVFlattener, flatten_mesh, signed_areas_2d
from src.core.mesh_loader import MeshData


def _make_half_cylinder_patch(
    *,
    radius: float = 1.0,
    length: float = 2.0,
    n_theta: int = 24,
    n_len: int = 8,
    closed: bool = False,
) -> MeshData:
    if closed:
        thetas = np.linspace(0.0, 2.0 * np.pi, int(n_theta), endpoint=False, dtype=np.float64)
    else:
        thetas = np.linspace(-0.5 * np.pi, 0.5 * np.pi, int(n_theta) + 1, dtype=np.float64)
    ys = np.linspace(0.0, float(length), int(n_len) + 1, dtype=np.float64)
    n_ring = len(thetas)

    vertices: list[list[float]] = []
    for y in ys:
        for th in thetas:
            vertices.append(
                [
                    float(radius) * float(np.cos(th)),
                    float(y),
                    float(radius) * float(np.sin(th)),
                ]
            )
    v = np.asarray(vertices, dtype=np.float64)

    def idx(iy: int, it: int) -> int:
        return int(iy) * n_ring + (int(it) % n_ring)

    faces: list[list[int]] = []
    for iy in range(int(n_len)):
        for it in range(int(n_theta)):
            a = idx(iy, it)
            b = idx(iy, it + 1)
            c = idx(iy + 1, it + 1)
            d = idx(iy + 1, it)
            faces.append([a, b, c])
            faces.append([a, c, d])
    f = np.asarray(faces, dtype=np.int32)
    return MeshData(vertices=v, faces=f, unit="cm")


def _edge_lengths(points: np.ndarray, faces: np.ndarray) -> np.ndarray:
    tri = points[faces]
    return np.linalg.norm(tri - np.roll(tri, -1, axis=1), axis=2)


class TestFlattenerDevelopable(unittest.TestCase):
    def test_half_cylinder_unrolls_to_real_size(self):
        mesh = _make_half_cylinder_patch()
        out, _seams = flatten_mesh(mesh)

        self.assertEqual(out.n_vertices, mesh.n_vertices)
        self.assertTrue(np.isfinite(out.uv).all())

        chord = 2.0 * np.sin(np.pi / 48.0)
        expected = sorted([24 * chord, 2.0])
        actual = sorted([out.width, out.height])
        np.testing.assert_allclose(actual, expected, rtol=1e-6)

        np.testing.assert_allclose(
            _edge_lengths(out.uv_real, mesh.faces),
            _edge_lengths(mesh.vertices, mesh.faces),
            rtol=1e-6,
        )
        self.assertLess(out.max_distortion, 1e-6)
        self.assertEqual(out.flipped_faces, 0)
        self.assertEqual(out.n_components, 1)
        self.assertEqual(out.unplaced_vertices, 0)

    def test_scale_follows_mesh_size(self):
        small, _ = flatten_mesh(_make_half_cylinder_patch(radius=1.0, length=2.0))
        large, _ = flatten_mesh(_make_half_cylinder_patch(radius=10.0, length=20.0))

        np.testing.assert_allclose(small.uv, large.uv, atol=1e-9)
        self.assertAlmostEqual(large.scale / small.scale, 10.0, places=6)

    def test_closed_tube_without_cut_still_flattens(self):
        mesh = _make_half_cylinder_patch(n_theta=16, n_len=4, closed=True)
        flattener = UVFlattener()
        flattener.load(mesh)

        self.assertTrue(flattener.flatten())
        self.assertEqual(flattener.get_uv_count(), mesh.n_vertices)
        uv = flattener.uv
        self.assertTrue(np.isfinite(uv).all())
        self.assertGreaterEqual(float(uv.min()), -1e-12)
        self.assertAlmostEqual(float((uv.max(axis=0) - uv.min(axis=0)).max()), 1.0, places=9)
        self.assertEqual(flattener.result.flipped_faces,
                         int(np.count_nonzero(signed_areas_2d(uv, mesh.faces) < -1e-14)))

    def test_non_developable_mesh_reports_distortion(self):
        vertices = np.array(
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )
        faces = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]], dtype=np.int32)
        out, _ = flatten_mesh(MeshData(vertices=vertices, faces=faces))

        self.assertTrue(np.isfinite(out.uv).all())
        self.assertGreater(out.max_distortion, 0.0)
        self.assertLessEqual(out.max_distortion, 1.0)

    def test_single_point_mesh_skips_normalization(self):
        vertices = np.full((3, 3), 2.5, dtype=np.float64)
        faces = np.array([[0, 1, 2]], dtype=np.int32)
        flattener = UVFlattener()
        flattener.load(MeshData(vertices=vertices, faces=faces))

        self.assertTrue(flattener.flatten())
        np.testing.assert_array_equal(flattener.uv, np.zeros((3, 2)))
        self.assertEqual(flattener.result.scale, 1.0)

    def test_topology_is_recorded_on_the_result(self):
        patch, _ = flatten_mesh(_make_half_cylinder_patch())
        self.assertEqual(patch.topology.kind, "disk")
        self.assertEqual(patch.topology.euler, 1)

        tube, _ = flatten_mesh(_make_half_cylinder_patch(n_theta=16, n_len=4, closed=True))
        self.assertEqual(tube.topology.kind, "cylinder")
        self.assertEqual(tube.topology.euler, 0)
        self.assertEqual(tube.topology.boundary_loops, 2)

    def test_closed_mesh_warns_but_still_flattens(self):
        vertices = np.array(
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )
        faces = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]], dtype=np.int32)
        flattener = UVFlattener()
        flattener.load(MeshData(vertices=vertices, faces=faces))

        with self.assertLogs("src.core.flattener", level="WARNING") as logs:
            self.assertTrue(flattener.flatten())

        self.assertTrue(any("not a disk" in line and "closed" in line for line in logs.output))
        self.assertEqual(flattener.result.topology.euler, 2)
        self.assertEqual(flattener.result.topology.boundary_loops, 0)


if __name__ == "__main__":
    unittest.main()
