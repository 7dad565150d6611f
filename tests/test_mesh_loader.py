import tempfile
import unittest
from pathlib import Path

import numpy as np

from src.core.mesh_loader import MeshData, MeshLoader, MeshProcessor


SQUARE_OBJ = """\
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
f 1 2 3
f 1 3 4
"""


def _square() -> MeshData:
    vertices = np.array(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]],
        dtype=np.float64,
    )
    faces = np.array([[0, 1, 2], [0, 2, 3]], dtype=np.int32)
    return MeshData(vertices=vertices, faces=faces, unit="cm")


class TestMeshData(unittest.TestCase):
    def test_basic_properties(self):
        mesh = _square()

        self.assertEqual(mesh.n_vertices, 4)
        self.assertEqual(mesh.n_faces, 2)
        self.assertFalse(mesh.is_empty)
        np.testing.assert_allclose(mesh.extents, [1.0, 1.0, 0.0])
        self.assertAlmostEqual(mesh.surface_area, 1.0)

    def test_empty_arrays_are_shaped(self):
        mesh = MeshData(vertices=[], faces=[])

        self.assertEqual(mesh.vertices.shape, (0, 3))
        self.assertEqual(mesh.faces.shape, (0, 3))
        self.assertTrue(mesh.is_empty)
        self.assertEqual(mesh.surface_area, 0.0)
        np.testing.assert_array_equal(mesh.bounds, np.zeros((2, 3)))

    def test_boundary_loops(self):
        mesh = _square()

        self.assertEqual(len(mesh.get_boundary_edges()), 4)
        loops = mesh.get_boundary_loops()
        self.assertEqual(len(loops), 1)
        self.assertEqual(sorted(loops[0].tolist()), [0, 1, 2, 3])

    def test_closed_mesh_has_no_boundary_loops(self):
        vertices = np.eye(4, 3)
        faces = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]], dtype=np.int32)
        mesh = MeshData(vertices=vertices, faces=faces)

        self.assertEqual(mesh.get_boundary_edges().shape, (0, 2))
        self.assertEqual(mesh.get_boundary_loops(), [])

    def test_from_flat_arrays(self):
        mesh = MeshData.from_flat_arrays(
            [0, 0, 0, 1, 0, 0, 0, 1, 0],
            [0, 1, 2],
            unit="m",
        )
        self.assertEqual(mesh.vertices.dtype, np.float64)
        self.assertEqual(mesh.faces.dtype, np.int32)
        self.assertEqual(mesh.vertices.shape, (3, 3))
        self.assertEqual(mesh.unit, "m")

        shaped = MeshData.from_flat_arrays(np.eye(3), np.array([[0, 1, 2]]))
        self.assertEqual(shaped.n_faces, 1)

        whole = MeshData.from_flat_arrays([0, 0, 0, 1, 0, 0, 0, 1, 0], [0.0, 1.0, 2.0])
        np.testing.assert_array_equal(whole.faces, [[0, 1, 2]])

    def test_from_flat_arrays_copies_input(self):
        verts = np.zeros(9)
        mesh = MeshData.from_flat_arrays(verts, [0, 1, 2])
        verts[:] = 5.0
        self.assertEqual(float(mesh.vertices.max()), 0.0)

    def test_from_flat_arrays_rejects_malformed_input(self):
        bad_inputs = [
            ([0, 0, 0, 1], [0, 0, 0]),
            ([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1]),
            ([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, 3]),
            ([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, -1]),
            ([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, 1.5]),
            ([0, 0, 0, 1, 0, 0, 0, 1, float("inf")], [0, 1, 2]),
        ]
        for vertices, faces in bad_inputs:
            with self.assertRaises(ValueError):
                MeshData.from_flat_arrays(vertices, faces)

    def test_to_trimesh_attaches_uv(self):
        mesh = _square()
        uv = mesh.vertices[:, :2].copy()

        tm = mesh.to_trimesh(uv=uv)
        self.assertEqual(len(tm.vertices), 4)
        np.testing.assert_allclose(tm.visual.uv, uv)

        with self.assertRaises(ValueError):
            mesh.to_trimesh(uv=uv[:3])

    def test_trimesh_round_trip(self):
        mesh = _square()
        back = MeshData.from_trimesh(mesh.to_trimesh(), unit="cm")

        np.testing.assert_allclose(back.vertices, mesh.vertices)
        np.testing.assert_array_equal(back.faces, mesh.faces)


class TestMeshLoader(unittest.TestCase):
    def test_load_obj(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "square.obj"
            path.write_text(SQUARE_OBJ, encoding="utf-8")

            mesh = MeshLoader(default_unit="cm").load(path)

            self.assertEqual(mesh.n_vertices, 4)
            self.assertEqual(mesh.n_faces, 2)
            self.assertEqual(mesh.unit, "cm")
            self.assertEqual(mesh.filepath, path)
            self.assertAlmostEqual(mesh.surface_area, 1.0)

            info = MeshLoader().get_file_info(path)
            self.assertEqual(info["n_vertices"], 4)
            self.assertEqual(info["n_faces"], 2)
            self.assertEqual(info["extension"], ".obj")

    def test_missing_and_unsupported_files(self):
        loader = MeshLoader()
        with self.assertRaises(FileNotFoundError):
            loader.load("does-not-exist.obj")

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "notes.txt"
            path.write_text("hello", encoding="utf-8")
            with self.assertRaises(ValueError):
                loader.load(path)

    def test_supported_formats_is_a_copy(self):
        formats = MeshLoader.get_supported_formats()
        formats.pop(".obj")
        self.assertIn(".obj", MeshLoader.SUPPORTED_FORMATS)


class TestMeshProcessor(unittest.TestCase):
    def test_save_obj_with_uv(self):
        mesh = _square()
        uv = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])

        with tempfile.TemporaryDirectory() as tmpdir:
            out = Path(tmpdir) / "square.uv.obj"
            saved = MeshProcessor().save_mesh(mesh, out, uv=uv)

            self.assertEqual(saved, str(out))
            text = out.read_text(encoding="utf-8")
            self.assertIn("v ", text)
            self.assertIn("vt ", text)

            reloaded = MeshLoader().load(out)
            self.assertEqual(reloaded.n_faces, 2)
            self.assertAlmostEqual(reloaded.surface_area, 1.0)


class TestVertexColors(unittest.TestCase):
    def test_colors_survive_trimesh_round_trip(self):
        mesh = _square()
        mesh.vertex_colors = np.array(
            [[255, 0, 0, 255], [255, 255, 255, 255], [255, 0, 0, 255], [255, 255, 255, 255]],
            dtype=np.uint8,
        )

        tm = mesh.to_trimesh()
        self.assertEqual(tm.visual.kind, "vertex")

        back = MeshData.from_trimesh(tm)
        self.assertTrue(back.has_vertex_colors)
        np.testing.assert_array_equal(back.vertex_colors[:, :3], mesh.vertex_colors[:, :3])

    def test_plain_mesh_has_no_colors(self):
        mesh = _square()
        self.assertFalse(mesh.has_vertex_colors)
        self.assertFalse(MeshData.from_trimesh(mesh.to_trimesh()).has_vertex_colors)

    def test_uv_export_takes_precedence_over_colors(self):
        mesh = _square()
        mesh.vertex_colors = np.full((4, 4), 255, dtype=np.uint8)
        uv = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])

        self.assertEqual(mesh.to_trimesh(uv=uv).visual.kind, "texture")


class TestValidate(unittest.TestCase):
    def test_valid_mesh_passes(self):
        _square().validate()

    def test_out_of_range_index(self):
        mesh = MeshData(vertices=np.zeros((3, 3)), faces=np.array([[0, 1, 3]]))
        with self.assertRaisesRegex(ValueError, "out of range"):
            mesh.validate()

    def test_non_finite_vertex(self):
        mesh = MeshData(vertices=np.array([[0.0, 0.0, np.inf]] * 3), faces=np.array([[0, 1, 2]]))
        with self.assertRaisesRegex(ValueError, "finite"):
            mesh.validate()


if __name__ == "__main__":
    unittest.main()
