# SPDX-FileCopyrightText: Copyright (c) 2023 - 2026 NVIDIA CORPORATION & AFFILIATES.
# SPDX-FileCopyrightText: All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for boundary meshes: PolygonMesh and TriangleMesh."""

import math

import pytest
import torch

from tetramesh.exceptions import DegenerateFaceError, IndexingError
from tetramesh.surface import MutablePolyMesh, PolygonMesh, PolyMesh, TriangleMesh


def _unit_square_polygon_mesh() -> PolygonMesh:
    mesh = PolygonMesh()
    for p in [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]:
        mesh.add_vertex(p)
    return mesh


###############################################################################
# Construction
###############################################################################


class TestConstruction:
    """Tests for building meshes vertex by vertex and in bulk."""

    def test_capabilities(self):
        """Both concrete meshes provide the read and builder capabilities."""
        for cls in (PolygonMesh, TriangleMesh):
            mesh = cls()
            assert isinstance(mesh, PolyMesh)
            assert isinstance(mesh, MutablePolyMesh)

    def test_empty_mesh(self):
        """A new mesh has no vertices and no faces."""
        mesh = PolygonMesh()
        assert mesh.n_vertices == 0
        assert mesh.n_faces == 0
        assert mesh.points.shape == (0, 3)
        assert mesh.normals.shape == (0, 3)

    def test_add_vertex_returns_sequential_indices(self):
        """Vertex indices are assigned in insertion order."""
        mesh = TriangleMesh()
        assert [mesh.add_vertex((i, 0, 0)) for i in range(3)] == [0, 1, 2]
        assert mesh.get_vertex(2) == (2.0, 0.0, 0.0)

    def test_integer_coordinates_are_floats(self):
        """Integer coordinates are stored as floats."""
        mesh = TriangleMesh()
        mesh.add_vertex((1, 2, 3))
        assert all(isinstance(x, float) for x in mesh.get_vertex(0))
        assert mesh.points.dtype == torch.float64

    @pytest.mark.parametrize(
        "vertex", [(0.0, 1.0), (0.0, 1.0, 2.0, 3.0), (math.nan, 0.0, 0.0), (math.inf, 0, 0)]
    )
    def test_add_invalid_vertex(self, vertex):
        """Vertices need exactly three finite coordinates."""
        mesh = TriangleMesh()
        with pytest.raises(ValueError):
            mesh.add_vertex(vertex)
        assert mesh.n_vertices == 0

    def test_bulk_construction(self):
        """Points and faces can be passed to the constructor, as lists or tensors."""
        points = torch.tensor([[0.0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
        faces = torch.tensor([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])
        mesh = TriangleMesh(points=points, faces=faces)
        assert mesh.n_vertices == 4
        assert mesh.n_faces == 4
        assert torch.equal(mesh.faces, faces)

    def test_normals_without_faces(self):
        """Normals are meaningless without faces."""
        with pytest.raises(ValueError, match="without faces"):
            TriangleMesh(points=[(0, 0, 0)], normals=[(0, 0, 1)])

    def test_normal_count_mismatch(self):
        """One normal per face is required."""
        with pytest.raises(ValueError, match="one normal per face"):
            TriangleMesh(
                points=[(0, 0, 0), (1, 0, 0), (0, 1, 0)],
                faces=[(0, 1, 2)],
                normals=[(0, 0, 1), (0, 0, 1)],
            )

    def test_repr(self):
        """The repr reports the counts."""
        assert repr(TriangleMesh()) == "TriangleMesh(n_vertices=0, n_faces=0)"


###############################################################################
# Faces and normals
###############################################################################


class TestFaces:
    """Tests for add_face, normals, and their error contract."""

    def test_computed_normal(self):
        """The default normal follows the right-hand rule."""
        mesh = _unit_square_polygon_mesh()
        assert mesh.add_face([0, 1, 2, 3]) == 0
        assert mesh.get_normal(0) == (0.0, 0.0, 1.0)

    def test_reversed_winding_flips_normal(self):
        """Clockwise winding gives the opposite normal."""
        mesh = _unit_square_polygon_mesh()
        mesh.add_face([3, 2, 1, 0])
        assert mesh.get_normal(0) == (0.0, 0.0, -1.0)

    def test_explicit_normal_is_normalized(self):
        """An explicit normal is scaled to unit length."""
        mesh = _unit_square_polygon_mesh()
        mesh.add_face([0, 1, 2], normal=(0.0, 0.0, 5.0))
        assert mesh.get_normal(0) == (0.0, 0.0, 1.0)

    def test_zero_explicit_normal(self):
        """A zero normal is rejected and nothing is appended."""
        mesh = _unit_square_polygon_mesh()
        with pytest.raises(DegenerateFaceError):
            mesh.add_face([0, 1, 2], normal=(0.0, 0.0, 0.0))
        assert mesh.n_faces == 0

    def test_collinear_face(self):
        """Collinear leading vertices have no normal."""
        mesh = TriangleMesh(points=[(0, 0, 0), (1, 0, 0), (2, 0, 0)])
        with pytest.raises(DegenerateFaceError, match="collinear"):
            mesh.add_face([0, 1, 2])
        assert mesh.n_faces == 0
        assert mesh.normals.shape == (0, 3)

    def test_repeated_vertex_face(self):
        """A face repeating a vertex is degenerate."""
        mesh = TriangleMesh(points=[(0, 0, 0), (1, 0, 0), (0, 1, 0)])
        with pytest.raises(DegenerateFaceError):
            mesh.add_face([0, 1, 1])

    def test_unknown_vertex(self):
        """Faces may only reference existing vertices."""
        mesh = TriangleMesh(points=[(0, 0, 0), (1, 0, 0), (0, 1, 0)])
        with pytest.raises(IndexingError, match="Vertex not contained in mesh."):
            mesh.add_face([0, 1, 3])
        with pytest.raises(IndexingError):
            mesh.add_face([-1, 0, 1])

    def test_too_few_vertices(self):
        """Faces need at least three vertices."""
        mesh = _unit_square_polygon_mesh()
        with pytest.raises(ValueError):
            mesh.add_face([0, 1])

    def test_triangle_mesh_rejects_polygons(self):
        """TriangleMesh faces have exactly three vertices."""
        mesh = TriangleMesh(points=[(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)])
        with pytest.raises(ValueError, match="exactly 3"):
            mesh.add_face([0, 1, 2, 3])

    def test_normals_tensor(self, unit_cube):
        """Every cube normal is an outward unit axis vector."""
        normals = unit_cube.normals
        assert normals.shape == (12, 3)
        lengths = torch.linalg.vector_norm(normals, dim=-1)
        assert torch.allclose(lengths, torch.ones(12, dtype=torch.float64))
        centroids = unit_cube.points[unit_cube.faces].mean(dim=1)
        outward = ((centroids - 0.5) * normals).sum(dim=-1)
        assert (outward > 0).all()


###############################################################################
# Indexing
###############################################################################


class TestIndexing:
    """Out-of-range accessors raise IndexingError, never wrap."""

    @pytest.mark.parametrize("accessor", ["get_vertex", "get_face", "get_normal"])
    @pytest.mark.parametrize("index", [-1, 12, 100])
    def test_out_of_range(self, unit_cube, accessor, index):
        """Negative and too-large indices fail."""
        with pytest.raises(IndexingError, match="Indexing failed."):
            getattr(unit_cube, accessor)(index)

    def test_indexing_error_is_index_error(self):
        """IndexingError can be caught as a built-in IndexError."""
        with pytest.raises(IndexError):
            TriangleMesh().get_vertex(0)

    def test_iter_faces(self, unit_cube):
        """iter_faces yields faces in index order."""
        faces = list(unit_cube.iter_faces())
        assert len(faces) == 12
        assert faces[3] == unit_cube.get_face(3)


###############################################################################
# Conversion
###############################################################################


class TestToTriangleMesh:
    """Tests for PolygonMesh.to_triangle_mesh."""

    def test_triangles_copied_unchanged(self):
        """Triangle faces keep their indices and normals."""
        mesh = PolygonMesh(points=[(0, 0, 0), (1, 0, 0), (0, 1, 0)], faces=[(0, 1, 2)])
        triangles = mesh.to_triangle_mesh()
        assert isinstance(triangles, TriangleMesh)
        assert triangles.n_vertices == 3
        assert triangles.get_face(0) == (0, 1, 2)

    def test_quad_fanned_around_centroid(self):
        """A quad becomes four triangles around an appended centroid vertex."""
        mesh = _unit_square_polygon_mesh()
        mesh.add_face([0, 1, 2, 3])
        triangles = mesh.to_triangle_mesh()

        assert triangles.n_vertices == 5
        assert triangles.get_vertex(4) == (0.5, 0.5, 0.0)
        assert triangles.n_faces == 4
        for index in range(4):
            assert triangles.get_face(index)[0] == 4
            assert triangles.get_normal(index) == (0.0, 0.0, 1.0)

    def test_source_is_unchanged(self):
        """Conversion builds a new mesh."""
        mesh = _unit_square_polygon_mesh()
        mesh.add_face([0, 1, 2, 3])
        mesh.to_triangle_mesh()
        assert mesh.n_vertices == 4
        assert mesh.n_faces == 1

    def test_triangle_mesh_is_its_own_conversion(self, unit_cube):
        """A TriangleMesh needs no conversion."""
        assert unit_cube.to_triangle_mesh() is unit_cube
