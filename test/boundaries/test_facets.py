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

"""Tests for facet extraction and boundary detection on cell meshes."""

import pytest
import torch

from tetramesh.boundaries import (
    categorize_facets_by_count,
    extract_candidate_facets,
    get_boundary_cells,
    get_boundary_faces,
    get_boundary_vertices,
    get_overshared_faces,
)
from tetramesh.volume import CellMesh


@pytest.fixture
def split_cube_mesh():
    """Unit cube split into six tetrahedra around the diagonal 0-7."""
    points = torch.tensor(
        [[x, y, z] for x in (0.0, 1.0) for y in (0.0, 1.0) for z in (0.0, 1.0)],
        dtype=torch.float64,
    )
    # Index = 4x + 2y + z
    cells = torch.tensor(
        [
            [0, 4, 6, 7],
            [0, 4, 5, 7],
            [0, 2, 6, 7],
            [0, 2, 3, 7],
            [0, 1, 5, 7],
            [0, 1, 3, 7],
        ]
    )
    return CellMesh(points=points, cells=cells)


class TestFacetExtraction:
    """Tests for extract_candidate_facets and categorize_facets_by_count."""

    def test_faces_of_tetrahedra(self):
        """Each tetrahedron yields four sorted faces."""
        facets, parents = extract_candidate_facets(torch.tensor([[0, 1, 2, 3], [4, 5, 6, 7]]))
        assert facets.shape == (8, 3)
        assert (facets[:, :-1] <= facets[:, 1:]).all()
        assert parents.tolist() == [0, 0, 0, 0, 1, 1, 1, 1]

    def test_edges_of_tetrahedra(self):
        """Codimension 2 gives the six edges."""
        edges, _ = extract_candidate_facets(torch.tensor([[0, 1, 2, 3]]), manifold_codimension=2)
        assert edges.shape == (6, 2)

    def test_invalid_codimension(self):
        """Codimension must leave at least one vertex."""
        with pytest.raises(ValueError):
            extract_candidate_facets(torch.tensor([[0, 1, 2, 3]]), manifold_codimension=4)
        with pytest.raises(ValueError):
            extract_candidate_facets(torch.tensor([[0, 1, 2, 3]]), manifold_codimension=0)

    @pytest.mark.parametrize(
        "target, expected",
        [("all", 3), ("boundary", 1), ("interior", 1), ("shared", 2), ([1, 3], 2)],
    )
    def test_categorize(self, target, expected):
        """Filtering by count keeps the matching unique facets."""
        candidates = torch.tensor([[0, 1], [0, 1], [1, 2], [2, 3], [2, 3], [2, 3]])
        unique, inverse, counts = categorize_facets_by_count(candidates, target)
        assert len(unique) == expected
        assert len(inverse) == len(candidates)

    def test_categorize_invalid_target(self):
        """Unknown filters are rejected."""
        with pytest.raises(ValueError):
            categorize_facets_by_count(torch.tensor([[0, 1]]), "everything")


class TestBoundaryDetection:
    """Tests for boundary faces, cells, and vertices."""

    def test_split_cube_boundary(self, split_cube_mesh):
        """Six tetrahedra of a cube expose twelve boundary triangles."""
        assert get_boundary_faces(split_cube_mesh).shape == (12, 3)
        assert len(get_overshared_faces(split_cube_mesh)) == 0

    def test_boundary_cells_and_vertices(self, split_cube_mesh):
        """Every cell and every corner touches the boundary."""
        assert get_boundary_cells(split_cube_mesh).tolist() == list(range(6))
        assert get_boundary_vertices(split_cube_mesh).all()

    def test_empty_mesh(self):
        """An empty mesh has no boundary."""
        mesh = CellMesh(points=torch.zeros(0, 3), cells=torch.zeros(0, 4, dtype=torch.int64))
        assert get_boundary_faces(mesh).shape == (0, 3)
        assert get_boundary_cells(mesh).shape == (0,)
        assert get_boundary_vertices(mesh).shape == (0,)

    def test_overshared_face(self):
        """Three cells on one face are non-conforming."""
        points = torch.tensor(
            [[0.0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1], [0, 0, -1], [0.2, 0.2, 2]]
        )
        cells = torch.tensor([[0, 1, 2, 3], [0, 2, 1, 4], [0, 1, 2, 5]])
        mesh = CellMesh(points=points, cells=cells)
        assert get_overshared_faces(mesh).tolist() == [[0, 1, 2]]
