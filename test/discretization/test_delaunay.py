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

"""Tests for the incremental Delaunay engine and its local flips."""

import itertools

import pytest
import torch

from tetramesh.discretization._delaunay import (
    DelaunayTetrahedralization,
    boundary_chain,
    edge_key,
    face_key,
    oriented_faces,
    polygon_triangulations,
)
from tetramesh.discretization._recovery import SurfaceConstraints, recover_boundary
from tetramesh.exceptions import MeshInvariantError
from tetramesh.geometry import compute_signed_volumes, insphere
from tetramesh.primitives import twisted_prism


def _random_points(n: int, seed: int = 0) -> list[list[float]]:
    generator = torch.Generator().manual_seed(seed)
    return torch.rand(n, 3, generator=generator, dtype=torch.float64).tolist()


def _build(points) -> DelaunayTetrahedralization:
    tri = DelaunayTetrahedralization(points)
    for vertex in range(len(points)):
        tri.insert_vertex(vertex)
    return tri


def _total_volume(tri: DelaunayTetrahedralization) -> float:
    coords = torch.tensor(
        [[tri.points[v] for v in tet] for tet in tri.tets.values()], dtype=torch.float64
    )
    return compute_signed_volumes(coords).sum().item()


def _assert_conforming(tri: DelaunayTetrahedralization) -> None:
    """Every cell is positive and every face has one or two owners."""
    for tet in tri.tets.values():
        assert tri.orient(*tet) > 0
    owners = {}
    for tid, tet in tri.tets.items():
        for face in oriented_faces(tet):
            owners.setdefault(face_key(*face), []).append(tid)
    assert all(len(tids) <= 2 for tids in owners.values())
    hull = [key for key, tids in owners.items() if len(tids) == 1]
    assert sorted(hull) == sorted(
        face_key(*face) for face in oriented_faces(tuple(tri.super_vertices))
    )


class TestHelpers:
    """Tests for keys, chains, and polygon triangulations."""

    def test_keys_are_order_free(self):
        """Face and edge keys ignore vertex order."""
        assert face_key(3, 1, 2) == face_key(2, 3, 1) == (1, 2, 3)
        assert edge_key(5, 2) == edge_key(2, 5) == (2, 5)

    @pytest.mark.parametrize("n, count", [(3, 1), (4, 2), (5, 5), (6, 14), (7, 42)])
    def test_polygon_triangulation_counts(self, n, count):
        """A convex n-gon has Catalan(n - 2) triangulations of n - 2 triangles."""
        triangulations = polygon_triangulations(n)
        assert len(triangulations) == count
        assert all(len(t) == n - 2 for t in triangulations)
        assert len(set(triangulations)) == count

    def test_chain_of_two_cells(self):
        """The shared face of two glued cells cancels."""
        chain = boundary_chain([(0, 1, 2, 3), (0, 2, 1, 4)])
        assert len(chain) == 6
        assert (0, 1, 2) not in chain


class TestInsertion:
    """Tests for Bowyer-Watson insertion."""

    def test_super_tetrahedron_only(self):
        """Before insertion there is exactly the bounding cell."""
        tri = DelaunayTetrahedralization([(0, 0, 0), (1, 1, 1)])
        assert len(tri.tets) == 1
        assert tri.super_vertices == (2, 3, 4, 5)
        assert all(tri.is_super_vertex(v) for v in tri.super_vertices)
        assert not tri.is_super_vertex(0)

    def test_empty_point_set(self):
        """There is nothing to bound without points."""
        with pytest.raises(ValueError):
            DelaunayTetrahedralization([])

    def test_random_points_are_delaunay(self):
        """No inserted point lies strictly inside any circumsphere."""
        points = _random_points(25)
        tri = _build(points)
        _assert_conforming(tri)
        p = tri.points
        for tet in tri.tets.values():
            for vertex in range(len(points)):
                if vertex not in tet:
                    assert insphere(*(p[v] for v in tet), p[vertex]) <= 0

    def test_volume_is_conserved(self):
        """Insertion never changes the union of the cells."""
        tri = DelaunayTetrahedralization(_random_points(10, seed=1))
        before = _total_volume(tri)
        for vertex in range(10):
            tri.insert_vertex(vertex)
            assert _total_volume(tri) == pytest.approx(before, rel=1e-9)

    def test_cospherical_cube_corners(self):
        """The eight corners of a cube, all cospherical, tetrahedralize."""
        corners = [list(c) for c in itertools.product((0.0, 1.0), repeat=3)]
        tri = _build(corners)
        _assert_conforming(tri)
        used = {v for tet in tri.tets.values() for v in tet}
        assert set(range(8)) <= used

    def test_duplicate_point(self):
        """Inserting a point that coincides with a vertex is an invariant violation."""
        tri = _build([(0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)])
        duplicate = tri.add_point((1, 0, 0))
        with pytest.raises(MeshInvariantError, match="duplicates"):
            tri.insert_vertex(duplicate)

    def test_determinism(self):
        """Identical input gives identical cells in identical order."""
        points = _random_points(15, seed=2)
        assert list(_build(points).tets.values()) == list(_build(points).tets.values())

    def test_locate(self):
        """Located cells contain the query point."""
        tri = _build(_random_points(12, seed=3))
        query = (0.5, 0.5, 0.5)
        tet = tri.tets[tri.locate(query)]
        coords = [tri.points[v] for v in tet]
        for i in range(4):
            replaced = list(coords)
            replaced[i] = query
            volume = compute_signed_volumes(torch.tensor([replaced], dtype=torch.float64))
            assert volume.item() >= -1e-12


class TestFlips:
    """Tests for 2-3 flips, edge removal, and replacement validation."""

    @pytest.fixture
    def bipyramid(self):
        """Two cells sharing a face whose apexes see each other through it."""
        points = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (0.3, 0.3, 1), (0.3, 0.3, -1)]
        tri = DelaunayTetrahedralization(points)
        tri.tets.clear()
        tri._face_tets.clear()
        tri._vertex_tets.clear()
        tri._tet_keys.clear()
        for tet in [(0, 1, 2, 3), (0, 2, 1, 4)]:
            tri._add(tet)
        return tri

    def test_flip23_and_back(self, bipyramid):
        """A 2-3 flip creates the apex edge; removing it restores two cells."""
        tri = bipyramid
        candidate = tri.flip23((0, 1, 2))
        assert candidate is not None
        created = tri.replace(*candidate)
        assert created is not None
        assert len(tri.tets) == 3
        assert tri.has_edge(3, 4)
        assert not tri.has_face((0, 1, 2))

        removals = list(tri.edge_removals(3, 4))
        assert len(removals) == 1
        old_ids, new_tets, triangles = removals[0]
        assert [face_key(*t) for t in triangles] == [(0, 1, 2)]

    def test_locked_face_blocks_flip(self, bipyramid):
        """A locked face cannot be flipped away."""
        candidate = bipyramid.flip23((0, 1, 2))
        assert bipyramid.replace(*candidate, locked_faces={(0, 1, 2)}) is None
        assert len(bipyramid.tets) == 2

    def test_invalid_replacement(self, bipyramid):
        """Cells with a different boundary are rejected."""
        old_ids = list(bipyramid.tets)
        assert not bipyramid.is_valid_replacement(old_ids, [(0, 1, 2, 3)])
        assert not bipyramid.is_valid_replacement(old_ids, [])

    def test_flip_without_second_cell(self, bipyramid):
        """Hull faces cannot be flipped."""
        assert bipyramid.flip23((0, 1, 3)) is None

    def test_edge_ring(self):
        """The ring around an interior edge is a closed cycle."""
        tri = _build(_random_points(20, seed=4))
        for tet in list(tri.tets.values())[:10]:
            for u, v in itertools.combinations(tet, 2):
                found = tri.edge_ring(u, v)
                if found is None:
                    continue
                tids, ring = found
                assert len(tids) == len(ring)
                assert set(tids) == set(tri.edge_tets(u, v))

    def test_retain(self):
        """retain drops every other cell and its incidences."""
        tri = _build(_random_points(8, seed=5))
        keep = list(tri.tets)[:3]
        tri.retain(keep)
        assert list(tri.tets) == keep


class TestRecovery:
    """Tests for boundary recovery on the raw tetrahedralization."""

    @pytest.mark.parametrize("twist", [0.3, 0.6, 0.9])
    def test_every_subface_present(self, twist):
        """After recovery each subface, including split ones, is a face."""
        surface = twisted_prism.load(twist=twist)
        tri = _build(surface.points.tolist())
        triangles = surface.faces.tolist()
        constraints = SurfaceConstraints(triangles, range(len(triangles)))
        n_steiner = recover_boundary(tri, constraints, max_steiner_points=16)

        assert n_steiner >= 1
        assert len(constraints.faces) > len(triangles)
        assert set(constraints.origins.values()) == set(range(len(triangles)))
        for face in constraints.faces.values():
            assert tri.has_face(face_key(*face))

    def test_constraints_reject_duplicates(self):
        """A triangle listed twice is an internal error."""
        with pytest.raises(MeshInvariantError, match="duplicated"):
            SurfaceConstraints([(0, 1, 2), (2, 1, 0)], [0, 1])
