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

"""Tests for surface topology checks: closedness and orientation."""

import pytest

from tetramesh.exceptions import (
    DegenerateInputError,
    InconsistentOrientationError,
    OpenSurfaceError,
)
from tetramesh.primitives import cube, l_prism, octahedron, sphere_icosahedral
from tetramesh.surface import (
    TriangleMesh,
    check_closed,
    check_consistent_orientation,
    compute_signed_volume,
    extract_directed_edges,
    find_open_edges,
    is_closed,
)


def _cube_with_faces(faces) -> TriangleMesh:
    base = cube.load()
    return TriangleMesh(points=base.points, faces=faces)


class TestClosedness:
    """Tests for open-edge detection."""

    @pytest.mark.parametrize(
        "surface",
        [cube.load(), octahedron.load(), l_prism.load(), sphere_icosahedral.load()],
        ids=["cube", "octahedron", "l_prism", "icosphere"],
    )
    def test_primitives_are_closed(self, surface):
        """All primitives are watertight."""
        assert is_closed(surface)
        check_closed(surface)

    def test_directed_edges(self, unit_cube):
        """A triangle surface has three directed edges per face."""
        edges = extract_directed_edges(unit_cube)
        assert edges.shape == (36, 2)

    def test_edge_face_counts(self, unit_cube):
        """Cube edges and face diagonals are each used by two triangles."""
        counts = unit_cube.edge_face_counts()
        assert len(counts) == 18
        assert set(counts.values()) == {2}
        assert all(u < v for u, v in counts)

        opened = _cube_with_faces(unit_cube.faces.tolist()[:11]).edge_face_counts()
        assert list(opened.values()).count(1) == 3

    def test_missing_face(self, unit_cube):
        """Removing one triangle opens its three edges."""
        faces = unit_cube.faces.tolist()[:11]
        surface = _cube_with_faces(faces)
        assert not is_closed(surface)
        assert len(find_open_edges(surface)) == 3

        with pytest.raises(OpenSurfaceError, match="not closed") as excinfo:
            check_closed(surface)
        assert len(excinfo.value.edges) == 3
        removed = unit_cube.faces[11].tolist()
        for u, v in excinfo.value.edges:
            assert u in removed and v in removed

    def test_non_manifold_edge(self, unit_cube):
        """An edge shared by more than two faces is reported as open."""
        faces = unit_cube.faces.tolist()
        faces.append([0, 1, 6])
        with pytest.raises(OpenSurfaceError):
            check_closed(_cube_with_faces(faces))

    def test_no_faces(self):
        """A surface without faces is not closed."""
        surface = TriangleMesh(points=[(0, 0, 0)])
        assert not is_closed(surface)
        with pytest.raises(OpenSurfaceError):
            check_closed(surface)


class TestOrientation:
    """Tests for consistent, outward orientation."""

    def test_cube_volume(self, unit_cube):
        """The divergence theorem gives the cube volume."""
        assert compute_signed_volume(unit_cube) == pytest.approx(1.0)
        check_consistent_orientation(unit_cube)

    def test_octahedron_volume(self, unit_octahedron):
        """The unit octahedron encloses 4/3."""
        assert compute_signed_volume(unit_octahedron) == pytest.approx(4.0 / 3.0)

    def test_polygon_faces(self):
        """Quadrilateral faces contribute their full area."""
        assert compute_signed_volume(cube.load(size=2.0, quads=True)) == pytest.approx(8.0)

    def test_one_flipped_face(self, unit_cube):
        """A single reversed triangle repeats three directed edges."""
        faces = unit_cube.faces.tolist()
        a, b, c = faces[5]
        faces[5] = [a, c, b]
        surface = _cube_with_faces(faces)
        check_closed(surface)
        with pytest.raises(InconsistentOrientationError, match="consistently oriented") as excinfo:
            check_consistent_orientation(surface)
        assert len(excinfo.value.edges) == 3

    def test_all_faces_inward(self, unit_cube):
        """Reversing every face gives a negative volume."""
        faces = [[a, c, b] for a, b, c in unit_cube.faces.tolist()]
        surface = _cube_with_faces(faces)
        assert compute_signed_volume(surface) == pytest.approx(-1.0)
        with pytest.raises(InconsistentOrientationError, match="inward"):
            check_consistent_orientation(surface)

    def test_flat_surface(self):
        """Two back-to-back triangles are closed and oriented but enclose nothing."""
        surface = TriangleMesh(
            points=[(0, 0, 0), (1, 0, 0), (0, 1, 0)], faces=[(0, 1, 2), (0, 2, 1)]
        )
        check_closed(surface)
        with pytest.raises(DegenerateInputError, match="encloses no volume"):
            check_consistent_orientation(surface)
