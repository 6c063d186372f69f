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

"""Tests for the exact orientation and insphere predicates."""

import itertools

import pytest

from tetramesh.geometry import insphere, orient3d, segment_crosses_triangle

A, B, C, D = (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)
CUBE_CORNERS = list(itertools.product((0.0, 1.0), repeat=3))


def _parity(perm) -> int:
    inversions = sum(
        1 for i in range(len(perm)) for j in range(i + 1, len(perm)) if perm[i] > perm[j]
    )
    return inversions % 2


class TestOrient3d:
    """Tests for orient3d."""

    def test_positive_and_negative(self):
        """Swapping two vertices flips the sign."""
        assert orient3d(A, B, C, D) == 1
        assert orient3d(B, A, C, D) == -1

    @pytest.mark.parametrize("perm", list(itertools.permutations(range(4))))
    def test_sign_follows_permutation_parity(self, perm):
        """Even permutations keep the orientation; odd ones flip it."""
        points = (A, B, C, D)
        expected = 1 if _parity(perm) == 0 else -1
        assert orient3d(*(points[i] for i in perm)) == expected

    def test_coplanar_cube_face(self):
        """Four corners of a cube face are exactly coplanar."""
        assert orient3d((0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)) == 0

    def test_nearly_coplanar_is_exact(self):
        """A perturbation far below the float error bound is still resolved."""
        lifted = (0.5, 0.5, 1e-30)
        assert orient3d(A, B, C, lifted) == 1
        assert orient3d(A, B, C, (0.5, 0.5, -1e-30)) == -1

    def test_large_coordinates(self):
        """Translating far from the origin does not change an exact zero."""
        shift = 1e8
        points = [(x + shift, y + shift, z) for x, y, z in ((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0))]
        assert orient3d(*points) == 0


class TestInsphere:
    """Tests for insphere on positively oriented tetrahedra."""

    def test_inside_outside(self):
        """Points inside the circumsphere are positive, outside negative."""
        assert insphere(A, B, C, D, (0.25, 0.25, 0.25)) == 1
        assert insphere(A, B, C, D, (2.0, 2.0, 2.0)) == -1

    def test_cospherical_cube_corner(self):
        """The eight corners of a cube are exactly cospherical."""
        a, b, c, d = (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)
        assert orient3d(a, b, c, d) == 1
        for corner in CUBE_CORNERS:
            assert insphere(a, b, c, d, corner) == 0

    def test_vertex_is_on_sphere(self):
        """A vertex of the tetrahedron lies on its own circumsphere."""
        assert insphere(A, B, C, D, B) == 0


class TestSegmentCrossesTriangle:
    """Tests for the open segment / open triangle crossing test."""

    def test_proper_crossing(self):
        """A segment through the interior crosses."""
        assert segment_crosses_triangle((0.2, 0.2, -1.0), (0.2, 0.2, 1.0), A, B, C)

    def test_segment_misses(self):
        """A segment passing beside the triangle does not cross."""
        assert not segment_crosses_triangle((2.0, 2.0, -1.0), (2.0, 2.0, 1.0), A, B, C)

    def test_segment_on_one_side(self):
        """Both endpoints above the plane: no crossing."""
        assert not segment_crosses_triangle((0.2, 0.2, 0.5), (0.2, 0.2, 1.0), A, B, C)

    def test_touching_edge_is_not_crossing(self):
        """Passing through a triangle edge does not count."""
        assert not segment_crosses_triangle((0.5, 0.0, -1.0), (0.5, 0.0, 1.0), A, B, C)

    def test_endpoint_on_plane(self):
        """An endpoint in the triangle's plane does not count."""
        assert not segment_crosses_triangle((0.2, 0.2, 0.0), (0.2, 0.2, 1.0), A, B, C)
