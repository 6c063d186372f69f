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

"""Tests for batched tetrahedron geometry."""

import math

import pytest
import torch

from tetramesh.geometry import (
    compute_circumcenters,
    compute_dihedral_angles,
    compute_min_dihedral_angles,
    compute_radius_ratios,
    compute_signed_volumes,
)

REGULAR_DIHEDRAL = math.acos(1.0 / 3.0)


@pytest.fixture
def regular_tetrahedron():
    """Regular tetrahedron inscribed in the cube [-1, 1]^3 (edge 2 * sqrt(2))."""
    return torch.tensor(
        [[[1.0, 1.0, 1.0], [1.0, -1.0, -1.0], [-1.0, 1.0, -1.0], [-1.0, -1.0, 1.0]]],
        dtype=torch.float64,
    )


class TestVolumes:
    """Tests for signed volumes."""

    def test_corner(self, unit_tetrahedron_points, device):
        """The corner tetrahedron has volume 1/6 and is positive."""
        vertices = unit_tetrahedron_points.to(device).unsqueeze(0)
        assert compute_signed_volumes(vertices).item() == pytest.approx(1.0 / 6.0)

    def test_swap_flips_sign(self, unit_tetrahedron_points):
        """Swapping two vertices negates the volume."""
        swapped = unit_tetrahedron_points[[1, 0, 2, 3]].unsqueeze(0)
        assert compute_signed_volumes(swapped).item() == pytest.approx(-1.0 / 6.0)

    def test_regular(self, regular_tetrahedron):
        """Edge length a has volume a^3 / (6 sqrt 2)."""
        edge = 2.0 * math.sqrt(2.0)
        expected = edge**3 / (6.0 * math.sqrt(2.0))
        assert compute_signed_volumes(regular_tetrahedron).abs().item() == pytest.approx(expected)


class TestDihedralAngles:
    """Tests for dihedral angles."""

    def test_regular(self, regular_tetrahedron, device):
        """All six angles of the regular tetrahedron are arccos(1/3)."""
        angles = compute_dihedral_angles(regular_tetrahedron.to(device))
        expected = torch.full((1, 6), REGULAR_DIHEDRAL, dtype=torch.float64, device=device)
        assert torch.allclose(angles, expected)

    def test_corner(self, unit_tetrahedron_points):
        """Three right angles at the corner edges, arccos(1/sqrt 3) at the others."""
        angles = compute_dihedral_angles(unit_tetrahedron_points.unsqueeze(0))[0]
        assert torch.allclose(angles[:3], torch.full((3,), math.pi / 2, dtype=torch.float64))
        assert torch.allclose(
            angles[3:], torch.full((3,), math.acos(1 / math.sqrt(3)), dtype=torch.float64)
        )

    def test_flat_tetrahedron(self):
        """A flat tetrahedron has a zero minimum angle."""
        flat = torch.tensor(
            [[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0]]],
            dtype=torch.float64,
        )
        assert compute_min_dihedral_angles(flat).item() == pytest.approx(0.0, abs=1e-12)

    def test_sliver_is_small(self):
        """A nearly flat sliver has a small minimum angle."""
        sliver = torch.tensor(
            [[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.01]]],
            dtype=torch.float64,
        )
        assert compute_min_dihedral_angles(sliver).item() < math.radians(5.0)

    def test_empty(self):
        """No tetrahedra, no angles."""
        assert compute_min_dihedral_angles(torch.zeros(0, 4, 3)).shape == (0,)


class TestCircumcentersAndRadiusRatios:
    """Tests for circumcenters of tetrahedra and triangles, and radius ratios."""

    def test_tetrahedron_circumcenter(self, unit_tetrahedron_points):
        """The corner tetrahedron's circumcenter is the cube center."""
        center = compute_circumcenters(unit_tetrahedron_points.unsqueeze(0))[0]
        assert torch.allclose(center, torch.full((3,), 0.5, dtype=torch.float64))

    def test_triangle_circumcenter_stays_in_plane(self):
        """Triangles in 3D get the in-plane circumcenter."""
        triangle = torch.tensor(
            [[[0.0, 0.0, 2.0], [2.0, 0.0, 2.0], [0.0, 2.0, 2.0]]], dtype=torch.float64
        )
        center = compute_circumcenters(triangle)[0]
        assert torch.allclose(center, torch.tensor([1.0, 1.0, 2.0], dtype=torch.float64))

    def test_radius_ratio(self, regular_tetrahedron):
        """The regular tetrahedron has radius ratio 1, a sliver nearly 0."""
        assert compute_radius_ratios(regular_tetrahedron).item() == pytest.approx(1.0)
        sliver = torch.tensor(
            [[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 1e-6]]],
            dtype=torch.float64,
        )
        assert compute_radius_ratios(sliver).item() < 1e-3
