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

"""Icosahedral sphere surface.

A sphere created by subdividing an icosahedron and projecting vertices
onto the sphere surface. This produces a more uniform triangulation than
UV-parameterized spheres, and every vertex is cospherical, which makes it a
stress test for Delaunay tie handling.
"""

import math

import torch

from tetramesh.surface.polymesh import TriangleMesh

_PHI = (1.0 + math.sqrt(5.0)) / 2.0

_ICOSAHEDRON_POINTS = (
    (-1, _PHI, 0),
    (1, _PHI, 0),
    (-1, -_PHI, 0),
    (1, -_PHI, 0),
    (0, -1, _PHI),
    (0, 1, _PHI),
    (0, -1, -_PHI),
    (0, 1, -_PHI),
    (_PHI, 0, -1),
    (_PHI, 0, 1),
    (-_PHI, 0, -1),
    (-_PHI, 0, 1),
)

# Counter-clockwise seen from outside.
_ICOSAHEDRON_FACES = (
    (0, 11, 5),
    (0, 5, 1),
    (0, 1, 7),
    (0, 7, 10),
    (0, 10, 11),
    (1, 5, 9),
    (5, 11, 4),
    (11, 10, 2),
    (10, 7, 6),
    (7, 1, 8),
    (3, 9, 4),
    (3, 4, 2),
    (3, 2, 6),
    (3, 6, 8),
    (3, 8, 9),
    (4, 9, 5),
    (2, 4, 11),
    (6, 2, 10),
    (8, 6, 7),
    (9, 8, 1),
)


def load(radius: float = 1.0, subdivisions: int = 1) -> TriangleMesh:
    """Create a sphere by subdividing an icosahedron and projecting to sphere.

    Parameters
    ----------
    radius : float
        Radius of the sphere.
    subdivisions : int
        Number of subdivision levels to apply. Each level quadruples the
        triangle count:
        - 0: 20 triangles (base icosahedron)
        - 1: 80 triangles
        - 2: 320 triangles

    Returns
    -------
    TriangleMesh
        Closed, outward oriented sphere surface.

    Examples
    --------
    >>> mesh = load(radius=1.0, subdivisions=1)
    >>> mesh.n_faces  # 20 * 4 = 80 triangles
    80
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius=}")
    if subdivisions < 0:
        raise ValueError(f"subdivisions must be non-negative, got {subdivisions=}")

    points = [tuple(float(x) for x in p) for p in _ICOSAHEDRON_POINTS]
    faces = list(_ICOSAHEDRON_FACES)

    ### Split every triangle into four through its edge midpoints
    for _ in range(subdivisions):
        midpoints: dict[tuple[int, int], int] = {}

        def midpoint(a: int, b: int) -> int:
            key = (min(a, b), max(a, b))
            if key not in midpoints:
                points.append(
                    tuple((points[a][d] + points[b][d]) / 2.0 for d in range(3))
                )
                midpoints[key] = len(points) - 1
            return midpoints[key]

        refined = []
        for a, b, c in faces:
            ab, bc, ca = midpoint(a, b), midpoint(b, c), midpoint(c, a)
            refined.extend([(a, ab, ca), (b, bc, ab), (c, ca, bc), (ab, bc, ca)])
        faces = refined

    ### Project all points onto the sphere surface
    coords = torch.tensor(points, dtype=torch.float64)
    coords = coords / torch.linalg.vector_norm(coords, dim=-1, keepdim=True) * radius
    return TriangleMesh(points=coords, faces=faces)
