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

"""Schönhardt polyhedron: a twisted triangular prism.

The top triangle is rotated against the bottom one and each side quad is
split along its reflex diagonal. The result is a non-convex polyhedron that
cannot be tetrahedralized without adding vertices, so discretizing it forces
boundary recovery to insert Steiner points.
"""

import math

from tetramesh.surface.polymesh import TriangleMesh


def load(twist: float = math.pi / 6, height: float = 1.0, radius: float = 1.0) -> TriangleMesh:
    """Create the twisted prism.

    Parameters
    ----------
    twist : float
        Rotation of the top triangle, in radians, in ``(0, pi / 3)``.
    height : float
        Distance between the bottom and top triangles.
    radius : float
        Circumradius of both triangles.

    Returns
    -------
    TriangleMesh
        6 vertices (bottom ``0..2``, top ``3..5``) and 8 triangles.

    Examples
    --------
    >>> mesh = load()
    >>> mesh.n_vertices, mesh.n_faces
    (6, 8)
    """
    if not 0 < twist < math.pi / 3:
        raise ValueError(f"twist must lie in (0, pi / 3), got {twist=}")
    if height <= 0 or radius <= 0:
        raise ValueError(f"height and radius must be positive, got {height=}, {radius=}")

    points = []
    for z, offset in ((0.0, 0.0), (height, twist)):
        for k in range(3):
            angle = 2 * math.pi * k / 3 + offset
            points.append((radius * math.cos(angle), radius * math.sin(angle), z))

    faces = [(0, 2, 1), (3, 4, 5)]
    for k in range(3):
        k1 = (k + 1) % 3
        # Diagonal (k, 3 + k1) spans the larger angle and lies inside the hull
        faces.append((k, k1, 3 + k1))
        faces.append((k, 3 + k1, 3 + k))

    return TriangleMesh(points=points, faces=faces)
