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

"""Regular octahedron surface, vertices on the coordinate axes."""

from itertools import product

from tetramesh.surface.polymesh import TriangleMesh


def load(radius: float = 1.0) -> TriangleMesh:
    """Create an octahedron with vertices at distance ``radius`` from the origin.

    Parameters
    ----------
    radius : float
        Distance of each vertex from the origin.

    Returns
    -------
    TriangleMesh
        6 vertices and 8 triangles, one per octant. The enclosed volume is
        ``4 / 3 * radius**3``.

    Examples
    --------
    >>> mesh = load()
    >>> mesh.n_vertices, mesh.n_faces
    (6, 8)
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius=}")

    # Vertex 2 * axis is on the positive half-axis, 2 * axis + 1 on the negative
    points = []
    for axis in range(3):
        for sign in (1.0, -1.0):
            point = [0.0, 0.0, 0.0]
            point[axis] = sign * radius
            points.append(tuple(point))

    faces = []
    for sx, sy, sz in product((0, 1), repeat=3):
        face = (0 + sx, 2 + sy, 4 + sz)
        # An odd number of negative half-axes flips the winding
        if (sx + sy + sz) % 2 == 1:
            face = (face[1], face[0], face[2])
        faces.append(face)
    return TriangleMesh(points=points, faces=faces)
