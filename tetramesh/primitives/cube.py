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

"""Axis-aligned cube surface.

Closed, outward oriented. Either 12 triangles or 6 quadrilaterals.
"""

from tetramesh.surface.polymesh import PolygonMesh, TriangleMesh

# Corner order: bottom face counter-clockwise from the origin, then the top face.
_CORNERS = (
    (0, 0, 0),
    (1, 0, 0),
    (1, 1, 0),
    (0, 1, 0),
    (0, 0, 1),
    (1, 0, 1),
    (1, 1, 1),
    (0, 1, 1),
)

# Counter-clockwise seen from outside.
_QUADS = (
    (0, 3, 2, 1),  # z = 0
    (4, 5, 6, 7),  # z = 1
    (0, 1, 5, 4),  # y = 0
    (3, 7, 6, 2),  # y = 1
    (0, 4, 7, 3),  # x = 0
    (1, 2, 6, 5),  # x = 1
)


def load(
    size: float = 1.0,
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
    quads: bool = False,
) -> TriangleMesh | PolygonMesh:
    """Create the surface of the cube ``origin + [0, size]^3``.

    Parameters
    ----------
    size : float
        Side length of the cube.
    origin : tuple[float, float, float]
        Minimum corner.
    quads : bool
        If True, return a :class:`PolygonMesh` with one quadrilateral per
        side; otherwise a :class:`TriangleMesh` with two triangles per side.

    Returns
    -------
    TriangleMesh | PolygonMesh
        8 vertices and 12 triangles (or 6 quadrilaterals).

    Examples
    --------
    >>> mesh = load()
    >>> mesh.n_vertices, mesh.n_faces
    (8, 12)
    >>> load(quads=True).n_faces
    6
    """
    if size <= 0:
        raise ValueError(f"size must be positive, got {size=}")

    points = [
        tuple(o + size * c for o, c in zip(origin, corner)) for corner in _CORNERS
    ]
    if quads:
        return PolygonMesh(points=points, faces=_QUADS)

    triangles = []
    for a, b, c, d in _QUADS:
        triangles.extend([(a, b, c), (a, c, d)])
    return TriangleMesh(points=points, faces=triangles)
