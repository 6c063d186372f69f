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

"""L-shaped prism: a non-convex closed surface.

The cross-section is the L polygon
``(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)`` of area 3, extruded along
z. The reentrant edge at ``(1, 1)`` makes the convex hull differ from the
solid, so discretizing it exercises interior carving.
"""

from tetramesh.surface.polymesh import TriangleMesh

_OUTLINE = ((0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2))

# Triangulation of the outline, counter-clockwise seen from +z.
_CAP_TRIANGLES = ((0, 1, 2), (0, 2, 3), (0, 3, 5), (3, 4, 5))


def load(height: float = 1.0, scale: float = 1.0) -> TriangleMesh:
    """Create the L-prism surface.

    Parameters
    ----------
    height : float
        Extent along z.
    scale : float
        Uniform scale applied to the cross-section.

    Returns
    -------
    TriangleMesh
        12 vertices and 20 triangles enclosing a volume of
        ``3 * scale**2 * height``.

    Examples
    --------
    >>> mesh = load()
    >>> mesh.n_vertices, mesh.n_faces
    (12, 20)
    """
    if height <= 0 or scale <= 0:
        raise ValueError(f"height and scale must be positive, got {height=}, {scale=}")

    n = len(_OUTLINE)
    points = [(scale * x, scale * y, 0.0) for x, y in _OUTLINE]
    points += [(scale * x, scale * y, height) for x, y in _OUTLINE]

    faces = []
    for a, b, c in _CAP_TRIANGLES:
        faces.append((a, c, b))  # bottom, seen from -z
        faces.append((a + n, b + n, c + n))  # top
    for i in range(n):
        j = (i + 1) % n
        faces.extend([(i, j, j + n), (i, j + n, i + n)])
    return TriangleMesh(points=points, faces=faces)
