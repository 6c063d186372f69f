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

"""Axis-aligned box whose sides are subdivided into a grid of triangles.

Every side is a large planar facet made of many coplanar triangles. Rotating
the box turns each facet into a slightly creased one, which is the common
case for surfaces exported from CAD tools.
"""

from tetramesh.surface.polymesh import TriangleMesh


def load(
    divisions: tuple[int, int, int] = (1, 1, 1),
    spacing: float = 1.0,
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> TriangleMesh:
    """Create the surface of a box of ``divisions`` grid cells per axis.

    Parameters
    ----------
    divisions : tuple[int, int, int]
        Number of grid cells along x, y and z.
    spacing : float
        Side length of a grid cell.
    origin : tuple[float, float, float]
        Minimum corner.

    Returns
    -------
    TriangleMesh
        Two triangles per grid cell on each side. The enclosed volume is
        ``prod(divisions) * spacing**3``.

    Examples
    --------
    >>> mesh = load((3, 3, 2))
    >>> mesh.n_faces
    84
    """
    if len(divisions) != 3 or any(n < 1 for n in divisions):
        raise ValueError(f"divisions must be three positive integers, got {divisions=}")
    if spacing <= 0:
        raise ValueError(f"spacing must be positive, got {spacing=}")

    points: list[tuple[float, float, float]] = []
    index: dict[tuple[int, int, int], int] = {}

    def vertex(lattice: tuple[int, int, int]) -> int:
        if lattice not in index:
            index[lattice] = len(points)
            points.append(tuple(origin[d] + lattice[d] * spacing for d in range(3)))
        return index[lattice]

    faces = []
    for axis in range(3):
        # e_b x e_c == e_axis for the cyclic successors b and c
        b, c = (axis + 1) % 3, (axis + 2) % 3
        for level, (first, second) in ((divisions[axis], (b, c)), (0, (c, b))):
            for s in range(divisions[first]):
                for t in range(divisions[second]):
                    corners = []
                    for ds, dt in ((0, 0), (1, 0), (1, 1), (0, 1)):
                        lattice = [0, 0, 0]
                        lattice[axis] = level
                        lattice[first] = s + ds
                        lattice[second] = t + dt
                        corners.append(vertex(tuple(lattice)))
                    p00, p10, p11, p01 = corners
                    faces.append((p00, p10, p11))
                    faces.append((p00, p11, p01))

    return TriangleMesh(points=points, faces=faces)
