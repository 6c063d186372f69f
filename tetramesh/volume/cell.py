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

"""Volumetric cell types and their identity contract.

A cell is an ordered tuple of vertex positions. Identity ignores the order:
two cells are equal when one's vertices are a permutation of the other's.
For tetrahedra this is checked against the full 24-element permutation group
of four positions (not only rotations), because a tetrahedron has no
canonical starting vertex or winding.

Point equality is exact. Cells produced by one discretization draw their
coordinates from a single shared vertex pool, so equal vertices are
bit-identical.
"""

import itertools
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import ClassVar

Point3 = tuple[float, float, float]

# Every permutation of the local vertex positions (0, 1, 2, 3).
PERMUTATIONS_OF_FOUR: tuple[tuple[int, int, int, int], ...] = tuple(
    itertools.permutations(range(4))
)


class Cell(ABC):
    """A volumetric element defined by ``n_vertices`` points.

    Subclasses set :attr:`n_vertices` and implement :attr:`volume` and
    :meth:`faces`. Equality and hashing are permutation invariant.

    Parameters
    ----------
    *vertices : Sequence[float]
        Exactly ``n_vertices`` points with three coordinates each.
    """

    n_vertices: ClassVar[int]

    __slots__ = ("_vertices",)

    def __init__(self, *vertices: Sequence[float]):
        if len(vertices) != self.n_vertices:
            raise ValueError(
                f"{type(self).__name__} needs {self.n_vertices} vertices, "
                f"got {len(vertices)}."
            )
        points = tuple(tuple(float(x) for x in vertex) for vertex in vertices)
        if any(len(point) != 3 for point in points):
            raise ValueError(f"Cell vertices must have 3 coordinates, got {points=}.")
        self._vertices: tuple[Point3, ...] = points

    @property
    def vertices(self) -> tuple[Point3, ...]:
        """Vertex positions in construction order."""
        return self._vertices

    @property
    @abstractmethod
    def volume(self) -> float:
        """Unsigned volume of the cell."""

    @abstractmethod
    def faces(self) -> list[tuple[Point3, ...]]:
        """Boundary faces of the cell as tuples of points."""

    def __len__(self) -> int:
        return self.n_vertices

    def __iter__(self) -> Iterator[Point3]:
        return iter(self._vertices)

    def __getitem__(self, index: int) -> Point3:
        return self._vertices[index]

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(self._vertices))))

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self._vertices}"


class Tetrahedron(Cell):
    """A four-vertex cell.

    Construction does not reject degenerate (flat) tetrahedra; the
    discretizer's quality filter is responsible for those.

    Examples
    --------
    >>> a, b, c, d = (0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)
    >>> Tetrahedron(a, b, c, d) == Tetrahedron(d, c, a, b)
    True
    >>> Tetrahedron(a, b, c, d) == Tetrahedron(a, b, c, (0, 0, 2))
    False
    >>> Tetrahedron(a, b, c, d).volume
    0.16666666666666666
    """

    n_vertices = 4

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tetrahedron):
            return NotImplemented
        mine = self._vertices
        theirs = other._vertices
        return any(
            all(mine[perm[i]] == theirs[i] for i in range(4))
            for perm in PERMUTATIONS_OF_FOUR
        )

    __hash__ = Cell.__hash__

    @property
    def signed_volume(self) -> float:
        """``det[b - a, c - a, d - a] / 6``; positive for positive orientation."""
        a, b, c, d = self._vertices
        u = (b[0] - a[0], b[1] - a[1], b[2] - a[2])
        v = (c[0] - a[0], c[1] - a[1], c[2] - a[2])
        w = (d[0] - a[0], d[1] - a[1], d[2] - a[2])
        det = (
            u[0] * (v[1] * w[2] - v[2] * w[1])
            - u[1] * (v[0] * w[2] - v[2] * w[0])
            + u[2] * (v[0] * w[1] - v[1] * w[0])
        )
        return det / 6.0

    @property
    def volume(self) -> float:
        return abs(self.signed_volume)

    def faces(self) -> list[tuple[Point3, Point3, Point3]]:
        """The four triangular faces, face ``i`` opposite vertex ``i``.

        Faces are wound so their normals point outward when the tetrahedron
        is positively oriented.
        """
        a, b, c, d = self._vertices
        return [(b, c, d), (a, d, c), (a, b, d), (a, c, b)]
