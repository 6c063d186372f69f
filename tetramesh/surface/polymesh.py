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

"""Boundary (surface) mesh representations.

A boundary mesh is an index-addressed list of vertices, a list of faces
(each a sequence of vertex indices, counter-clockwise when seen from outside
the solid), and one unit normal per face.

Capabilities are split so consumers only see what they need:

- :class:`PolyMesh` is the read-only contract used by the discretizer.
- :class:`MutablePolyMesh` adds ``add_vertex`` / ``add_face`` for builders
  such as the OBJ loader and the primitive generators.

:class:`PolygonMesh` stores general polygons (three or more vertices per
face); :class:`TriangleMesh` stores triangles only.
"""

import math
import operator
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence

import torch

from tetramesh.exceptions import DegenerateFaceError, IndexingError

Point3 = tuple[float, float, float]

# A face normal whose cross product is this small relative to the product of
# the two edge lengths is treated as zero (first three vertices collinear).
_COLLINEAR_SINE_TOLERANCE = 1e-12


class PolyMesh(ABC):
    """Read-only boundary mesh capability.

    All index accessors raise :class:`IndexingError` for indices outside
    ``[0, count)``; negative indices are not wrapped.
    """

    @property
    @abstractmethod
    def n_vertices(self) -> int:
        """Number of vertices."""

    @property
    @abstractmethod
    def n_faces(self) -> int:
        """Number of faces."""

    @abstractmethod
    def get_vertex(self, index: int) -> Point3:
        """Coordinates of vertex ``index``."""

    @abstractmethod
    def get_face(self, index: int) -> tuple[int, ...]:
        """Vertex indices of face ``index``."""

    @abstractmethod
    def get_normal(self, index: int) -> Point3:
        """Unit normal of face ``index``."""

    @property
    @abstractmethod
    def points(self) -> torch.Tensor:
        """Vertex coordinates as a ``(n_vertices, 3)`` float64 tensor."""

    @property
    @abstractmethod
    def normals(self) -> torch.Tensor:
        """Face normals as a ``(n_faces, 3)`` float64 tensor."""

    def iter_faces(self) -> Iterator[tuple[int, ...]]:
        """Iterate over faces in index order."""
        for index in range(self.n_faces):
            yield self.get_face(index)

    def edge_face_counts(self) -> dict[tuple[int, int], int]:
        """Number of faces using each undirected edge, keyed by sorted vertex pair.

        A closed surface maps every edge to 2.
        """
        from tetramesh.surface._topology import count_edge_faces

        edges, counts = count_edge_faces(self)
        return {tuple(edge): count for edge, count in zip(edges.tolist(), counts.tolist())}


class MutablePolyMesh(ABC):
    """Builder capability: append vertices and faces."""

    @abstractmethod
    def add_vertex(self, vertex: Sequence[float]) -> int:
        """Append a vertex and return its index."""

    @abstractmethod
    def add_face(
        self, face: Sequence[int], normal: Sequence[float] | None = None
    ) -> int:
        """Append a face (and its normal) and return the face index."""


def _check_index(index: int, count: int) -> int:
    index = operator.index(index)
    if not 0 <= index < count:
        raise IndexingError("Indexing failed.")
    return index


class _SurfaceStorage(PolyMesh, MutablePolyMesh):
    """List-backed storage shared by :class:`PolygonMesh` and :class:`TriangleMesh`."""

    min_face_vertices: int = 3
    max_face_vertices: int | None = None

    def __init__(
        self,
        points: torch.Tensor | Sequence[Sequence[float]] | None = None,
        faces: torch.Tensor | Sequence[Sequence[int]] | None = None,
        normals: torch.Tensor | Sequence[Sequence[float]] | None = None,
    ):
        self._vertices: list[Point3] = []
        self._faces: list[tuple[int, ...]] = []
        self._normals: list[Point3] = []
        self._points_tensor: torch.Tensor | None = None

        if points is not None:
            for point in _as_nested_list(points):
                self.add_vertex(point)

        if faces is None:
            if normals is not None:
                raise ValueError("Normals were given without faces.")
            return

        faces = [tuple(face) for face in _as_nested_list(faces)]
        if normals is None:
            for face in faces:
                self.add_face(face)
        else:
            normals = _as_nested_list(normals)
            if len(normals) != len(faces):
                raise ValueError(
                    f"Expected one normal per face, got {len(normals)=} and {len(faces)=}."
                )
            for face, normal in zip(faces, normals):
                self.add_face(face, normal)

    ### Read capability

    @property
    def n_vertices(self) -> int:
        return len(self._vertices)

    @property
    def n_faces(self) -> int:
        return len(self._faces)

    def get_vertex(self, index: int) -> Point3:
        return self._vertices[_check_index(index, len(self._vertices))]

    def get_face(self, index: int) -> tuple[int, ...]:
        return self._faces[_check_index(index, len(self._faces))]

    def get_normal(self, index: int) -> Point3:
        return self._normals[_check_index(index, len(self._normals))]

    @property
    def points(self) -> torch.Tensor:
        if self._points_tensor is None:
            self._points_tensor = torch.tensor(
                self._vertices, dtype=torch.float64
            ).reshape(-1, 3)
        return self._points_tensor

    @property
    def normals(self) -> torch.Tensor:
        return torch.tensor(self._normals, dtype=torch.float64).reshape(-1, 3)

    ### Mutation capability

    def add_vertex(self, vertex: Sequence[float]) -> int:
        """Append a vertex and return its index.

        Parameters
        ----------
        vertex : Sequence[float]
            Three finite coordinates.

        Returns
        -------
        int
            The index assigned to the vertex. Indices are never reused.

        Raises
        ------
        ValueError
            If ``vertex`` does not have three finite coordinates.
        """
        coords = tuple(float(x) for x in vertex)
        if len(coords) != 3:
            raise ValueError(f"Vertices must have 3 coordinates, got {coords=}.")
        if not all(math.isfinite(x) for x in coords):
            raise ValueError(f"Vertex coordinates must be finite, got {coords=}.")
        self._vertices.append(coords)
        self._points_tensor = None
        return len(self._vertices) - 1

    def add_face(
        self, face: Sequence[int], normal: Sequence[float] | None = None
    ) -> int:
        """Append a face and its normal, returning the new face index.

        Parameters
        ----------
        face : Sequence[int]
            Vertex indices, counter-clockwise when seen from outside.
        normal : Sequence[float], optional
            Explicit normal. It is normalized before being stored. If omitted,
            the normal is ``normalize((v1 - v0) x (v2 - v0))``.

        Returns
        -------
        int
            The index assigned to the face.

        Raises
        ------
        ValueError
            If the face has too few (or, for triangle meshes, too many) indices.
        IndexingError
            If an index does not refer to an existing vertex.
        DegenerateFaceError
            If the normal is numerically zero. Nothing is appended in that case.
        """
        indices = tuple(operator.index(i) for i in face)
        if len(indices) < self.min_face_vertices:
            raise ValueError(
                f"Faces need at least {self.min_face_vertices} vertices, got {indices=}."
            )
        if self.max_face_vertices is not None and len(indices) > self.max_face_vertices:
            raise ValueError(
                f"{type(self).__name__} faces have exactly {self.max_face_vertices} "
                f"vertices, got {indices=}."
            )
        n_vertices = len(self._vertices)
        if any(not 0 <= i < n_vertices for i in indices):
            raise IndexingError("Vertex not contained in mesh.")

        if normal is None:
            unit_normal = self._compute_normal(indices)
        else:
            unit_normal = _normalize(tuple(float(x) for x in normal), indices)

        self._faces.append(indices)
        self._normals.append(unit_normal)
        return len(self._faces) - 1

    def _compute_normal(self, face: tuple[int, ...]) -> Point3:
        p0, p1, p2 = (self._vertices[i] for i in face[:3])
        e1 = (p1[0] - p0[0], p1[1] - p0[1], p1[2] - p0[2])
        e2 = (p2[0] - p0[0], p2[1] - p0[1], p2[2] - p0[2])
        cross = (
            e1[1] * e2[2] - e1[2] * e2[1],
            e1[2] * e2[0] - e1[0] * e2[2],
            e1[0] * e2[1] - e1[1] * e2[0],
        )
        norm = _length(cross)
        if norm == 0.0 or norm <= _COLLINEAR_SINE_TOLERANCE * _length(e1) * _length(e2):
            raise DegenerateFaceError(
                f"The first three vertices of face {face} are collinear; "
                "its normal is undefined."
            )
        return (cross[0] / norm, cross[1] / norm, cross[2] / norm)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_vertices={self.n_vertices}, n_faces={self.n_faces})"


def _length(v: Sequence[float]) -> float:
    return (v[0] * v[0] + v[1] * v[1] + v[2] * v[2]) ** 0.5


def _normalize(normal: tuple[float, ...], face: tuple[int, ...]) -> Point3:
    if len(normal) != 3:
        raise ValueError(f"Normals must have 3 components, got {normal=}.")
    norm = _length(normal)
    if not norm > 0.0 or not math.isfinite(norm):
        raise DegenerateFaceError(f"Explicit normal {normal} of face {face} is zero.")
    return (normal[0] / norm, normal[1] / norm, normal[2] / norm)


def _as_nested_list(values) -> list:
    if isinstance(values, torch.Tensor):
        return values.tolist()
    return list(values)


class PolygonMesh(_SurfaceStorage):
    """Boundary mesh whose faces are planar polygons with three or more vertices.

    Parameters
    ----------
    points : torch.Tensor | Sequence[Sequence[float]], optional
        Vertex coordinates, shape ``(n_vertices, 3)``.
    faces : Sequence[Sequence[int]], optional
        Vertex index lists, each counter-clockwise when seen from outside.
    normals : torch.Tensor | Sequence[Sequence[float]], optional
        Explicit face normals. Computed from the first three vertices of each
        face when omitted.

    Examples
    --------
    >>> mesh = PolygonMesh()
    >>> for p in [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]:
    ...     _ = mesh.add_vertex(p)
    >>> mesh.add_face([0, 1, 2, 3])
    0
    >>> mesh.get_normal(0)
    (0.0, 0.0, 1.0)
    """

    @property
    def faces(self) -> list[tuple[int, ...]]:
        """Copy of the face index lists."""
        return list(self._faces)

    def to_triangle_mesh(self) -> "TriangleMesh":
        """Convert to a :class:`TriangleMesh`.

        Triangles are copied unchanged. Every face with four or more vertices
        is replaced by a fan of triangles around a new vertex at the polygon's
        centroid; each fan triangle inherits the polygon's normal. Original
        vertex indices are preserved, centroid vertices are appended after them.

        Returns
        -------
        TriangleMesh
            A new, independent triangle mesh.
        """
        mesh = TriangleMesh()
        for vertex in self._vertices:
            mesh.add_vertex(vertex)

        for face, normal in zip(self._faces, self._normals):
            if len(face) == 3:
                mesh.add_face(face, normal)
                continue

            n = len(face)
            centroid = tuple(
                sum(self._vertices[i][axis] for i in face) / n for axis in range(3)
            )
            center = mesh.add_vertex(centroid)
            for k in range(n):
                mesh.add_face((center, face[k], face[(k + 1) % n]), normal)

        return mesh


class TriangleMesh(_SurfaceStorage):
    """Boundary mesh whose faces are all triangles.

    Parameters
    ----------
    points : torch.Tensor | Sequence[Sequence[float]], optional
        Vertex coordinates, shape ``(n_vertices, 3)``.
    faces : torch.Tensor | Sequence[Sequence[int]], optional
        Triangle vertex indices, shape ``(n_faces, 3)``.
    normals : torch.Tensor | Sequence[Sequence[float]], optional
        Explicit face normals.
    """

    max_face_vertices = 3

    @property
    def faces(self) -> torch.Tensor:
        """Triangle connectivity as a ``(n_faces, 3)`` int64 tensor."""
        return torch.tensor(self._faces, dtype=torch.int64).reshape(-1, 3)

    def to_triangle_mesh(self) -> "TriangleMesh":
        """Return ``self``; a triangle mesh needs no conversion."""
        return self
