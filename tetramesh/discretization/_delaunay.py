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

"""Incremental Delaunay tetrahedralization with local retriangulation.

:class:`DelaunayTetrahedralization` maintains a conforming set of positively
oriented tetrahedra over a growing point pool, starting from a bounding
super-tetrahedron. It provides the primitive operations the discretizer is
built from:

- Bowyer-Watson vertex insertion (:meth:`~DelaunayTetrahedralization.insert_vertex`).
  The cavity is every cell reachable from the containing cell whose
  circumsphere contains the new point; cospherical cells are included. The
  cavity is then grown until every boundary face is strictly visible from
  the point, so coning the point to the boundary is always a valid
  triangulation, even for the degenerate configurations (cube corners,
  coplanar faces) that exact predicates expose.
- Local flips: 2-3 face flips and edge removal (which re-triangulates the
  ring of cells around an edge with every triangulation of the ring polygon,
  covering the 3-2 and 4-4 flips as special cases).

Every replacement of a set of cells goes through one validator: the new
cells must all be strictly positively oriented and have exactly the same
oriented boundary as the cells they replace. Those two conditions together
imply the new cells tile the same region conformingly.

Cells are kept in insertion order and all iteration is over ordered
containers, so identical input produces an identical triangulation.
"""

import logging
from collections import defaultdict, deque
from collections.abc import Iterable, Iterator, Sequence
from functools import lru_cache
from itertools import combinations

import torch

from tetramesh.exceptions import MeshInvariantError
from tetramesh.geometry._predicates import insphere, orient3d
from tetramesh.geometry._tetrahedra import TET_FACES, compute_min_dihedral_angles

logger = logging.getLogger(__name__)

Point = tuple[float, float, float]
Tet = tuple[int, int, int, int]
FaceKey = tuple[int, int, int]
EdgeKey = tuple[int, int]

# Circumradius of the super-tetrahedron, in multiples of the radius of the
# input's bounding sphere.
SUPER_TETRAHEDRON_SCALE = 60.0

# Edge rings larger than this are not re-triangulated (Catalan growth).
MAX_EDGE_RING_SIZE = 7


def face_key(a: int, b: int, c: int) -> FaceKey:
    """Orientation-free key of a triangle."""
    return tuple(sorted((a, b, c)))


def edge_key(a: int, b: int) -> EdgeKey:
    """Orientation-free key of an edge."""
    return (a, b) if a < b else (b, a)


def _parity(a: int, b: int, c: int) -> int:
    """+1 if ``(a, b, c)`` is an even permutation of its sorted order, else -1."""
    inversions = (a > b) + (a > c) + (b > c)
    return -1 if inversions % 2 else 1


def oriented_faces(tet: Tet) -> Iterator[tuple[int, int, int]]:
    """The four faces of ``tet``, each wound outward for a positive cell."""
    for local in TET_FACES:
        yield (tet[local[0]], tet[local[1]], tet[local[2]])


def boundary_chain(tets: Iterable[Tet]) -> dict[FaceKey, int]:
    """Oriented boundary of a set of cells as a face -> orientation mapping.

    Interior faces, traversed once in each direction, cancel out. The result
    maps each remaining face key to its net orientation (``+1``/``-1``
    relative to sorted order; any other value means the cells overlap).
    """
    chain: dict[FaceKey, int] = defaultdict(int)
    for tet in tets:
        for a, b, c in oriented_faces(tet):
            chain[face_key(a, b, c)] += _parity(a, b, c)
    return {key: value for key, value in chain.items() if value != 0}


@lru_cache(maxsize=None)
def polygon_triangulations(n: int) -> tuple[tuple[tuple[int, int, int], ...], ...]:
    """Every triangulation of a convex ``n``-gon, over positions ``0..n-1``.

    Examples
    --------
    >>> polygon_triangulations(4)
    (((1, 2, 3), (0, 1, 3)), ((0, 1, 2), (0, 2, 3)))
    >>> len(polygon_triangulations(6))
    14
    """

    def triangulate(lo: int, hi: int) -> list[tuple[tuple[int, int, int], ...]]:
        if hi - lo < 2:
            return [()]
        result = []
        for apex in range(lo + 1, hi):
            for left in triangulate(lo, apex):
                for right in triangulate(apex, hi):
                    result.append(left + right + ((lo, apex, hi),))
        return result

    return tuple(triangulate(0, n - 1))


class DelaunayTetrahedralization:
    """Mutable tetrahedralization of a point pool inside a super-tetrahedron.

    Parameters
    ----------
    points : Sequence[Sequence[float]]
        Input points. They keep their indices; the four super-tetrahedron
        vertices are appended after them and Steiner points after those.
        No point is inserted until :meth:`insert_vertex` is called.

    Attributes
    ----------
    points : list[tuple[float, float, float]]
        The point pool.
    tets : dict[int, tuple[int, int, int, int]]
        Live cells by id, in creation order. Every cell is positively oriented.
    n_input_points : int
        Number of points supplied at construction.
    super_vertices : tuple[int, int, int, int]
        Indices of the super-tetrahedron vertices.
    """

    def __init__(self, points: Sequence[Sequence[float]]):
        self.points: list[Point] = [tuple(float(x) for x in p) for p in points]
        self.n_input_points = len(self.points)
        if self.n_input_points == 0:
            raise ValueError("Cannot tetrahedralize an empty point set.")

        self.tets: dict[int, Tet] = {}
        self._face_tets: dict[FaceKey, list[int]] = {}
        self._vertex_tets: dict[int, dict[int, None]] = defaultdict(dict)
        self._tet_keys: set[tuple[int, ...]] = set()
        self._next_id = 0
        self._last_created: int | None = None

        self.super_vertices = self._add_super_tetrahedron()

    ### Construction helpers

    def _add_super_tetrahedron(self) -> Tet:
        coords = torch.tensor(self.points, dtype=torch.float64)
        lo = coords.min(dim=0).values
        hi = coords.max(dim=0).values
        center = (lo + hi) / 2
        radius = torch.linalg.vector_norm(coords - center, dim=-1).max().item()
        if radius == 0.0:
            radius = 1.0

        # Regular tetrahedron inscribed in a sphere of radius R has inradius R / 3
        circumradius = SUPER_TETRAHEDRON_SCALE * radius
        offset = circumradius / 3**0.5
        c = center.tolist()
        corners = [
            (c[0] + sx * offset, c[1] + sy * offset, c[2] + sz * offset)
            for sx, sy, sz in ((1, 1, 1), (1, -1, -1), (-1, 1, -1), (-1, -1, 1))
        ]
        first = len(self.points)
        self.points.extend(corners)
        tet = self.orient_positive((first, first + 1, first + 2, first + 3))
        if tet is None:
            raise MeshInvariantError("Super-tetrahedron is degenerate.")
        self._add(tet)
        return tuple(range(first, first + 4))

    def add_point(self, point: Sequence[float]) -> int:
        """Append a (Steiner) point to the pool without inserting it."""
        self.points.append(tuple(float(x) for x in point))
        return len(self.points) - 1

    def is_super_vertex(self, vertex: int) -> bool:
        return self.super_vertices[0] <= vertex <= self.super_vertices[-1]

    ### Incidence queries

    def _add(self, tet: Tet) -> int:
        key = tuple(sorted(tet))
        if key in self._tet_keys:
            raise MeshInvariantError(f"Cell {tet} already exists in the triangulation.")
        tid = self._next_id
        self._next_id += 1
        self.tets[tid] = tet
        self._tet_keys.add(key)
        for vertex in tet:
            self._vertex_tets[vertex][tid] = None
        for a, b, c in oriented_faces(tet):
            owners = self._face_tets.setdefault(face_key(a, b, c), [])
            owners.append(tid)
            if len(owners) > 2:
                raise MeshInvariantError(
                    f"Face {face_key(a, b, c)} is shared by more than two cells: {owners}."
                )
        self._last_created = tid
        return tid

    def _remove(self, tid: int) -> None:
        tet = self.tets.pop(tid)
        self._tet_keys.discard(tuple(sorted(tet)))
        for vertex in tet:
            del self._vertex_tets[vertex][tid]
        for a, b, c in oriented_faces(tet):
            key = face_key(a, b, c)
            owners = self._face_tets[key]
            owners.remove(tid)
            if not owners:
                del self._face_tets[key]
        if self._last_created == tid:
            self._last_created = None

    def face_tets(self, key: FaceKey) -> list[int]:
        """Cells containing the face (zero, one, or two)."""
        return list(self._face_tets.get(key, ()))

    def has_face(self, key: FaceKey) -> bool:
        return key in self._face_tets

    def vertex_tets(self, vertex: int) -> list[int]:
        """Cells incident to ``vertex``, in creation order."""
        return list(self._vertex_tets.get(vertex, ()))

    def edge_tets(self, u: int, v: int) -> list[int]:
        """Cells containing edge ``(u, v)``."""
        around_v = self._vertex_tets.get(v, {})
        return [tid for tid in self._vertex_tets.get(u, ()) if tid in around_v]

    def has_edge(self, u: int, v: int) -> bool:
        around_v = self._vertex_tets.get(v, {})
        return any(tid in around_v for tid in self._vertex_tets.get(u, ()))

    def neighbor(self, tid: int, local: int) -> int | None:
        """Cell across the face of ``tid`` opposite its ``local``-th vertex."""
        tet = self.tets[tid]
        a, b, c = (tet[i] for i in TET_FACES[local])
        for other in self._face_tets[face_key(a, b, c)]:
            if other != tid:
                return other
        return None

    ### Geometry helpers

    def orient(self, a: int, b: int, c: int, d: int) -> int:
        p = self.points
        return orient3d(p[a], p[b], p[c], p[d])

    def orient_positive(self, tet: Sequence[int]) -> Tet | None:
        """``tet`` reordered to positive orientation, or None if it is flat."""
        sign = self.orient(*tet)
        if sign > 0:
            return tuple(tet)
        if sign < 0:
            return (tet[1], tet[0], tet[2], tet[3])
        return None

    def cone(
        self, triangles: Sequence[Sequence[int]], apexes: Sequence[int]
    ) -> list[Tet] | None:
        """Positively oriented cells joining every apex to every triangle.

        Returns None if any of them is flat.
        """
        new_tets = []
        for triangle in triangles:
            for apex in apexes:
                oriented = self.orient_positive((apex, *triangle))
                if oriented is None:
                    return None
                new_tets.append(oriented)
        return new_tets

    def min_dihedral(self, tets: Sequence[Tet]) -> float:
        """Smallest dihedral angle over ``tets``, in radians."""
        if not tets:
            return float("inf")
        coords = torch.tensor(
            [[self.points[v] for v in tet] for tet in tets], dtype=torch.float64
        )
        return compute_min_dihedral_angles(coords).min().item()

    ### Point location and insertion

    def locate(self, point: Point) -> int:
        """Id of a cell whose closure contains ``point``.

        Walks from the most recently created cell towards the point, crossing
        the first face that has the point strictly on its outer side. Falls
        back to a linear scan if the walk cycles.
        """
        tid = self._last_created
        if tid is None or tid not in self.tets:
            tid = next(iter(self.tets))

        p = self.points
        for _ in range(len(self.tets) + 1):
            tet = self.tets[tid]
            for local, (i, j, k) in enumerate(TET_FACES):
                if orient3d(p[tet[i]], p[tet[j]], p[tet[k]], point) > 0:
                    next_tid = self.neighbor(tid, local)
                    if next_tid is None:
                        raise MeshInvariantError(
                            f"Point {point} lies outside the super-tetrahedron."
                        )
                    tid = next_tid
                    break
            else:
                return tid

        logger.debug(f"Visibility walk cycled while locating {point}; scanning all cells")
        for tid, tet in self.tets.items():
            if all(
                orient3d(p[tet[i]], p[tet[j]], p[tet[k]], point) <= 0
                for i, j, k in TET_FACES
            ):
                return tid
        raise MeshInvariantError(f"No cell contains point {point}.")

    def _cavity_boundary(self, cavity: dict[int, None]) -> list[tuple[int, int, int]]:
        boundary = []
        for tid in cavity:
            for local, face in enumerate(oriented_faces(self.tets[tid])):
                neighbor = self.neighbor(tid, local)
                if neighbor is None or neighbor not in cavity:
                    boundary.append(face)
        return boundary

    def _find_cavity(
        self, vertex: int, start: int, protected: frozenset[FaceKey]
    ) -> dict[int, None]:
        p = self.points
        point = p[vertex]

        ### Breadth-first search over cells whose circumsphere contains the point
        cavity = {start: None}
        queue = deque([start])
        while queue:
            tid = queue.popleft()
            for local, (a, b, c) in enumerate(oriented_faces(self.tets[tid])):
                if face_key(a, b, c) in protected:
                    continue
                neighbor = self.neighbor(tid, local)
                if neighbor is None or neighbor in cavity:
                    continue
                w, x, y, z = self.tets[neighbor]
                # Ties (cospherical points) join the cavity
                if insphere(p[w], p[x], p[y], p[z], point) >= 0:
                    cavity[neighbor] = None
                    queue.append(neighbor)

        ### Grow until every boundary face is strictly visible from the point
        grown = True
        while grown:
            grown = False
            for tid in list(cavity):
                for local, (a, b, c) in enumerate(oriented_faces(self.tets[tid])):
                    neighbor = self.neighbor(tid, local)
                    if neighbor in cavity:
                        continue
                    if orient3d(p[a], p[b], p[c], point) < 0:
                        continue
                    if neighbor is None:
                        raise MeshInvariantError(
                            f"Cavity of vertex {vertex} reached the triangulation hull."
                        )
                    cavity[neighbor] = None
                    grown = True
        return cavity

    def insert_vertex(
        self, vertex: int, protected: Iterable[FaceKey] = ()
    ) -> list[int]:
        """Insert pool point ``vertex`` with the Bowyer-Watson cavity rule.

        Parameters
        ----------
        vertex : int
            Index into :attr:`points` of a point not yet in the triangulation.
        protected : Iterable[FaceKey], optional
            Faces the circumsphere search does not cross. They are only
            crossed if needed to keep the retriangulation valid.

        Returns
        -------
        list[int]
            Ids of the newly created cells.

        Raises
        ------
        MeshInvariantError
            If the point coincides with an existing vertex, or the cavity
            retriangulation is empty or invalid.
        """
        point = self.points[vertex]
        start = self.locate(point)
        if any(self.points[v] == point for v in self.tets[start]):
            raise MeshInvariantError(f"Vertex {vertex} duplicates an existing vertex.")

        cavity = self._find_cavity(vertex, start, frozenset(protected))
        boundary = self._cavity_boundary(cavity)
        new_tets = [(vertex, a, b, c) for a, b, c in boundary]
        if not new_tets:
            raise MeshInvariantError(
                f"Cavity retriangulation for vertex {vertex} produced zero cells."
            )

        ### Every vertex of the cavity must survive on its boundary
        old_vertices = {v for tid in cavity for v in self.tets[tid]}
        kept_vertices = {v for face in boundary for v in face}
        lost = old_vertices - kept_vertices
        if lost:
            raise MeshInvariantError(
                f"Cavity of vertex {vertex} swallowed existing vertices {sorted(lost)}."
            )

        created = self.replace(list(cavity), new_tets)
        if created is None:
            raise MeshInvariantError(
                f"Cavity retriangulation for vertex {vertex} is not a valid tiling."
            )
        return created

    ### Local retriangulation

    def is_valid_replacement(
        self,
        old_ids: Sequence[int],
        new_tets: Sequence[Tet],
        locked_faces: set[FaceKey] | frozenset[FaceKey] = frozenset(),
        locked_edges: set[EdgeKey] | frozenset[EdgeKey] = frozenset(),
    ) -> bool:
        """Whether ``new_tets`` can replace cells ``old_ids``.

        The new cells must be strictly positively oriented, share the oriented
        boundary of the old cells, and must not remove any locked face or edge.
        """
        if not new_tets:
            return False
        if any(self.orient(*tet) <= 0 for tet in new_tets):
            return False

        old_tets = [self.tets[tid] for tid in old_ids]
        if boundary_chain(old_tets) != boundary_chain(new_tets):
            return False

        if locked_faces:
            new_faces = {face_key(*f) for tet in new_tets for f in oriented_faces(tet)}
            for tet in old_tets:
                for f in oriented_faces(tet):
                    key = face_key(*f)
                    if key in locked_faces and key not in new_faces:
                        return False

        if locked_edges:
            new_edges = {edge_key(a, b) for tet in new_tets for a, b in combinations(tet, 2)}
            for tet in old_tets:
                for a, b in combinations(tet, 2):
                    key = edge_key(a, b)
                    if key in locked_edges and key not in new_edges:
                        return False

        # New cells must not duplicate cells outside the replaced set
        old_keys = {tuple(sorted(tet)) for tet in old_tets}
        return all(
            tuple(sorted(tet)) in old_keys or tuple(sorted(tet)) not in self._tet_keys
            for tet in new_tets
        )

    def replace(
        self,
        old_ids: Sequence[int],
        new_tets: Sequence[Tet],
        locked_faces: set[FaceKey] | frozenset[FaceKey] = frozenset(),
        locked_edges: set[EdgeKey] | frozenset[EdgeKey] = frozenset(),
    ) -> list[int] | None:
        """Replace cells ``old_ids`` by ``new_tets`` if the replacement is valid.

        Returns
        -------
        list[int] | None
            Ids of the created cells, or None (and no change) if invalid.
        """
        if not self.is_valid_replacement(old_ids, new_tets, locked_faces, locked_edges):
            return None
        for tid in old_ids:
            self._remove(tid)
        return [self._add(tet) for tet in new_tets]

    def flip23(self, key: FaceKey) -> tuple[list[int], list[Tet]] | None:
        """Candidate 2-3 flip across face ``key``.

        Returns
        -------
        tuple[list[int], list[Tet]] | None
            ``(old_ids, new_tets)`` for :meth:`replace`, or None if the face
            is not shared by two cells or a new cell would be flat. The
            candidate still has to pass :meth:`is_valid_replacement`.
        """
        owners = self._face_tets.get(key, ())
        if len(owners) != 2:
            return None
        first, second = owners
        d = next(v for v in self.tets[first] if v not in key)
        e = next(v for v in self.tets[second] if v not in key)
        a, b, c = key
        new_tets = []
        for tet in ((d, e, a, b), (d, e, b, c), (d, e, c, a)):
            oriented = self.orient_positive(tet)
            if oriented is None:
                return None
            new_tets.append(oriented)
        return [first, second], new_tets

    def edge_ring(self, u: int, v: int) -> tuple[list[int], list[int]] | None:
        """Cells around edge ``(u, v)`` and the cyclically ordered ring of
        vertices opposite it.

        Returns None if the edge does not exist or its ring is open (the edge
        lies on the boundary of the triangulated region).
        """
        tids = self.edge_tets(u, v)
        if len(tids) < 3:
            return None

        adjacency: dict[int, list[int]] = defaultdict(list)
        for tid in tids:
            a, b = (x for x in self.tets[tid] if x != u and x != v)
            adjacency[a].append(b)
            adjacency[b].append(a)
        if any(len(neighbors) != 2 for neighbors in adjacency.values()):
            return None

        start = next(iter(adjacency))
        ring = [start]
        previous, current = None, start
        while True:
            first, second = adjacency[current]
            following = second if first == previous else first
            if following == start:
                break
            ring.append(following)
            previous, current = current, following
            if len(ring) > len(tids):
                return None
        if len(ring) != len(tids):
            return None
        return tids, ring

    def edge_removals(
        self, u: int, v: int, max_ring_size: int = MAX_EDGE_RING_SIZE
    ) -> Iterator[tuple[list[int], list[Tet], list[tuple[int, int, int]]]]:
        """Candidate retriangulations removing edge ``(u, v)``.

        For each triangulation of the ring polygon around the edge, yields
        ``(old_ids, new_tets, ring_triangles)`` where every ring triangle is
        coned to both ``u`` and ``v``. Candidates with a flat cell are skipped;
        the rest still have to pass :meth:`is_valid_replacement`.
        """
        found = self.edge_ring(u, v)
        if found is None:
            return
        tids, ring = found
        if len(ring) > max_ring_size:
            return

        for triangulation in polygon_triangulations(len(ring)):
            triangles = [(ring[a], ring[b], ring[c]) for a, b, c in triangulation]
            new_tets = self.cone(triangles, (u, v))
            if new_tets is not None:
                yield tids, new_tets, triangles

    ### Region management

    def retain(self, keep: Iterable[int]) -> None:
        """Delete every cell whose id is not in ``keep``."""
        keep = set(keep)
        for tid in [tid for tid in self.tets if tid not in keep]:
            self._remove(tid)
