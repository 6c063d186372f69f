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

"""Boundary recovery and interior carving.

After all surface vertices are inserted, the Delaunay tetrahedralization
does not necessarily contain every surface triangle as a face. Recovery
tracks the surface as *subfaces*: oriented triangles tagged with the index of
the surface face they tile. Initially there is one subface per surface
triangle; Steiner points split them.

For each missing subface, in order:

1. If one of its edges is missing, try a 2-3 flip that creates the edge,
   then edge removals whose ring triangulation contains it. Otherwise split
   the edge at its midpoint.
2. If all edges exist but the face does not, remove an edge crossing the
   face with a ring triangulation containing the face (the 3-2 flip is the
   smallest case). Otherwise insert a Steiner point at the projection of the
   subface circumcenter onto the subface: the circumcenter itself if it lies
   inside, else the midpoint of the longest edge.

Flips never remove a recovered subface or subface edge. Steiner insertion
avoids crossing recovered subfaces, but its cavity may still grow through one
when that is the only way to keep the retriangulation valid. Every pass
rescans all subfaces, so one lost this way is recovered again. The number of
Steiner points is bounded by the configured budget.

Once the surface is recovered, :func:`carve_interior` keeps the cells on the
inner side of the surface and drops the rest.
"""

import logging
from collections import deque
from collections.abc import Iterator, Sequence
from itertools import combinations

import torch

from tetramesh.discretization._delaunay import (
    DelaunayTetrahedralization,
    EdgeKey,
    FaceKey,
    edge_key,
    face_key,
    oriented_faces,
)
from tetramesh.exceptions import BoundaryRecoveryError, MeshInvariantError
from tetramesh.geometry._predicates import segment_crosses_triangle
from tetramesh.geometry._tetrahedra import compute_circumcenters

logger = logging.getLogger(__name__)

# Barycentric margin for accepting a circumcenter as a Steiner point.
_CIRCUMCENTER_INSIDE_MARGIN = 1e-6


class SurfaceConstraints:
    """Oriented subfaces that must appear as faces of the tetrahedralization.

    Parameters
    ----------
    triangles : Sequence[tuple[int, int, int]]
        Surface triangles, counter-clockwise seen from outside.
    origins : Sequence[int]
        For each triangle, the index of the input surface face it came from.
    """

    def __init__(self, triangles: Sequence[Sequence[int]], origins: Sequence[int]):
        if len(triangles) != len(origins):
            raise ValueError(f"{len(triangles)=} must equal {len(origins)=}.")
        self.faces: dict[int, tuple[int, int, int]] = {}
        self.origins: dict[int, int] = {}
        self._by_key: dict[FaceKey, int] = {}
        self._next_id = 0
        for triangle, origin in zip(triangles, origins):
            self.add(tuple(triangle), origin)

    def add(self, face: tuple[int, int, int], origin: int) -> int:
        key = face_key(*face)
        if key in self._by_key:
            raise MeshInvariantError(f"Surface triangle {face} is duplicated.")
        sid = self._next_id
        self._next_id += 1
        self.faces[sid] = face
        self.origins[sid] = origin
        self._by_key[key] = sid
        return sid

    def remove(self, sid: int) -> None:
        face = self.faces.pop(sid)
        del self.origins[sid]
        del self._by_key[face_key(*face)]

    def keys(self) -> set[FaceKey]:
        return set(self._by_key)

    def edges(self) -> set[EdgeKey]:
        return {
            edge_key(face[k], face[(k + 1) % 3])
            for face in self.faces.values()
            for k in range(3)
        }

    def origin_of(self, key: FaceKey) -> int | None:
        """Surface face index tiled by the subface with this key, if any."""
        sid = self._by_key.get(key)
        return None if sid is None else self.origins[sid]

    def faces_with_edge(self, u: int, v: int) -> list[int]:
        return [
            sid
            for sid, face in self.faces.items()
            if u in face and v in face
        ]

    def split_edge(self, u: int, v: int, steiner: int) -> None:
        """Split every subface containing edge ``(u, v)`` at ``steiner``."""
        for sid in self.faces_with_edge(u, v):
            face = self.faces[sid]
            origin = self.origins[sid]
            # Rotate so the split edge is (face[0], face[1])
            while {face[0], face[1]} != {u, v}:
                face = (face[1], face[2], face[0])
            a, b, c = face
            self.remove(sid)
            self.add((a, steiner, c), origin)
            self.add((steiner, b, c), origin)

    def split_face(self, sid: int, steiner: int) -> None:
        """Split subface ``sid`` into three triangles around ``steiner``."""
        a, b, c = self.faces[sid]
        origin = self.origins[sid]
        self.remove(sid)
        self.add((a, b, steiner), origin)
        self.add((b, c, steiner), origin)
        self.add((c, a, steiner), origin)


def _locks(
    tri: DelaunayTetrahedralization, constraints: SurfaceConstraints
) -> tuple[set[FaceKey], set[EdgeKey]]:
    """Recovered subfaces and subface edges, which flips must preserve."""
    faces = {key for key in constraints.keys() if tri.has_face(key)}
    edges = {edge for edge in constraints.edges() if tri.has_edge(*edge)}
    return faces, edges


def _missing_edge(tri: DelaunayTetrahedralization, face: Sequence[int]) -> EdgeKey | None:
    for k in range(3):
        u, v = face[k], face[(k + 1) % 3]
        if not tri.has_edge(u, v):
            return (u, v)
    return None


def _recover_edge(
    tri: DelaunayTetrahedralization,
    constraints: SurfaceConstraints,
    u: int,
    v: int,
) -> bool:
    locked_faces, locked_edges = _locks(tri, constraints)

    ### 2-3 flip through a face separating u from v
    for tid in tri.vertex_tets(u):
        if tid not in tri.tets:
            continue
        tet = tri.tets[tid]
        local = tet.index(u)
        neighbor = tri.neighbor(tid, local)
        if neighbor is None or v not in tri.tets[neighbor]:
            continue
        key = face_key(*(x for x in tet if x != u))
        if key in locked_faces:
            continue
        candidate = tri.flip23(key)
        if candidate is not None and tri.replace(*candidate, locked_faces, locked_edges):
            logger.debug(f"Recovered edge {(u, v)} with a 2-3 flip")
            return True

    ### Edge removal of an edge whose ring contains both u and v
    for tid in tri.vertex_tets(u):
        if tid not in tri.tets:
            continue
        others = [x for x in tri.tets[tid] if x != u]
        for a, b in combinations(others, 2):
            if edge_key(a, b) in locked_edges:
                continue
            for old_ids, new_tets, triangles in tri.edge_removals(a, b):
                if not any(u in t and v in t for t in triangles):
                    continue
                if tri.replace(old_ids, new_tets, locked_faces, locked_edges):
                    logger.debug(f"Recovered edge {(u, v)} by removing edge {(a, b)}")
                    return True
    return False


def _crossing_edges(
    tri: DelaunayTetrahedralization, face: Sequence[int]
) -> Iterator[tuple[int, int]]:
    """Edges of the triangulation crossing the interior of ``face``.

    Candidates are ring edges around the three edges of the face.
    """
    p = tri.points
    i, j, k = face
    seen = set()
    for a, b in ((i, j), (j, k), (k, i)):
        found = tri.edge_ring(a, b)
        if found is None:
            continue
        _, ring = found
        for m in range(len(ring)):
            x, y = ring[m], ring[(m + 1) % len(ring)]
            key = edge_key(x, y)
            if key in seen:
                continue
            seen.add(key)
            if segment_crosses_triangle(p[x], p[y], p[i], p[j], p[k]):
                yield key


def _recover_face(
    tri: DelaunayTetrahedralization,
    constraints: SurfaceConstraints,
    face: Sequence[int],
) -> bool:
    locked_faces, locked_edges = _locks(tri, constraints)
    target = face_key(*face)
    for a, b in list(_crossing_edges(tri, face)):
        if edge_key(a, b) in locked_edges or not tri.has_edge(a, b):
            continue
        for old_ids, new_tets, triangles in tri.edge_removals(a, b):
            if not any(face_key(*t) == target for t in triangles):
                continue
            if tri.replace(old_ids, new_tets, locked_faces, locked_edges):
                logger.debug(f"Recovered face {tuple(face)} by removing edge {(a, b)}")
                return True
    return False


def _steiner_location(
    tri: DelaunayTetrahedralization, face: Sequence[int]
) -> tuple[tuple[float, float, float], EdgeKey | None]:
    """Projection of the circumcenter of ``face`` onto the face.

    Returns
    -------
    tuple
        ``(point, edge)`` where ``edge`` is None if the circumcenter lies
        inside the face, else the longest edge whose midpoint is ``point``.
    """
    corners = torch.tensor([[tri.points[v] for v in face]], dtype=torch.float64)
    center = compute_circumcenters(corners)[0]

    a, b, c = corners[0]
    normal = torch.cross(b - a, c - a, dim=-1)
    area2 = (normal * normal).sum()
    barycentric = torch.stack(
        [
            (torch.cross(b - center, c - center, dim=-1) * normal).sum(),
            (torch.cross(c - center, a - center, dim=-1) * normal).sum(),
            (torch.cross(a - center, b - center, dim=-1) * normal).sum(),
        ]
    ) / area2
    if bool((barycentric > _CIRCUMCENTER_INSIDE_MARGIN).all()):
        return tuple(center.tolist()), None

    ### Circumcenter outside: it projects onto the midpoint of the longest edge
    edges = [(face[0], face[1]), (face[1], face[2]), (face[2], face[0])]
    lengths = [
        sum((tri.points[u][d] - tri.points[v][d]) ** 2 for d in range(3))
        for u, v in edges
    ]
    u, v = edges[max(range(3), key=lambda m: lengths[m])]
    return _midpoint(tri, u, v), (u, v)


def _midpoint(tri: DelaunayTetrahedralization, u: int, v: int) -> tuple[float, float, float]:
    pu, pv = tri.points[u], tri.points[v]
    return tuple((pu[d] + pv[d]) / 2 for d in range(3))


def _insert_steiner_point(
    tri: DelaunayTetrahedralization,
    constraints: SurfaceConstraints,
    sid: int,
    point: tuple[float, float, float],
    edge: EdgeKey | None,
) -> int:
    if edge is None:
        splitting = {face_key(*constraints.faces[sid])}
    else:
        splitting = {
            face_key(*constraints.faces[s]) for s in constraints.faces_with_edge(*edge)
        }
    protected = {key for key in constraints.keys() if tri.has_face(key)} - splitting

    steiner = tri.add_point(point)
    tri.insert_vertex(steiner, protected=protected)
    if edge is None:
        constraints.split_face(sid, steiner)
    else:
        constraints.split_edge(*edge, steiner)
    return steiner


def recover_boundary(
    tri: DelaunayTetrahedralization,
    constraints: SurfaceConstraints,
    max_steiner_points: int,
) -> int:
    """Make every subface a face of the tetrahedralization.

    Parameters
    ----------
    tri : DelaunayTetrahedralization
        Triangulation containing every surface vertex. Modified in place.
    constraints : SurfaceConstraints
        Surface subfaces. Modified in place when Steiner points split them.
    max_steiner_points : int
        Maximum number of Steiner points to insert.

    Returns
    -------
    int
        Number of Steiner points inserted.

    Raises
    ------
    BoundaryRecoveryError
        If recovery needs more than ``max_steiner_points`` Steiner points.
    """
    n_steiner = 0
    while True:
        sid = next(
            (s for s, face in constraints.faces.items() if not tri.has_face(face_key(*face))),
            None,
        )
        if sid is None:
            return n_steiner
        face = constraints.faces[sid]

        edge = _missing_edge(tri, face)
        if edge is not None:
            if _recover_edge(tri, constraints, *edge):
                continue
            location, split = _midpoint(tri, *edge), edge
        else:
            if _recover_face(tri, constraints, face):
                continue
            location, split = _steiner_location(tri, face)

        if n_steiner >= max_steiner_points:
            raise BoundaryRecoveryError(
                f"Boundary recovery exceeded the budget of {max_steiner_points} Steiner "
                f"points; surface face {constraints.origins[sid]} could not be recovered. "
                "The surface may self-intersect."
            )
        steiner = _insert_steiner_point(tri, constraints, sid, location, split)
        n_steiner += 1
        logger.debug(
            f"Inserted Steiner point {steiner} at {location} for subface {face}"
            + (f" (split edge {split})" if split is not None else "")
        )


def carve_interior(
    tri: DelaunayTetrahedralization, constraints: SurfaceConstraints
) -> None:
    """Delete every cell outside the recovered surface.

    Cells on the inner side of a subface (the side its normal points away
    from) seed a flood fill that never crosses a subface.

    Raises
    ------
    MeshInvariantError
        If a subface is missing, the interior touches the super-tetrahedron,
        or a subface does not separate interior from exterior.
    """
    keys = constraints.keys()

    interior: dict[int, None] = {}
    queue = deque()
    for face in constraints.faces.values():
        owners = tri.face_tets(face_key(*face))
        if not owners:
            raise MeshInvariantError(f"Subface {face} is missing after recovery.")
        for tid in owners:
            apex = next(v for v in tri.tets[tid] if v not in face)
            if tri.orient(*face, apex) < 0 and tid not in interior:
                interior[tid] = None
                queue.append(tid)

    while queue:
        tid = queue.popleft()
        for local, face in enumerate(oriented_faces(tri.tets[tid])):
            if face_key(*face) in keys:
                continue
            neighbor = tri.neighbor(tid, local)
            if neighbor is not None and neighbor not in interior:
                interior[neighbor] = None
                queue.append(neighbor)

    for tid in interior:
        if any(tri.is_super_vertex(v) for v in tri.tets[tid]):
            raise MeshInvariantError(
                "Interior region reached the super-tetrahedron; the recovered surface "
                "does not enclose a volume."
            )
    for face in constraints.faces.values():
        inside = [tid for tid in tri.face_tets(face_key(*face)) if tid in interior]
        if len(inside) != 1:
            raise MeshInvariantError(
                f"Subface {face} borders {len(inside)} interior cells, expected 1."
            )

    tri.retain(interior)
