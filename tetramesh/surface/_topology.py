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

"""Topology checks for boundary (surface) meshes.

A surface can only be discretized if it bounds a solid:

- Closed (watertight): every undirected edge is shared by exactly two faces.
- Consistently oriented: the two faces sharing an edge traverse it in
  opposite directions, so every directed edge occurs exactly once.
- Outward facing: the enclosed signed volume is positive.
"""

from typing import TYPE_CHECKING

import torch

from tetramesh.boundaries._facet_extraction import categorize_facets_by_count
from tetramesh.exceptions import (
    DegenerateInputError,
    InconsistentOrientationError,
    OpenSurfaceError,
)
from tetramesh.utilities._tolerances import bounding_box_diagonal

if TYPE_CHECKING:
    from tetramesh.surface.polymesh import PolyMesh

# Number of offending edges quoted in error messages.
_MAX_REPORTED_EDGES = 10

# Signed volumes below this fraction of the bounding box diagonal cubed are zero.
_FLAT_VOLUME_TOLERANCE = 1e-12


def extract_directed_edges(surface: "PolyMesh") -> torch.Tensor:
    """Directed edges ``(f[k], f[k + 1])`` of every face, in face order.

    Returns
    -------
    torch.Tensor
        Shape ``(n_edges, 2)``, int64. A closed surface with ``F`` triangles
        has ``3F`` directed edges.
    """
    edges = [
        (face[k], face[(k + 1) % len(face)])
        for face in surface.iter_faces()
        for k in range(len(face))
    ]
    return torch.tensor(edges, dtype=torch.int64).reshape(-1, 2)


def count_edge_faces(surface: "PolyMesh") -> tuple[torch.Tensor, torch.Tensor]:
    """Unique undirected edges and the number of faces using each.

    Returns
    -------
    tuple[torch.Tensor, torch.Tensor]
        Sorted vertex pairs of shape ``(n_unique_edges, 2)`` in lexicographic
        order, and their face counts of shape ``(n_unique_edges,)``.
    """
    directed = extract_directed_edges(surface)
    if len(directed) == 0:
        return directed, torch.zeros(0, dtype=torch.int64)
    undirected = torch.sort(directed, dim=-1)[0]
    unique_edges, _, counts = categorize_facets_by_count(undirected, "all")
    return unique_edges, counts


def find_open_edges(surface: "PolyMesh") -> torch.Tensor:
    """Undirected edges not shared by exactly two faces.

    Includes boundary edges (one face) and non-manifold edges (three or more).

    Returns
    -------
    torch.Tensor
        Sorted vertex pairs, shape ``(n_open_edges, 2)``.
    """
    unique_edges, counts = count_edge_faces(surface)
    return unique_edges[counts != 2]


def find_repeated_directed_edges(surface: "PolyMesh") -> torch.Tensor:
    """Directed edges traversed by more than one face, shape ``(n, 2)``."""
    directed = extract_directed_edges(surface)
    if len(directed) == 0:
        return directed
    repeated, _, _ = categorize_facets_by_count(directed, "shared")
    return repeated


def is_closed(surface: "PolyMesh") -> bool:
    """Whether every undirected edge is shared by exactly two faces.

    Examples
    --------
    >>> from tetramesh.primitives import cube
    >>> is_closed(cube.load())
    True
    """
    return surface.n_faces > 0 and len(find_open_edges(surface)) == 0


def compute_signed_volume(surface: "PolyMesh") -> float:
    """Volume enclosed by a closed surface via the divergence theorem.

    Each polygon is fanned from its first vertex; every triangle
    ``(p0, p1, p2)`` contributes ``p0 . (p1 x p2) / 6``. The result is
    positive when the faces are counter-clockwise seen from outside.

    Returns
    -------
    float
        The signed enclosed volume.
    """
    triangles = [
        (face[0], face[k], face[k + 1])
        for face in surface.iter_faces()
        for k in range(1, len(face) - 1)
    ]
    if not triangles:
        return 0.0
    corners = surface.points[torch.tensor(triangles, dtype=torch.int64)]  # (n, 3, 3)
    contributions = (
        corners[:, 0] * torch.cross(corners[:, 1], corners[:, 2], dim=-1)
    ).sum(dim=-1)
    return contributions.sum().item() / 6.0


def check_closed(surface: "PolyMesh") -> None:
    """Raise :class:`OpenSurfaceError` unless the surface is closed.

    Raises
    ------
    OpenSurfaceError
        With ``edges`` set to every offending undirected edge.
    """
    open_edges = find_open_edges(surface)
    if surface.n_faces == 0 or len(open_edges) > 0:
        edges = [tuple(edge) for edge in open_edges.tolist()]
        raise OpenSurfaceError(
            f"Surface is not closed: {len(edges)} edges are not shared by exactly "
            f"two faces.\nFirst few edges: {edges[:_MAX_REPORTED_EDGES]}",
            edges=edges,
        )


def check_consistent_orientation(surface: "PolyMesh") -> None:
    """Raise unless the faces of a closed surface are consistently oriented outward.

    Raises
    ------
    InconsistentOrientationError
        If a directed edge is used by more than one face, or if the enclosed
        signed volume is negative (all faces wound inward).
    DegenerateInputError
        If the enclosed signed volume is zero.
    """
    repeated = find_repeated_directed_edges(surface)
    if len(repeated) > 0:
        edges = [tuple(edge) for edge in repeated.tolist()]
        raise InconsistentOrientationError(
            f"Surface is not consistently oriented: {len(edges)} directed edges "
            f"are traversed by more than one face.\n"
            f"First few edges: {edges[:_MAX_REPORTED_EDGES]}",
            edges=edges,
        )

    volume = compute_signed_volume(surface)
    scale = bounding_box_diagonal(surface.points) ** 3
    if abs(volume) <= _FLAT_VOLUME_TOLERANCE * scale:
        raise DegenerateInputError(
            f"Surface encloses no volume ({volume=:.6g}); it is flat or folded onto itself."
        )
    if volume < 0.0:
        raise InconsistentOrientationError(
            f"Surface faces are wound inward (signed volume {volume:.6g} < 0)."
        )
