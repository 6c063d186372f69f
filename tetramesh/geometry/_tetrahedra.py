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

"""Batched tetrahedron geometry.

All functions take vertex coordinates of shape ``(n_tets, 4, 3)`` and
operate on every tetrahedron at once. Computations are upcast to float64,
since dihedral angles of near-degenerate cells are exactly the quantities
the discretizer's quality filter has to resolve.
"""

import torch

from tetramesh.utilities._tolerances import safe_eps

# Local vertex pairs for the six edges of a tetrahedron, and for each edge the
# two vertices not on it (the "wing" vertices spanning the adjacent faces).
TET_EDGES = ((0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3))
TET_EDGE_WINGS = ((2, 3), (1, 3), (1, 2), (0, 3), (0, 2), (0, 1))

# Face opposite local vertex i, ordered so its normal points outward for a
# positively oriented tetrahedron.
TET_FACES = ((1, 2, 3), (0, 3, 2), (0, 1, 3), (0, 2, 1))


def compute_signed_volumes(vertices: torch.Tensor) -> torch.Tensor:
    """Signed volumes ``det[v1 - v0, v2 - v0, v3 - v0] / 6``.

    Parameters
    ----------
    vertices : torch.Tensor
        Shape ``(n_tets, 4, 3)``.

    Returns
    -------
    torch.Tensor
        Shape ``(n_tets,)``. Positive for positively oriented tetrahedra.
    """
    relative = vertices[:, 1:] - vertices[:, [0]]
    return torch.linalg.det(relative.double()).to(vertices.dtype) / 6.0


def compute_dihedral_angles(vertices: torch.Tensor) -> torch.Tensor:
    """Interior dihedral angles at the six edges of each tetrahedron.

    For edge ``(i, j)`` with wing vertices ``(k, l)``, the vectors
    ``v_k - v_i`` and ``v_l - v_i`` are projected onto the plane
    perpendicular to the edge; the dihedral angle is the angle between the
    projections, computed with ``atan2`` for stability.

    Parameters
    ----------
    vertices : torch.Tensor
        Shape ``(n_tets, 4, 3)``.

    Returns
    -------
    torch.Tensor
        Shape ``(n_tets, 6)``, in radians, ordered as :data:`TET_EDGES`.
        Degenerate (flat) tetrahedra have at least one angle of zero.

    Examples
    --------
    >>> import torch
    >>> corner = torch.tensor([[[0., 0., 0.], [1., 0., 0.], [0., 1., 0.], [0., 0., 1.]]])
    >>> angles = compute_dihedral_angles(corner)
    >>> torch.allclose(angles[0, :3], torch.full((3,), torch.pi / 2, dtype=angles.dtype))
    True
    """
    input_dtype = vertices.dtype
    v = vertices.double()
    device = v.device

    edges = torch.tensor(TET_EDGES, device=device)
    wings = torch.tensor(TET_EDGE_WINGS, device=device)

    origin = v[:, edges[:, 0]]  # (n_tets, 6, 3)
    axis = v[:, edges[:, 1]] - origin
    axis = axis / torch.linalg.vector_norm(axis, dim=-1, keepdim=True).clamp(
        min=safe_eps(torch.float64)
    )

    ### Project wing vectors onto the plane perpendicular to the edge
    wing_a = v[:, wings[:, 0]] - origin
    wing_b = v[:, wings[:, 1]] - origin
    wing_a = wing_a - (wing_a * axis).sum(dim=-1, keepdim=True) * axis
    wing_b = wing_b - (wing_b * axis).sum(dim=-1, keepdim=True) * axis

    sin_term = torch.linalg.vector_norm(torch.cross(wing_a, wing_b, dim=-1), dim=-1)
    cos_term = (wing_a * wing_b).sum(dim=-1)
    return torch.atan2(sin_term, cos_term).to(input_dtype)


def compute_min_dihedral_angles(vertices: torch.Tensor) -> torch.Tensor:
    """Smallest dihedral angle of each tetrahedron, shape ``(n_tets,)``."""
    if vertices.shape[0] == 0:
        return torch.zeros(0, dtype=vertices.dtype, device=vertices.device)
    return compute_dihedral_angles(vertices).min(dim=1).values


def compute_circumcenters(vertices: torch.Tensor) -> torch.Tensor:
    """Circumcenters of simplices using the perpendicular bisector method.

    Works for tetrahedra (``(n, 4, 3)``, square system) and for triangles
    embedded in 3D (``(n, 3, 3)``, minimum-norm least squares, which keeps
    the solution in the triangle's plane).

    Parameters
    ----------
    vertices : torch.Tensor
        Shape ``(n_simplices, n_vertices_per_simplex, 3)``.

    Returns
    -------
    torch.Tensor
        Circumcenters, shape ``(n_simplices, 3)``.

    Notes
    -----
    With ``d = c - v0``, the circumcenter ``c`` satisfies
    ``2 (v_i - v0) . d = |v_i - v0|^2`` for ``i = 1..n``.
    """
    n_simplices, n_vertices, n_spatial_dims = vertices.shape
    if n_vertices == 2:
        return vertices.mean(dim=1)

    v0 = vertices[:, 0, :]
    relative_vecs = (vertices[:, 1:, :] - v0.unsqueeze(1)).double()
    A = 2 * relative_vecs
    b = (relative_vecs**2).sum(dim=-1)

    if n_vertices - 1 == n_spatial_dims:
        try:
            c_minus_v0 = torch.linalg.solve(A, b.unsqueeze(-1)).squeeze(-1)
        except torch.linalg.LinAlgError:
            # Singular matrix (flat tetrahedron) - fall back to least squares
            c_minus_v0 = torch.linalg.lstsq(A, b.unsqueeze(-1)).solution.squeeze(-1)
    else:
        c_minus_v0 = torch.linalg.lstsq(A, b.unsqueeze(-1)).solution.squeeze(-1)

    return v0 + c_minus_v0.to(vertices.dtype)


def compute_radius_ratios(vertices: torch.Tensor) -> torch.Tensor:
    """Normalized radius ratio ``3 r_in / R_circ`` of each tetrahedron.

    Equals 1 for the regular tetrahedron and tends to 0 for slivers.

    Parameters
    ----------
    vertices : torch.Tensor
        Shape ``(n_tets, 4, 3)``.

    Returns
    -------
    torch.Tensor
        Shape ``(n_tets,)``, in ``[0, 1]``.
    """
    v = vertices.double()
    eps = safe_eps(torch.float64)
    volumes = compute_signed_volumes(v).abs()

    faces = torch.tensor(TET_FACES, device=v.device)
    face_vertices = v[:, faces]  # (n_tets, 4, 3, 3)
    face_areas = 0.5 * torch.linalg.vector_norm(
        torch.cross(
            face_vertices[:, :, 1] - face_vertices[:, :, 0],
            face_vertices[:, :, 2] - face_vertices[:, :, 0],
            dim=-1,
        ),
        dim=-1,
    )
    inradius = 3.0 * volumes / face_areas.sum(dim=1).clamp(min=eps)

    circumcenters = compute_circumcenters(v)
    circumradius = torch.linalg.vector_norm(circumcenters - v[:, 0], dim=-1)

    ratio = 3.0 * inradius / circumradius.clamp(min=eps)
    return ratio.clamp(min=0.0, max=1.0).to(vertices.dtype)
