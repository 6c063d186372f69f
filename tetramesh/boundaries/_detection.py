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

"""Boundary detection for tetrahedral cell meshes.

A face is on the boundary if it belongs to exactly one cell. For a valid
tetrahedralization of a closed surface, the boundary faces are exactly the
(possibly subdivided) input surface faces.
"""

from typing import TYPE_CHECKING

import torch

from tetramesh.boundaries._facet_extraction import (
    categorize_facets_by_count,
    extract_candidate_facets,
)

if TYPE_CHECKING:
    from tetramesh.volume.cell_mesh import CellMesh


def get_boundary_faces(mesh: "CellMesh") -> torch.Tensor:
    """Unique faces belonging to exactly one cell.

    Parameters
    ----------
    mesh : CellMesh
        Input cell mesh.

    Returns
    -------
    torch.Tensor
        Sorted vertex triples, shape ``(n_boundary_faces, 3)``, in
        lexicographic order. Winding is not preserved.

    Examples
    --------
    >>> import torch
    >>> from tetramesh.volume import CellMesh
    >>> points = torch.tensor([[0., 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    >>> mesh = CellMesh(points=points, cells=torch.tensor([[0, 1, 2, 3]]))
    >>> get_boundary_faces(mesh).shape
    torch.Size([4, 3])
    """
    n_facet_vertices = mesh.cells.shape[1] - 1
    if mesh.n_cells == 0:
        return torch.empty((0, n_facet_vertices), dtype=torch.int64, device=mesh.cells.device)

    candidate_facets, _ = extract_candidate_facets(mesh.cells, manifold_codimension=1)
    boundary_facets, _, _ = categorize_facets_by_count(
        candidate_facets, target_counts="boundary"
    )
    return boundary_facets


def get_boundary_cells(mesh: "CellMesh") -> torch.Tensor:
    """Indices of cells with at least one boundary face, in ascending order."""
    if mesh.n_cells == 0:
        return torch.empty(0, dtype=torch.int64, device=mesh.cells.device)

    candidate_facets, parent_cells = extract_candidate_facets(
        mesh.cells, manifold_codimension=1
    )
    _, inverse, _ = categorize_facets_by_count(candidate_facets, target_counts="boundary")
    return torch.unique(parent_cells[inverse >= 0])


def get_boundary_vertices(mesh: "CellMesh") -> torch.Tensor:
    """Boolean mask of shape ``(n_points,)``, True for vertices on a boundary face."""
    mask = torch.zeros(mesh.n_points, dtype=torch.bool, device=mesh.points.device)
    boundary_faces = get_boundary_faces(mesh)
    if len(boundary_faces) > 0:
        mask[boundary_faces.flatten()] = True
    return mask


def get_overshared_faces(mesh: "CellMesh") -> torch.Tensor:
    """Faces shared by more than two cells (a non-conforming tetrahedralization).

    Returns
    -------
    torch.Tensor
        Sorted vertex triples, shape ``(n_faces, 3)``. Empty for a valid mesh.
    """
    n_facet_vertices = mesh.cells.shape[1] - 1
    if mesh.n_cells == 0:
        return torch.empty((0, n_facet_vertices), dtype=torch.int64, device=mesh.cells.device)

    candidate_facets, _ = extract_candidate_facets(mesh.cells, manifold_codimension=1)
    unique_facets, _, counts = categorize_facets_by_count(candidate_facets, "all")
    return unique_facets[counts > 2]
