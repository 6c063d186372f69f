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

"""Quality metrics for tetrahedral cells.

Higher quality means better shaped cells: the regular tetrahedron has a
radius ratio of 1 and all six dihedral angles equal to ``arccos(1/3)``.
"""

from typing import TYPE_CHECKING

import torch
from tensordict import TensorDict

from tetramesh.geometry._tetrahedra import TET_EDGES, compute_radius_ratios

if TYPE_CHECKING:
    from tetramesh.volume.cell_mesh import CellMesh


def compute_cell_edge_lengths(mesh: "CellMesh") -> torch.Tensor:
    """Lengths of the six edges of every tetrahedron.

    Returns
    -------
    torch.Tensor
        Shape ``(n_cells, 6)``, edges ordered as
        :data:`~tetramesh.geometry.TET_EDGES`.
    """
    if mesh.n_cells == 0:
        return torch.zeros((0, 6), dtype=mesh.points.dtype, device=mesh.points.device)

    cell_vertices = mesh.cell_vertices  # (n_cells, 4, 3)
    i_indices = torch.tensor([i for i, _ in TET_EDGES], device=mesh.points.device)
    j_indices = torch.tensor([j for _, j in TET_EDGES], device=mesh.points.device)
    edge_vectors = cell_vertices[:, j_indices] - cell_vertices[:, i_indices]
    return torch.linalg.vector_norm(edge_vectors, dim=-1)


def compute_quality_metrics(mesh: "CellMesh") -> TensorDict:
    """Compute geometric quality metrics for all cells.

    Returns TensorDict with per-cell quality metrics:

    - volume: unsigned cell volume
    - min_dihedral_angle / max_dihedral_angle: in radians
    - min_edge_length / max_edge_length
    - edge_length_ratio: max_edge / min_edge (1.0 is regular)
    - radius_ratio: ``3 * inradius / circumradius`` in [0, 1]
    - quality_score: the radius ratio (1.0 is a regular tetrahedron)

    Parameters
    ----------
    mesh : CellMesh
        Tetrahedral mesh to analyze.

    Returns
    -------
    TensorDict
        TensorDict of shape ``(n_cells,)`` with quality metrics.

    Examples
    --------
    >>> import torch
    >>> from tetramesh.volume import CellMesh
    >>> points = torch.tensor([[0., 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    >>> mesh = CellMesh(points=points, cells=torch.tensor([[0, 1, 2, 3]]))
    >>> metrics = compute_quality_metrics(mesh)
    >>> assert "quality_score" in metrics.keys()
    """
    if mesh.n_cells == 0:
        return TensorDict({}, batch_size=torch.Size([0]), device=mesh.points.device)

    edge_lengths = compute_cell_edge_lengths(mesh)
    min_edge = edge_lengths.min(dim=-1).values
    max_edge = edge_lengths.max(dim=-1).values

    dihedral = mesh.dihedral_angles
    radius_ratio = compute_radius_ratios(mesh.cell_vertices)

    ### Flat cells have a zero-length edge or zero radius ratio
    edge_length_ratio = max_edge / min_edge.clamp(min=torch.finfo(min_edge.dtype).tiny)

    return TensorDict(
        {
            "volume": mesh.cell_volumes,
            "min_dihedral_angle": dihedral.min(dim=-1).values,
            "max_dihedral_angle": dihedral.max(dim=-1).values,
            "min_edge_length": min_edge,
            "max_edge_length": max_edge,
            "edge_length_ratio": edge_length_ratio,
            "radius_ratio": radius_ratio,
            "quality_score": radius_ratio,
        },
        batch_size=torch.Size([mesh.n_cells]),
        device=mesh.points.device,
    )
