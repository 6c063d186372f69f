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

"""Mesh statistics and summary information."""

from collections.abc import Mapping
from typing import TYPE_CHECKING

import torch

from tetramesh.validation.quality import compute_quality_metrics

if TYPE_CHECKING:
    from tetramesh.volume.cell_mesh import CellMesh


def _summarize(values: torch.Tensor) -> tuple[float, float, float, float]:
    """(min, mean, max, std) of a 1D tensor."""
    return (
        values.min().item(),
        values.mean().item(),
        values.max().item(),
        values.std(correction=0).item(),
    )


def compute_mesh_statistics(
    mesh: "CellMesh",
    tolerance: float = 1e-12,
) -> Mapping[str, int | float | tuple[float, float, float, float]]:
    """Compute summary statistics for a tetrahedral mesh.

    Returns dictionary with mesh statistics:

    - n_points, n_cells
    - total_volume
    - n_degenerate_cells: cells with volume < tolerance
    - n_isolated_vertices: vertices not in any cell
    - n_boundary_faces
    - edge_length_stats, cell_volume_stats, min_dihedral_angle_stats,
      quality_score_stats: (min, mean, max, std)

    Parameters
    ----------
    mesh : CellMesh
        Mesh to analyze.
    tolerance : float
        Threshold for degenerate cell detection.

    Returns
    -------
    Mapping[str, int | float | tuple[float, float, float, float]]
        Dictionary with statistics.

    Examples
    --------
    >>> import torch
    >>> from tetramesh.volume import CellMesh
    >>> points = torch.tensor([[0., 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    >>> mesh = CellMesh(points=points, cells=torch.tensor([[0, 1, 2, 3]]))
    >>> stats = compute_mesh_statistics(mesh)
    >>> stats["n_boundary_faces"]
    4
    """
    stats = {
        "n_points": mesh.n_points,
        "n_cells": mesh.n_cells,
    }

    if mesh.n_cells == 0:
        stats["total_volume"] = 0.0
        stats["n_degenerate_cells"] = 0
        stats["n_isolated_vertices"] = mesh.n_points
        stats["n_boundary_faces"] = 0
        stats["edge_length_stats"] = (0.0, 0.0, 0.0, 0.0)
        stats["cell_volume_stats"] = (0.0, 0.0, 0.0, 0.0)
        return stats

    volumes = mesh.cell_volumes
    stats["total_volume"] = volumes.sum().item()
    stats["n_degenerate_cells"] = (volumes < tolerance).sum().item()

    used_vertices = torch.unique(mesh.cells.flatten())
    stats["n_isolated_vertices"] = mesh.n_points - len(used_vertices)
    stats["n_boundary_faces"] = len(mesh.boundary_faces())

    quality_metrics = compute_quality_metrics(mesh)
    min_edge = quality_metrics["min_edge_length"]
    max_edge = quality_metrics["max_edge_length"]
    stats["edge_length_stats"] = (
        min_edge.min().item(),
        (min_edge.mean().item() + max_edge.mean().item()) / 2.0,
        max_edge.max().item(),
        max_edge.std(correction=0).item(),
    )
    stats["cell_volume_stats"] = _summarize(volumes)
    stats["min_dihedral_angle_stats"] = _summarize(
        quality_metrics["min_dihedral_angle"]
    )
    stats["quality_score_stats"] = _summarize(quality_metrics["quality_score"])

    return stats
