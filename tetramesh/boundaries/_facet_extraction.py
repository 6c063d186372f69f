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

"""Facet extraction for simplicial cell and surface meshes.

Extracts lower-dimensional simplices from cell connectivity:

- Tetrahedra (4 vertices) -> triangular faces [codimension 1]
- Tetrahedra (4 vertices) -> edges [codimension 2]
- Triangles (3 vertices) -> edges [codimension 1]

Facets are returned in sorted (canonical) vertex order, so shared facets
compare equal regardless of which parent produced them.
"""

from itertools import combinations
from typing import Literal

import torch


def _generate_combination_indices(n: int, k: int) -> torch.Tensor:
    """All ``k``-element combinations of ``range(n)``, shape ``(C(n, k), k)``.

    Examples
    --------
    >>> _generate_combination_indices(4, 3)
    tensor([[0, 1, 2],
            [0, 1, 3],
            [0, 2, 3],
            [1, 2, 3]])
    """
    return torch.tensor(list(combinations(range(n), k)), dtype=torch.int64)


def categorize_facets_by_count(
    candidate_facets: torch.Tensor,  # shape: (n_candidate_facets, n_vertices_per_facet)
    target_counts: list[int] | Literal["boundary", "shared", "interior", "all"] = "all",
) -> tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """Deduplicate facets and optionally filter by occurrence count.

    Parameters
    ----------
    candidate_facets : torch.Tensor
        All candidate facets (may contain duplicates), already sorted.
    target_counts : list[int] | {"boundary", "shared", "interior", "all"}, optional
        How to filter the results:
        - "all": every unique facet (no filtering)
        - "boundary": facets appearing exactly once
        - "interior": facets appearing exactly twice
        - "shared": facets appearing two or more times
        - list[int]: facets whose count is in the list

    Returns
    -------
    tuple[torch.Tensor, torch.Tensor, torch.Tensor]
        ``(unique_facets, inverse_indices, counts)``. When filtering,
        ``inverse_indices`` maps candidates of dropped facets to ``-1``.

    Examples
    --------
    >>> import torch
    >>> # Faces of two tetrahedra glued along face (1, 2, 3)
    >>> candidates = torch.tensor(
    ...     [[0, 1, 2], [0, 1, 3], [0, 2, 3], [1, 2, 3],
    ...      [1, 2, 3], [1, 2, 4], [1, 3, 4], [2, 3, 4]]
    ... )
    >>> boundary, _, _ = categorize_facets_by_count(candidates, "boundary")
    >>> boundary.shape[0]
    6
    """
    unique_facets, inverse_indices, counts = torch.unique(
        candidate_facets,
        dim=0,
        return_inverse=True,
        return_counts=True,
    )

    if target_counts == "all":
        return unique_facets, inverse_indices, counts
    elif target_counts == "boundary":
        mask = counts == 1
    elif target_counts == "interior":
        mask = counts == 2
    elif target_counts == "shared":
        mask = counts >= 2
    elif isinstance(target_counts, list):
        mask = torch.zeros_like(counts, dtype=torch.bool)
        for target_count in target_counts:
            mask |= counts == target_count
    else:
        raise ValueError(
            f"Invalid {target_counts=}. "
            f"Must be 'all', 'boundary', 'interior', 'shared', or a list of integers."
        )

    ### Remap inverse indices onto the filtered facets (-1 for dropped ones)
    old_to_new = torch.full(
        (len(unique_facets),), -1, dtype=torch.int64, device=unique_facets.device
    )
    old_to_new[mask] = torch.arange(
        int(mask.sum()), dtype=torch.int64, device=unique_facets.device
    )

    return unique_facets[mask], old_to_new[inverse_indices], counts[mask]


def extract_candidate_facets(
    cells: torch.Tensor,  # shape: (n_cells, n_vertices_per_cell)
    manifold_codimension: int = 1,
) -> tuple[torch.Tensor, torch.Tensor]:
    """Extract every codimension-``k`` sub-simplex of every cell.

    Each cell with ``n`` vertices yields ``C(n, n - k)`` sorted candidates.
    Candidates shared by several cells appear once per parent.

    Parameters
    ----------
    cells : torch.Tensor
        Connectivity, shape ``(n_cells, n_vertices_per_cell)``.
    manifold_codimension : int, optional
        1 for faces of tetrahedra (or edges of triangles), 2 for edges of
        tetrahedra.

    Returns
    -------
    candidate_facets : torch.Tensor
        Shape ``(n_cells * n_combinations, n_vertices_per_facet)``.
    parent_cell_indices : torch.Tensor
        Parent cell of each candidate, shape ``(n_cells * n_combinations,)``.

    Raises
    ------
    ValueError
        If ``manifold_codimension`` is not in ``[1, n_vertices_per_cell - 1]``.

    Examples
    --------
    >>> import torch
    >>> facets, parents = extract_candidate_facets(torch.tensor([[3, 0, 2, 1]]))
    >>> facets.tolist()
    [[0, 2, 3], [0, 1, 3], [1, 2, 3], [0, 1, 2]]
    """
    n_cells, n_vertices_per_cell = cells.shape
    n_vertices_per_facet = n_vertices_per_cell - manifold_codimension

    if manifold_codimension < 1:
        raise ValueError(f"{manifold_codimension=} must be >= 1.")
    if n_vertices_per_facet < 1:
        raise ValueError(
            f"{manifold_codimension=} is too large for {n_vertices_per_cell=}. "
            f"Maximum allowed codimension is {n_vertices_per_cell - 1}."
        )

    combination_indices = _generate_combination_indices(
        n_vertices_per_cell, n_vertices_per_facet
    ).to(cells.device)
    n_combinations = len(combination_indices)

    ### Gather facet vertex ids: (n_cells, n_combinations, n_vertices_per_facet)
    candidate_facets = torch.gather(
        cells.unsqueeze(1).expand(-1, n_combinations, -1),
        dim=2,
        index=combination_indices.unsqueeze(0).expand(n_cells, -1, -1),
    )
    candidate_facets = torch.sort(candidate_facets, dim=-1)[0]
    candidate_facets = candidate_facets.reshape(-1, n_vertices_per_facet)

    parent_cell_indices = torch.arange(
        n_cells, device=cells.device, dtype=torch.int64
    ).repeat_interleave(n_combinations)

    return candidate_facets, parent_cell_indices
