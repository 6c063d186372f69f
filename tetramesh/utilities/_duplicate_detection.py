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

"""Coincident point detection.

Used by the discretizer to reject surfaces with duplicated vertices before
any tetrahedralization work starts, and by cell mesh validation.

Algorithm
---------
1. Split the points into row blocks to bound memory.
2. For each block, compute exact L2 distances to all later points with
   :func:`torch.cdist`.
3. Keep pairs below ``tolerance`` with ``i < j``.
"""

import torch

# Rows per block; the distance matrix per block is (block, n_points).
_BLOCK_SIZE = 1024


def find_duplicate_pairs(
    points: torch.Tensor,
    tolerance: float,
) -> torch.Tensor:
    """Find all pairs of points whose L2 distance is below *tolerance*.

    Every returned pair satisfies ``i < j``.

    Parameters
    ----------
    points : torch.Tensor
        Point coordinates, shape (n_points, n_spatial_dims).
    tolerance : float
        Absolute distance threshold. A distance equal to zero is always
        reported, even when ``tolerance`` is zero.

    Returns
    -------
    torch.Tensor
        Duplicate pairs, shape (n_pairs, 2) with ``pairs[:, 0] < pairs[:, 1]``,
        sorted lexicographically. Empty (0, 2) tensor if no duplicates are found.

    Examples
    --------
    >>> import torch
    >>> pts = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    >>> find_duplicate_pairs(pts, 1e-9).tolist()
    [[0, 2]]
    """
    n_points = points.shape[0]
    device = points.device

    if n_points < 2:
        return torch.empty((0, 2), dtype=torch.long, device=device)

    all_pairs = []
    for start in range(0, n_points, _BLOCK_SIZE):
        stop = min(start + _BLOCK_SIZE, n_points)
        distances = torch.cdist(
            points[start:stop], points, compute_mode="donot_use_mm_for_euclid_dist"
        )  # (block, n_points)

        ### Keep only j > i (canonical order, no self-pairs)
        rows = torch.arange(start, stop, device=device).unsqueeze(1)
        cols = torch.arange(n_points, device=device).unsqueeze(0)
        close = ((distances < tolerance) | (distances == 0)) & (cols > rows)

        block_i, block_j = torch.nonzero(close, as_tuple=True)
        if len(block_i) > 0:
            all_pairs.append(torch.stack([block_i + start, block_j], dim=1))

    if not all_pairs:
        return torch.empty((0, 2), dtype=torch.long, device=device)

    return torch.cat(all_pairs, dim=0)
